"""NOT10 CLI游戏界面.

这个模块提供命令行界面的单机对战：一名人类玩家对战1-3个AI。
"""

import logging
from typing import Optional

import click

from ...core import DEFAULT_RULES, GameRules, GameStateError, LoggingConfig, format_money, setup_logging
from ...controller import GameConfiguration, SoloSession
from .input_handler import CLIInputHandler
from .render import CLIRenderer


class Not10CLI:
    """NOT10 CLI游戏界面.

    每个机器人行动后立即显示，轮到人类玩家时读取输入。
    """

    def __init__(self, config: GameConfiguration, rules: GameRules = DEFAULT_RULES,
                 logger: Optional[logging.Logger] = None):
        """初始化CLI游戏.

        Args:
            config: 会话配置
            rules: 游戏规则
            logger: 可选的日志记录器
        """
        self.config = config
        self.rules = rules
        self.logger = logger or logging.getLogger(__name__)
        self.session = SoloSession(config, rules=rules, logger=self.logger)
        self.controller = self.session.controller
        self.human_id = self.session.human_id

    def run(self) -> None:
        """运行游戏主循环."""
        click.echo(CLIRenderer.render_game_header(
            self.config.player_name, self.config.num_bots, self.config.starting_money
        ))
        click.echo(CLIRenderer.render_opponents(self.controller.machine.players))

        while True:
            if not self.controller.start_new_round():
                break

            view = self.controller.get_view(self.human_id)
            click.echo(CLIRenderer.render_round_header(view.current_round))
            click.echo(CLIRenderer.render_table(view, self.human_id))

            self._play_round()

            summary = self.controller.get_last_round_summary()
            view = self.controller.get_view(self.human_id)
            if summary is not None:
                click.echo(CLIRenderer.render_round_result(summary, view))
            me = view.get_player(self.human_id)
            click.echo(f"你的资金: {format_money(me.money)}")

            if self.controller.is_game_over() or not CLIInputHandler.get_continue_choice():
                break

        click.echo(CLIRenderer.render_game_over(self.controller.get_view(self.human_id)))
        click.echo("感谢游戏！")

    def _play_round(self) -> None:
        """一直行动到回合结束."""
        while not self.controller.is_round_over():
            turn_player_id = self.controller.get_turn_player_id()
            if turn_player_id is None:
                raise GameStateError("回合未结束但没有当前行动玩家")

            if self.controller.is_bot_turn():
                self._handle_ai_action(turn_player_id)
            elif turn_player_id == self.human_id:
                self._handle_human_action()
            else:
                raise GameStateError(f"无法处理玩家{turn_player_id}的回合")

    def _handle_ai_action(self, player_id: str) -> None:
        player = self.controller.machine.get_player(player_id)
        result = self.controller.process_bot_turn()
        click.echo(CLIRenderer.render_ai_action(player.name, result))

    def _handle_human_action(self) -> None:
        view = self.controller.get_view(self.human_id)
        click.echo("")
        click.echo(CLIRenderer.render_table(view, self.human_id))
        click.echo("\n轮到你行动")

        available = self.controller.available_actions(self.human_id)
        action = CLIInputHandler.get_player_action(view, self.human_id, available, self.rules)
        result = self.controller.execute_action(action)
        if not result.success:
            message = CLIRenderer.render_error_message(result.message)
            if result.suggested_action is not None:
                message += f"（建议: {result.suggested_action.value}）"
            click.echo(message)


@click.command()
@click.option('--name', default="Player", show_default=True, help="你的玩家名称")
@click.option('--bots', default=3, show_default=True, type=click.IntRange(1, 3), help="AI对手数量")
@click.option('--seed', default=None, type=int, help="随机种子，用于复现对局")
@click.option('--delay', default=0.5, show_default=True, type=click.FloatRange(min=0.0), help="AI思考延迟（秒）")
@click.option('--log-level', default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="日志级别")
def main(name: str, bots: int, seed: Optional[int], delay: float, log_level: str) -> None:
    """NOT10 单机对战."""
    logger = setup_logging(LoggingConfig(level=log_level))
    try:
        config = GameConfiguration(player_name=name, num_bots=bots, seed=seed, thinking_delay=delay)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    try:
        Not10CLI(config, logger=logger).run()
    except KeyboardInterrupt:
        click.echo("\n游戏被中断")


if __name__ == "__main__":
    main()
