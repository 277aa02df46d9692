"""NOT10 CLI输入处理模块.

这个模块负责处理用户输入，提供强校验和错误处理，
将用户输入转换为标准的ActionInput格式。
"""

import sys
from typing import List, Optional, Sequence, Tuple

import click

from ...core import DEFAULT_RULES, ActionType, GameRules, PlayPosition, dollars_to_cents, format_money
from ...controller import ActionInput, TableView

ActionOption = Tuple[ActionType, str, object]


class CLIInputHandler:
    """CLI输入处理器.

    交互式终端使用数字菜单，非交互式输入（管道、脚本）按行读取
    文本命令，例如 "bet 100"、"call"、"allin"、"finalize"、"play 2"、
    "first"、"last"，也接受菜单编号。
    """

    @staticmethod
    def build_options(view: TableView, player_id: str, available: Sequence[ActionType],
                      rules: GameRules = DEFAULT_RULES) -> List[ActionOption]:
        """把可用行动展开为菜单项.

        Args:
            view: 当前桌面视图
            player_id: 行动玩家
            available: 状态机给出的可用行动类型
            rules: 游戏规则（加注档位）

        Returns:
            [(行动类型, 描述, 参数), ...]
        """
        player = view.get_player(player_id)
        if player is None:
            return []

        options: List[ActionOption] = []
        if ActionType.BET in available:
            for amount in rules.raise_amounts:
                if amount <= player.money:
                    options.append((ActionType.BET, f"下注 {format_money(amount)}", amount))
        if ActionType.CALL in available:
            call_amount = max(0, view.highest_bet - player.committed_bet)
            options.append((ActionType.CALL, f"跟注 ({format_money(call_amount)})", None))
        if ActionType.ALL_IN in available:
            options.append((ActionType.ALL_IN, f"全押 ({format_money(player.money)})", None))
        if ActionType.FINALIZE in available:
            options.append((ActionType.FINALIZE, f"锁定下注 ({format_money(player.committed_bet)})", None))
        if ActionType.CHOOSE_POSITION in available:
            options.append((ActionType.CHOOSE_POSITION, "第一个出牌", PlayPosition.FIRST))
            options.append((ActionType.CHOOSE_POSITION, "最后一个出牌", PlayPosition.LAST))
        if ActionType.PLAY_CARD in available:
            for card in sorted(set(view.own_hand)):
                options.append((ActionType.PLAY_CARD, f"出牌 [{card}]", card))
        return options

    @staticmethod
    def option_to_action(option: ActionOption, player_id: str) -> ActionInput:
        """把菜单项转换为ActionInput."""
        action_type, _, param = option
        if action_type == ActionType.BET:
            return ActionInput(player_id=player_id, action_type=action_type, amount=param)
        if action_type == ActionType.CHOOSE_POSITION:
            return ActionInput(player_id=player_id, action_type=action_type, position=param)
        if action_type == ActionType.PLAY_CARD:
            return ActionInput(player_id=player_id, action_type=action_type, card=param)
        return ActionInput(player_id=player_id, action_type=action_type)

    @staticmethod
    def parse_text_command(command: str, player_id: str,
                           available: Sequence[ActionType]) -> Optional[ActionInput]:
        """解析文本命令.

        下注金额以美元输入，"bet 100" 表示 $100。

        Args:
            command: 用户输入的文本命令
            player_id: 玩家ID
            available: 可用行动类型

        Returns:
            解析后的ActionInput对象，无法识别或当前不可用时返回None
        """
        parts = command.lower().strip().split()
        if not parts:
            return None
        verb, args = parts[0], parts[1:]

        if verb in ('call', '跟注') and not args:
            if ActionType.CALL in available:
                return ActionInput(player_id=player_id, action_type=ActionType.CALL)

        elif verb in ('allin', 'all-in', 'all', '全押') and not args:
            if ActionType.ALL_IN in available:
                return ActionInput(player_id=player_id, action_type=ActionType.ALL_IN)

        elif verb in ('finalize', 'lock', '锁定') and not args:
            if ActionType.FINALIZE in available:
                return ActionInput(player_id=player_id, action_type=ActionType.FINALIZE)

        elif verb in ('first', 'last') and not args:
            if ActionType.CHOOSE_POSITION in available:
                return ActionInput(player_id=player_id, action_type=ActionType.CHOOSE_POSITION,
                                   position=PlayPosition(verb))

        elif verb in ('bet', '下注') and len(args) == 1:
            if ActionType.BET in available:
                try:
                    amount = dollars_to_cents(int(args[0].lstrip('$')))
                except ValueError:
                    return None
                if amount > 0:
                    return ActionInput(player_id=player_id, action_type=ActionType.BET, amount=amount)

        elif verb in ('play', '出牌') and len(args) == 1:
            if ActionType.PLAY_CARD in available:
                try:
                    card = int(args[0])
                except ValueError:
                    return None
                if card >= 0:
                    return ActionInput(player_id=player_id, action_type=ActionType.PLAY_CARD, card=card)

        return None

    @staticmethod
    def get_player_action(view: TableView, player_id: str, available: Sequence[ActionType],
                          rules: GameRules = DEFAULT_RULES) -> ActionInput:
        """获取玩家行动输入.

        Args:
            view: 当前桌面视图
            player_id: 玩家ID
            available: 可用行动类型
            rules: 游戏规则

        Returns:
            行动输入对象

        Raises:
            click.Abort: 用户取消输入或输入结束
        """
        options = CLIInputHandler.build_options(view, player_id, available, rules)
        if not options:
            raise click.Abort()

        for i, (_, description, _) in enumerate(options):
            click.echo(f"  {i + 1}. {description}")

        if not sys.stdin.isatty():
            return CLIInputHandler._read_text_action(options, player_id, available)

        choice = click.prompt(
            "请选择行动",
            type=click.IntRange(1, len(options)),
            show_choices=False,
        )
        return CLIInputHandler.option_to_action(options[choice - 1], player_id)

    @staticmethod
    def _read_text_action(options: List[ActionOption], player_id: str,
                          available: Sequence[ActionType], max_attempts: int = 10) -> ActionInput:
        for _ in range(max_attempts):
            line = sys.stdin.readline()
            if not line:
                raise click.Abort()
            line = line.strip()
            if not line:
                continue

            action = CLIInputHandler.parse_text_command(line, player_id, available)
            if action is not None:
                click.echo(f"执行行动: {line}")
                return action

            if line.isdigit() and 1 <= int(line) <= len(options):
                click.echo(f"执行行动: 选择 {line}")
                return CLIInputHandler.option_to_action(options[int(line) - 1], player_id)

            click.echo(f"错误: 无法识别命令 '{line}'，请输入有效的行动或数字选择")

        click.echo(f"错误: 达到最大尝试次数 ({max_attempts})，退出")
        raise click.Abort()

    @staticmethod
    def get_continue_choice() -> bool:
        """是否继续下一回合."""
        if not sys.stdin.isatty():
            line = sys.stdin.readline()
            if not line:
                return False
            return line.strip().lower() in ('', 'y', 'yes', '是')
        try:
            return click.confirm("是否继续下一回合?", default=True)
        except click.Abort:
            return False
