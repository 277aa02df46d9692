"""NOT10 CLI渲染模块.

这个模块负责将桌面视图渲染为命令行界面显示，
实现显示逻辑与核心游戏逻辑的分离。
"""

from typing import List, Optional, Tuple

from ...ai import PERSONALITY_DESCRIPTIONS
from ...core import ActionType, Phase, Player, PlayerStatus, PlayPosition, format_hand, format_money
from ...controller import ActionResult, PlayerState, RoundSummary, TableView

PHASE_LABELS = {
    Phase.LOBBY: "大厅",
    Phase.DEALING: "发牌",
    Phase.BETTING: "下注",
    Phase.PLAYING: "出牌",
    Phase.ROUND_END: "回合结束",
    Phase.FINISHED: "游戏结束",
}


class CLIRenderer:
    """CLI渲染器.

    所有渲染方法都是纯函数，仅依赖传入的视图数据。
    """

    @staticmethod
    def render_game_header(player_name: str, num_bots: int, starting_money: int) -> str:
        """渲染游戏头部信息.

        Args:
            player_name: 人类玩家名称
            num_bots: 机器人数量
            starting_money: 初始资金（分）

        Returns:
            格式化的头部信息字符串
        """
        lines = [
            "=== NOT10 ===",
            f"玩家: {player_name}，对手: {num_bots}名AI，初始资金: {format_money(starting_money)}",
            "规则: 桌面总点数达到10的玩家爆牌出局，幸存者按下注比例分配底池",
        ]
        return "\n".join(lines)

    @staticmethod
    def render_opponents(players: List[Player]) -> str:
        """渲染机器人对手及其性格说明."""
        lines = ["对手:"]
        for player in players:
            if player.is_bot:
                description = PERSONALITY_DESCRIPTIONS.get(player.personality, "")
                lines.append(f"  座位{player.seat_index} {player.name}: {description}")
        return "\n".join(lines)

    @staticmethod
    def render_round_header(round_no: int) -> str:
        return f"\n=== 第 {round_no} 回合 ==="

    @staticmethod
    def render_table(view: TableView, human_id: Optional[str] = None) -> str:
        """渲染当前桌面状态.

        Args:
            view: 桌面视图
            human_id: 人类玩家ID，用于标记"你"

        Returns:
            格式化的桌面状态字符串
        """
        lines = [
            f"阶段: {PHASE_LABELS.get(view.phase, view.phase.value)}",
            f"底池: {format_money(view.pot)}  当前最高下注: {format_money(view.highest_bet)}",
            f"桌面总点数: {view.table_total}",
        ]

        if view.play_order:
            names = [CLIRenderer._name_of(view, pid) for pid in view.play_order]
            lines.append(f"出牌顺序: {' -> '.join(names)}")

        lines.append("")
        lines.append("玩家状态:")
        for player in view.players:
            lines.append(f"  {CLIRenderer._render_player_status(player, view.turn_player_id, human_id)}")

        if view.own_hand:
            lines.append("")
            lines.append(f"你的手牌: {format_hand(view.own_hand)}")

        return "\n".join(lines)

    @staticmethod
    def render_action_menu(options: List[Tuple[ActionType, str, object]]) -> str:
        """渲染可用行动列表.

        Args:
            options: [(行动类型, 描述, 参数), ...]
        """
        lines = ["可用行动:"]
        for i, (_, description, _) in enumerate(options):
            lines.append(f"  {i + 1}. {description}")
        return "\n".join(lines)

    @staticmethod
    def render_ai_action(player_name: str, result: ActionResult) -> str:
        return f"{player_name}: {CLIRenderer.describe_action(result)}"

    @staticmethod
    def describe_action(result: ActionResult) -> str:
        """把行动结果转换为可读描述."""
        action = result.action
        if action is None:
            return result.message
        action_type = action.action_type
        if action_type == ActionType.BET:
            text = f"下注 {format_money(action.amount)}"
        elif action_type == ActionType.CALL:
            text = "跟注"
        elif action_type == ActionType.ALL_IN:
            text = "全押"
        elif action_type == ActionType.FINALIZE:
            return "锁定下注"
        elif action_type == ActionType.CHOOSE_POSITION:
            return "选择先出" if action.position == PlayPosition.FIRST else "选择后出"
        else:
            return f"出牌 {action.card}"
        if action.finalize:
            text += " 并锁定"
        return text

    @staticmethod
    def render_round_result(summary: RoundSummary, view: TableView) -> str:
        """渲染回合结果.

        Args:
            summary: 回合结果
            view: 回合结束后的桌面视图

        Returns:
            格式化的结果字符串
        """
        lines = ["", "=== 回合结束 ===", f"底池总额: {format_money(summary.pot)}"]

        if summary.eliminated_player_id:
            name = CLIRenderer._name_of(view, summary.eliminated_player_id)
            lines.append(f"{name} 在总点数 {summary.table_total} 时爆牌出局")
        else:
            lines.append("所有牌都已出完，无人爆牌")

        if summary.payouts:
            lines.append("底池分配:")
            for player_id, amount in summary.payouts.items():
                lines.append(f"  {CLIRenderer._name_of(view, player_id)}: {format_money(amount)}")

        return "\n".join(lines)

    @staticmethod
    def render_error_message(error: str) -> str:
        return f"错误: {error}"

    @staticmethod
    def render_game_over(view: TableView) -> str:
        """渲染游戏结束信息."""
        if view.winner_id:
            return f"\n游戏结束，获胜者: {CLIRenderer._name_of(view, view.winner_id)}"
        return "\n游戏结束，没有获胜者"

    @staticmethod
    def _name_of(view: TableView, player_id: str) -> str:
        player = view.get_player(player_id)
        return player.name if player else player_id

    @staticmethod
    def _render_player_status(player: PlayerState, turn_player_id: Optional[str],
                              human_id: Optional[str]) -> str:
        """渲染单个玩家状态."""
        tags = []
        if player.player_id == human_id:
            tags.append("你")
        if player.is_bot:
            tags.append("AI")
        if player.status == PlayerStatus.SPECTATOR:
            tags.append("旁观")
        if player.finalized:
            tags.append("已锁定")
        tag_str = f" [{', '.join(tags)}]" if tags else ""

        current_marker = " <-- 当前" if player.player_id == turn_player_id else ""

        return (f"{player.name}{tag_str}: 资金={format_money(player.money)}, "
                f"下注={format_money(player.committed_bet)}, 手牌{player.card_count}张{current_marker}")
