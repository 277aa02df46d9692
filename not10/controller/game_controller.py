"""
NOT10游戏控制器.

把行动意图分派给回合状态机，把被拒绝的行动转换成失败的ActionResult，
并驱动机器人玩家的决策.
"""

import logging
import random
import time
from typing import Callable, Dict, List, Optional

from ..ai import AIStrategy, PersonalityAI
from ..core import (
    ActionRejectedError, ActionType, EventBus, EventType, GameStateError, Phase, Player,
    RoundResult, RoundStateMachine, TableSnapshot,
)
from .decorators import atomic, logged_action
from .dto import ActionInput, ActionResult, RoundSummary, TableView


class GameController:
    """
    游戏控制器.

    持有一个回合状态机和每个机器人座位的策略. 所有状态修改都经过
    execute_action，异常时由@atomic回滚.
    """

    def __init__(self,
                 machine: RoundStateMachine,
                 strategies: Optional[Dict[str, AIStrategy]] = None,
                 event_bus: Optional[EventBus] = None,
                 logger: Optional[logging.Logger] = None,
                 thinking_delay: float = 0.0,
                 sleep: Callable[[float], None] = time.sleep,
                 rng: Optional[random.Random] = None):
        """
        初始化控制器.

        Args:
            machine: 回合状态机
            strategies: 机器人玩家ID到策略的映射，缺省时按玩家性格自动创建
            event_bus: 可选的事件总线
            logger: 可选的日志记录器
            thinking_delay: 机器人决策前的模拟思考时间（秒）
            sleep: 等待函数，测试中可替换
            rng: 自动创建策略时使用的随机数生成器
        """
        self._machine = machine
        self._event_bus = event_bus
        self._logger = logger or logging.getLogger(__name__)
        self._thinking_delay = thinking_delay
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._strategies: Dict[str, AIStrategy] = dict(strategies or {})

        for player in machine.players:
            if player.is_bot and player.player_id not in self._strategies:
                self._strategies[player.player_id] = PersonalityAI(
                    player.personality, rng=self._rng, rules=machine.rules
                )

    @property
    def machine(self) -> RoundStateMachine:
        return self._machine

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get_snapshot(self, viewer_id: Optional[str] = None) -> TableSnapshot:
        return self._machine.snapshot(viewer_id)

    def get_view(self, viewer_id: Optional[str] = None) -> TableView:
        return TableView.from_snapshot(self._machine.snapshot(viewer_id))

    def get_turn_player_id(self) -> Optional[str]:
        return self._machine.room.turn_player_id

    def is_bot_turn(self) -> bool:
        player = self._machine.get_turn_player()
        return player is not None and player.is_bot

    def available_actions(self, player_id: str) -> List[ActionType]:
        return self._machine.available_actions(player_id)

    def is_round_over(self) -> bool:
        return self._machine.phase in (Phase.ROUND_END, Phase.FINISHED)

    def is_game_over(self) -> bool:
        return self._machine.is_game_over()

    @property
    def winner_id(self) -> Optional[str]:
        return self._machine.room.winner_id

    def get_winner(self) -> Optional[Player]:
        winner_id = self.winner_id
        return self._machine.get_player(winner_id) if winner_id else None

    def get_last_round_summary(self) -> Optional[RoundSummary]:
        result = self._machine.last_result
        return RoundSummary.from_result(result) if result else None

    # ------------------------------------------------------------------
    # 行动
    # ------------------------------------------------------------------

    @logged_action("开始新回合")
    def start_new_round(self) -> bool:
        """
        开始新回合.

        Returns:
            bool: 游戏已结束时返回False
        """
        return self._machine.start_round()

    @logged_action("执行行动")
    @atomic
    def execute_action(self, action: ActionInput) -> ActionResult:
        """
        执行玩家行动.

        被拒绝的行动不修改状态，返回success=False的结果；其他异常回滚后抛出.

        Args:
            action: 行动输入

        Returns:
            ActionResult: 执行结果
        """
        previous = self._machine.last_result
        try:
            message = self._apply_action(action)
        except ActionRejectedError as e:
            self._logger.warning(f"行动被拒绝 {action.player_id} {action.action_type.value}: {e.reason}")
            if self._event_bus is not None:
                self._event_bus.emit_simple(
                    EventType.ACTION_REJECTED, source=self._machine.room.code,
                    player_id=action.player_id, action_type=action.action_type.value, reason=e.reason,
                )
            return ActionResult(
                success=False,
                action=action,
                message=e.reason,
                error_type=type(e).__name__,
                suggested_action=e.suggested_action,
            )

        result = self._machine.last_result
        if result is not None and result is not previous:
            return self._round_end_result(action, message, result)
        return ActionResult(success=True, action=action, message=message)

    def process_bot_turn(self) -> Optional[ActionResult]:
        """
        让当前回合的机器人做出一次决策.

        Returns:
            Optional[ActionResult]: 不是机器人回合时返回None

        Raises:
            GameStateError: 机器人的决策被拒绝
        """
        player = self._machine.get_turn_player()
        if player is None or not player.is_bot:
            return None

        strategy = self._strategies.get(player.player_id)
        if strategy is None:
            raise GameStateError(f"机器人{player.player_id}没有对应的策略")

        action = self.decide_for(player.player_id, strategy)
        result = self.execute_action(action)
        if not result.success:
            raise GameStateError(f"机器人{player.name}的决策被拒绝: {result.message}")
        self._logger.info(f"{player.name}: {result.message}")
        return result

    def decide_for(self, player_id: str, strategy: AIStrategy) -> ActionInput:
        """根据当前阶段向策略询问一次决策"""
        if self._thinking_delay > 0:
            self._sleep(self._thinking_delay)

        snapshot = self._machine.snapshot(player_id)
        if snapshot.phase == Phase.PLAYING:
            return ActionInput(player_id=player_id, action_type=ActionType.PLAY_CARD,
                               card=strategy.choose_card(snapshot, player_id))

        if snapshot.awaiting_position_choice:
            return ActionInput(player_id=player_id, action_type=ActionType.CHOOSE_POSITION,
                               position=strategy.choose_position(snapshot, player_id))

        decision = strategy.decide_bet(snapshot, player_id)
        return ActionInput(
            player_id=player_id,
            action_type=decision.action_type,
            amount=decision.amount if decision.action_type == ActionType.BET else 0,
            finalize=None if decision.action_type == ActionType.FINALIZE else decision.finalize,
        )

    def run_bots(self, max_steps: int = 200) -> List[ActionResult]:
        """
        连续处理机器人回合，直到轮到人类玩家或回合结束.

        Raises:
            GameStateError: 超过max_steps仍未停止
        """
        results = []
        for _ in range(max_steps):
            if self.is_round_over() or not self.is_bot_turn():
                return results
            results.append(self.process_bot_turn())
        raise GameStateError(f"机器人连续行动超过{max_steps}次")

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _apply_action(self, action: ActionInput) -> str:
        machine = self._machine
        player_id = action.player_id
        action_type = action.action_type

        if action_type == ActionType.BET:
            amount = machine.bet(player_id, action.amount, finalize=bool(action.finalize))
            return f"下注 {amount}"

        if action_type == ActionType.CALL:
            finalize = True if action.finalize is None else action.finalize
            delta = machine.call(player_id, finalize=finalize)
            return f"跟注 {delta}"

        if action_type == ActionType.ALL_IN:
            amount = machine.all_in(player_id, finalize=bool(action.finalize))
            return f"全押 {amount}"

        if action_type == ActionType.FINALIZE:
            machine.finalize(player_id)
            return "锁定下注"

        if action_type == ActionType.CHOOSE_POSITION:
            order = machine.choose_position(player_id, action.position)
            return f"选择{action.position.value}，出牌顺序 {order}"

        if action_type == ActionType.PLAY_CARD:
            machine.play_card(player_id, action.card)
            return f"出牌 {action.card}，桌面总点数 {machine.room.table_total}"

        raise GameStateError(f"未知的行动类型: {action_type}")

    @staticmethod
    def _round_end_result(action: ActionInput, message: str, result: RoundResult) -> ActionResult:
        return ActionResult(
            success=True,
            action=action,
            message=message,
            round_ended=True,
            eliminated_player_id=result.eliminated_player_id,
            payouts=dict(result.payouts),
            game_over=result.game_over,
            winner_id=result.winner_id,
        )
