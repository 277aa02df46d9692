"""
NOT10回合状态机.

负责回合生命周期：发牌、下注、出牌位置选择、出牌、爆牌淘汰、底池分配
以及游戏结束判定. 所有行动先完整校验再修改状态，被拒绝的行动不会留下
任何改动.

阶段流转:
    lobby -> dealing -> betting -> playing -> round_end -> (betting | finished)
"""

import logging
import random
from typing import Dict, List, Optional, Union

from .cards import create_deck, deal, hand_size_for, shuffle
from .config import DEFAULT_RULES, GameRules
from .enums import ActionType, LogEntryType, Phase, PlayPosition
from .events import EventBus, EventType
from .exceptions import (
    AlreadyFinalizedError, BelowMinimumError, CardNotInHandError, HandAccessError,
    InsufficientFundsError, InvalidAmountError, NoPriorActionError, NotYourTurnError,
    NothingToCommitError, PlayerNotActiveError, PositionChoiceError, WrongPhaseError,
)
from .money import format_money
from .player import Player
from .pot import distribute_pot, get_distribution_summary
from .state import GameState, Room, RoundResult, RoundState, StateBackup, TableSnapshot
from .turn_order import next_in_cycle, players_in_turn_order, resolve_play_order


class RoundStateMachine:
    """
    回合状态机.

    单一权威修改者：同一局游戏只有一个状态机实例（或一个协调者）修改状态.
    轮次由turn_player_id控制，而不是锁.
    """

    def __init__(self,
                 state: Optional[GameState] = None,
                 players: Optional[List[Player]] = None,
                 room_code: str = "LOCAL",
                 rules: GameRules = DEFAULT_RULES,
                 rng: Optional[random.Random] = None,
                 event_bus: Optional[EventBus] = None,
                 logger: Optional[logging.Logger] = None):
        """
        初始化状态机.

        Args:
            state: 已有的游戏状态（例如从存储层加载）
            players: 新建状态时的玩家列表，state不为None时忽略
            room_code: 新建状态时使用的房间码
            rules: 游戏规则
            rng: 洗牌用的随机数生成器
            event_bus: 可选的事件总线
            logger: 可选的日志记录器
        """
        self.rules = rules
        self._rng = rng or random.Random()
        self._event_bus = event_bus
        self._logger = logger or logging.getLogger(__name__)
        self._state = state or GameState(room=Room(code=room_code), players=list(players or []))
        self.last_result: Optional[RoundResult] = None

    # ------------------------------------------------------------------
    # 状态访问
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def room(self) -> Room:
        return self._state.room

    @property
    def round(self) -> RoundState:
        return self._state.round

    @property
    def players(self) -> List[Player]:
        return self._state.players

    @property
    def phase(self) -> Phase:
        return self._state.room.phase

    def create_backup(self) -> StateBackup:
        return self._state.create_backup()

    def restore_backup(self, backup: StateBackup) -> None:
        self._state.restore_backup(backup)

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._state.get_player(player_id)

    def get_turn_player(self) -> Optional[Player]:
        if self.room.turn_player_id is None:
            return None
        return self._state.get_player(self.room.turn_player_id)

    def is_betting_complete(self) -> bool:
        """所有活跃玩家都已锁定下注时返回True"""
        active = self._state.get_active_players()
        return bool(active) and all(self.round.finalized.get(p.player_id, False) for p in active)

    def is_game_over(self) -> bool:
        return self.room.phase == Phase.FINISHED

    def get_hand(self, player_id: str, viewer_id: str, viewer_is_host: bool = False) -> List[int]:
        """
        读取手牌.

        只有持有者本人可以读取，机器人的手牌还允许房主读取.

        Raises:
            PlayerNotActiveError: 玩家不存在
            HandAccessError: 无权读取
        """
        player = self._state.get_player(player_id)
        if player is None:
            raise PlayerNotActiveError(f"玩家{player_id}不存在")
        if viewer_id == player_id or (viewer_is_host and player.is_bot):
            return list(player.hand)
        raise HandAccessError(f"{viewer_id}无权查看{player_id}的手牌")

    def snapshot(self, viewer_id: Optional[str] = None) -> TableSnapshot:
        """为指定观察者生成只读快照，其他玩家的手牌只显示张数"""
        return self._state.to_snapshot(viewer_id, bust_threshold=self.rules.bust_threshold)

    def available_actions(self, player_id: str) -> List[ActionType]:
        """
        列出玩家当前可以合法执行的行动类型.

        金额是否合法由具体行动再校验，这里只判断是否存在合法金额.
        """
        player = self._state.get_player(player_id)
        if player is None or not player.is_active or self.room.turn_player_id != player_id:
            return []

        if self.phase == Phase.PLAYING:
            return [ActionType.PLAY_CARD] if player.hand else []

        if self.phase != Phase.BETTING:
            return []

        if self.round.awaiting_position_choice:
            if self.round.position_chooser_id == player_id:
                return [ActionType.CHOOSE_POSITION]
            return []

        if self.round.finalized.get(player_id, False):
            return []

        actions = []
        if player.money > 0:
            actions.append(ActionType.BET)
        if player.money >= self._call_delta(player_id):
            actions.append(ActionType.CALL)
        if player.money > 0:
            actions.append(ActionType.ALL_IN)
        if self._can_finalize(self.round.bet_of(player_id), player.money,
                              acted=self.round.has_acted.get(player_id, False)):
            actions.append(ActionType.FINALIZE)
        return actions

    # ------------------------------------------------------------------
    # 回合开始
    # ------------------------------------------------------------------

    def start_round(self) -> bool:
        """
        开始新回合.

        资金大于0的活跃玩家少于2人时游戏结束. 否则资金为0的活跃玩家永久
        转为旁观者，洗一副新牌并按人数发牌，重置回合状态后进入下注阶段.

        Returns:
            bool: 成功开始回合返回True，游戏结束返回False

        Raises:
            WrongPhaseError: 当前阶段不能开始新回合
            InsufficientCardsError: 牌堆不足（致命配置错误，状态不变）
        """
        if self.phase not in (Phase.LOBBY, Phase.DEALING, Phase.ROUND_END):
            raise WrongPhaseError(f"当前阶段{self.phase.value}不能开始新回合")

        qualifying = [p for p in self.players if p.is_active and p.money > 0]
        if len(qualifying) < self.rules.min_players:
            winner = qualifying[0] if qualifying else (self.players[0] if self.players else None)
            self._finish_game(winner)
            return False

        # 先完成全部发牌，失败时不修改任何状态
        deck = shuffle(create_deck(self.rules), self._rng)
        hand_size = hand_size_for(len(qualifying), self.rules)
        hands: Dict[str, List[int]] = {p.player_id: deal(deck, hand_size) for p in qualifying}

        for player in self.players:
            if player.is_active and player.money == 0:
                player.make_spectator()
                self._logger.info(f"{player.name} 资金耗尽，转为旁观者")
            player.set_hand(hands.get(player.player_id, []))

        round_no = self.room.current_round + 1
        self._state.round = RoundState.for_players(round_no, hands, deck)
        self.room.current_round = round_no
        self.room.table_total = 0
        self._set_phase(Phase.DEALING)

        order = players_in_turn_order(qualifying, self.room.starting_player_index)
        self.round.add_log(
            LogEntryType.ROUND_START,
            f"第{round_no}回合开始，每人{hand_size}张牌",
            hand_size=hand_size,
            turn_order=[p.player_id for p in order],
        )
        self._emit(EventType.ROUND_STARTED, round_no=round_no, hand_size=hand_size)
        self._emit(EventType.CARDS_DEALT, hand_size=hand_size, cards_left=len(deck))
        self._logger.info(
            f"房间{self.room.code} 第{round_no}回合开始: {len(qualifying)}名玩家, "
            f"每人{hand_size}张, 牌堆剩余{len(deck)}张"
        )

        self._set_phase(Phase.BETTING)
        self._set_turn(order[0].player_id)
        return True

    # ------------------------------------------------------------------
    # 下注阶段
    # ------------------------------------------------------------------

    def bet(self, player_id: str, amount: int, finalize: bool = False) -> int:
        """
        加注.

        金额必须是加注档位之一，或恰好等于全部余额.

        Args:
            player_id: 行动玩家
            amount: 本次投入金额
            finalize: 是否在同一轮次内锁定下注

        Returns:
            int: 投入底池的金额

        Raises:
            InvalidAmountError: 金额不在允许档位内
            InsufficientFundsError: 金额超过余额
            BelowMinimumError: finalize=True但下注低于最低下注
        """
        player = self._require_betting_turn(player_id)

        if amount <= 0 or (amount not in self.rules.raise_amounts and amount != player.money):
            allowed = ", ".join(format_money(a) for a in self.rules.raise_amounts)
            raise InvalidAmountError(f"无效的下注金额{format_money(amount)}，只能选择{allowed}或全部余额")

        if amount > player.money:
            raise InsufficientFundsError(
                f"余额{format_money(player.money)}不足以下注{format_money(amount)}，可以选择全押"
            )

        if finalize:
            self._check_finalize(self.round.bet_of(player_id) + amount, player.money - amount, acted=True)

        raised = self._commit(player, amount)
        verb = "加注" if raised else "下注"
        self.round.add_log(LogEntryType.BET, f"{player.name} {verb} {format_money(amount)}",
                           player_id, amount=amount, raised=raised)
        self._emit(EventType.BET_PLACED, player_id=player_id, amount=amount, raised=raised)
        self._logger.debug(f"{player.name} {verb} {amount}")

        self._end_betting_turn(player, finalize)
        return amount

    def call(self, player_id: str, finalize: bool = True) -> int:
        """
        跟注到当前最高下注.

        跟注后默认立即锁定下注；下注额低于最低下注且仍有余额时不锁定.

        Returns:
            int: 补齐的差额

        Raises:
            InsufficientFundsError: 余额不足以跟注，应改用全押
        """
        player = self._require_betting_turn(player_id)
        delta = self._call_delta(player_id)

        if player.money < delta:
            raise InsufficientFundsError(
                f"余额{format_money(player.money)}不足以跟注{format_money(delta)}，请改用全押"
            )

        new_bet = self.round.bet_of(player_id) + delta
        lock = finalize and self._can_finalize(new_bet, player.money - delta, acted=True)

        self._commit(player, delta)
        self.round.add_log(LogEntryType.CALL, f"{player.name} 跟注 {format_money(delta)}",
                           player_id, amount=delta)
        self._emit(EventType.PLAYER_CALLED, player_id=player_id, amount=delta)
        self._logger.debug(f"{player.name} 跟注 {delta}")

        self._end_betting_turn(player, lock)
        return delta

    def all_in(self, player_id: str, finalize: bool = False) -> int:
        """
        全押：投入全部余额.

        Returns:
            int: 投入的金额

        Raises:
            NothingToCommitError: 余额为0
        """
        player = self._require_betting_turn(player_id)

        if player.money <= 0:
            raise NothingToCommitError("余额为0，无法全押")

        amount = player.money
        raised = self._commit(player, amount)
        self.round.add_log(LogEntryType.ALL_IN, f"{player.name} 全押 {format_money(amount)}",
                           player_id, amount=amount, raised=raised)
        self._emit(EventType.PLAYER_ALL_IN, player_id=player_id, amount=amount, raised=raised)
        self._logger.debug(f"{player.name} 全押 {amount}")

        self._end_betting_turn(player, finalize)
        return amount

    def finalize(self, player_id: str) -> None:
        """
        锁定下注.

        Raises:
            AlreadyFinalizedError: 已经锁定
            NoPriorActionError: 本回合尚未行动
            BelowMinimumError: 下注低于最低下注且仍有余额
        """
        player = self._require_betting_turn(player_id)
        self._check_finalize(self.round.bet_of(player_id), player.money,
                             acted=self.round.has_acted.get(player_id, False))
        self._end_betting_turn(player, True)

    def choose_position(self, player_id: str, position: Union[PlayPosition, str]) -> List[str]:
        """
        最高下注者选择先出还是后出.

        Args:
            player_id: 最高下注者
            position: PlayPosition或"first"/"last"

        Returns:
            List[str]: 确定后的出牌顺序

        Raises:
            WrongPhaseError: 当前不在等待位置选择
            NotYourTurnError: 不是最高下注者
            PositionChoiceError: 位置无效
        """
        if self.phase != Phase.BETTING or not self.round.awaiting_position_choice:
            raise WrongPhaseError("当前不需要选择出牌位置")

        if player_id != self.round.position_chooser_id:
            raise NotYourTurnError("只有最高下注者可以选择出牌位置")

        if not isinstance(position, PlayPosition):
            try:
                position = PlayPosition(str(position).lower())
            except ValueError:
                raise PositionChoiceError(f"无效的出牌位置: {position}，只能选择first或last") from None

        order = resolve_play_order(self.players, self.room.starting_player_index, player_id, position)
        player = self._state.get_player(player_id)

        self.round.awaiting_position_choice = False
        self.round.chosen_position = position
        label = "先出" if position == PlayPosition.FIRST else "后出"
        self.round.add_log(LogEntryType.POSITION, f"{player.name} 选择{label}",
                           player_id, position=position.value)
        self._emit(EventType.POSITION_CHOSEN, player_id=player_id, position=position.value)

        self._start_playing(order)
        return list(self.round.play_order)

    # ------------------------------------------------------------------
    # 出牌阶段
    # ------------------------------------------------------------------

    def play_card(self, player_id: str, value: int) -> Optional[RoundResult]:
        """
        出一张牌.

        桌面总点数达到爆牌阈值时该玩家被淘汰，回合立即结束并分配底池.

        Args:
            player_id: 出牌玩家
            value: 牌面值

        Returns:
            Optional[RoundResult]: 回合因此结束时返回结果，否则为None

        Raises:
            WrongPhaseError: 不在出牌阶段
            NotYourTurnError: 不是该玩家的回合
            CardNotInHandError: 手中没有这张牌
        """
        if self.phase != Phase.PLAYING:
            raise WrongPhaseError(f"当前阶段{self.phase.value}不能出牌")

        player = self._require_active(player_id)

        if self.room.turn_player_id != player_id:
            raise NotYourTurnError(f"现在不是{player.name}的回合")

        if not player.has_card(value):
            raise CardNotInHandError(f"{player.name}手中没有{value}")

        player.remove_card(value)
        self.round.cards_remaining[player_id] = len(player.hand)
        self.room.table_total += value
        self.round.played_count += 1
        self.round.add_log(LogEntryType.PLAY, f"{player.name} 出牌 {value}，桌面总点数 {self.room.table_total}",
                           player_id, value=value, table_total=self.room.table_total)
        self._emit(EventType.CARD_PLAYED, player_id=player_id, value=value, table_total=self.room.table_total)

        if self.room.table_total >= self.rules.bust_threshold:
            self.round.eliminated_player_id = player_id
            self.round.add_log(LogEntryType.BUST, f"{player.name} 爆牌出局！", player_id,
                               table_total=self.room.table_total)
            self._emit(EventType.PLAYER_BUSTED, player_id=player_id, table_total=self.room.table_total)
            self._logger.info(f"{player.name} 爆牌，桌面总点数{self.room.table_total}")
            return self._end_round()

        next_id = next_in_cycle(self.round.play_order, player_id, self._holds_cards)
        if next_id is None:
            self._logger.info("所有玩家的牌都已出完，无人爆牌")
            return self._end_round()

        self._set_turn(next_id)
        return None

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _require_active(self, player_id: str) -> Player:
        player = self._state.get_player(player_id)
        if player is None or not player.is_active or player_id not in self.round.bets:
            raise PlayerNotActiveError(f"玩家{player_id}不在本回合中")
        return player

    def _require_betting_turn(self, player_id: str) -> Player:
        if self.phase != Phase.BETTING:
            raise WrongPhaseError(f"当前阶段{self.phase.value}不能下注")

        if self.round.awaiting_position_choice:
            raise WrongPhaseError("正在等待最高下注者选择出牌位置")

        player = self._require_active(player_id)

        if self.round.finalized.get(player_id, False):
            raise AlreadyFinalizedError(f"{player.name}已经锁定下注")

        if self.room.turn_player_id != player_id:
            raise NotYourTurnError(f"现在不是{player.name}的回合")

        return player

    def _call_delta(self, player_id: str) -> int:
        return max(0, self.round.highest_bet() - self.round.bet_of(player_id))

    def _can_finalize(self, committed: int, money_left: int, acted: bool) -> bool:
        return acted and (committed >= self.rules.min_bet or money_left == 0)

    def _check_finalize(self, committed: int, money_left: int, acted: bool) -> None:
        if not acted:
            raise NoPriorActionError("本回合还没有下注，不能锁定")
        if committed < self.rules.min_bet and money_left > 0:
            raise BelowMinimumError(f"最低下注为{format_money(self.rules.min_bet)}，请先加注或全押")

    def _commit(self, player: Player, amount: int) -> bool:
        """把金额从余额移入底池，返回是否超过了之前的最高下注"""
        previous_high = self.round.highest_bet()
        player.debit(amount)
        self.round.bets[player.player_id] = self.round.bet_of(player.player_id) + amount
        self.room.pot += amount
        self.round.has_acted[player.player_id] = True

        raised = self.round.bets[player.player_id] > previous_high
        if raised:
            self.round.has_raised[player.player_id] = True
        return raised

    def _end_betting_turn(self, player: Player, lock: bool) -> None:
        if lock:
            self.round.finalized[player.player_id] = True
            committed = self.round.bet_of(player.player_id)
            self.round.add_log(LogEntryType.FINALIZE, f"{player.name} 锁定下注 {format_money(committed)}",
                               player.player_id, amount=committed)
            self._emit(EventType.BET_FINALIZED, player_id=player.player_id, amount=committed)

        if self.is_betting_complete():
            self._resolve_play_order()
            return

        order = [p.player_id for p in players_in_turn_order(self.players, self.room.starting_player_index)]
        next_id = next_in_cycle(order, player.player_id, lambda pid: not self.round.finalized.get(pid, False))
        self._set_turn(next_id)

    def _resolve_play_order(self) -> None:
        """下注完成后确定最高下注者；有人下注则等待其选择出牌位置"""
        highest = 0
        holder: Optional[Player] = None
        for player in self._state.get_active_players():
            bet = self.round.bet_of(player.player_id)
            if bet > highest:
                highest = bet
                holder = player

        if holder is None:
            self._start_playing(resolve_play_order(self.players, self.room.starting_player_index))
            return

        self.round.awaiting_position_choice = True
        self.round.position_chooser_id = holder.player_id
        self.round.position_choice_amount = highest
        self._logger.info(f"下注结束，{holder.name}以{highest}成为最高下注者，等待选择出牌位置")
        self._set_turn(holder.player_id)

    def _start_playing(self, order: List[str]) -> None:
        self.round.play_order = list(order)
        self._set_phase(Phase.PLAYING)

        first = next((pid for pid in order if self._holds_cards(pid)), None)
        if first is None:
            self._end_round()
            return
        self._set_turn(first)

    def _holds_cards(self, player_id: str) -> bool:
        player = self._state.get_player(player_id)
        return player is not None and player.is_active and self.round.cards_of(player_id) > 0

    def _end_round(self) -> RoundResult:
        """分配底池，轮换起始位置并检查游戏是否结束"""
        eliminated = self.round.eliminated_player_id
        survivors = [p for p in self._state.get_active_players()
                     if p.player_id in self.round.bets and p.player_id != eliminated]
        pot = self.room.pot

        payouts = distribute_pot(pot, [(p.player_id, self.round.bet_of(p.player_id)) for p in survivors])
        for player in survivors:
            share = payouts.get(player.player_id, 0)
            player.credit(share)
            self.round.add_log(LogEntryType.PAYOUT, f"{player.name} 分得 {format_money(share)}",
                               player.player_id, amount=share)

        self.room.pot = 0
        self.room.starting_player_index = (self.room.starting_player_index + 1) % self.rules.max_players
        self.room.turn_player_id = None
        self._emit(EventType.POT_DISTRIBUTED, pot=pot, payouts=dict(payouts))
        self.round.add_log(LogEntryType.ROUND_END, f"第{self.round.round_no}回合结束", eliminated=eliminated)
        self._set_phase(Phase.ROUND_END)
        self._logger.info(f"第{self.round.round_no}回合结束，底池{pot}分配给{len(survivors)}名幸存者")
        for line in get_distribution_summary(pot, payouts):
            self._logger.debug(line)

        winner = self._find_winner()
        if winner is not None:
            self._finish_game(winner)

        result = RoundResult(
            round_no=self.round.round_no,
            eliminated_player_id=eliminated,
            payouts=dict(payouts),
            pot=pot,
            table_total=self.room.table_total,
            game_over=self.is_game_over(),
            winner_id=self.room.winner_id,
        )
        self.last_result = result
        self._emit(EventType.ROUND_ENDED, round_no=result.round_no, eliminated=eliminated,
                   payouts=dict(payouts), game_over=result.game_over)
        return result

    def _find_winner(self) -> Optional[Player]:
        funded = [p for p in self.players if p.money > 0]
        return funded[0] if len(funded) == 1 else None

    def _finish_game(self, winner: Optional[Player]) -> None:
        self.room.winner_id = winner.player_id if winner else None
        self.room.turn_player_id = None
        self._set_phase(Phase.FINISHED)
        name = winner.name if winner else "无"
        self.round.add_log(LogEntryType.GAME_OVER, f"游戏结束，获胜者: {name}", self.room.winner_id)
        self._emit(EventType.GAME_OVER, winner_id=self.room.winner_id)
        self._logger.info(f"房间{self.room.code} 游戏结束，获胜者: {name}")

    def _set_phase(self, phase: Phase) -> None:
        old = self.room.phase
        self.room.phase = phase
        if old != phase:
            self._emit(EventType.PHASE_CHANGED, old_phase=old.value, new_phase=phase.value)

    def _set_turn(self, player_id: Optional[str]) -> None:
        self.room.turn_player_id = player_id
        self._emit(EventType.TURN_CHANGED, player_id=player_id)

    def _emit(self, event_type: EventType, **data) -> None:
        if self._event_bus is not None:
            self._event_bus.emit_simple(event_type, source=self.room.code, **data)
