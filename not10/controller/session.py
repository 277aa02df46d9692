"""
会话层.

SoloSession：一名人类玩家对战最多3个AI，单进程即为唯一的协调者.
SharedSession：多人共享房间. 每个参与者只提交自己的行动（从存储层重新
加载状态、校验、再按字段提交），只有房主推进回合并驱动机器人.
"""

import logging
import random
from typing import Callable, List, Optional

from ..core import (
    DEFAULT_RULES, EventBus, EventType, GameRules, GameState, LobbyError, Phase, Player, Room,
    RoundStateMachine, StaleRecordError,
)
from ..ai import SEAT_PERSONALITIES
from ..store import ACTION_KIND, PLAYERS, Change, RoomRepository
from .dto import ActionInput, ActionResult, GameConfiguration, TableView
from .game_controller import GameController
from .lobby import (
    fill_with_bots, find_available_seat, generate_room_code, make_bot, new_player_id,
    normalize_room_code, validate_player_name,
)
from .scheduler import ManualTicker, SingleFlightGuard, Ticker

HUMAN_PLAYER_ID = "player"
SOLO_ROOM_CODE = "SOLO"


class SoloSession:
    """单机对战会话"""

    def __init__(self, config: Optional[GameConfiguration] = None,
                 rules: GameRules = DEFAULT_RULES,
                 event_bus: Optional[EventBus] = None,
                 logger: Optional[logging.Logger] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        """
        创建人类玩家（0号座位）和机器人（1号座位起）.

        Args:
            config: 会话配置
            rules: 游戏规则
            event_bus: 可选的事件总线
            logger: 可选的日志记录器
            sleep: 机器人思考延迟使用的等待函数
        """
        self.config = config or GameConfiguration()
        self.rules = rules
        self._logger = logger or logging.getLogger(__name__)
        self._rng = random.Random(self.config.seed)

        players = [Player(
            player_id=HUMAN_PLAYER_ID,
            name=self.config.player_name,
            seat_index=0,
            money=self.config.starting_money,
            is_ready=True,
        )]
        for seat in range(1, self.config.num_bots + 1):
            personality = SEAT_PERSONALITIES[(seat - 1) % len(SEAT_PERSONALITIES)]
            players.append(make_bot(SOLO_ROOM_CODE, seat, personality,
                                    self.config.starting_money, multiplayer=False))

        room = Room(
            code=SOLO_ROOM_CODE,
            host_id=HUMAN_PLAYER_ID,
            starting_player_index=self._rng.randrange(len(players)),
        )
        machine = RoundStateMachine(
            state=GameState(room=room, players=players),
            rules=rules,
            rng=self._rng,
            event_bus=event_bus,
            logger=self._logger,
        )
        controller_kwargs = {"sleep": sleep} if sleep is not None else {}
        self.controller = GameController(
            machine,
            event_bus=event_bus,
            logger=self._logger,
            thinking_delay=self.config.thinking_delay,
            rng=self._rng,
            **controller_kwargs,
        )

    @property
    def human_id(self) -> str:
        return HUMAN_PLAYER_ID

    def start_round(self) -> bool:
        """开始新回合并让机器人行动到轮到人类玩家为止"""
        if not self.controller.start_new_round():
            return False
        self.controller.run_bots()
        return True

    def submit(self, action: ActionInput) -> ActionResult:
        """提交人类玩家的行动，成功后让机器人继续行动"""
        result = self.controller.execute_action(action)
        if result.success and not self.controller.is_round_over():
            self.controller.run_bots()
        return result

    def view(self) -> TableView:
        return self.controller.get_view(HUMAN_PLAYER_ID)


class SharedSession:
    """
    一个参与者对共享房间的句柄.

    状态全部保存在存储层，本对象只保存参与者身份.
    """

    def __init__(self, repository: RoomRepository, room_code: str, player_id: str,
                 rules: GameRules = DEFAULT_RULES,
                 rng: Optional[random.Random] = None,
                 event_bus: Optional[EventBus] = None,
                 logger: Optional[logging.Logger] = None,
                 ticker: Optional[Ticker] = None,
                 guard: Optional[SingleFlightGuard] = None,
                 thinking_delay: float = 0.0,
                 sleep: Optional[Callable[[float], None]] = None,
                 max_retries: int = 3,
                 auto_next_round: bool = True):
        self.repository = repository
        self.room_code = room_code
        self.player_id = player_id
        self.rules = rules
        self._rng = rng or random.Random()
        self._event_bus = event_bus
        self._logger = logger or logging.getLogger(__name__)
        self._ticker = ticker or ManualTicker()
        self._guard = guard or SingleFlightGuard()
        self._thinking_delay = thinking_delay
        self._sleep = sleep
        self._max_retries = max_retries
        self._auto_next_round = auto_next_round
        self._subscriptions: List[int] = []

    # ------------------------------------------------------------------
    # 大厅
    # ------------------------------------------------------------------

    @classmethod
    def create_room(cls, repository: RoomRepository, host_name: str,
                    rules: GameRules = DEFAULT_RULES, rng: Optional[random.Random] = None,
                    **kwargs) -> 'SharedSession':
        """
        创建房间，房主坐0号座位.

        Raises:
            LobbyError: 名称无效或无法生成唯一房间码
        """
        name = cls._checked_name(host_name)
        code = None
        for _ in range(10):
            candidate = generate_room_code(rng)
            if not repository.room_exists(candidate):
                code = candidate
                break
        if code is None:
            raise LobbyError("无法生成唯一的房间码")

        host_id = new_player_id()
        repository.create_room(Room(code=code, host_id=host_id))
        repository.add_player(code, Player(player_id=host_id, name=name, seat_index=0,
                                           money=rules.starting_money))
        logging.getLogger(__name__).info(f"{name} 创建了房间 {code}")
        session = cls(repository, code, host_id, rules=rules, rng=rng, **kwargs)
        session._emit(EventType.PLAYER_JOINED, player_id=host_id, name=name, seat_index=0)
        return session

    @classmethod
    def join_room(cls, repository: RoomRepository, room_code: str, name: str,
                  rules: GameRules = DEFAULT_RULES, **kwargs) -> 'SharedSession':
        """
        加入房间，坐第一个空座位.

        Raises:
            LobbyError: 房间不存在、已开始或已满，或名称无效
        """
        code = normalize_room_code(room_code)
        name = cls._checked_name(name)
        if not repository.room_exists(code):
            raise LobbyError(f"房间{code}不存在")

        room = repository.get_room(code)
        if room.phase != Phase.LOBBY:
            raise LobbyError(f"房间{code}的游戏已经开始")

        seat = find_available_seat(repository.list_players(code), rules)
        if seat is None:
            raise LobbyError(f"房间{code}已满")

        player_id = new_player_id()
        repository.add_player(code, Player(player_id=player_id, name=name, seat_index=seat,
                                           money=rules.starting_money))
        logging.getLogger(__name__).info(f"{name} 加入了房间 {code}，座位{seat}")
        session = cls(repository, code, player_id, rules=rules, **kwargs)
        session._emit(EventType.PLAYER_JOINED, player_id=player_id, name=name, seat_index=seat)
        return session

    @staticmethod
    def _checked_name(name: str) -> str:
        try:
            return validate_player_name(name)
        except ValueError as e:
            raise LobbyError(str(e)) from e

    @property
    def is_host(self) -> bool:
        return self.repository.get_room(self.room_code).host_id == self.player_id

    def players(self) -> List[Player]:
        return self.repository.list_players(self.room_code)

    def set_ready(self, ready: bool = True) -> None:
        self._require_lobby()
        self.repository.update_player(self.player_id, {"is_ready": ready})
        self._emit(EventType.PLAYER_READY, player_id=self.player_id, ready=ready)

    def leave(self) -> None:
        """
        离开房间.

        房主离开时整个房间被删除，其他玩家只能在大厅阶段离开.

        Raises:
            LobbyError: 非房主在游戏开始后离开
        """
        is_host = self.is_host
        if not is_host:
            self._require_lobby()

        self.stop_bot_runner()
        self.unwatch()
        if is_host:
            self.repository.delete_room(self.room_code)
            self._logger.info(f"房主离开，房间{self.room_code}已关闭")
        else:
            self.repository.remove_player(self.room_code, self.player_id)
        self._emit(EventType.PLAYER_LEFT, player_id=self.player_id, room_closed=is_host)

    def start_game(self) -> TableView:
        """
        房主开始游戏：用机器人填满空座位并开始第一回合.

        Raises:
            LobbyError: 不是房主、房间不在大厅阶段或准备好的真人玩家少于2人
        """
        self._require_host()
        self._require_lobby()

        humans = self.players()
        ready = [p for p in humans if p.is_ready or p.player_id == self.player_id]
        if len(ready) < self.rules.min_players:
            raise LobbyError(f"至少需要{self.rules.min_players}名准备好的玩家")

        bots = fill_with_bots(self.room_code, humans, self.rules)
        for bot in bots:
            self.repository.add_player(self.room_code, bot)
        self.repository.update_room(self.room_code, {
            "starting_player_index": self._rng.randrange(self.rules.max_players),
        })

        self._emit(EventType.GAME_STARTED, players=len(humans), bots=len(bots))
        self._run_as_host(lambda controller: controller.start_new_round())
        return self.view()

    # ------------------------------------------------------------------
    # 游戏
    # ------------------------------------------------------------------

    def view(self) -> TableView:
        loaded = self.repository.load(self.room_code, self.player_id, self._viewer_is_host())
        return TableView.from_snapshot(loaded.state.to_snapshot(self.player_id, self.rules.bust_threshold))

    def submit(self, action: ActionInput) -> ActionResult:
        """
        提交自己的行动.

        每次尝试都从存储层重新加载状态并重新校验；提交时房间记录版本冲突
        则重试，重复提交会被状态本身拒绝（例如已经锁定）.

        Raises:
            LobbyError: 试图替其他玩家行动
            StaleRecordError: 重试次数用尽
        """
        if action.player_id != self.player_id:
            raise LobbyError("只能提交自己的行动")
        return self._with_retries(lambda loaded, controller: controller.execute_action(action),
                                  record_action=action)

    def next_round(self) -> bool:
        """房主开始下一回合"""
        self._require_host()
        return self._run_as_host(lambda controller: controller.start_new_round())

    def tick(self) -> Optional[ActionResult]:
        """
        房主的一次轮询.

        回合已结束时开始下一回合；轮到机器人时让它做一次决策. 同一房间
        已有决策在进行时直接返回.
        """
        if not self._guard.try_acquire(self.room_code):
            self._logger.debug(f"房间{self.room_code}已有机器人决策在进行")
            return None
        try:
            room = self.repository.get_room(self.room_code)
            if room.phase == Phase.ROUND_END and self._auto_next_round:
                self._run_as_host(lambda controller: controller.start_new_round())
                return None
            if room.phase not in (Phase.BETTING, Phase.PLAYING) or room.turn_player_id is None:
                return None
            turn_player = self.repository.store.find(PLAYERS, room.turn_player_id)
            if not turn_player or not turn_player.get("is_bot"):
                return None
            return self._run_as_host(lambda controller: controller.process_bot_turn())
        finally:
            self._guard.release(self.room_code)

    def start_bot_runner(self) -> None:
        """房主启动机器人轮询"""
        self._require_host()
        if not self._ticker.running:
            self._ticker.start(self.tick)

    def stop_bot_runner(self) -> None:
        if self._ticker.running:
            self._ticker.stop()

    def watch(self, callback: Callable[[Change], None], tables=None) -> int:
        """订阅房间变更"""
        subscription_id = self.repository.store.subscribe(self.room_code, callback, tables)
        self._subscriptions.append(subscription_id)
        return subscription_id

    def unwatch(self) -> None:
        for subscription_id in self._subscriptions:
            self.repository.store.unsubscribe(subscription_id)
        self._subscriptions.clear()

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _emit(self, event_type: EventType, **data) -> None:
        if self._event_bus is not None:
            self._event_bus.emit_simple(event_type, source=self.room_code, **data)

    def _viewer_is_host(self) -> bool:
        return self.is_host

    def _require_host(self) -> None:
        if not self.is_host:
            raise LobbyError("只有房主可以执行该操作")

    def _require_lobby(self) -> None:
        if self.repository.get_room(self.room_code).phase != Phase.LOBBY:
            raise LobbyError("游戏已经开始")

    def _run_as_host(self, operation):
        self._require_host()
        return self._with_retries(lambda loaded, controller: operation(controller))

    def _with_retries(self, operation, record_action: Optional[ActionInput] = None):
        is_host = self._viewer_is_host()
        for attempt in range(1, self._max_retries + 1):
            loaded = self.repository.load(self.room_code, self.player_id, is_host)
            machine = RoundStateMachine(state=loaded.state, rules=self.rules, rng=self._rng,
                                        event_bus=self._event_bus, logger=self._logger)
            controller_kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
            controller = GameController(machine, event_bus=self._event_bus, logger=self._logger,
                                        thinking_delay=self._thinking_delay, rng=self._rng,
                                        **controller_kwargs)
            outcome = operation(loaded, controller)
            if isinstance(outcome, ActionResult) and not outcome.success:
                return outcome
            try:
                self.repository.commit(loaded)
            except StaleRecordError as e:
                self._logger.warning(f"房间{self.room_code}状态已变化，重试第{attempt}次: {e}")
                continue
            if record_action is not None:
                self.repository.store.append_action(self.room_code, {
                    "kind": ACTION_KIND,
                    "round_no": loaded.state.round.round_no,
                    "player_id": record_action.player_id,
                    "action_type": record_action.action_type.value,
                    "amount": record_action.amount,
                    "card": record_action.card,
                })
            return outcome
        raise StaleRecordError(f"房间{self.room_code}提交失败，已重试{self._max_retries}次")
