"""数据传输对象定义.

这个模块定义了控制器与UI层之间传输数据的标准格式。
使用Pydantic dataclass确保数据验证和序列化的一致性。
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic.dataclasses import dataclass as pydantic_dataclass

from ..core import (
    ActionType, Personality, Phase, PlayerStatus, PlayPosition, RoundResult, TableSnapshot,
)
from .lobby import validate_player_name


@pydantic_dataclass
class ActionInput:
    """玩家行动输入.

    表示玩家要执行的行动，用于从UI（或AI）传递到控制器。
    finalize为None时使用行动的默认值：跟注后立即锁定，其他行动不锁定。
    """
    player_id: str = Field(..., min_length=1, description="玩家ID")
    action_type: ActionType = Field(..., description="行动类型")
    amount: int = Field(0, ge=0, description="下注金额（分），仅BET使用")
    card: Optional[int] = Field(None, ge=0, description="要出的牌，仅PLAY_CARD使用")
    position: Optional[PlayPosition] = Field(None, description="出牌位置，仅CHOOSE_POSITION使用")
    finalize: Optional[bool] = Field(None, description="是否在同一轮次锁定下注")
    timestamp: datetime = Field(default_factory=datetime.now, description="行动时间戳")

    @model_validator(mode='after')
    def validate_fields_for_action(self):
        """验证参数与行动类型的匹配性."""
        if self.action_type == ActionType.BET:
            if self.amount <= 0:
                raise ValueError("下注行动必须指定金额")
        elif self.amount != 0:
            raise ValueError(f"{self.action_type.value}行动不应包含金额")

        if self.action_type == ActionType.PLAY_CARD and self.card is None:
            raise ValueError("出牌行动必须指定牌面值")

        if self.action_type == ActionType.CHOOSE_POSITION and self.position is None:
            raise ValueError("选择位置行动必须指定first或last")

        if self.finalize is not None and not self.action_type.is_betting_action:
            raise ValueError(f"{self.action_type.value}行动不能指定finalize")
        return self


@pydantic_dataclass
class ActionResult:
    """行动执行结果.

    被拒绝的行动success为False，message为可读的拒绝原因。
    """
    success: bool = Field(..., description="是否执行成功")
    action: Optional[ActionInput] = Field(None, description="执行的行动")
    message: str = Field("", description="执行结果消息或拒绝原因")
    error_type: Optional[str] = Field(None, description="拒绝的异常类型名")
    suggested_action: Optional[ActionType] = Field(None, description="建议的替代行动")
    round_ended: bool = Field(False, description="该行动是否结束了回合")
    eliminated_player_id: Optional[str] = Field(None, description="本回合被淘汰的玩家")
    payouts: Dict[str, int] = Field(default_factory=dict, description="底池分配结果")
    game_over: bool = Field(False, description="游戏是否结束")
    winner_id: Optional[str] = Field(None, description="获胜者")
    timestamp: datetime = Field(default_factory=datetime.now, description="执行时间戳")


@pydantic_dataclass
class RoundSummary:
    """回合结束结果."""
    round_no: int = Field(..., ge=1, description="回合编号")
    pot: int = Field(..., ge=0, description="分配前的底池")
    table_total: int = Field(..., ge=0, description="回合结束时的桌面总点数")
    eliminated_player_id: Optional[str] = Field(None, description="被淘汰的玩家")
    payouts: Dict[str, int] = Field(default_factory=dict, description="各幸存者分得金额")
    game_over: bool = Field(False, description="游戏是否结束")
    winner_id: Optional[str] = Field(None, description="获胜者")

    @field_validator('payouts')
    @classmethod
    def validate_payouts(cls, v: Dict[str, int]) -> Dict[str, int]:
        """验证分配金额非负."""
        if any(amount < 0 for amount in v.values()):
            raise ValueError("分配金额不能为负数")
        return v

    @classmethod
    def from_result(cls, result: RoundResult) -> 'RoundSummary':
        return cls(
            round_no=result.round_no,
            pot=result.pot,
            table_total=result.table_total,
            eliminated_player_id=result.eliminated_player_id,
            payouts=dict(result.payouts),
            game_over=result.game_over,
            winner_id=result.winner_id,
        )


@pydantic_dataclass
class PlayerState:
    """玩家公开状态（不含手牌）."""
    player_id: str = Field(..., min_length=1, description="玩家ID")
    name: str = Field(..., min_length=1, description="玩家名称")
    seat_index: int = Field(..., ge=0, le=3, description="座位号")
    money: int = Field(..., ge=0, description="余额（分）")
    status: PlayerStatus = Field(..., description="玩家状态")
    is_ready: bool = Field(False, description="是否准备")
    is_bot: bool = Field(False, description="是否为机器人")
    personality: Optional[Personality] = Field(None, description="机器人性格")
    card_count: int = Field(0, ge=0, description="剩余手牌数")
    committed_bet: int = Field(0, ge=0, description="本回合已下注")
    finalized: bool = Field(False, description="是否已锁定下注")


@pydantic_dataclass
class TableView:
    """展示层使用的只读桌面状态.

    只包含观察者自己的手牌。
    """
    code: str = Field(..., min_length=1, description="房间码")
    phase: Phase = Field(..., description="当前阶段")
    current_round: int = Field(..., ge=0, description="当前回合编号")
    pot: int = Field(..., ge=0, description="底池")
    table_total: int = Field(..., ge=0, description="桌面总点数")
    highest_bet: int = Field(..., ge=0, description="当前最高下注")
    starting_player_index: int = Field(..., ge=0, le=3, description="起始座位")
    players: List[PlayerState] = Field(..., description="玩家列表")
    turn_player_id: Optional[str] = Field(None, description="当前行动玩家")
    viewer_id: Optional[str] = Field(None, description="观察者")
    own_hand: List[int] = Field(default_factory=list, description="观察者手牌")
    awaiting_position_choice: bool = Field(False, description="是否等待位置选择")
    position_chooser_id: Optional[str] = Field(None, description="选择位置的玩家")
    play_order: List[str] = Field(default_factory=list, description="出牌顺序")
    winner_id: Optional[str] = Field(None, description="获胜者")
    log: List[str] = Field(default_factory=list, description="本回合日志")

    @field_validator('turn_player_id')
    @classmethod
    def validate_turn_player(cls, v, info):
        """验证当前行动玩家在玩家列表中."""
        players = info.data.get('players')
        if v is not None and players is not None:
            if v not in [p.player_id for p in players]:
                raise ValueError(f"当前玩家ID {v} 不在玩家列表中")
        return v

    @classmethod
    def from_snapshot(cls, snapshot: TableSnapshot) -> 'TableView':
        return cls(
            code=snapshot.code,
            phase=snapshot.phase,
            current_round=snapshot.current_round,
            pot=snapshot.pot,
            table_total=snapshot.table_total,
            highest_bet=snapshot.highest_bet,
            starting_player_index=snapshot.starting_player_index,
            players=[
                PlayerState(
                    player_id=p.player_id,
                    name=p.name,
                    seat_index=p.seat_index,
                    money=p.money,
                    status=p.status,
                    is_ready=p.is_ready,
                    is_bot=p.is_bot,
                    personality=p.personality,
                    card_count=p.card_count,
                    committed_bet=p.committed_bet,
                    finalized=p.finalized,
                )
                for p in snapshot.players
            ],
            turn_player_id=snapshot.turn_player_id,
            viewer_id=snapshot.viewer_id,
            own_hand=list(snapshot.own_hand),
            awaiting_position_choice=snapshot.awaiting_position_choice,
            position_chooser_id=snapshot.position_chooser_id,
            play_order=list(snapshot.play_order),
            winner_id=snapshot.winner_id,
            log=[entry.message for entry in snapshot.log],
        )

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        return next((p for p in self.players if p.player_id == player_id), None)


@pydantic_dataclass
class GameConfiguration:
    """游戏配置.

    单机对战与多人房间共用的会话参数。
    """
    player_name: str = Field("Player", description="人类玩家名称")
    num_bots: int = Field(3, ge=1, le=3, description="机器人数量")
    starting_money: int = Field(100000, gt=0, description="初始资金（分）")
    seed: Optional[int] = Field(None, description="随机种子，用于可重现的游戏")
    thinking_delay: float = Field(0.0, ge=0.0, description="机器人思考延迟（秒）")
    tick_interval: float = Field(1.0, ge=1.0, description="房主轮询机器人回合的间隔（秒）")

    @field_validator('player_name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """验证玩家名称."""
        return validate_player_name(v)
