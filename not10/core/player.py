"""
NOT10玩家状态管理.

包含玩家的基本信息、资金管理、手牌管理和状态控制功能.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .enums import Personality, PlayerStatus


@dataclass
class Player:
    """
    NOT10玩家类.

    资金以分为单位. 手牌只能通过状态机按持有者身份读取.
    """

    player_id: str
    name: str
    seat_index: int
    money: int
    status: PlayerStatus = PlayerStatus.ACTIVE
    is_ready: bool = False
    is_bot: bool = False
    personality: Optional[Personality] = None
    hand: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        """
        验证玩家数据的有效性.

        Raises:
            ValueError: 当玩家数据无效时
        """
        if not self.player_id:
            raise ValueError("玩家ID不能为空")

        if not 0 <= self.seat_index < 4:
            raise ValueError(f"座位号必须在0-3之间: {self.seat_index}")

        if self.money < 0:
            raise ValueError(f"资金不能为负数: {self.money}")

        if self.is_bot and self.personality is None:
            raise ValueError(f"机器人玩家{self.player_id}必须指定性格")

    @property
    def is_active(self) -> bool:
        """是否为活跃玩家"""
        return self.status == PlayerStatus.ACTIVE

    @property
    def is_spectator(self) -> bool:
        """是否为旁观者"""
        return self.status == PlayerStatus.SPECTATOR

    def has_card(self, value: int) -> bool:
        """手中是否有该面值的牌"""
        return value in self.hand

    def remove_card(self, value: int) -> None:
        """
        从手牌中移除一张指定面值的牌.

        Raises:
            ValueError: 手中没有这张牌
        """
        if value not in self.hand:
            raise ValueError(f"玩家{self.name}手中没有{value}")
        self.hand.remove(value)

    def set_hand(self, cards: List[int]) -> None:
        """设置手牌（复制传入列表）"""
        self.hand = list(cards)

    def make_spectator(self) -> None:
        """转为旁观者，并清空手牌"""
        self.status = PlayerStatus.SPECTATOR
        self.hand.clear()

    def debit(self, amount: int) -> None:
        """
        扣除资金.

        Raises:
            ValueError: 金额为负或超过余额
        """
        if amount < 0:
            raise ValueError(f"扣款金额不能为负数: {amount}")
        if amount > self.money:
            raise ValueError(f"玩家{self.name}余额{self.money}不足以扣除{amount}")
        self.money -= amount

    def credit(self, amount: int) -> None:
        """
        增加资金.

        Raises:
            ValueError: 当金额为负数时
        """
        if amount < 0:
            raise ValueError(f"增加的资金不能为负数: {amount}")
        self.money += amount

    def __str__(self) -> str:
        tag = "[BOT]" if self.is_bot else ""
        return f"{self.name}{tag}(座位{self.seat_index}): 资金{self.money}, 状态{self.status.name}"

    def __repr__(self) -> str:
        return f"Player(id='{self.player_id}', seat={self.seat_index}, money={self.money}, status={self.status.name})"
