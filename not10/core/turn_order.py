"""
回合顺序计算.

下注顺序与出牌顺序都以starting_player_index为起点按座位顺序轮转.
"""

from typing import Callable, List, Optional, Sequence

from .enums import PlayPosition
from .player import Player


def players_in_turn_order(players: Sequence[Player], starting_index: int) -> List[Player]:
    """
    按座位顺序排列活跃玩家，从starting_index所在座位开始.

    如果该座位没有活跃玩家，则从顺时针方向下一个活跃座位开始.

    Args:
        players: 玩家列表（任意顺序）
        starting_index: 起始座位号

    Returns:
        List[Player]: 轮转后的活跃玩家列表
    """
    active = sorted((p for p in players if p.is_active), key=lambda p: p.seat_index)
    if not active:
        return []

    start = next((i for i, p in enumerate(active) if p.seat_index >= starting_index), 0)
    return active[start:] + active[:start]


def next_in_cycle(order: Sequence[str], current_id: Optional[str],
                  predicate: Callable[[str], bool]) -> Optional[str]:
    """
    从current_id之后开始循环查找第一个满足条件的玩家.

    current_id本身最后才被检查，因此可能再次轮到同一个玩家.

    Args:
        order: 玩家ID的循环顺序
        current_id: 当前玩家ID，不在order中时从头开始
        predicate: 判断玩家是否可以获得回合

    Returns:
        Optional[str]: 下一个玩家ID，都不满足时返回None
    """
    if not order:
        return None

    if current_id in order:
        start = order.index(current_id) + 1
    else:
        start = 0

    for offset in range(len(order)):
        candidate = order[(start + offset) % len(order)]
        if predicate(candidate):
            return candidate
    return None


def resolve_play_order(players: Sequence[Player], starting_index: int,
                       chooser_id: Optional[str] = None,
                       position: Optional[PlayPosition] = None) -> List[str]:
    """
    计算出牌顺序.

    以starting_index起的座位顺序为基础，最高下注者选择FIRST时移到最前，
    选择LAST时移到最后.

    Args:
        players: 玩家列表
        starting_index: 起始座位号
        chooser_id: 做出选择的最高下注者
        position: 选择的位置

    Returns:
        List[str]: 出牌顺序（玩家ID）
    """
    order = [p.player_id for p in players_in_turn_order(players, starting_index)]
    if chooser_id is None or position is None or chooser_id not in order:
        return order

    order.remove(chooser_id)
    if position == PlayPosition.FIRST:
        return [chooser_id] + order
    return order + [chooser_id]
