"""
NOT10牌堆工具.

牌只有面值（0-3），没有花色，同面值的牌可以互换.
"""

import random
from typing import List, Optional

from .config import DEFAULT_RULES, GameRules
from .exceptions import InsufficientCardsError


def create_deck(rules: GameRules = DEFAULT_RULES) -> List[int]:
    """
    创建一副未洗的牌.

    Args:
        rules: 游戏规则，决定牌面值和每种牌的张数

    Returns:
        List[int]: 默认规则下为40张牌，0-3各10张
    """
    return [value for value in rules.card_values for _ in range(rules.copies_per_value)]


def shuffle(deck: List[int], rng: Optional[random.Random] = None) -> List[int]:
    """
    返回洗好的新牌堆，不修改传入的列表.

    Args:
        deck: 原牌堆
        rng: 随机数生成器，测试时可传入固定种子的实例

    Returns:
        List[int]: 独立的洗牌结果
    """
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)
    return shuffled


def deal(deck: List[int], n: int) -> List[int]:
    """
    从牌堆顶部取出n张牌.

    会原地修改deck，剩余的牌留在deck中.

    Args:
        deck: 牌堆
        n: 要发出的张数

    Returns:
        List[int]: 发出的牌

    Raises:
        ValueError: n为负数
        InsufficientCardsError: 牌堆剩余不足n张
    """
    if n < 0:
        raise ValueError(f"发牌张数不能为负数: {n}")
    if len(deck) < n:
        raise InsufficientCardsError(requested=n, available=len(deck))

    dealt = deck[:n]
    del deck[:n]
    return dealt


def hand_size_for(active_count: int, rules: GameRules = DEFAULT_RULES) -> int:
    """
    根据当前活跃玩家数决定每人手牌数.

    3人及以上每人4张，2人局每人6张.
    """
    if active_count >= rules.large_table_threshold:
        return rules.cards_per_player_large
    return rules.cards_per_player_small


def format_hand(hand: List[int]) -> str:
    """手牌的字符串表示，如"[0] [2] [3]"."""
    return " ".join(f"[{card}]" for card in hand)
