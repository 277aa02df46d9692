"""
AI性格策略表.

每种性格对应一组声明式参数，决策逻辑统一由PersonalityAI根据参数执行.
金额单位为分.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from ..core import Personality, PlayPosition


class CardStyle(Enum):
    """出牌风格"""

    LOWEST_SAFE = "lowest_safe"      # 最小的安全牌
    MIDDLE_SAFE = "middle_safe"      # 居中的安全牌
    HIGHEST_SAFE = "highest_safe"    # 桌面点数很低时出最大的安全牌，否则随机安全牌


@dataclass(frozen=True)
class PersonalityProfile:
    """
    单个性格的参数集.

    Attributes:
        opening_amounts: 首次加注的候选金额
        strong_opening_amounts: 手牌强度超过strong_threshold时的首次加注候选
        strong_threshold: 强牌阈值
        bluff_probability: 诈唬概率，诈唬时直接加注bluff_amount
        bluff_amount: 诈唬金额
        reraise_probability: 已加注过后再次加注的概率
        reraise_min_strength: 再次加注要求的最低强度
        reraise_amounts: 再次加注的候选金额
        finalize_probability: 加注后立即锁定的概率
        pressure_threshold: 跟注压力局面下继续跟注需要的强度
        card_style: 出牌风格
        low_table_total: HIGHEST_SAFE风格认为"桌面很低"的上限（不含）
        first_position_strength: 强度达到该值时选择先出
        last_position_high_ratio: 高点数牌(2/3)比例达到该值时选择后出
        default_position: 其余情况的默认位置
        position_bluff_probability: 反向选择位置的概率
    """

    opening_amounts: Tuple[int, ...]
    strong_opening_amounts: Tuple[int, ...]
    strong_threshold: float
    bluff_probability: float
    bluff_amount: int
    reraise_probability: float
    reraise_min_strength: float
    reraise_amounts: Tuple[int, ...]
    finalize_probability: float
    pressure_threshold: float
    card_style: CardStyle
    low_table_total: int = 5
    first_position_strength: float = 0.8
    last_position_high_ratio: float = 2 / 3
    default_position: PlayPosition = PlayPosition.FIRST
    position_bluff_probability: float = 0.0

    def __post_init__(self):
        for name in ("bluff_probability", "reraise_probability", "finalize_probability",
                     "position_bluff_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name}必须在0-1之间: {value}")

        if not self.opening_amounts or not self.strong_opening_amounts or not self.reraise_amounts:
            raise ValueError("候选加注金额不能为空")


STRATEGY_TABLE: Dict[Personality, PersonalityProfile] = {
    Personality.CAUTIOUS: PersonalityProfile(
        opening_amounts=(10000,),
        strong_opening_amounts=(10000,),
        strong_threshold=0.7,
        bluff_probability=0.0,
        bluff_amount=10000,
        reraise_probability=0.2,
        reraise_min_strength=0.7,
        reraise_amounts=(10000,),
        finalize_probability=0.7,
        pressure_threshold=0.85,
        card_style=CardStyle.LOWEST_SAFE,
        first_position_strength=0.85,
        default_position=PlayPosition.LAST,
    ),
    Personality.BALANCED: PersonalityProfile(
        opening_amounts=(10000,),
        strong_opening_amounts=(10000, 20000),
        strong_threshold=0.7,
        bluff_probability=0.0,
        bluff_amount=20000,
        reraise_probability=0.4,
        reraise_min_strength=0.6,
        reraise_amounts=(10000, 20000),
        finalize_probability=0.5,
        pressure_threshold=0.7,
        card_style=CardStyle.MIDDLE_SAFE,
        first_position_strength=0.7,
        default_position=PlayPosition.FIRST,
    ),
    Personality.AGGRESSIVE: PersonalityProfile(
        opening_amounts=(20000, 50000),
        strong_opening_amounts=(20000, 50000),
        strong_threshold=0.7,
        bluff_probability=0.3,
        bluff_amount=50000,
        reraise_probability=0.6,
        reraise_min_strength=0.0,
        reraise_amounts=(10000, 20000, 50000),
        finalize_probability=0.4,
        pressure_threshold=0.5,
        card_style=CardStyle.HIGHEST_SAFE,
        first_position_strength=0.5,
        default_position=PlayPosition.FIRST,
        position_bluff_probability=0.2,
    ),
}


AI_PLAYER_NAMES: Dict[Personality, str] = {
    Personality.CAUTIOUS: "Cautious Carl",
    Personality.BALANCED: "Balanced Betty",
    Personality.AGGRESSIVE: "Aggressive Alex",
}


PERSONALITY_DESCRIPTIONS: Dict[Personality, str] = {
    Personality.CAUTIOUS: "稳扎稳打，很少加注，总是出最小的安全牌",
    Personality.BALANCED: "攻守平衡，强牌时适度加注",
    Personality.AGGRESSIVE: "大胆加注，时常诈唬",
}


# 依次填充空座位使用的性格
SEAT_PERSONALITIES: Tuple[Personality, ...] = (
    Personality.CAUTIOUS,
    Personality.BALANCED,
    Personality.AGGRESSIVE,
)


def get_profile(personality: Personality) -> PersonalityProfile:
    """获取性格对应的参数集"""
    return STRATEGY_TABLE[personality]
