"""
游戏配置相关类的实现
包含游戏规则常量和日志设置
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .exceptions import GameConfigError


@dataclass(frozen=True)
class GameRules:
    """
    游戏规则配置类
    金额均以分为单位（100分 = $1）
    """
    starting_money: int = 100000                            # 初始资金 $1000
    min_players: int = 2                                    # 最少玩家数
    max_players: int = 4                                    # 最多玩家数（座位数）
    cards_per_player_large: int = 4                         # 3人及以上每人发牌数
    cards_per_player_small: int = 6                         # 2人局每人发牌数
    large_table_threshold: int = 3                          # 使用小手牌的最少人数
    bust_threshold: int = 10                                # 爆牌阈值
    raise_amounts: Tuple[int, ...] = (10000, 20000, 50000)  # 加注档位 $100/$200/$500
    min_bet: int = 10000                                    # 最低下注 $100
    card_values: Tuple[int, ...] = (0, 1, 2, 3)             # 牌面值
    copies_per_value: int = 10                              # 每种牌面的张数
    pressure_ratio: float = 0.8                             # 跟注金额占余额比例达到此值视为压力局面

    def __post_init__(self):
        """验证配置的有效性"""
        if self.starting_money <= 0:
            raise GameConfigError(f"初始资金必须大于0: {self.starting_money}")

        if self.min_players < 2:
            raise GameConfigError(f"最少玩家数不能小于2: {self.min_players}")

        if self.max_players < self.min_players:
            raise GameConfigError(f"最大玩家数({self.max_players})不能小于最小玩家数({self.min_players})")

        if not self.raise_amounts or any(a <= 0 for a in self.raise_amounts):
            raise GameConfigError(f"加注档位必须为正数: {self.raise_amounts}")

        if list(self.raise_amounts) != sorted(self.raise_amounts):
            raise GameConfigError(f"加注档位必须升序排列: {self.raise_amounts}")

        if self.min_bet <= 0:
            raise GameConfigError(f"最低下注必须大于0: {self.min_bet}")

        if self.bust_threshold <= 0:
            raise GameConfigError(f"爆牌阈值必须大于0: {self.bust_threshold}")

        if not 0 < self.pressure_ratio <= 1:
            raise GameConfigError(f"压力比例必须在(0, 1]之间: {self.pressure_ratio}")

        # 满员时也必须能发完手牌
        needed = max(
            self.max_players * self.cards_per_player_large,
            min(self.max_players, self.large_table_threshold - 1) * self.cards_per_player_small,
        )
        if needed > self.deck_size:
            raise GameConfigError(f"牌堆只有{self.deck_size}张，不足以发出{needed}张手牌")

    @property
    def deck_size(self) -> int:
        """整副牌的张数"""
        return len(self.card_values) * self.copies_per_value

    @property
    def min_raise(self) -> int:
        """最小加注档位"""
        return self.raise_amounts[0]


DEFAULT_RULES = GameRules()


@dataclass
class LoggingConfig:
    """日志配置"""
    level: str = "INFO"
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file: Optional[str] = None
    handlers: list = field(default_factory=list)

    def __post_init__(self):
        """验证日志级别"""
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise GameConfigError(f"无效的日志级别: {self.level}")
        self.level = self.level.upper()


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    根据日志配置初始化根日志

    Args:
        config: 日志配置，为None时使用默认配置

    Returns:
        项目根日志记录器
    """
    config = config or LoggingConfig()
    handlers = list(config.handlers)
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, config.level),
        format=config.log_format,
        handlers=handlers or None,
        force=True,
    )
    return logging.getLogger("not10")
