"""
游戏相关枚举定义模块.

包含NOT10游戏中使用的枚举类型，如游戏阶段、玩家状态、行动类型、AI性格等.
"""

from enum import Enum


class Phase(Enum):
    """
    房间/回合阶段枚举.

    lobby -> dealing -> betting -> playing -> round_end -> (betting | finished)
    """

    LOBBY = "lobby"            # 大厅等待
    DEALING = "dealing"        # 发牌
    BETTING = "betting"        # 下注
    PLAYING = "playing"        # 出牌
    ROUND_END = "round_end"    # 回合结束
    FINISHED = "finished"      # 游戏结束


class PlayerStatus(Enum):
    """
    玩家状态枚举.

    旁观者是资金归零的玩家，不会再回到游戏中.
    """

    ACTIVE = "active"          # 参与游戏
    SPECTATOR = "spectator"    # 旁观


class ActionType(Enum):
    """
    玩家行动类型枚举.

    包含下注阶段的四种行动、出牌以及最高下注者的出牌位置选择.
    """

    BET = "bet"                            # 加注（固定档位或全部余额）
    CALL = "call"                          # 跟注
    ALL_IN = "all_in"                      # 全押
    FINALIZE = "finalize"                  # 锁定下注
    PLAY_CARD = "play_card"                # 出牌
    CHOOSE_POSITION = "choose_position"    # 选择先出/后出

    @property
    def is_betting_action(self) -> bool:
        """是否属于下注阶段的行动."""
        return self in (ActionType.BET, ActionType.CALL, ActionType.ALL_IN, ActionType.FINALIZE)


class PlayPosition(Enum):
    """最高下注者选择的出牌位置."""

    FIRST = "first"    # 第一个出牌
    LAST = "last"      # 最后一个出牌


class Personality(Enum):
    """
    AI性格枚举.

    每种性格对应策略表中的一组参数.
    """

    CAUTIOUS = "cautious"        # 谨慎
    BALANCED = "balanced"        # 均衡
    AGGRESSIVE = "aggressive"    # 激进

    @property
    def display_name(self) -> str:
        """首字母大写的显示名称."""
        return self.value.capitalize()


class LogEntryType(Enum):
    """回合日志条目类型."""

    ROUND_START = "round_start"
    BET = "bet"
    CALL = "call"
    ALL_IN = "all_in"
    FINALIZE = "finalize"
    POSITION = "position"
    PLAY = "play"
    BUST = "bust"
    PAYOUT = "payout"
    ROUND_END = "round_end"
    GAME_OVER = "game_over"
