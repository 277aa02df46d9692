"""
NOT10游戏业务异常定义
区分可恢复的行动拒绝(向上报告给行动者)和致命错误(中止回合开始)
"""

from typing import Optional

from .enums import ActionType


class Not10Error(Exception):
    """NOT10游戏基础异常类"""
    pass


class ActionRejectedError(Not10Error):
    """
    行动被拒绝异常

    可恢复：状态不会被修改，reason会展示给行动者.
    suggested_action为建议的替代行动（例如余额不足时建议全押）.
    """

    def __init__(self, reason: str, suggested_action: Optional[ActionType] = None):
        super().__init__(reason)
        self.reason = reason
        self.suggested_action = suggested_action


class ValidationError(ActionRejectedError):
    """行动校验失败异常"""
    pass


class WrongPhaseError(ValidationError):
    """当前阶段不允许该行动"""
    pass


class NotYourTurnError(ValidationError):
    """不是该玩家的回合"""
    pass


class PlayerNotActiveError(ValidationError):
    """玩家不存在或不是活跃玩家"""
    pass


class InvalidAmountError(ValidationError):
    """下注金额不在允许的档位内"""
    pass


class CardNotInHandError(ValidationError):
    """玩家手中没有这张牌"""
    pass


class NothingToCommitError(ValidationError):
    """余额为0，无法全押"""
    pass


class NoPriorActionError(ValidationError):
    """本回合尚未行动就尝试锁定下注"""
    pass


class BelowMinimumError(ValidationError):
    """下注低于最低下注额却仍有余额"""
    pass


class AlreadyFinalizedError(ValidationError):
    """下注已锁定"""
    pass


class PositionChoiceError(ValidationError):
    """出牌位置选择无效"""
    pass


class InsufficientFundsError(ActionRejectedError):
    """余额不足异常，默认建议改用全押"""

    def __init__(self, reason: str, suggested_action: Optional[ActionType] = ActionType.ALL_IN):
        super().__init__(reason, suggested_action)


class InsufficientCardsError(Not10Error):
    """牌堆剩余牌数不足（致命配置错误，中止回合开始）"""

    def __init__(self, requested: int, available: int):
        super().__init__(f"牌堆剩余{available}张，无法发出{requested}张")
        self.requested = requested
        self.available = available


class GameStateError(Not10Error):
    """游戏状态错误异常"""
    pass


class GameConfigError(Not10Error):
    """游戏配置错误异常"""
    pass


class HandAccessError(Not10Error):
    """无权读取该手牌（只有本人，或房主读取机器人手牌）"""
    pass


class LobbyError(Not10Error):
    """大厅操作失败异常（房间不存在、已满、已开始、非房主等）"""
    pass


class StoreError(Not10Error):
    """存储层异常基类"""
    pass


class RecordNotFoundError(StoreError):
    """记录不存在"""
    pass


class DuplicateRecordError(StoreError):
    """记录已存在"""
    pass


class StaleRecordError(StoreError):
    """记录版本不匹配（已被其他参与者修改）"""
    pass


