"""
底池分配.

幸存者按各自下注额加权瓜分底池，被淘汰者的下注留在底池中.
全部计算使用整数，不会产生多余或短缺.
"""

from typing import Dict, List, Sequence, Tuple


def distribute_pot(pot: int, survivor_bets: Sequence[Tuple[str, int]]) -> Dict[str, int]:
    """
    按下注额加权分配底池.

    每位幸存者获得 pot * bet // total_bets；若幸存者下注总额为0则平分.
    整除产生的余数全部归迭代顺序中的最后一位幸存者.

    Args:
        pot: 底池金额
        survivor_bets: (玩家ID, 本回合下注额) 列表，顺序决定余数归属

    Returns:
        Dict[str, int]: 玩家ID到分得金额的映射，总和等于pot

    Raises:
        ValueError: 底池或下注为负数，或底池非零却没有幸存者
    """
    if pot < 0:
        raise ValueError(f"底池金额不能为负数: {pot}")

    if any(bet < 0 for _, bet in survivor_bets):
        raise ValueError(f"下注金额不能为负数: {list(survivor_bets)}")

    if not survivor_bets:
        if pot:
            raise ValueError(f"没有幸存者可以分配底池{pot}")
        return {}

    total_bets = sum(bet for _, bet in survivor_bets)
    payouts: Dict[str, int] = {}
    distributed = 0

    for index, (player_id, bet) in enumerate(survivor_bets):
        if index == len(survivor_bets) - 1:
            share = pot - distributed
        elif total_bets == 0:
            share = pot // len(survivor_bets)
        else:
            share = pot * bet // total_bets
        payouts[player_id] = payouts.get(player_id, 0) + share
        distributed += share

    return payouts


def get_distribution_summary(pot: int, payouts: Dict[str, int]) -> List[str]:
    """
    生成分配摘要，用于日志和界面显示.

    Args:
        pot: 分配前的底池
        payouts: distribute_pot的结果

    Returns:
        List[str]: 摘要行
    """
    lines = [f"底池: {pot}"]
    for player_id, amount in payouts.items():
        share = amount / pot if pot else 0.0
        lines.append(f"  {player_id}: {amount} ({share:.1%})")
    return lines
