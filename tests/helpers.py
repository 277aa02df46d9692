"""测试辅助函数"""

import random
from typing import Dict, List, Optional

from not10.core import (
    DEFAULT_RULES, EventBus, GameRules, GameState, Phase, Player, Room, RoundStateMachine,
)


def make_players(count: int = 3, money: int = DEFAULT_RULES.starting_money) -> List[Player]:
    """创建p0..pN，座位号与编号一致"""
    return [
        Player(player_id=f"p{i}", name=f"P{i}", seat_index=i, money=money, is_ready=True)
        for i in range(count)
    ]


def make_machine(players: Optional[List[Player]] = None, starting_index: int = 0, seed: int = 42,
                 rules: GameRules = DEFAULT_RULES, event_bus: Optional[EventBus] = None,
                 code: str = "TEST") -> RoundStateMachine:
    """用给定玩家创建状态机，房主为第一个玩家"""
    players = players if players is not None else make_players()
    room = Room(code=code, host_id=players[0].player_id if players else None,
                starting_player_index=starting_index)
    return RoundStateMachine(
        state=GameState(room=room, players=players),
        rules=rules,
        rng=random.Random(seed),
        event_bus=event_bus,
    )


def set_hands(machine: RoundStateMachine, hands: Dict[str, List[int]]) -> None:
    """覆盖发到的手牌"""
    for player_id, hand in hands.items():
        machine.get_player(player_id).set_hand(hand)
        machine.round.cards_remaining[player_id] = len(hand)


def finish_betting(machine: RoundStateMachine, raises: Optional[Dict[str, int]] = None) -> None:
    """
    完成下注阶段.

    raises中的玩家第一次行动时加注指定金额并锁定，其余玩家跟注；
    没有人下注时按最低下注额下注.
    """
    raises = dict(raises or {})
    for _ in range(50):
        if machine.phase != Phase.BETTING or machine.round.awaiting_position_choice:
            return
        player_id = machine.room.turn_player_id
        amount = raises.pop(player_id, None)
        if amount is not None:
            machine.bet(player_id, amount, finalize=True)
        elif machine.round.bet_of(player_id) < machine.round.highest_bet():
            machine.call(player_id)
        elif machine.round.has_acted.get(player_id):
            machine.finalize(player_id)
        else:
            machine.bet(player_id, machine.rules.min_bet, finalize=True)
    raise AssertionError("下注阶段没有结束")


def drive_to_playing(machine: RoundStateMachine, hands: Optional[Dict[str, List[int]]] = None,
                     raises: Optional[Dict[str, int]] = None, position: str = "first") -> RoundStateMachine:
    """把已开始的回合推进到出牌阶段"""
    if hands:
        set_hands(machine, hands)
    finish_betting(machine, raises)
    if machine.round.awaiting_position_choice:
        machine.choose_position(machine.round.position_chooser_id, position)
    return machine
