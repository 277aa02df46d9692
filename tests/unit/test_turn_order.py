"""
回合顺序计算的单元测试
"""

import pytest

from not10.core import PlayPosition, next_in_cycle, players_in_turn_order, resolve_play_order

from tests.helpers import make_players


@pytest.mark.unit
@pytest.mark.fast
class TestTurnOrder:
    """下注/出牌顺序测试"""

    def setup_method(self):
        self.players = make_players(4)

    def ids(self, players):
        return [p.player_id for p in players]

    def test_rotates_from_starting_index(self):
        assert self.ids(players_in_turn_order(self.players, 2)) == ["p2", "p3", "p0", "p1"]

    def test_skips_spectators(self):
        """起始座位是旁观者时从下一个活跃座位开始"""
        self.players[2].make_spectator()
        assert self.ids(players_in_turn_order(self.players, 2)) == ["p3", "p0", "p1"]

    def test_empty_seat_wraps_around(self):
        """起始座位之后没有玩家时从头开始"""
        players = make_players(2)
        assert self.ids(players_in_turn_order(players, 3)) == ["p0", "p1"]

    def test_next_in_cycle_wraps_and_checks_current_last(self):
        order = ["a", "b", "c"]
        assert next_in_cycle(order, "b", lambda pid: True) == "c"
        assert next_in_cycle(order, "c", lambda pid: pid != "a") == "b"
        assert next_in_cycle(order, "b", lambda pid: pid == "b") == "b"
        assert next_in_cycle(order, "b", lambda pid: False) is None
        assert next_in_cycle([], "a", lambda pid: True) is None

    @pytest.mark.parametrize("position,expected", [
        (PlayPosition.FIRST, ["p2", "p1", "p3", "p0"]),
        (PlayPosition.LAST, ["p1", "p3", "p0", "p2"]),
    ])
    def test_resolve_play_order(self, position, expected):
        """最高下注者移到最前或最后，其余保持座位顺序"""
        assert resolve_play_order(self.players, 1, "p2", position) == expected

    def test_resolve_play_order_without_choice(self):
        assert resolve_play_order(self.players, 1) == ["p1", "p2", "p3", "p0"]
