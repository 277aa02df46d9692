"""
回合状态机的单元测试：出牌阶段、爆牌、底池分配与游戏结束
"""

import pytest

from not10.core import (
    CardNotInHandError, EventType, LogEntryType, NotYourTurnError, Phase, PlayerStatus, WrongPhaseError,
)

from tests.helpers import drive_to_playing, make_machine, make_players


@pytest.mark.unit
class TestPlaying:
    """出牌阶段测试"""

    HANDS = {"p0": [3, 3, 3, 3], "p1": [0, 0, 0, 0], "p2": [1, 1, 1, 1]}

    def test_position_first_starts_with_chooser(self, started_machine):
        m = drive_to_playing(started_machine, self.HANDS)
        assert m.phase == Phase.PLAYING
        assert m.round.chosen_position.value == "first"
        assert m.round.play_order == ["p0", "p1", "p2"]
        assert m.room.turn_player_id == "p0"

    def test_position_last_moves_chooser_to_end(self, started_machine):
        m = drive_to_playing(started_machine, self.HANDS, position="last")
        assert m.round.play_order == ["p1", "p2", "p0"]
        assert m.room.turn_player_id == "p1"

    def test_play_card_updates_table_and_turn(self, started_machine):
        m = drive_to_playing(started_machine, self.HANDS)
        assert m.play_card("p0", 3) is None
        assert m.room.table_total == 3
        assert m.get_player("p0").hand == [3, 3, 3]
        assert m.round.cards_of("p0") == 3
        assert m.snapshot("p1").get_player("p0").card_count == 3
        assert m.round.played_count == 1
        assert m.room.turn_player_id == "p1"
        assert m.round.log[-1].entry_type == LogEntryType.PLAY

    def test_play_card_rejections(self, started_machine):
        m = drive_to_playing(started_machine, self.HANDS)
        with pytest.raises(CardNotInHandError):
            m.play_card("p0", 0)
        with pytest.raises(NotYourTurnError):
            m.play_card("p1", 0)
        assert m.room.table_total == 0

    def test_play_card_during_betting(self, started_machine):
        with pytest.raises(WrongPhaseError):
            started_machine.play_card("p0", started_machine.get_player("p0").hand[0])

    def test_bust_ends_round_and_distributes_pot(self, started_machine):
        """总点数达到10的玩家被淘汰，其下注由幸存者按比例分得"""
        m = drive_to_playing(started_machine, self.HANDS)
        total = m.state.total_money()
        assert m.room.pot == 30000

        result = None
        for player_id, card in [("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3)]:
            result = m.play_card(player_id, card)

        assert result is not None
        assert result.eliminated_player_id == "p0"
        assert result.table_total == 11
        assert result.pot == 30000
        assert result.payouts == {"p1": 15000, "p2": 15000}
        assert not result.game_over
        assert m.last_result is result

        assert m.phase == Phase.ROUND_END
        assert m.room.pot == 0
        assert m.room.turn_player_id is None
        assert m.room.starting_player_index == 1
        assert [p.money for p in m.players] == [90000, 105000, 105000]
        assert m.state.total_money() == total

    def test_bust_threshold_is_inclusive(self):
        """总点数恰好为10即爆牌"""
        m = make_machine(make_players(2))
        m.start_round()
        drive_to_playing(m, {"p0": [3, 3, 3, 1, 0, 0], "p1": [0, 0, 0, 0, 0, 0]})
        for player_id, card in [("p0", 3), ("p1", 0), ("p0", 3), ("p1", 0), ("p0", 3), ("p1", 0)]:
            assert m.play_card(player_id, card) is None
        result = m.play_card("p0", 1)
        assert result.eliminated_player_id == "p0"
        assert result.table_total == 10

    def test_no_bust_when_all_cards_played(self, started_machine):
        """所有牌出完仍无人爆牌时回合结束，没有淘汰者"""
        m = drive_to_playing(started_machine, {pid: [0, 0, 0, 0] for pid in ("p0", "p1", "p2")})
        result = None
        for _ in range(4):
            for player_id in ("p0", "p1", "p2"):
                result = m.play_card(player_id, 0)
        assert result.eliminated_player_id is None
        assert result.payouts == {"p0": 10000, "p1": 10000, "p2": 10000}
        assert m.phase == Phase.ROUND_END

    def test_players_without_cards_are_skipped(self, started_machine):
        m = drive_to_playing(started_machine, {"p0": [0], "p1": [0, 0], "p2": [0, 0]})
        m.play_card("p0", 0)
        m.play_card("p1", 0)
        m.play_card("p2", 0)
        assert m.room.turn_player_id == "p1"

    def test_next_round_rotates_start(self, started_machine):
        m = drive_to_playing(started_machine, self.HANDS)
        for player_id, card in [("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3)]:
            m.play_card(player_id, card)

        assert m.start_round()
        assert m.room.current_round == 2
        assert m.room.turn_player_id == "p1"
        assert m.room.table_total == 0
        assert m.round.bets == {"p0": 0, "p1": 0, "p2": 0}
        assert m.round.eliminated_player_id is None

    def test_round_end_events(self, event_bus, recorded_events):
        m = make_machine(event_bus=event_bus)
        m.start_round()
        drive_to_playing(m, self.HANDS)
        for player_id, card in [("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3), ("p1", 0), ("p2", 1), ("p0", 3)]:
            m.play_card(player_id, card)
        types = [e.event_type for e in recorded_events]
        assert EventType.PLAYER_BUSTED in types
        assert EventType.POT_DISTRIBUTED in types
        assert types[-1] == EventType.ROUND_ENDED


@pytest.mark.unit
class TestGameOver:
    """游戏结束测试"""

    def _bust_p1(self, machine):
        """p0先出0，p1连续出3直到爆牌"""
        while machine.phase == Phase.PLAYING:
            player_id = machine.room.turn_player_id
            machine.play_card(player_id, 0 if player_id != "p1" else 3)

    def test_last_funded_player_wins(self):
        players = make_players(2)
        players[1].money = 10000
        m = make_machine(players)
        m.start_round()
        drive_to_playing(m, {"p0": [0] * 6, "p1": [3] * 6})
        self._bust_p1(m)

        assert m.last_result.eliminated_player_id == "p1"
        assert m.last_result.game_over
        assert m.last_result.winner_id == "p0"
        assert m.phase == Phase.FINISHED
        assert m.room.winner_id == "p0"
        assert m.get_player("p0").money == 110000
        assert m.get_player("p1").money == 0

        with pytest.raises(WrongPhaseError):
            m.start_round()

    def test_broke_player_becomes_spectator_next_round(self):
        players = make_players(3)
        players[1].money = 10000
        m = make_machine(players)
        m.start_round()
        drive_to_playing(m, {"p0": [0, 0, 0, 0], "p1": [3, 3, 3, 3], "p2": [0, 0, 0, 0]})
        self._bust_p1(m)
        assert m.phase == Phase.ROUND_END

        assert m.start_round()
        assert m.get_player("p1").status == PlayerStatus.SPECTATOR
        assert [len(p.hand) for p in m.players] == [6, 0, 6]
        assert m.room.turn_player_id == "p2"
