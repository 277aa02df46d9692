"""
回合状态机的单元测试：回合开始与下注阶段
"""

import pytest

from not10.core import (
    ActionType, AlreadyFinalizedError, BelowMinimumError, EventType, HandAccessError,
    InsufficientFundsError, InvalidAmountError, LogEntryType, NoPriorActionError, NothingToCommitError,
    NotYourTurnError, Phase, PlayerNotActiveError, PlayerStatus, PositionChoiceError, WrongPhaseError,
)

from tests.helpers import make_machine, make_players


@pytest.mark.unit
class TestStartRound:
    """回合开始测试"""

    def test_start_round_deals_and_enters_betting(self, machine):
        """3人局每人4张，进入下注阶段，起始座位先行动"""
        assert machine.start_round() is True
        assert machine.phase == Phase.BETTING
        assert machine.room.current_round == 1
        assert machine.room.turn_player_id == "p0"
        for player in machine.players:
            assert len(player.hand) == 4
        assert len(machine.round.deck) == 28
        all_cards = sorted(machine.round.deck + [c for p in machine.players for c in p.hand])
        assert all_cards == sorted([v for v in range(4) for _ in range(10)])

    def test_round_state_reset(self, started_machine):
        """新回合下注与标记全部清零"""
        round_state = started_machine.round
        assert round_state.round_no == 1
        assert round_state.bets == {"p0": 0, "p1": 0, "p2": 0}
        assert not any(round_state.finalized.values())
        assert not any(round_state.has_acted.values())
        assert round_state.log[0].entry_type == LogEntryType.ROUND_START

    def test_two_players_get_six_cards(self):
        machine = make_machine(make_players(2))
        machine.start_round()
        assert [len(p.hand) for p in machine.players] == [6, 6]

    def test_four_players_leave_24_cards(self):
        """4人各发4张后牌堆剩余24张"""
        machine = make_machine(make_players(4))
        machine.start_round()
        assert len(machine.round.deck) == 24

    def test_starting_index_decides_first_player(self):
        machine = make_machine(make_players(3), starting_index=2)
        machine.start_round()
        assert machine.room.turn_player_id == "p2"

    def test_broke_player_becomes_spectator(self):
        """资金为0的玩家转为旁观者且不发牌"""
        players = make_players(3)
        players[0].money = 0
        machine = make_machine(players)
        assert machine.start_round()
        broke = machine.get_player("p0")
        assert broke.status == PlayerStatus.SPECTATOR
        assert broke.hand == []
        assert [len(p.hand) for p in machine.players[1:]] == [6, 6]
        assert machine.room.turn_player_id == "p1"
        assert "p0" not in machine.round.bets

    def test_not_enough_funded_players_finishes_game(self):
        """有资金的玩家少于2人时游戏结束"""
        players = make_players(2)
        players[1].money = 0
        machine = make_machine(players)
        assert machine.start_round() is False
        assert machine.phase == Phase.FINISHED
        assert machine.room.winner_id == "p0"
        assert machine.is_game_over()

    def test_cannot_start_during_betting(self, started_machine):
        with pytest.raises(WrongPhaseError):
            started_machine.start_round()

    def test_start_round_emits_events(self, event_bus, recorded_events):
        machine = make_machine(event_bus=event_bus)
        machine.start_round()
        types = [e.event_type for e in recorded_events]
        assert EventType.ROUND_STARTED in types
        assert EventType.CARDS_DEALT in types
        assert types[-1] == EventType.TURN_CHANGED
        assert all(e.source == "TEST" for e in recorded_events)


@pytest.mark.unit
class TestBetting:
    """下注阶段测试"""

    def test_bet_moves_money_to_pot(self, started_machine):
        m = started_machine
        assert m.bet("p0", 20000) == 20000
        assert m.get_player("p0").money == 80000
        assert m.room.pot == 20000
        assert m.round.bets["p0"] == 20000
        assert m.round.has_raised["p0"]
        assert m.round.has_acted["p0"]
        assert not m.round.finalized["p0"]
        assert m.room.turn_player_id == "p1"

    def test_invalid_bet_amount_changes_nothing(self, started_machine):
        """不在档位内的金额被拒绝，状态不变"""
        m = started_machine
        with pytest.raises(InvalidAmountError):
            m.bet("p0", 15000)
        assert m.room.pot == 0
        assert m.get_player("p0").money == 100000
        assert m.room.turn_player_id == "p0"

    def test_bet_entire_balance_is_allowed(self, started_machine):
        m = started_machine
        m.get_player("p0").money = 35000
        assert m.bet("p0", 35000) == 35000
        assert m.get_player("p0").money == 0

    def test_not_your_turn(self, started_machine):
        with pytest.raises(NotYourTurnError):
            started_machine.bet("p1", 10000)

    def test_unknown_player(self, started_machine):
        with pytest.raises(PlayerNotActiveError):
            started_machine.call("ghost")

    def test_betting_before_round_starts(self, machine):
        with pytest.raises(WrongPhaseError):
            machine.bet("p0", 10000)

    def test_call_matches_and_finalizes(self, started_machine):
        """跟注补齐差额并默认锁定"""
        m = started_machine
        m.bet("p0", 10000)
        assert m.call("p1") == 10000
        assert m.round.bets["p1"] == 10000
        assert m.round.finalized["p1"]
        assert m.room.turn_player_id == "p2"

    def test_call_without_finalize(self, started_machine):
        m = started_machine
        m.bet("p0", 10000)
        m.call("p1", finalize=False)
        assert not m.round.finalized["p1"]

    def test_insufficient_funds_then_all_in(self):
        """余额$50无法跟注$100，改为全押$50"""
        players = make_players(3)
        players[1].money = 5000
        m = make_machine(players)
        m.start_round()
        m.bet("p0", 10000)

        with pytest.raises(InsufficientFundsError) as exc_info:
            m.call("p1")
        assert exc_info.value.suggested_action == ActionType.ALL_IN
        with pytest.raises(InsufficientFundsError):
            m.bet("p1", 10000)
        assert m.get_player("p1").money == 5000

        assert m.all_in("p1") == 5000
        assert m.get_player("p1").money == 0
        assert m.round.bets["p1"] == 5000
        assert m.room.pot == 15000
        assert m.room.turn_player_id == "p2"

    def test_finalize_requires_prior_action(self, started_machine):
        with pytest.raises(NoPriorActionError):
            started_machine.finalize("p0")

    def test_finalize_below_minimum_with_money_left(self):
        """下注低于最低额且仍有余额时不能锁定，跟注也不会自动锁定"""
        players = make_players(3)
        players[0].money = 5000
        m = make_machine(players)
        m.start_round()
        m.all_in("p0")
        m.call("p1")
        assert m.round.bets["p1"] == 5000
        assert not m.round.finalized["p1"], "低于最低下注的跟注不应锁定"
        m.call("p2")

        # 全押后余额为0，可以锁定
        m.finalize("p0")
        assert m.round.finalized["p0"]
        with pytest.raises(BelowMinimumError):
            m.finalize("p1")

    def test_replayed_finalize_is_rejected(self, started_machine):
        """已锁定的玩家再次锁定被拒绝"""
        m = started_machine
        m.bet("p0", 10000, finalize=True)
        with pytest.raises(AlreadyFinalizedError):
            m.finalize("p0")

    def test_bet_and_finalize_in_same_turn(self, started_machine):
        m = started_machine
        m.bet("p0", 10000, finalize=True)
        assert m.round.finalized["p0"]
        assert m.room.turn_player_id == "p1"

    def test_turn_skips_finalized_players(self, started_machine):
        """重新加注后，已锁定的玩家不再获得回合"""
        m = started_machine
        m.bet("p0", 10000, finalize=True)
        m.call("p1")
        m.bet("p2", 20000)
        assert m.room.turn_player_id == "p2"

    def test_all_in_with_nothing_left(self, started_machine):
        m = started_machine
        m.all_in("p0")
        m.call("p1")
        m.call("p2")
        assert m.room.turn_player_id == "p0"
        with pytest.raises(NothingToCommitError):
            m.all_in("p0")
        m.finalize("p0")

        # 平局时座位靠前的玩家成为最高下注者
        assert m.round.awaiting_position_choice
        assert m.round.position_chooser_id == "p0"
        assert m.round.position_choice_amount == 100000
        assert m.room.turn_player_id == "p0"

    def test_betting_complete_waits_for_position(self, started_machine):
        m = started_machine
        m.bet("p0", 10000)
        m.bet("p1", 20000, finalize=True)
        m.call("p2")
        assert not m.is_betting_complete()
        assert m.room.turn_player_id == "p0"
        m.finalize("p0")
        assert m.is_betting_complete()
        assert m.phase == Phase.BETTING
        assert m.round.position_chooser_id == "p1"
        assert m.room.turn_player_id == "p1"

        with pytest.raises(WrongPhaseError):
            m.call("p1")
        with pytest.raises(NotYourTurnError):
            m.choose_position("p0", "first")
        with pytest.raises(PositionChoiceError):
            m.choose_position("p1", "middle")

        order = m.choose_position("p1", "LAST")
        assert order == ["p0", "p2", "p1"]
        assert m.phase == Phase.PLAYING
        assert m.room.turn_player_id == "p0"

    def test_choose_position_outside_betting(self, started_machine):
        with pytest.raises(WrongPhaseError):
            started_machine.choose_position("p0", "first")

    def test_money_is_conserved(self, started_machine):
        m = started_machine
        total = m.state.total_money()
        m.bet("p0", 50000)
        m.call("p1")
        m.all_in("p2")
        assert m.state.total_money() == total


@pytest.mark.unit
class TestQueries:
    """查询与可见性测试"""

    def test_available_actions(self, started_machine):
        m = started_machine
        assert m.available_actions("p0") == [ActionType.BET, ActionType.CALL, ActionType.ALL_IN]
        assert m.available_actions("p1") == []
        m.bet("p0", 10000)
        m.call("p1", finalize=False)
        m.call("p2")
        assert ActionType.FINALIZE in m.available_actions("p0")

    def test_hand_access(self, started_machine):
        """只有持有者本人可以读取手牌"""
        m = started_machine
        assert m.get_hand("p1", "p1") == m.get_player("p1").hand
        with pytest.raises(HandAccessError):
            m.get_hand("p1", "p0")
        with pytest.raises(HandAccessError):
            m.get_hand("p1", "p0", viewer_is_host=True)

    def test_snapshot_contains_only_own_hand(self, started_machine):
        m = started_machine
        snapshot = m.snapshot("p1")
        assert list(snapshot.own_hand) == m.get_player("p1").hand
        assert snapshot.get_player("p0").card_count == 4
        assert not hasattr(snapshot.get_player("p0"), "hand")
        assert m.snapshot().own_hand == ()

    def test_snapshot_is_detached(self, started_machine):
        m = started_machine
        snapshot = m.snapshot("p0")
        m.bet("p0", 10000)
        assert snapshot.pot == 0
        assert snapshot.turn_player_id == "p0"
        assert m.snapshot("p1").call_amount("p1") == 10000
