"""
Personality-driven AI policy for NOT10.

One class implements all three personalities; the behaviour differences
live in the strategy table (see personality.py). Randomness comes from an
injected random.Random so tests can pin every decision.
"""

import logging
import random
from typing import List, Optional, Sequence

from ..core import (
    ActionType, DEFAULT_RULES, GameRules, Personality, PlayPosition, PlayerView, TableSnapshot,
)
from .base import BetDecision
from .personality import CardStyle, PersonalityProfile, get_profile


def evaluate_hand_strength(hand: Sequence[int], table_total: int,
                           bust_threshold: int = DEFAULT_RULES.bust_threshold) -> float:
    """Score a hand between 0 and 1.

    0.6 * fraction of cards that keep the table below the bust threshold
    + 0.4 * fraction of low cards (0 or 1).

    Args:
        hand: Card values in hand
        table_total: Current table total
        bust_threshold: Bust threshold of the rules in use

    Returns:
        Hand strength, 0.0 for an empty hand
    """
    if not hand:
        return 0.0
    safe = sum(1 for card in hand if table_total + card < bust_threshold)
    low = sum(1 for card in hand if card <= 1)
    return 0.6 * safe / len(hand) + 0.4 * low / len(hand)


def partition_cards(hand: Sequence[int], table_total: int,
                    bust_threshold: int = DEFAULT_RULES.bust_threshold):
    """Split a hand into (safe, risky) card lists, both sorted ascending."""
    safe = sorted(card for card in hand if table_total + card < bust_threshold)
    risky = sorted(card for card in hand if table_total + card >= bust_threshold)
    return safe, risky


class PersonalityAI:
    """AI player parameterised by a personality profile.

    Implements the AIStrategy protocol: decide_bet, choose_card and
    choose_position.
    """

    def __init__(self, personality: Personality,
                 rng: Optional[random.Random] = None,
                 rules: GameRules = DEFAULT_RULES,
                 profile: Optional[PersonalityProfile] = None,
                 logger: Optional[logging.Logger] = None):
        """Initialize the AI.

        Args:
            personality: Personality tag
            rng: Random source for probabilistic choices
            rules: Game rules (raise amounts, thresholds)
            profile: Override for the strategy-table entry
            logger: Optional logger
        """
        self.personality = personality
        self.profile = profile or get_profile(personality)
        self.rules = rules
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)
        self.decision_count = 0

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    def decide_bet(self, snapshot: TableSnapshot, player_id: str) -> BetDecision:
        """Make a betting decision from the bot's own view.

        Raises:
            ValueError: If player_id is not in the snapshot
        """
        me = snapshot.get_player(player_id)
        if me is None:
            raise ValueError(f"Player {player_id} not found in snapshot")

        self.decision_count += 1
        strength = evaluate_hand_strength(snapshot.own_hand, snapshot.table_total, self.rules.bust_threshold)
        call_amount = snapshot.call_amount(player_id)
        already_matched = me.has_acted and me.committed_bet == snapshot.highest_bet > 0

        decision = self._raw_decision(me, strength, call_amount, already_matched)
        decision = self._make_legal(decision, me, call_amount)
        self._logger.debug(
            f"{me.name}({self.personality.value}) 强度{strength:.2f} -> "
            f"{decision.action_type.value} {decision.amount} finalize={decision.finalize} ({decision.reason})"
        )
        return decision

    def should_finalize(self, action_type: ActionType, already_matched: bool) -> bool:
        """Finalize immediately after this action?

        Calls always finalize; matching a positive table high finalizes;
        otherwise it is the personality's finalize probability.
        """
        if action_type == ActionType.CALL or already_matched:
            return True
        return self._rng.random() < self.profile.finalize_probability

    def choose_raise_amount(self, has_raised: bool, strength: float) -> Optional[int]:
        """Pick a raise amount, or None to call instead.

        Args:
            has_raised: Whether this bot already raised this round
            strength: Current hand strength
        """
        profile = self.profile
        if not has_raised:
            if profile.bluff_probability and self._rng.random() < profile.bluff_probability:
                return profile.bluff_amount
            if strength > profile.strong_threshold:
                return self._rng.choice(profile.strong_opening_amounts)
            return self._rng.choice(profile.opening_amounts)

        if self._rng.random() < profile.reraise_probability and strength > profile.reraise_min_strength:
            return self._rng.choice(profile.reraise_amounts)
        return None

    def _raw_decision(self, me: PlayerView, strength: float, call_amount: int,
                      already_matched: bool) -> BetDecision:
        if me.money == 0:
            return BetDecision(ActionType.FINALIZE, reason="已全押")

        # 跟注需要投入大部分余额时重新评估
        if call_amount > 0 and call_amount >= self.rules.pressure_ratio * me.money:
            if strength > self.profile.pressure_threshold:
                if call_amount >= me.money:
                    return BetDecision(ActionType.ALL_IN, finalize=True, reason="压力下全押")
                return BetDecision(ActionType.CALL, finalize=True, reason="压力下跟注")
            return BetDecision(ActionType.FINALIZE, reason="压力下放弃加注")

        if already_matched:
            return BetDecision(ActionType.FINALIZE, reason="已跟平最高下注")

        amount = self.choose_raise_amount(me.has_raised, strength)
        if amount is None:
            return BetDecision(ActionType.CALL, finalize=True, reason="跟注")

        decision = self._affordable_raise(amount, me, call_amount)
        if decision.action_type == ActionType.CALL:
            return decision
        finalize = self.should_finalize(decision.action_type, already_matched)
        return BetDecision(decision.action_type, decision.amount, finalize, decision.reason)

    def _affordable_raise(self, amount: int, me: PlayerView, call_amount: int) -> BetDecision:
        """Downgrade an unaffordable raise to the minimum raise, then to a call."""
        if amount <= me.money:
            return BetDecision(ActionType.BET, amount, reason="加注")
        if self.rules.min_raise <= me.money:
            return BetDecision(ActionType.BET, self.rules.min_raise, reason="降为最小加注")
        if 0 < call_amount <= me.money:
            return BetDecision(ActionType.CALL, finalize=True, reason="余额不足，改为跟注")
        return BetDecision(ActionType.ALL_IN, reason="余额不足最小加注，全押")

    def _make_legal(self, decision: BetDecision, me: PlayerView, call_amount: int) -> BetDecision:
        """Replace a decision the round machine would reject with the cheapest legal one."""
        min_bet = self.rules.min_bet

        if decision.action_type == ActionType.FINALIZE:
            if me.has_acted and (me.committed_bet >= min_bet or me.money == 0):
                return decision
            return self._cheapest_commitment(me, call_amount)

        if decision.action_type == ActionType.CALL and call_amount > me.money:
            return BetDecision(ActionType.ALL_IN, finalize=True, reason="余额不足以跟注，全押")

        if decision.action_type == ActionType.BET and decision.finalize:
            committed = me.committed_bet + decision.amount
            if committed < min_bet and me.money - decision.amount > 0:
                return BetDecision(ActionType.BET, decision.amount, False, decision.reason)

        return decision

    def _cheapest_commitment(self, me: PlayerView, call_amount: int) -> BetDecision:
        if 0 < call_amount <= me.money and me.committed_bet + call_amount >= self.rules.min_bet:
            if call_amount <= self.rules.min_raise:
                return BetDecision(ActionType.CALL, finalize=True, reason="最低限度跟注")
        if self.rules.min_raise <= me.money:
            return BetDecision(ActionType.BET, self.rules.min_raise, finalize=True, reason="最低限度下注")
        return BetDecision(ActionType.ALL_IN, finalize=True, reason="最低限度全押")

    # ------------------------------------------------------------------
    # Playing
    # ------------------------------------------------------------------

    def choose_card(self, snapshot: TableSnapshot, player_id: str) -> int:
        """Pick a card from the bot's own hand.

        Raises:
            ValueError: If the hand is empty
        """
        hand = list(snapshot.own_hand)
        if not hand:
            raise ValueError(f"Player {player_id} has no cards to play")

        safe, _ = partition_cards(hand, snapshot.table_total, snapshot.bust_threshold)
        if not safe:
            return min(hand)

        style = self.profile.card_style
        if style == CardStyle.LOWEST_SAFE:
            return safe[0]
        if style == CardStyle.MIDDLE_SAFE:
            return safe[len(safe) // 2]
        if snapshot.table_total < self.profile.low_table_total:
            return safe[-1]
        return self._rng.choice(safe)

    def choose_position(self, snapshot: TableSnapshot, player_id: str) -> PlayPosition:
        """Choose first or last as the highest bettor.

        Deterministic for a given hand and table, except for the
        profile's position bluff probability.
        """
        hand: List[int] = list(snapshot.own_hand)
        strength = evaluate_hand_strength(hand, snapshot.table_total, snapshot.bust_threshold)

        if strength >= self.profile.first_position_strength:
            position = PlayPosition.FIRST
        elif hand and sum(1 for card in hand if card >= 2) / len(hand) >= self.profile.last_position_high_ratio:
            position = PlayPosition.LAST
        else:
            position = self.profile.default_position

        if self.profile.position_bluff_probability and self._rng.random() < self.profile.position_bluff_probability:
            position = PlayPosition.LAST if position == PlayPosition.FIRST else PlayPosition.FIRST
        return position

    def __repr__(self) -> str:
        return f"PersonalityAI(personality={self.personality.value})"
