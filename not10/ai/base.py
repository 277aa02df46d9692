"""
Base AI strategy interface for NOT10.

This module defines the protocol that all AI strategies must implement and
the decision object they return for the betting phase.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..core import ActionType, PlayPosition, TableSnapshot


@dataclass(frozen=True)
class BetDecision:
    """A betting-phase decision.

    Attributes:
        action_type: BET, CALL, ALL_IN or FINALIZE
        amount: Amount for BET (ignored otherwise)
        finalize: Whether to lock the bet in the same turn
        reason: Short human-readable explanation for logs
    """

    action_type: ActionType
    amount: int = 0
    finalize: bool = False
    reason: str = ""

    def __post_init__(self):
        if not self.action_type.is_betting_action:
            raise ValueError(f"Not a betting action: {self.action_type}")
        if self.amount < 0:
            raise ValueError(f"Amount cannot be negative: {self.amount}")


@runtime_checkable
class AIStrategy(Protocol):
    """AI strategy interface protocol.

    Every decision is made from the bot's own view of the table only.
    """

    def decide_bet(self, snapshot: TableSnapshot, player_id: str) -> BetDecision:
        """Decide the next betting action.

        Args:
            snapshot: Snapshot taken from the bot's point of view
            player_id: ID of the bot holding the turn

        Returns:
            A decision that is legal for the given snapshot

        Raises:
            ValueError: If player_id is not in the snapshot
        """
        ...

    def choose_card(self, snapshot: TableSnapshot, player_id: str) -> int:
        """Pick a card value from the bot's own hand."""
        ...

    def choose_position(self, snapshot: TableSnapshot, player_id: str) -> PlayPosition:
        """Choose to play first or last as the highest bettor."""
        ...
