"""
Core game logic for NOT10.

This package contains the fundamental game components including the deck
utilities, players, room and round state, pot distribution and the round
state machine.
"""

from .enums import Phase, PlayerStatus, ActionType, PlayPosition, Personality, LogEntryType
from .config import GameRules, DEFAULT_RULES, LoggingConfig, setup_logging
from .exceptions import (
    Not10Error, ActionRejectedError, ValidationError, WrongPhaseError, NotYourTurnError,
    PlayerNotActiveError, InvalidAmountError, CardNotInHandError, NothingToCommitError,
    NoPriorActionError, BelowMinimumError, AlreadyFinalizedError, PositionChoiceError,
    InsufficientFundsError, InsufficientCardsError, GameStateError, GameConfigError,
    HandAccessError, LobbyError, StoreError, RecordNotFoundError, DuplicateRecordError,
    StaleRecordError,
)
from .cards import create_deck, shuffle, deal, hand_size_for, format_hand
from .money import format_money, dollars_to_cents, cents_to_dollars
from .player import Player
from .state import (
    GameState, Room, RoundState, RoundLogEntry, RoundResult, StateBackup, PlayerView, TableSnapshot,
)
from .turn_order import players_in_turn_order, next_in_cycle, resolve_play_order
from .pot import distribute_pot, get_distribution_summary
from .events import EventBus, EventType, GameEvent
from .round_machine import RoundStateMachine


def create_player(player_id: str, name: str, seat_index: int,
                  money: int = DEFAULT_RULES.starting_money, **kwargs) -> Player:
    """Create a new player.

    Args:
        player_id: Unique player id.
        name: Display name.
        seat_index: Seat 0-3.
        money: Starting balance in cents.

    Returns:
        A new Player instance.
    """
    return Player(player_id=player_id, name=name, seat_index=seat_index, money=money, **kwargs)


__all__ = [
    # Enums
    'Phase', 'PlayerStatus', 'ActionType', 'PlayPosition', 'Personality', 'LogEntryType',

    # Configuration
    'GameRules', 'DEFAULT_RULES', 'LoggingConfig', 'setup_logging',

    # Exceptions
    'Not10Error', 'ActionRejectedError', 'ValidationError', 'WrongPhaseError', 'NotYourTurnError',
    'PlayerNotActiveError', 'InvalidAmountError', 'CardNotInHandError', 'NothingToCommitError',
    'NoPriorActionError', 'BelowMinimumError', 'AlreadyFinalizedError', 'PositionChoiceError',
    'InsufficientFundsError', 'InsufficientCardsError', 'GameStateError', 'GameConfigError',
    'HandAccessError', 'LobbyError', 'StoreError', 'RecordNotFoundError', 'DuplicateRecordError',
    'StaleRecordError',

    # Cards and money
    'create_deck', 'shuffle', 'deal', 'hand_size_for', 'format_hand',
    'format_money', 'dollars_to_cents', 'cents_to_dollars',

    # State
    'Player', 'GameState', 'Room', 'RoundState', 'RoundLogEntry', 'RoundResult', 'StateBackup',
    'PlayerView', 'TableSnapshot',

    # Rules
    'players_in_turn_order', 'next_in_cycle', 'resolve_play_order',
    'distribute_pot', 'get_distribution_summary', 'RoundStateMachine',

    # Events
    'EventBus', 'EventType', 'GameEvent',

    # Convenience functions
    'create_player',
]
