"""
Controller layer for NOT10.

This package bridges the round state machine with the user interface
layers: action DTOs, the game controller, lobby helpers, the bot
scheduler and the solo/shared session front ends.
"""

from .game_controller import GameController
from .dto import (
    ActionInput, ActionResult, RoundSummary, PlayerState, TableView, GameConfiguration,
)
from .decorators import atomic, logged_action
from .lobby import (
    ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH, MAX_NAME_LENGTH,
    generate_room_code, is_valid_room_code, normalize_room_code, validate_player_name,
    new_player_id, bot_player_id, find_available_seat, make_bot, fill_with_bots,
)
from .scheduler import MIN_TICK_INTERVAL, Ticker, ManualTicker, ThreadTicker, SingleFlightGuard
from .session import HUMAN_PLAYER_ID, SoloSession, SharedSession

__all__ = [
    'GameController',
    'ActionInput', 'ActionResult', 'RoundSummary', 'PlayerState', 'TableView', 'GameConfiguration',
    'atomic', 'logged_action',
    'ROOM_CODE_ALPHABET', 'ROOM_CODE_LENGTH', 'MAX_NAME_LENGTH',
    'generate_room_code', 'is_valid_room_code', 'normalize_room_code', 'validate_player_name',
    'new_player_id', 'bot_player_id', 'find_available_seat', 'make_bot', 'fill_with_bots',
    'MIN_TICK_INTERVAL', 'Ticker', 'ManualTicker', 'ThreadTicker', 'SingleFlightGuard',
    'HUMAN_PLAYER_ID', 'SoloSession', 'SharedSession',
]
