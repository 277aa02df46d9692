"""
Persistence/sync layer for NOT10.

An in-memory stand-in for the shared key-value store plus the repository
that maps rooms to and from its records.
"""

from .memory_store import (
    ACTIONS, HANDS, PLAYERS, ROOMS, ROUND_STATE, TABLES,
    Change, ChangeType, InMemoryStore, Record, hand_key, merge_fields,
)
from .repository import (
    ACTION_KIND, LOG_KIND, LoadedRoom, RoomRepository, diff_fields,
    player_to_record, record_to_player, record_to_room, room_to_record,
)

__all__ = [
    'ACTIONS', 'HANDS', 'PLAYERS', 'ROOMS', 'ROUND_STATE', 'TABLES',
    'Change', 'ChangeType', 'InMemoryStore', 'Record', 'hand_key', 'merge_fields',
    'ACTION_KIND', 'LOG_KIND', 'LoadedRoom', 'RoomRepository', 'diff_fields',
    'player_to_record', 'record_to_player', 'record_to_room', 'room_to_record',
]
