"""
Room repository for NOT10.

Maps the in-memory GameState to store records and back. Every participant
loads the room from its own point of view (it can only read its own hand,
plus the bots' hands when it is the host), applies one action through the
round state machine and commits the difference as field-level patches.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core import (
    GameState, LogEntryType, Personality, Phase, Player, PlayerStatus, PlayPosition, Room,
    RoundLogEntry, RoundState,
)
from .memory_store import (
    HANDS, PLAYERS, ROOMS, ROUND_STATE, InMemoryStore, hand_key,
)

LOG_KIND = "log"
ACTION_KIND = "action"


# ----------------------------------------------------------------------
# Record conversion
# ----------------------------------------------------------------------

def room_to_record(room: Room) -> Dict[str, Any]:
    return {
        "code": room.code,
        "host_id": room.host_id,
        "phase": room.phase.value,
        "current_round": room.current_round,
        "starting_player_index": room.starting_player_index,
        "table_total": room.table_total,
        "pot": room.pot,
        "turn_player_id": room.turn_player_id,
        "winner_id": room.winner_id,
    }


def record_to_room(data: Dict[str, Any]) -> Room:
    return Room(
        code=data["code"],
        host_id=data.get("host_id"),
        phase=Phase(data.get("phase", Phase.LOBBY.value)),
        current_round=data.get("current_round", 0),
        starting_player_index=data.get("starting_player_index", 0),
        table_total=data.get("table_total", 0),
        pot=data.get("pot", 0),
        turn_player_id=data.get("turn_player_id"),
        winner_id=data.get("winner_id"),
    )


def player_to_record(player: Player, room_code: str) -> Dict[str, Any]:
    """Player fields without the hand, which lives in its own record."""
    return {
        "player_id": player.player_id,
        "room_code": room_code,
        "name": player.name,
        "seat_index": player.seat_index,
        "money": player.money,
        "status": player.status.value,
        "is_ready": player.is_ready,
        "is_bot": player.is_bot,
        "personality": player.personality.value if player.personality else None,
    }


def record_to_player(data: Dict[str, Any], hand: Optional[List[int]] = None) -> Player:
    personality = data.get("personality")
    return Player(
        player_id=data["player_id"],
        name=data["name"],
        seat_index=data["seat_index"],
        money=data["money"],
        status=PlayerStatus(data.get("status", PlayerStatus.ACTIVE.value)),
        is_ready=data.get("is_ready", False),
        is_bot=data.get("is_bot", False),
        personality=Personality(personality) if personality else None,
        hand=list(hand or []),
    )


def round_to_record(round_state: RoundState, room_code: str) -> Dict[str, Any]:
    """Round fields without the log, which is stored in the action log."""
    return {
        "room_code": room_code,
        "round_no": round_state.round_no,
        "deck": list(round_state.deck),
        "bets": dict(round_state.bets),
        "has_raised": dict(round_state.has_raised),
        "has_acted": dict(round_state.has_acted),
        "finalized": dict(round_state.finalized),
        "awaiting_position_choice": round_state.awaiting_position_choice,
        "position_chooser_id": round_state.position_chooser_id,
        "position_choice_amount": round_state.position_choice_amount,
        "chosen_position": round_state.chosen_position.value if round_state.chosen_position else None,
        "play_order": list(round_state.play_order),
        "played_count": round_state.played_count,
        "eliminated_player_id": round_state.eliminated_player_id,
        "cards_remaining": dict(round_state.cards_remaining),
    }


def record_to_round(data: Dict[str, Any], log: List[RoundLogEntry]) -> RoundState:
    position = data.get("chosen_position")
    return RoundState(
        round_no=data.get("round_no", 0),
        deck=list(data.get("deck", [])),
        bets=dict(data.get("bets", {})),
        has_raised=dict(data.get("has_raised", {})),
        has_acted=dict(data.get("has_acted", {})),
        finalized=dict(data.get("finalized", {})),
        awaiting_position_choice=data.get("awaiting_position_choice", False),
        position_chooser_id=data.get("position_chooser_id"),
        position_choice_amount=data.get("position_choice_amount", 0),
        chosen_position=PlayPosition(position) if position else None,
        play_order=list(data.get("play_order", [])),
        played_count=data.get("played_count", 0),
        eliminated_player_id=data.get("eliminated_player_id"),
        cards_remaining=dict(data.get("cards_remaining", {})),
        log=log,
    )


def log_entry_to_action(entry: RoundLogEntry, round_no: int) -> Dict[str, Any]:
    return {
        "kind": LOG_KIND,
        "round_no": round_no,
        "entry_type": entry.entry_type.value,
        "message": entry.message,
        "player_id": entry.player_id,
        "data": dict(entry.data),
        "created_at": entry.timestamp,
    }


def action_to_log_entry(action: Dict[str, Any]) -> RoundLogEntry:
    return RoundLogEntry(
        entry_type=LogEntryType(action["entry_type"]),
        message=action["message"],
        player_id=action.get("player_id"),
        data=dict(action.get("data", {})),
        timestamp=action.get("created_at"),
    )


def diff_fields(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Any]:
    """Field-level patch turning before into after (nested dicts diffed by key)."""
    patch: Dict[str, Any] = {}
    for name, value in after.items():
        old = before.get(name)
        if isinstance(value, dict) and isinstance(old, dict):
            nested = diff_fields(old, value)
            if nested:
                patch[name] = nested
        elif name not in before or old != value:
            patch[name] = value
    return patch


# ----------------------------------------------------------------------
# Repository
# ----------------------------------------------------------------------

@dataclass
class LoadedRoom:
    """A GameState loaded for one viewer, plus what is needed to commit it."""

    state: GameState
    viewer_id: str
    viewer_is_host: bool
    room_version: int
    baseline: Dict[str, Any]


class RoomRepository:
    """Loads and commits rooms against an InMemoryStore."""

    def __init__(self, store: InMemoryStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self._logger = logger or logging.getLogger(__name__)

    # -- lobby level records -------------------------------------------

    def create_room(self, room: Room) -> None:
        self.store.insert(ROOMS, room.code, room_to_record(room))

    def room_exists(self, room_code: str) -> bool:
        return self.store.find(ROOMS, room_code) is not None

    def get_room(self, room_code: str) -> Room:
        return record_to_room(self.store.get(ROOMS, room_code))

    def update_room(self, room_code: str, patch: Dict[str, Any]) -> int:
        return self.store.update(ROOMS, room_code, patch)

    def add_player(self, room_code: str, player: Player) -> None:
        self.store.insert(PLAYERS, player.player_id, player_to_record(player, room_code))

    def update_player(self, player_id: str, patch: Dict[str, Any]) -> int:
        return self.store.update(PLAYERS, player_id, patch)

    def remove_player(self, room_code: str, player_id: str) -> bool:
        self.store.delete(HANDS, hand_key(room_code, player_id))
        return self.store.delete(PLAYERS, player_id)

    def list_players(self, room_code: str) -> List[Player]:
        """Players of a room in seat order, without hands."""
        records = sorted(self.store.query(PLAYERS, room_code=room_code), key=lambda r: r["seat_index"])
        return [record_to_player(r) for r in records]

    def delete_room(self, room_code: str) -> int:
        return self.store.delete_room(room_code)

    # -- game state ----------------------------------------------------

    def load(self, room_code: str, viewer_id: str, viewer_is_host: bool = False) -> LoadedRoom:
        """Load a room as seen by one participant.

        Hands the viewer may not read are left empty; their public card
        counts travel with the round record.
        """
        room_version = self.store.get_version(ROOMS, room_code)
        room = record_to_room(self.store.get(ROOMS, room_code))
        round_data = self.store.find(ROUND_STATE, room_code) or {}

        players = []
        for record in sorted(self.store.query(PLAYERS, room_code=room_code), key=lambda r: r["seat_index"]):
            player_id = record["player_id"]
            hand = None
            if self.store.can_read_hand(room_code, player_id, viewer_id, viewer_is_host):
                hand = self.store.read_hand(room_code, player_id, viewer_id, viewer_is_host)
            players.append(record_to_player(record, hand=hand))

        round_no = round_data.get("round_no", 0)
        log = [
            action_to_log_entry(action)
            for action in self.store.get_actions(room_code, kind=LOG_KIND, round_no=round_no)
        ]
        state = GameState(room=room, players=players, round=record_to_round(round_data, log))

        return LoadedRoom(
            state=state,
            viewer_id=viewer_id,
            viewer_is_host=viewer_is_host,
            room_version=room_version,
            baseline=self._serialize(state),
        )

    def commit(self, loaded: LoadedRoom) -> None:
        """Write the changes made to a loaded room as field-level patches.

        The room record is written first with an optimistic version check,
        so a participant acting on stale state fails before anything else
        is written.

        Raises:
            StaleRecordError: If someone else changed the room meanwhile.
        """
        code = loaded.state.room.code
        before = loaded.baseline
        after = self._serialize(loaded.state)

        room_patch = diff_fields(before["room"], after["room"])
        if room_patch:
            loaded.room_version = self.store.update(ROOMS, code, room_patch,
                                                    expected_version=loaded.room_version)

        if after["round"]["round_no"] != before["round"]["round_no"]:
            self.store.replace(ROUND_STATE, code, after["round"])
        else:
            round_patch = diff_fields(before["round"], after["round"])
            if round_patch:
                if self.store.find(ROUND_STATE, code) is None:
                    self.store.replace(ROUND_STATE, code, after["round"])
                else:
                    self.store.update(ROUND_STATE, code, round_patch)

        for player_id, record in after["players"].items():
            patch = diff_fields(before["players"].get(player_id, {}), record)
            if patch:
                self.store.update(PLAYERS, player_id, patch)

        # 新回合重新发了所有手牌；同一回合内只有可见的手牌会变化
        dealt = after["round"]["round_no"] != before["round"]["round_no"]
        for player_id, hand in after["hands"].items():
            if dealt or hand != before["hands"].get(player_id):
                self.store.write_hand(code, player_id, hand)

        round_no = after["round"]["round_no"]
        already_logged = before["log_count"] if round_no == before["round"]["round_no"] else 0
        for entry in loaded.state.round.log[already_logged:]:
            self.store.append_action(code, log_entry_to_action(entry, round_no))

        loaded.baseline = after
        self._logger.debug(f"房间{code}提交: room={sorted(room_patch)}")

    @staticmethod
    def _serialize(state: GameState) -> Dict[str, Any]:
        code = state.room.code
        return {
            "room": room_to_record(state.room),
            "round": round_to_record(state.round, code),
            "players": {p.player_id: player_to_record(p, code) for p in state.players},
            "hands": {p.player_id: list(p.hand) for p in state.players},
            "log_count": len(state.round.log),
        }
