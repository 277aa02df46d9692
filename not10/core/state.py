"""
Game state management for NOT10.

This module provides the room and round state containers, backup/restore
support for transactional actions, and the read-only table snapshot handed
to the presentation layer and AI players.
"""

import copy
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .enums import LogEntryType, Personality, Phase, PlayerStatus, PlayPosition
from .player import Player


@dataclass
class RoundLogEntry:
    """One line of the append-only round log."""

    entry_type: LogEntryType
    message: str
    player_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()


@dataclass
class RoundState:
    """
    Per-round ephemeral state.

    Every flag mapping is keyed by player id and only contains the players
    who were dealt into the round.
    """

    round_no: int = 0
    deck: List[int] = field(default_factory=list)
    bets: Dict[str, int] = field(default_factory=dict)
    has_raised: Dict[str, bool] = field(default_factory=dict)
    has_acted: Dict[str, bool] = field(default_factory=dict)
    finalized: Dict[str, bool] = field(default_factory=dict)
    awaiting_position_choice: bool = False
    position_chooser_id: Optional[str] = None
    position_choice_amount: int = 0
    chosen_position: Optional[PlayPosition] = None
    play_order: List[str] = field(default_factory=list)
    played_count: int = 0
    eliminated_player_id: Optional[str] = None
    cards_remaining: Dict[str, int] = field(default_factory=dict)
    log: List[RoundLogEntry] = field(default_factory=list)

    @classmethod
    def for_players(cls, round_no: int, hands: Dict[str, List[int]], deck: List[int]) -> 'RoundState':
        """Create a fresh round with zeroed bets and cleared flags.

        Args:
            round_no: Number of the new round.
            hands: Dealt hands keyed by player id; only their sizes are kept.
            deck: Cards left after dealing.
        """
        player_ids = list(hands)
        return cls(
            round_no=round_no,
            deck=deck,
            cards_remaining={pid: len(cards) for pid, cards in hands.items()},
            bets={pid: 0 for pid in player_ids},
            has_raised={pid: False for pid in player_ids},
            has_acted={pid: False for pid in player_ids},
            finalized={pid: False for pid in player_ids},
        )

    def bet_of(self, player_id: str) -> int:
        return self.bets.get(player_id, 0)

    def cards_of(self, player_id: str) -> int:
        """Public number of cards the player still holds."""
        return self.cards_remaining.get(player_id, 0)

    def highest_bet(self) -> int:
        """Current table-high committed bet."""
        return max(self.bets.values(), default=0)

    def add_log(self, entry_type: LogEntryType, message: str,
                player_id: Optional[str] = None, **data) -> RoundLogEntry:
        entry = RoundLogEntry(entry_type=entry_type, message=message, player_id=player_id, data=data)
        self.log.append(entry)
        return entry


@dataclass
class Room:
    """
    Room/session level fields.

    These are the lifecycle fields exposed to every participant.
    """

    code: str
    host_id: Optional[str] = None
    phase: Phase = Phase.LOBBY
    current_round: int = 0
    starting_player_index: int = 0
    table_total: int = 0
    pot: int = 0
    turn_player_id: Optional[str] = None
    winner_id: Optional[str] = None

    def __post_init__(self):
        """Validate room after initialization."""
        if not self.code:
            raise ValueError("Room code cannot be empty")

        if self.pot < 0:
            raise ValueError(f"Pot amount cannot be negative: {self.pot}")

        if self.table_total < 0:
            raise ValueError(f"Table total cannot be negative: {self.table_total}")

        if not 0 <= self.starting_player_index < 4:
            raise ValueError(f"Starting player index out of range: {self.starting_player_index}")


@dataclass(frozen=True)
class StateBackup:
    """Deep copy of a GameState used to roll back failed actions."""

    room: Room
    players: List[Player]
    round: RoundState


@dataclass(frozen=True)
class RoundResult:
    """Outcome of a finished round."""

    round_no: int
    eliminated_player_id: Optional[str]
    payouts: Dict[str, int]
    pot: int
    table_total: int
    game_over: bool = False
    winner_id: Optional[str] = None


@dataclass(frozen=True)
class PlayerView:
    """Public view of a player. Never contains hand contents."""

    player_id: str
    name: str
    seat_index: int
    money: int
    status: PlayerStatus
    is_ready: bool
    is_bot: bool
    personality: Optional[Personality]
    card_count: int
    committed_bet: int
    has_raised: bool
    has_acted: bool
    finalized: bool

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE


@dataclass(frozen=True)
class TableSnapshot:
    """
    Read-only snapshot of {room, players, round state, own hand}.

    Only the viewer's own hand is included; other players are reduced to
    their card counts.
    """

    code: str
    phase: Phase
    current_round: int
    starting_player_index: int
    table_total: int
    pot: int
    turn_player_id: Optional[str]
    winner_id: Optional[str]
    host_id: Optional[str]
    players: Tuple[PlayerView, ...]
    highest_bet: int
    awaiting_position_choice: bool
    position_chooser_id: Optional[str]
    position_choice_amount: int
    play_order: Tuple[str, ...]
    played_count: int
    eliminated_player_id: Optional[str]
    viewer_id: Optional[str]
    own_hand: Tuple[int, ...]
    log: Tuple[RoundLogEntry, ...]
    bust_threshold: int = 10

    def get_player(self, player_id: str) -> Optional[PlayerView]:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def get_active_players(self) -> List[PlayerView]:
        return [p for p in self.players if p.is_active]

    def get_turn_player(self) -> Optional[PlayerView]:
        if self.turn_player_id is None:
            return None
        return self.get_player(self.turn_player_id)

    def call_amount(self, player_id: str) -> int:
        """Amount the player still needs to match the table-high bet."""
        player = self.get_player(player_id)
        if player is None:
            return 0
        return max(0, self.highest_bet - player.committed_bet)


@dataclass
class GameState:
    """
    Mutable game state for NOT10.

    Holds the room, the seated players and the current round. Rules are
    applied by the round state machine; this class only stores data and
    produces backups and snapshots.
    """

    room: Room
    players: List[Player] = field(default_factory=list)
    round: RoundState = field(default_factory=RoundState)

    def __post_init__(self):
        seats = [p.seat_index for p in self.players]
        if len(seats) != len(set(seats)):
            raise ValueError(f"Duplicate seat index in players: {seats}")
        ids = [p.player_id for p in self.players]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate player id in players: {ids}")
        self.players.sort(key=lambda p: p.seat_index)

    def create_backup(self) -> StateBackup:
        """Create a deep copy of the whole state.

        Returns:
            A StateBackup that restore_backup() can roll back to.
        """
        return StateBackup(
            room=copy.deepcopy(self.room),
            players=copy.deepcopy(self.players),
            round=copy.deepcopy(self.round),
        )

    def restore_backup(self, backup: StateBackup) -> None:
        """Restore state from a backup.

        Args:
            backup: The backup to restore from.
        """
        self.room = copy.deepcopy(backup.room)
        self.players = copy.deepcopy(backup.players)
        self.round = copy.deepcopy(backup.round)

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def get_player_by_seat(self, seat_index: int) -> Optional[Player]:
        for player in self.players:
            if player.seat_index == seat_index:
                return player
        return None

    def get_active_players(self) -> List[Player]:
        """Active players in seat order."""
        return [p for p in self.players if p.is_active]

    def add_player(self, player: Player) -> None:
        """Seat a player.

        Raises:
            ValueError: If the seat or the player id is already taken.
        """
        if self.get_player_by_seat(player.seat_index) is not None:
            raise ValueError(f"Seat {player.seat_index} is already occupied")
        if self.get_player(player.player_id) is not None:
            raise ValueError(f"Player {player.player_id} is already seated")
        self.players.append(player)
        self.players.sort(key=lambda p: p.seat_index)

    def remove_player(self, player_id: str) -> Optional[Player]:
        player = self.get_player(player_id)
        if player is not None:
            self.players.remove(player)
        return player

    def total_money(self) -> int:
        """Sum of all balances plus the pot. Constant across a round."""
        return sum(p.money for p in self.players) + self.room.pot

    def to_snapshot(self, viewer_id: Optional[str] = None, bust_threshold: int = 10) -> TableSnapshot:
        """Build a read-only snapshot for a viewer.

        Args:
            viewer_id: Player whose own hand is included, or None for a
                fully public view.
            bust_threshold: Bust threshold of the rules in use.
        """
        views = tuple(
            PlayerView(
                player_id=p.player_id,
                name=p.name,
                seat_index=p.seat_index,
                money=p.money,
                status=p.status,
                is_ready=p.is_ready,
                is_bot=p.is_bot,
                personality=p.personality,
                card_count=self.round.cards_of(p.player_id),
                committed_bet=self.round.bet_of(p.player_id),
                has_raised=self.round.has_raised.get(p.player_id, False),
                has_acted=self.round.has_acted.get(p.player_id, False),
                finalized=self.round.finalized.get(p.player_id, False),
            )
            for p in self.players
        )
        viewer = self.get_player(viewer_id) if viewer_id else None
        return TableSnapshot(
            code=self.room.code,
            phase=self.room.phase,
            current_round=self.room.current_round,
            starting_player_index=self.room.starting_player_index,
            table_total=self.room.table_total,
            pot=self.room.pot,
            turn_player_id=self.room.turn_player_id,
            winner_id=self.room.winner_id,
            host_id=self.room.host_id,
            players=views,
            highest_bet=self.round.highest_bet(),
            awaiting_position_choice=self.round.awaiting_position_choice,
            position_chooser_id=self.round.position_chooser_id,
            position_choice_amount=self.round.position_choice_amount,
            play_order=tuple(self.round.play_order),
            played_count=self.round.played_count,
            eliminated_player_id=self.round.eliminated_player_id,
            viewer_id=viewer_id,
            own_hand=tuple(viewer.hand) if viewer else (),
            log=tuple(copy.deepcopy(self.round.log)),
            bust_threshold=bust_threshold,
        )

    def __str__(self) -> str:
        return (f"GameState(room={self.room.code}, phase={self.room.phase.value}, "
                f"round={self.room.current_round}, pot={self.room.pot}, "
                f"table_total={self.room.table_total}, players={len(self.players)})")
