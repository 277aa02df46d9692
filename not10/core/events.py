"""
Event system for NOT10.

This module provides an event bus for decoupling the round state machine
from the UI, the sync layer and other observers.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass
from enum import Enum
import logging
import time


class EventType(Enum):
    """Types of events that can be emitted by the game."""

    # Game lifecycle events
    GAME_STARTED = "game_started"
    GAME_OVER = "game_over"
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"

    # Phase events
    PHASE_CHANGED = "phase_changed"
    CARDS_DEALT = "cards_dealt"
    TURN_CHANGED = "turn_changed"

    # Lobby events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    PLAYER_READY = "player_ready"

    # Betting events
    BET_PLACED = "bet_placed"
    PLAYER_CALLED = "player_called"
    PLAYER_ALL_IN = "player_all_in"
    BET_FINALIZED = "bet_finalized"
    POSITION_CHOSEN = "position_chosen"

    # Playing events
    CARD_PLAYED = "card_played"
    PLAYER_BUSTED = "player_busted"
    POT_DISTRIBUTED = "pot_distributed"

    # System events
    ACTION_REJECTED = "action_rejected"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class GameEvent:
    """Represents a game event with associated data.

    Attributes:
        event_type: The type of event
        data: Event-specific data
        timestamp: When the event occurred (optional)
        source: Source of the event, usually the room code (optional)
    """

    event_type: EventType
    data: Dict[str, Any]
    timestamp: Optional[float] = None
    source: Optional[str] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = time.time()


# Type alias for event listeners
EventListener = Callable[[GameEvent], None]


class EventBus:
    """Event bus for managing game events and listeners.

    This class implements the observer pattern, allowing components
    to subscribe to specific event types and receive notifications
    when those events occur.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the event bus.

        Args:
            logger: Optional logger for debugging events
        """
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._logger = logger or logging.getLogger(__name__)

    def subscribe(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe a listener to an event type.

        Args:
            event_type: The type of event to listen for
            listener: The callback function to call when the event occurs
        """
        self._listeners.setdefault(event_type, []).append(listener)
        self._logger.debug(f"Subscribed listener to {event_type.value}")

    def subscribe_all(self, listener: EventListener) -> None:
        """Subscribe a listener to every event type."""
        for event_type in EventType:
            self.subscribe(event_type, listener)

    def unsubscribe(self, event_type: EventType, listener: EventListener) -> bool:
        """Unsubscribe a listener from an event type.

        Returns:
            True if the listener was found and removed, False otherwise
        """
        try:
            self._listeners.get(event_type, []).remove(listener)
        except ValueError:
            return False
        self._logger.debug(f"Unsubscribed listener from {event_type.value}")
        return True

    def emit(self, event: GameEvent) -> None:
        """Emit an event to all subscribed listeners.

        A failing listener is logged and does not stop the others.

        Args:
            event: The event to emit
        """
        listeners = list(self._listeners.get(event.event_type, []))
        self._logger.debug(f"Emitting {event.event_type.value} to {len(listeners)} listeners")

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                self._logger.error(f"Error in event listener: {e}")

    def emit_simple(self, event_type: EventType, source: Optional[str] = None, **data) -> None:
        """Emit a simple event with data as keyword arguments."""
        self.emit(GameEvent(event_type=event_type, data=data, source=source))

