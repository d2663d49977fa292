"""Event definitions and publishing for the campus microgrid."""

from collections import defaultdict
from enum import Enum
from typing import Callable, Dict, Any, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
import logging
import threading

from .state import Alert, DispatchResult


class EventType(str, Enum):
    """Types of microgrid events."""
    # Tick events
    TICK_COMPLETE = "tick_complete"
    TICK_FAILED = "tick_failed"

    # State events
    STATE_FALLBACK = "state_fallback"
    TARGET_LOAD_CHANGED = "target_load_changed"

    # Alert events
    ALERTS_REPLACED = "alerts_replaced"


@dataclass
class Event:
    """Base event class."""
    type: EventType
    timestamp: datetime
    details: Optional[Dict[str, Any]] = None


@dataclass
class TickEvent(Event):
    """Tick outcome; ``result`` is None when the tick failed."""
    result: Optional[DispatchResult] = None
    error: Optional[str] = None


@dataclass
class AlertEvent(Event):
    """Alert set replacement."""
    alerts: List[Alert] = field(default_factory=list)
    deactivated: int = 0

EventHandler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe hub.

    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: Dict[Optional[EventType], List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self.logger = logging.getLogger("microgrid.events")

    def subscribe(self, handler: EventHandler, event_type: Optional[EventType] = None) -> None:
        """Register ``handler`` for one event type, or for all when None."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, handler: EventHandler, event_type: Optional[EventType] = None) -> None:
        with self._lock:
            if handler in self._handlers.get(event_type, []):
                self._handlers[event_type].remove(handler)

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to its subscribers."""
        with self._lock:
            handlers = list(self._handlers.get(event.type, [])) + list(self._handlers.get(None, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event handler failed for {event.type.value}: {e}")
