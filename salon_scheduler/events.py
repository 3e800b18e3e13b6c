"""
Discrete state-change events emitted by the engine.

Transports (a polling endpoint, a push channel) subscribe here instead
of watching a global "last update" timestamp.

Usage:
    bus = EventBus()
    bus.subscribe(lambda event: print(event.kind.value))
    bus.publish(EngineEvent(EventKind.GAP_OFFERED, at=datetime.now(), request_id="WL-1"))
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    WAITLIST_JOINED = "waitlist_joined"
    GAP_OFFERED = "gap_offered"
    REQUEST_BOOKED = "request_booked"
    REQUEST_REFUSED = "request_refused"
    REQUEST_EXPIRED = "request_expired"
    BOOKING_CREATED = "booking_created"
    BOOKING_CANCELLED = "booking_cancelled"


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    at: datetime
    request_id: Optional[str] = None
    booking_id: Optional[str] = None
    worker_id: Optional[str] = None
    day: Optional[date] = None
    start_time: Optional[str] = None


Subscriber = Callable[[EngineEvent], None]


class EventBus:
    """In-process publish/subscribe with a bounded history."""

    def __init__(self, history_limit: int = 500) -> None:
        self._subscribers: list[Subscriber] = []
        self._history: list[EngineEvent] = []
        self._history_limit = history_limit

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: EngineEvent) -> None:
        self._history.append(event)
        if len(self._history) > self._history_limit:
            del self._history[: len(self._history) - self._history_limit]
        logger.debug("Event %s (request=%s)", event.kind.value, event.request_id)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception("Event subscriber failed for %s", event.kind.value)

    def get_history(self) -> list[EngineEvent]:
        return list(self._history)

    def kinds(self) -> list[str]:
        """Ordered event kind names, handy for assertions and traces."""
        return [event.kind.value for event in self._history]

    @property
    def last_update(self) -> Optional[datetime]:
        return self._history[-1].at if self._history else None
