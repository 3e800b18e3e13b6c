"""
Anchor-based slot generation.

Candidate starts are projected forward from anchors (the opening time
and the end of every booking or break) in steps of the service
duration, instead of being snapped to a fixed clock grid. A gap freed
at 10:20 is therefore offered at exactly 10:20.

Usage:
    generator = SlotGenerator(schedule, bookings, now_fn=datetime.now)
    result = generator.generate(date(2026, 6, 20), "anna", 45)
    result.slots  # ["09:00", "09:45", ...]
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from salon_scheduler.config import settings
from salon_scheduler.engine.availability import AvailabilityResolver, EffectiveHours
from salon_scheduler.engine.intervals import TimeInterval, booking_intervals
from salon_scheduler.schemas.booking_schema import SlotResult
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.utils import add_months, format_hhmm

if TYPE_CHECKING:
    from salon_scheduler.stores.booking_store import BookingStore

logger = logging.getLogger(__name__)

REASON_FULL = "full"
REASON_PAST_DATE = "past_date"
REASON_DATE_LIMIT = "date_limit_exceeded"


def first_bookable_minute(day: date, now: datetime) -> Optional[int]:
    """Earliest start allowed on ``day`` given the clock.

    Returns None for future days (no restriction). A start equal to the
    current minute is already too late.
    """
    if day != now.date():
        return None
    return now.hour * 60 + now.minute + 1


def anchor_slots(
    hours: EffectiveHours,
    occupied: Iterable[TimeInterval],
    duration: int,
    not_before: Optional[int] = None,
) -> list[int]:
    """Compute sorted offerable start minutes for a service of ``duration``."""
    if duration <= 0:
        return []

    blockers = sorted(occupied)
    pause = hours.break_interval
    if pause is not None:
        blockers.append(pause)

    anchors = {hours.open}
    anchors.update(b.end for b in blockers if hours.open <= b.end < hours.close)

    starts: set[int] = set()
    for anchor in sorted(anchors):
        t = anchor
        while t + duration <= hours.close:
            candidate = TimeInterval(t, t + duration)
            if any(candidate.overlaps(b) for b in blockers):
                break
            starts.add(t)
            t += duration

    if not_before is not None:
        starts = {t for t in starts if t >= not_before}
    return sorted(starts)


class SlotGenerator:
    """Produces bookable start times for a worker/date/service."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        bookings: BookingStore,
        now_fn: Callable[[], datetime] = datetime.now,
        horizon_months: int = settings.business.booking_horizon_months,
    ) -> None:
        self.schedule = schedule
        self.bookings = bookings
        self.resolver = AvailabilityResolver(schedule)
        self.now_fn = now_fn
        self.horizon_months = horizon_months

    def generate(self, day: date, worker_id: str, duration: int) -> SlotResult:
        now = self.now_fn()
        if day < now.date():
            return SlotResult(reason=REASON_PAST_DATE)
        if day > add_months(now.date(), self.horizon_months):
            return SlotResult(reason=REASON_DATE_LIMIT)

        availability = self.resolver.resolve(day, worker_id)
        if not availability.is_open:
            return SlotResult(reason=availability.reason.value)

        occupied = booking_intervals(self.bookings.list_for(worker_id, day), self.schedule)
        starts = anchor_slots(
            availability.hours, occupied, duration, first_bookable_minute(day, now)
        )
        logger.debug(
            "Generated %d slots for %s on %s (%d min)", len(starts), worker_id, day, duration
        )
        return SlotResult(
            slots=[format_hhmm(t) for t in starts],
            reason=None if starts else REASON_FULL,
        )

    def generate_for_service(self, day: date, worker_id: str, service_name: str) -> SlotResult:
        return self.generate(day, worker_id, self.schedule.duration_for(service_name))
