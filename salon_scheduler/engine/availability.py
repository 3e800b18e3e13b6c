"""
Closure rules for a worker on a date.

Rules are checked in a fixed priority order and the first match wins,
so a business holiday masks a worker's personal leave on the same day:

    holiday > weekly_closure > global_leave > worker_off_day > worker_leave

Closures are normal results. Nothing here raises for a closed day.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.schemas.schedule_schema import DayHours, ScheduleConfig
from salon_scheduler.utils import parse_hhmm

logger = logging.getLogger(__name__)

# Weekdays missing from the business hours are closed.
CLOSED_DAY = DayHours(is_open=False)


class ClosureReason(str, Enum):
    HOLIDAY = "holiday"
    WEEKLY_CLOSURE = "weekly_closure"
    GLOBAL_LEAVE = "global_leave"
    WORKER_OFF_DAY = "worker_off_day"
    WORKER_LEAVE = "worker_leave"


@dataclass(frozen=True)
class EffectiveHours:
    """Parsed opening window for one worker/date, with an optional break."""
    open: int
    close: int
    break_start: Optional[int] = None
    break_end: Optional[int] = None

    @property
    def window(self) -> TimeInterval:
        return TimeInterval(self.open, self.close)

    @property
    def break_interval(self) -> Optional[TimeInterval]:
        if self.break_start is None or self.break_end is None:
            return None
        return TimeInterval(self.break_start, self.break_end)

    def admits(self, interval: TimeInterval) -> bool:
        """True when the interval is inside opening hours and clear of the break."""
        if not self.window.contains(interval):
            return False
        pause = self.break_interval
        return pause is None or not pause.overlaps(interval)


@dataclass(frozen=True)
class Availability:
    hours: Optional[EffectiveHours] = None
    reason: Optional[ClosureReason] = None

    @property
    def is_open(self) -> bool:
        return self.hours is not None


def parse_day_hours(day_hours: DayHours) -> Optional[EffectiveHours]:
    """Parse a weekday's settings. Returns None when open/close are unusable."""
    open_min = parse_hhmm(day_hours.open)
    close_min = parse_hhmm(day_hours.close)
    if open_min is None or close_min is None or close_min <= open_min:
        return None

    break_start = parse_hhmm(day_hours.break_start)
    break_end = parse_hhmm(day_hours.break_end)
    if break_start is None or break_end is None or break_end <= break_start:
        return EffectiveHours(open_min, close_min)

    # A break reaching outside the opening window only matters where it overlaps.
    break_start = max(break_start, open_min)
    break_end = min(break_end, close_min)
    if break_end <= break_start:
        return EffectiveHours(open_min, close_min)
    return EffectiveHours(open_min, close_min, break_start, break_end)


class AvailabilityResolver:
    """Applies the closure-priority chain to a (date, worker) pair."""

    def __init__(self, schedule: ScheduleConfig) -> None:
        self.schedule = schedule

    def _business_day(self, day: date) -> DayHours:
        return self.schedule.business_hours.get(day.weekday(), CLOSED_DAY)

    def resolve(self, day: date, worker_id: Optional[str] = None) -> Availability:
        """
        Decide whether the worker (or the business, when worker_id is None)
        is open on ``day``.

        Returns:
            Availability with effective hours, or with the closure reason.
        """
        schedule = self.schedule
        weekday = day.weekday()

        if day in schedule.holidays:
            return Availability(reason=ClosureReason.HOLIDAY)

        business_day = self._business_day(day)
        if not business_day.is_open:
            return Availability(reason=ClosureReason.WEEKLY_CLOSURE)

        if any(leave.covers(day) for leave in schedule.global_leaves):
            return Availability(reason=ClosureReason.GLOBAL_LEAVE)

        worker = schedule.workers.get(worker_id) if worker_id else None
        day_hours = business_day
        if worker is not None:
            override = worker.weekly_hours.get(weekday)
            if weekday in worker.days_off or (override is not None and not override.is_open):
                return Availability(reason=ClosureReason.WORKER_OFF_DAY)
            if any(leave.covers(day) for leave in worker.leaves):
                return Availability(reason=ClosureReason.WORKER_LEAVE)
            if override is not None:
                day_hours = override

        hours = parse_day_hours(day_hours)
        if hours is None:
            logger.warning(
                "Unparseable opening hours for %s (worker=%s): %s-%s",
                day, worker_id, day_hours.open, day_hours.close,
            )
            return Availability(reason=ClosureReason.WEEKLY_CLOSURE)
        return Availability(hours=hours)
