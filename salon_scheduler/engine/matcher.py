"""
FIFO waitlist matching over a free gap.

The oldest compatible request gets the start of the gap; the remainder
of the gap is then offered to the next compatible request, and so on.
The cascade is an explicit loop over an immutable gap descriptor,
bounded by the size of the request pool.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Optional

from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.errors import RequestUnavailable, SlotUnavailable
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.schemas.waitlist_schema import RequestStatus, WaitingRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GapDescriptor:
    """A free interval for one worker on one date."""
    day: date
    worker_id: str
    interval: TimeInterval

    def remainder_after(self, minutes: int) -> Optional["GapDescriptor"]:
        rest = TimeInterval(self.interval.start + minutes, self.interval.end)
        if rest.is_empty:
            return None
        return GapDescriptor(self.day, self.worker_id, rest)


@dataclass(frozen=True)
class Match:
    """A request selected for the start of a gap."""
    request: WaitingRequest
    gap: GapDescriptor
    duration: int

    @property
    def start(self) -> int:
        return self.gap.interval.start


@dataclass
class FillResult:
    matches: list[Match] = field(default_factory=list)
    # Gap whose offer lost a race for the slot; the caller re-derives it.
    conflict: Optional[GapDescriptor] = None


OfferFn = Callable[[Match], Any]


class WaitlistMatcher:
    """Selects waiting requests for gaps in creation order."""

    def __init__(self, schedule: ScheduleConfig) -> None:
        self.schedule = schedule

    def eligible(self, gap: GapDescriptor, pool: Iterable[WaitingRequest]) -> list[WaitingRequest]:
        """Waiting requests that fit the gap and accept its worker, oldest first."""
        fitting = []
        for request in pool:
            if request.status != RequestStatus.WAITING or request.target_date != gap.day:
                continue
            duration = self.schedule.known_duration(request.desired_service)
            if duration is None:
                logger.debug(
                    "Request %s wants unknown service %r", request.id, request.desired_service
                )
                continue
            if duration <= gap.interval.duration and request.worker_preference.accepts(gap.worker_id):
                fitting.append(request)
        return sorted(fitting, key=lambda r: r.fifo_key)

    def select(self, gap: GapDescriptor, pool: Iterable[WaitingRequest]) -> Optional[Match]:
        candidates = self.eligible(gap, pool)
        if not candidates:
            return None
        request = candidates[0]
        return Match(request, gap, self.schedule.duration_for(request.desired_service))

    def fill(self, gap: GapDescriptor, pool: Iterable[WaitingRequest], offer: OfferFn) -> FillResult:
        """
        Offer the gap to successive requests until it is used up.

        ``offer`` creates the hold for a match. If it raises SlotUnavailable
        the loop stops and reports the gap it was working on. A request
        that another offer claimed first (RequestUnavailable) is dropped
        and the same gap goes to the next candidate.
        """
        remaining = list(pool)
        result = FillResult()
        current: Optional[GapDescriptor] = gap

        for _ in range(len(remaining)):
            if current is None:
                break
            match = self.select(current, remaining)
            if match is None:
                break
            try:
                offer(match)
            except SlotUnavailable:
                logger.info(
                    "Slot %s for %s on %s was taken concurrently",
                    current.interval, current.worker_id, current.day,
                )
                result.conflict = current
                break
            except RequestUnavailable:
                logger.info("Request %s was claimed by another offer", match.request.id)
                remaining = [r for r in remaining if r.id != match.request.id]
                continue
            result.matches.append(match)
            remaining = [r for r in remaining if r.id != match.request.id]
            current = current.remainder_after(match.duration)

        if not result.matches and result.conflict is None:
            logger.debug("No eligible candidate for gap %s on %s", gap.interval, gap.day)
        return result
