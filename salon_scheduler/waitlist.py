"""
Waitlist orchestration: joins, cancellations, client actions and sweeps.

Every path that can create a HOLD (cancellation, refusal, expiry, the
periodic scan) runs gap computation, matching and hold creation under
the (worker, date) lock, re-reading the booking store each time.

Usage:
    service = WaitlistService(schedule, bookings, waitlist)
    service.join(JoinRequest(...))
    service.process_cancellation(day, "10:30", 30, "anna")
    service.confirm(token)
"""

from datetime import date, datetime
from typing import Callable, Optional

from salon_scheduler.config import WaitlistConfig, settings
from salon_scheduler.engine.availability import AvailabilityResolver, EffectiveHours
from salon_scheduler.engine.gaps import clip_gap, full_day_gaps, merged_gap
from salon_scheduler.engine.intervals import TimeInterval, booking_intervals
from salon_scheduler.engine.locks import KeyedLocks
from salon_scheduler.engine.matcher import FillResult, GapDescriptor, Match, WaitlistMatcher
from salon_scheduler.engine.offers import FreedSlot, OfferLifecycle
from salon_scheduler.engine.slots import first_bookable_minute
from salon_scheduler.errors import DuplicateWaitingRequest, UnknownService
from salon_scheduler.events import EngineEvent, EventBus, EventKind
from salon_scheduler.logging_context import get_trigger_logger, new_trigger_id
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.schemas.waitlist_schema import (
    JoinRequest,
    RequestStatus,
    WaitingRequest,
    worker_preference,
)
from salon_scheduler.stores.booking_store import BookingStore
from salon_scheduler.stores.notifier import LoggingNotifier, Notifier, deliver
from salon_scheduler.stores.waitlist_store import WaitlistStore, new_request_id
from salon_scheduler.utils import normalize_email, normalize_phone, parse_hhmm

logger = get_trigger_logger(__name__)


class WaitlistService:
    """Entry points of the waitlist engine."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        bookings: BookingStore,
        waitlist: WaitlistStore,
        notifier: Optional[Notifier] = None,
        events: Optional[EventBus] = None,
        now_fn: Callable[[], datetime] = datetime.now,
        locks: Optional[KeyedLocks] = None,
        config: WaitlistConfig = settings.waitlist,
    ) -> None:
        self.schedule = schedule
        self.bookings = bookings
        self.waitlist = waitlist
        self.notifier = notifier or LoggingNotifier()
        self.events = events or EventBus()
        self.now_fn = now_fn
        self.locks = locks or KeyedLocks()
        self.config = config
        self.resolver = AvailabilityResolver(schedule)
        self.matcher = WaitlistMatcher(schedule)
        self.lifecycle = OfferLifecycle(
            schedule,
            bookings,
            waitlist,
            self.notifier,
            self.events,
            now_fn=now_fn,
            ttl_minutes=config.offer_ttl_minutes,
        )

    # ------------------------------------------------------------------
    # Client-facing actions
    # ------------------------------------------------------------------

    def join(self, join: JoinRequest) -> WaitingRequest:
        """
        Add a client to the waitlist for a date.

        Raises:
            UnknownService: The desired service is not in the catalog.
            DuplicateWaitingRequest: The email already waits for that date.
        """
        new_trigger_id("JOIN")
        if self.schedule.known_duration(join.desired_service) is None:
            raise UnknownService(f"Unknown service: {join.desired_service!r}")
        if self.waitlist.find_active(join.client_email, join.target_date) is not None:
            raise DuplicateWaitingRequest(
                f"{join.client_email} is already on the waitlist for {join.target_date}."
            )

        request = WaitingRequest(
            id=new_request_id(),
            client_name=join.client_name.strip(),
            client_email=normalize_email(join.client_email),
            client_phone=normalize_phone(join.client_phone) if join.client_phone else None,
            target_date=join.target_date,
            desired_service=join.desired_service,
            worker_preference=worker_preference(join.desired_worker_id),
            created_at=self.now_fn(),
        )
        self.waitlist.add(request)
        self.events.publish(EngineEvent(
            kind=EventKind.WAITLIST_JOINED,
            at=request.created_at,
            request_id=request.id,
            worker_id=join.desired_worker_id,
            day=request.target_date,
        ))
        deliver(self.notifier.send_waitlist_joined, request)
        return request

    def confirm(self, token: str) -> WaitingRequest:
        """Accept an offer. Raises TokenInvalid or OfferExpired."""
        new_trigger_id("CONFIRM")
        request = self.lifecycle.outstanding(token)
        with self.locks.hold(request.offered_worker_id, request.target_date):
            return self.lifecycle.confirm(token)

    def refuse(self, token: str) -> list[Match]:
        """Decline an offer and hand the freed slot to the next candidate."""
        new_trigger_id("REFUSE")
        request = self.lifecycle.outstanding(token)
        with self.locks.hold(request.offered_worker_id, request.target_date):
            freed = self.lifecycle.refuse(token)
            return self._rematch_freed(freed)

    # ------------------------------------------------------------------
    # Engine triggers
    # ------------------------------------------------------------------

    def process_cancellation(
        self, day: date, start_time: str, duration: int, worker_id: str
    ) -> list[Match]:
        """
        Offer the gap around a cancelled booking to waiting clients.

        The freed interval is merged with neighbouring free time first, so
        back-to-back short cancellations can serve a longer service.
        """
        new_trigger_id("CANCEL")
        start = parse_hhmm(start_time)
        if start is None:
            raise ValueError(f"start_time must be HH:MM, got {start_time!r}")
        freed = TimeInterval(start, start + duration)
        logger.info("Processing cancellation %s on %s for worker %s", freed, day, worker_id)

        with self.locks.hold(worker_id, day):
            hours = self._open_hours(day, worker_id)
            if hours is None:
                return []
            remaining = booking_intervals(self.bookings.list_for(worker_id, day), self.schedule)
            gap = merged_gap(hours, remaining, freed, first_bookable_minute(day, self.now_fn()))
            if gap is None:
                logger.info("No usable gap left around %s", freed)
                return []
            logger.info("Merged gap %s detected for %s", gap, worker_id)
            return self._match_into(day, worker_id, hours, [gap])

    def handle_timeouts(self) -> list[str]:
        """
        Expire every offer whose window has closed and re-offer the slots.

        Returns:
            IDs of the requests that were expired by this sweep.
        """
        new_trigger_id("SWEEP")
        expired_ids = []
        for request in self.waitlist.expired_offers(self.now_fn()):
            with self.locks.hold(request.offered_worker_id, request.target_date):
                freed = self.lifecycle.expire(request.id)
                if freed is None:
                    continue
                expired_ids.append(request.id)
                self._rematch_freed(freed)
        if expired_ids:
            logger.info("Timeout sweep expired %d offers", len(expired_ids))
        return expired_ids

    def scan(self) -> list[Match]:
        """
        Recompute full-day gaps for every worker/date with waiting clients.

        Catches matches missed because of ordering races or manual
        schedule edits. Waiting requests for past dates are expired first.
        """
        new_trigger_id("SCAN")
        now = self.now_fn()
        for request in self.waitlist.waiting_before(now.date()):
            self.lifecycle.retire_past(request)

        matches: list[Match] = []
        for day in self.waitlist.pending_dates():
            for worker_id in self.schedule.worker_ids():
                with self.locks.hold(worker_id, day):
                    hours = self._open_hours(day, worker_id)
                    if hours is None:
                        continue
                    gaps = [
                        gap for gap in self._fresh_gaps(day, worker_id, hours)
                        if gap.duration >= self.config.min_gap_minutes
                    ]
                    matches.extend(self._match_into(day, worker_id, hours, gaps))
        logger.info("Waitlist scan finished with %d new offers", len(matches))
        return matches

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def counts_for_date(self, day: date) -> dict[str, int]:
        return self.waitlist.counts_for_date(day)

    def requests_for_date(self, day: date) -> list[WaitingRequest]:
        return self.waitlist.list_for_date(day)

    def find_offer_for_hold(self, booking_id: str) -> Optional[WaitingRequest]:
        """The OFFER_SENT request that owns a HOLD booking, if any."""
        booking = self.bookings.get(booking_id)
        if booking is None:
            return None
        return next(
            (
                r for r in self.waitlist.list_for_date(booking.day, RequestStatus.OFFER_SENT)
                if r.hold_booking_id == booking_id
            ),
            None,
        )

    # ------------------------------------------------------------------
    # Internals (callers hold the worker/date lock)
    # ------------------------------------------------------------------

    def _open_hours(self, day: date, worker_id: str) -> Optional[EffectiveHours]:
        if day < self.now_fn().date():
            logger.debug("Skipping %s: date is in the past", day)
            return None
        availability = self.resolver.resolve(day, worker_id)
        if not availability.is_open:
            logger.debug("Worker %s closed on %s (%s)", worker_id, day, availability.reason.value)
            return None
        return availability.hours

    def _fresh_gaps(
        self,
        day: date,
        worker_id: str,
        hours: EffectiveHours,
        within: Optional[TimeInterval] = None,
    ) -> list[TimeInterval]:
        occupied = booking_intervals(self.bookings.list_for(worker_id, day), self.schedule)
        not_before = first_bookable_minute(day, self.now_fn())
        gaps = []
        for gap in full_day_gaps(hours, occupied):
            gap = clip_gap(gap, not_before)
            if gap is None or (within is not None and not gap.overlaps(within)):
                continue
            gaps.append(gap)
        return gaps

    def _fill(self, day: date, worker_id: str, gap: TimeInterval) -> FillResult:
        pool = self.waitlist.list_for_date(day, RequestStatus.WAITING)
        return self.matcher.fill(GapDescriptor(day, worker_id, gap), pool, self.lifecycle.issue_offer)

    def _match_into(
        self,
        day: date,
        worker_id: str,
        hours: EffectiveHours,
        gaps: list[TimeInterval],
    ) -> list[Match]:
        """Fill each gap in turn; on a lost race, recompute gaps and retry."""
        matches: list[Match] = []
        pending = list(gaps)
        retries = 0
        while pending:
            result = self._fill(day, worker_id, pending.pop(0))
            matches.extend(result.matches)
            if result.conflict is None:
                continue
            retries += 1
            if retries > self.config.max_match_retries:
                logger.warning(
                    "Giving up on %s for %s on %s after %d conflicts",
                    result.conflict.interval, worker_id, day, retries,
                )
                break
            pending[:0] = self._fresh_gaps(day, worker_id, hours, within=result.conflict.interval)
        return matches

    def _rematch_freed(self, freed: FreedSlot) -> list[Match]:
        hours = self._open_hours(freed.day, freed.worker_id)
        if hours is None or not freed.worker_id:
            return []
        gap = clip_gap(freed.interval, first_bookable_minute(freed.day, self.now_fn()))
        if gap is None:
            return []
        return self._match_into(freed.day, freed.worker_id, hours, [gap])
