"""
Offer lifecycle of a waiting request.

A table of explicit transitions drives every status change:

    WAITING --offer_issued--> OFFER_SENT --client_confirmed--> BOOKED
                                         --client_refused---> REFUSED
                                         --offer_timed_out--> EXPIRED
    WAITING --date_passed--> EXPIRED

Issuing an offer creates the HOLD booking and the single-use token
together. Confirm promotes the HOLD, refuse/expire delete it and hand
the freed slot back to the caller for re-matching.

Usage:
    lifecycle = OfferLifecycle(schedule, bookings, waitlist, notifier, events)
    request = lifecycle.issue_offer(match)
    lifecycle.confirm(request.offer_token)
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from salon_scheduler.config import settings
from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.errors import OfferExpired, RequestUnavailable, TokenInvalid
from salon_scheduler.events import EngineEvent, EventBus, EventKind
from salon_scheduler.schemas.booking_schema import BookingStatus
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.schemas.waitlist_schema import TERMINAL_STATUSES, RequestStatus, WaitingRequest
from salon_scheduler.stores.notifier import deliver
from salon_scheduler.utils import format_hhmm, parse_hhmm

if TYPE_CHECKING:
    from salon_scheduler.engine.matcher import Match
    from salon_scheduler.stores.booking_store import BookingStore
    from salon_scheduler.stores.notifier import Notifier
    from salon_scheduler.stores.waitlist_store import WaitlistStore

logger = logging.getLogger(__name__)


class OfferTrigger(str, Enum):
    """Events that move a waiting request between statuses."""
    OFFER_ISSUED = "offer_issued"
    CLIENT_CONFIRMED = "client_confirmed"
    CLIENT_REFUSED = "client_refused"
    OFFER_TIMED_OUT = "offer_timed_out"
    DATE_PASSED = "date_passed"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: RequestStatus
    to_status: RequestStatus
    trigger: OfferTrigger


class InvalidTransitionError(Exception):
    """Raised when a trigger is not valid from the request's current status."""


TRANSITIONS: list[Transition] = [
    Transition(RequestStatus.WAITING, RequestStatus.OFFER_SENT, OfferTrigger.OFFER_ISSUED),
    Transition(RequestStatus.WAITING, RequestStatus.EXPIRED, OfferTrigger.DATE_PASSED),
    Transition(RequestStatus.OFFER_SENT, RequestStatus.BOOKED, OfferTrigger.CLIENT_CONFIRMED),
    Transition(RequestStatus.OFFER_SENT, RequestStatus.REFUSED, OfferTrigger.CLIENT_REFUSED),
    Transition(RequestStatus.OFFER_SENT, RequestStatus.EXPIRED, OfferTrigger.OFFER_TIMED_OUT),
]


def valid_triggers(status: RequestStatus) -> list[OfferTrigger]:
    """Return all triggers valid from a status."""
    return [t.trigger for t in TRANSITIONS if t.from_status == status]


def next_status(status: RequestStatus, trigger: OfferTrigger) -> RequestStatus:
    """
    Resolve a transition.

    Raises:
        InvalidTransitionError: If no transition exists for the pair.
    """
    for t in TRANSITIONS:
        if t.from_status == status and t.trigger == trigger:
            return t.to_status
    valid = [t.value for t in valid_triggers(status)]
    raise InvalidTransitionError(
        f"No valid transition from '{status.value}' with trigger "
        f"'{trigger.value}'. Valid triggers: {valid}"
    )


def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATUSES


@dataclass(frozen=True)
class FreedSlot:
    """The interval a refused or expired offer gives back."""
    day: date
    worker_id: str
    start: int
    duration: int

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.start + self.duration)


class OfferLifecycle:
    """Issues offers and applies confirm/refuse/expire to them."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        bookings: BookingStore,
        waitlist: WaitlistStore,
        notifier: Notifier,
        events: EventBus,
        now_fn: Callable[[], datetime] = datetime.now,
        ttl_minutes: int = settings.waitlist.offer_ttl_minutes,
    ) -> None:
        self.schedule = schedule
        self.bookings = bookings
        self.waitlist = waitlist
        self.notifier = notifier
        self.events = events
        self.now_fn = now_fn
        self.ttl = timedelta(minutes=ttl_minutes)

    def _apply(self, request: WaitingRequest, trigger: OfferTrigger) -> RequestStatus:
        old_status = request.status
        request.status = next_status(old_status, trigger)
        self.waitlist.save(request)
        logger.debug(
            "Request %s: %s -> %s (trigger: %s)",
            request.id, old_status.value, request.status.value, trigger.value,
        )
        return request.status

    def _publish(self, kind: EventKind, request: WaitingRequest, **extra) -> None:
        self.events.publish(EngineEvent(
            kind=kind,
            at=self.now_fn(),
            request_id=request.id,
            worker_id=request.offered_worker_id,
            day=request.target_date,
            start_time=request.offered_start,
            **extra,
        ))

    def _new_token(self) -> str:
        while True:
            token = secrets.token_hex(32)
            if self.waitlist.find_by_token(token) is None:
                return token

    def issue_offer(self, match: Match) -> WaitingRequest:
        """
        Reserve the start of a gap for a waiting request.

        The request is claimed (WAITING -> OFFER_SENT in one store step)
        before the HOLD is created, so two workers' gaps cannot both win
        the same "any worker" request. If the HOLD cannot be created the
        claim is rolled back and the request is WAITING again.

        Raises:
            RequestUnavailable: Another offer claimed the request first.
            SlotUnavailable: The interval was taken in the meantime.
        """
        request_id = match.request.id
        offered = next_status(RequestStatus.WAITING, OfferTrigger.OFFER_ISSUED)
        request = self.waitlist.claim(request_id, RequestStatus.WAITING, offered)
        if request is None:
            raise RequestUnavailable(f"Request {request_id} is no longer waiting")
        logger.debug(
            "Request %s: %s -> %s (trigger: %s)",
            request_id, RequestStatus.WAITING.value, offered.value, OfferTrigger.OFFER_ISSUED.value,
        )

        start_time = format_hhmm(match.start)
        try:
            hold = self.bookings.create(
                worker_id=match.gap.worker_id,
                day=match.gap.day,
                start_time=start_time,
                service_name=request.desired_service,
                client_name=request.client_name,
                client_email=request.client_email,
                client_phone=request.client_phone,
                status=BookingStatus.HOLD,
            )
        except Exception:
            self.waitlist.claim(request_id, offered, RequestStatus.WAITING)
            raise

        try:
            request.offer_token = self._new_token()
            request.offer_expires_at = self.now_fn() + self.ttl
            request.offered_worker_id = match.gap.worker_id
            request.offered_start = start_time
            request.hold_booking_id = hold.id
            self.waitlist.save(request)
        except Exception:
            self.bookings.delete(hold.id)
            request.clear_offer()
            self.waitlist.claim(request_id, offered, RequestStatus.WAITING)
            raise

        logger.info(
            "Offer sent to request %s: %s %s with %s (hold %s, expires %s)",
            request.id, request.target_date, start_time, match.gap.worker_id,
            hold.id, request.offer_expires_at,
        )
        self._publish(EventKind.GAP_OFFERED, request, booking_id=hold.id)
        deliver(self.notifier.send_slot_offer, request)
        return request

    def outstanding(self, token: str) -> WaitingRequest:
        """The OFFER_SENT request owning ``token``. Raises TokenInvalid otherwise."""
        request = self.waitlist.find_by_token(token)
        if request is None or request.status != RequestStatus.OFFER_SENT:
            raise TokenInvalid("This offer link is invalid or has already been used.")
        return request

    def confirm(self, token: str) -> WaitingRequest:
        """
        Accept an outstanding offer and turn its HOLD into a CONFIRMED booking.

        Raises:
            TokenInvalid: Unknown, consumed or orphaned token.
            OfferExpired: The offer window has passed, even if no sweep ran yet.
        """
        request = self.outstanding(token)
        if request.offer_expires_at is not None and self.now_fn() > request.offer_expires_at:
            raise OfferExpired("This offer has expired.")

        hold = self.bookings.get(request.hold_booking_id) if request.hold_booking_id else None
        if hold is None or hold.status != BookingStatus.HOLD:
            raise TokenInvalid("The reserved slot no longer exists.")

        self.bookings.update_status(hold.id, BookingStatus.CONFIRMED)
        request.clear_offer()
        self._apply(request, OfferTrigger.CLIENT_CONFIRMED)
        logger.info("Request %s booked as %s", request.id, hold.id)
        self._publish(EventKind.REQUEST_BOOKED, request, booking_id=hold.id)
        return request

    def refuse(self, token: str) -> FreedSlot:
        """
        Decline an outstanding offer.

        Raises:
            TokenInvalid: Unknown or already consumed token.
        """
        request = self.outstanding(token)
        return self._release(request, OfferTrigger.CLIENT_REFUSED, EventKind.REQUEST_REFUSED)

    def expire(self, request_id: str) -> Optional[FreedSlot]:
        """Time out an offer. A request that is not OFFER_SENT is left alone."""
        request = self.waitlist.get(request_id)
        if request is None or request.status != RequestStatus.OFFER_SENT:
            return None
        return self._release(request, OfferTrigger.OFFER_TIMED_OUT, EventKind.REQUEST_EXPIRED)

    def retire_past(self, request: WaitingRequest) -> None:
        """Expire a still-waiting request whose target date has gone by."""
        if request.status != RequestStatus.WAITING:
            return
        self._apply(request, OfferTrigger.DATE_PASSED)
        logger.info("Request %s expired: %s is in the past", request.id, request.target_date)
        self._publish(EventKind.REQUEST_EXPIRED, request)

    def _release(self, request: WaitingRequest, trigger: OfferTrigger, kind: EventKind) -> FreedSlot:
        next_status(request.status, trigger)
        freed = FreedSlot(
            day=request.target_date,
            worker_id=request.offered_worker_id or "",
            start=parse_hhmm(request.offered_start) or 0,
            duration=self.schedule.duration_for(request.desired_service),
        )
        hold_id = request.hold_booking_id
        if hold_id:
            self.bookings.delete(hold_id)

        request.clear_offer()
        self._apply(request, trigger)
        logger.info(
            "Request %s %s; %s freed for %s on %s",
            request.id, request.status.value.lower(), freed.interval, freed.worker_id, freed.day,
        )
        self._publish(kind, request, booking_id=hold_id)
        return freed
