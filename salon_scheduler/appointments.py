"""
Booking facade: slot queries, booking creation and cancellation.

Cancelling a booking hands the freed interval to the waitlist, which
may immediately create a HOLD for the next waiting client.

Usage:
    appointments = AppointmentService(schedule, bookings, waitlist_service)
    appointments.get_available_slots(date(2026, 6, 20), "anna", "Coupe")
    booking = appointments.create_booking(BookingRequest(...))
    appointments.cancel_booking(booking.id)
"""

import logging
from datetime import date

from salon_scheduler.config import settings
from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.engine.slots import SlotGenerator, first_bookable_minute
from salon_scheduler.errors import (
    BookingNotFound,
    OutsideOpeningHours,
    SchedulerError,
    UnknownService,
)
from salon_scheduler.events import EngineEvent, EventKind
from salon_scheduler.schemas.booking_schema import Booking, BookingRequest, BookingStatus, SlotResult
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.stores.booking_store import BookingStore
from salon_scheduler.utils import add_months, normalize_email, normalize_phone, parse_hhmm
from salon_scheduler.waitlist import WaitlistService

logger = logging.getLogger(__name__)


class AppointmentService:
    """Client-facing booking operations on top of the engine."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        bookings: BookingStore,
        waitlist: WaitlistService,
        horizon_months: int = settings.business.booking_horizon_months,
    ) -> None:
        self.schedule = schedule
        self.bookings = bookings
        self.waitlist = waitlist
        self.now_fn = waitlist.now_fn
        self.events = waitlist.events
        self.locks = waitlist.locks
        self.slots = SlotGenerator(
            schedule, bookings, now_fn=self.now_fn, horizon_months=horizon_months
        )

    def get_available_slots(self, day: date, worker_id: str, service_name: str) -> SlotResult:
        """Bookable start times for a service, or the reason there are none."""
        result = self.slots.generate_for_service(day, worker_id, service_name)
        logger.info(
            "Slots for %s on %s (%s): %d%s",
            worker_id, day, service_name, len(result.slots),
            f" [{result.reason}]" if result.reason else "",
        )
        return result

    def create_booking(self, request: BookingRequest) -> Booking:
        """
        Book a slot after validating it against the schedule.

        Raises:
            UnknownService: The service is not in the catalog.
            OutsideOpeningHours: Past time, beyond the horizon, closed day,
                outside opening hours, or overlapping the break.
            SlotUnavailable: The interval overlaps an existing booking.
        """
        duration = self.schedule.known_duration(request.service_name)
        if duration is None:
            raise UnknownService(f"Unknown service: {request.service_name!r}")
        start = parse_hhmm(request.start_time)
        if start is None:
            raise OutsideOpeningHours(f"Invalid start time {request.start_time!r}")

        now = self.now_fn()
        if request.day < now.date():
            raise OutsideOpeningHours(f"{request.day} is in the past.")
        if request.day > add_months(now.date(), self.slots.horizon_months):
            raise OutsideOpeningHours(
                f"{request.day} is beyond the {self.slots.horizon_months}-month booking horizon."
            )
        not_before = first_bookable_minute(request.day, now)
        if not_before is not None and start < not_before:
            raise OutsideOpeningHours(f"{request.start_time} has already passed today.")

        availability = self.waitlist.resolver.resolve(request.day, request.worker_id)
        if not availability.is_open:
            raise OutsideOpeningHours(
                f"{request.worker_id} is not working on {request.day} "
                f"({availability.reason.value})."
            )
        wanted = TimeInterval(start, start + duration)
        if not availability.hours.admits(wanted):
            raise OutsideOpeningHours(
                f"{wanted} is outside opening hours or overlaps the break."
            )

        with self.locks.hold(request.worker_id, request.day):
            booking = self.bookings.create(
                worker_id=request.worker_id,
                day=request.day,
                start_time=request.start_time,
                service_name=request.service_name,
                client_name=request.client_name.strip(),
                client_email=normalize_email(request.client_email) if request.client_email else None,
                client_phone=normalize_phone(request.client_phone) if request.client_phone else None,
            )
        self.events.publish(EngineEvent(
            kind=EventKind.BOOKING_CREATED,
            at=now,
            booking_id=booking.id,
            worker_id=booking.worker_id,
            day=booking.day,
            start_time=booking.start_time,
        ))
        return booking

    def cancel_booking(self, booking_id: str) -> Booking:
        """
        Delete a booking and offer the freed time to the waitlist.

        Cancelling a HOLD refuses the offer it belongs to, which cascades
        the slot to the next candidate the same way a client refusal does.

        Raises:
            BookingNotFound: No booking with that id.
        """
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found.")

        if booking.status == BookingStatus.HOLD:
            owner = self.waitlist.find_offer_for_hold(booking_id)
            if owner is not None and owner.offer_token:
                logger.info("Booking %s is a hold; refusing offer %s", booking_id, owner.id)
                self.waitlist.refuse(owner.offer_token)
                return booking

        with self.locks.hold(booking.worker_id, booking.day):
            self.bookings.delete(booking_id)
        logger.info(
            "Booking %s cancelled (%s on %s at %s)",
            booking_id, booking.worker_id, booking.day, booking.start_time,
        )
        self.events.publish(EngineEvent(
            kind=EventKind.BOOKING_CANCELLED,
            at=self.now_fn(),
            booking_id=booking.id,
            worker_id=booking.worker_id,
            day=booking.day,
            start_time=booking.start_time,
        ))

        try:
            self.waitlist.process_cancellation(
                booking.day,
                booking.start_time,
                self.schedule.duration_for(booking.service_name),
                booking.worker_id,
            )
        except SchedulerError:
            logger.exception("Waitlist processing failed after cancelling %s", booking_id)
        return booking
