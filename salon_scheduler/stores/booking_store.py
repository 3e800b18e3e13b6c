"""
Booking store contract and in-memory implementation.

The store is the single source of truth for occupancy. ``create``
refuses any CONFIRMED/HOLD booking that overlaps another one for the
same worker and date, checked and inserted under one lock, so the loser
of a race gets SlotUnavailable instead of a double booking.

In production this sits on a database table with an equivalent
exclusion constraint.
"""

import logging
import threading
import uuid
from datetime import date
from typing import Optional, Protocol

from salon_scheduler.engine.intervals import booking_interval
from salon_scheduler.errors import BookingNotFound, SlotUnavailable
from salon_scheduler.schemas.booking_schema import Booking, BookingStatus
from salon_scheduler.schemas.schedule_schema import ScheduleConfig

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    def list_for(self, worker_id: str, day: date) -> list[Booking]: ...

    def get(self, booking_id: str) -> Optional[Booking]: ...

    def create(
        self,
        *,
        worker_id: str,
        day: date,
        start_time: str,
        service_name: str,
        client_name: str,
        client_email: Optional[str] = None,
        client_phone: Optional[str] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> Booking: ...

    def delete(self, booking_id: str) -> Optional[Booking]: ...

    def update_status(self, booking_id: str, status: BookingStatus) -> Booking: ...


class InMemoryBookingStore:
    """Dict-backed booking table with an overlap constraint."""

    def __init__(self, schedule: ScheduleConfig) -> None:
        self.schedule = schedule
        self._bookings: dict[str, Booking] = {}
        self._lock = threading.Lock()

    def list_for(self, worker_id: str, day: date) -> list[Booking]:
        with self._lock:
            found = [
                b for b in self._bookings.values()
                if b.worker_id == worker_id and b.day == day
            ]
        return sorted(found, key=lambda b: b.start_minutes)

    def all(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings.values())

    def get(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def create(
        self,
        *,
        worker_id: str,
        day: date,
        start_time: str,
        service_name: str,
        client_name: str,
        client_email: Optional[str] = None,
        client_phone: Optional[str] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> Booking:
        """Insert a booking, rejecting any overlap for the same worker/date."""
        return self._insert(Booking(
            id=f"BK-{uuid.uuid4().hex[:8].upper()}",
            worker_id=worker_id,
            day=day,
            start_time=start_time,
            service_name=service_name,
            client_name=client_name,
            client_email=client_email,
            client_phone=client_phone,
            status=status,
        ))

    def restore(self, booking: Booking) -> Booking:
        """Re-insert a previously persisted booking under its own id."""
        return self._insert(booking)

    def _insert(self, booking: Booking) -> Booking:
        worker_id, day, start_time = booking.worker_id, booking.day, booking.start_time
        wanted = booking_interval(booking, self.schedule)

        with self._lock:
            for existing in self._bookings.values():
                if existing.worker_id != worker_id or existing.day != day:
                    continue
                if booking_interval(existing, self.schedule).overlaps(wanted):
                    raise SlotUnavailable(
                        f"{start_time} on {day} overlaps booking {existing.id} "
                        f"for worker {worker_id}"
                    )
            self._bookings[booking.id] = booking

        logger.info(
            "Booking %s created (%s) for %s on %s at %s",
            booking.id, booking.status.value, worker_id, day, start_time,
        )
        return booking

    def delete(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            removed = self._bookings.pop(booking_id, None)
        if removed is not None:
            logger.info("Booking %s deleted", booking_id)
        return removed

    def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise BookingNotFound(f"Booking {booking_id} not found.")
            booking.status = status
        logger.info("Booking %s is now %s", booking_id, status.value)
        return booking

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._lock:
            self._bookings.clear()
