"""Tests for booking creation, cancellation and slot queries."""

import random
from datetime import date, datetime
from itertools import combinations

import pytest

from salon_scheduler.engine.intervals import booking_interval
from salon_scheduler.errors import (
    BookingNotFound,
    OutsideOpeningHours,
    SlotUnavailable,
    UnknownService,
)
from salon_scheduler.schemas.booking_schema import BookingRequest, BookingStatus
from salon_scheduler.schemas.waitlist_schema import RequestStatus
from tests.conftest import MONDAY, SUNDAY, TUESDAY, join


def request(start_time, service="Coupe", worker_id="anna", day=TUESDAY, **kwargs):
    return BookingRequest(
        client_name="Claire",
        day=day,
        start_time=start_time,
        service_name=service,
        worker_id=worker_id,
        **kwargs,
    )


class TestCreateBooking:
    def test_books_an_offered_slot(self, app):
        booking = app.appointments.create_booking(
            request("09:00", client_email=" Claire@Example.com ", client_phone="06 12 34 56 78")
        )
        assert booking.id.startswith("BK-")
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.client_email == "claire@example.com"
        assert booking.client_phone == "0612345678"
        assert "09:00" not in app.appointments.get_available_slots(TUESDAY, "anna", "Coupe").slots
        assert app.events.kinds() == ["booking_created"]

    def test_overlap_rejected(self, app):
        app.appointments.create_booking(request("10:00", service="Soin"))
        with pytest.raises(SlotUnavailable):
            app.appointments.create_booking(request("10:30"))

    def test_other_worker_same_time_allowed(self, app):
        app.appointments.create_booking(request("10:00"))
        app.appointments.create_booking(request("10:00", worker_id="ben"))

    def test_back_to_back_allowed(self, app):
        app.appointments.create_booking(request("10:00"))
        app.appointments.create_booking(request("10:30"))

    def test_break_overlap_rejected(self, app):
        with pytest.raises(OutsideOpeningHours):
            app.appointments.create_booking(request("11:45"))

    def test_after_closing_rejected(self, app):
        with pytest.raises(OutsideOpeningHours):
            app.appointments.create_booking(request("17:45"))

    def test_closed_day_rejected(self, app):
        with pytest.raises(OutsideOpeningHours, match="weekly_closure"):
            app.appointments.create_booking(request("10:00", day=SUNDAY))

    def test_past_date_rejected(self, app):
        with pytest.raises(OutsideOpeningHours):
            app.appointments.create_booking(request("10:00", day=date(2026, 6, 12)))

    def test_earlier_today_rejected(self, app, clock):
        clock.now = datetime(2026, 6, 15, 10, 7)
        with pytest.raises(OutsideOpeningHours):
            app.appointments.create_booking(request("10:00", day=MONDAY))

    def test_beyond_horizon_rejected(self, app):
        with pytest.raises(OutsideOpeningHours, match="horizon"):
            app.appointments.create_booking(request("10:00", day=date(2026, 9, 1)))

    def test_unknown_service_rejected(self, app):
        with pytest.raises(UnknownService):
            app.appointments.create_booking(request("10:00", service="Mystery"))


class TestNoOverlapProperty:
    def test_random_creations_and_cancellations_never_overlap(self, app, schedule):
        rng = random.Random(7)
        services = list(schedule.services)
        for _ in range(150):
            existing = app.bookings.all()
            if existing and rng.random() < 0.3:
                app.appointments.cancel_booking(rng.choice(existing).id)
                continue
            minute = rng.randrange(540, 1080, 5)
            try:
                app.appointments.create_booking(request(
                    f"{minute // 60:02d}:{minute % 60:02d}",
                    service=rng.choice(services),
                    worker_id=rng.choice(["anna", "ben"]),
                ))
            except (SlotUnavailable, OutsideOpeningHours):
                pass

        for worker_id in ("anna", "ben"):
            intervals = [booking_interval(b, schedule) for b in app.bookings.list_for(worker_id, TUESDAY)]
            for left, right in combinations(intervals, 2):
                assert not left.overlaps(right)


class TestCancelBooking:
    def test_unknown_booking(self, app):
        with pytest.raises(BookingNotFound):
            app.appointments.cancel_booking("BK-MISSING")

    def test_cancel_frees_the_slot(self, app):
        booking = app.appointments.create_booking(request("10:00"))
        app.appointments.cancel_booking(booking.id)
        assert app.bookings.get(booking.id) is None
        assert "booking_cancelled" in app.events.kinds()

    def test_cancel_offers_gap_to_waitlist(self, app, clock):
        booking = app.appointments.create_booking(request("10:00"))
        waiting = join(app, clock, "zoe@example.com", service="Couleur")

        app.appointments.cancel_booking(booking.id)

        stored = app.waitlist_store.get(waiting.id)
        assert stored.status == RequestStatus.OFFER_SENT
        assert stored.offered_start == "09:00"

    def test_cancelling_a_hold_refuses_its_offer(self, app, clock):
        booking = app.appointments.create_booking(request("09:00", service="Couleur"))
        app.appointments.create_booking(request("10:30", service="Couleur"))
        first = join(app, clock, "a@example.com", service="Couleur")
        second = join(app, clock, "b@example.com", service="Couleur")
        app.appointments.cancel_booking(booking.id)
        hold_id = app.waitlist_store.get(first.id).hold_booking_id
        assert app.waitlist_store.get(second.id).status == RequestStatus.WAITING

        app.appointments.cancel_booking(hold_id)

        assert app.waitlist_store.get(first.id).status == RequestStatus.REFUSED
        assert app.bookings.get(hold_id) is None
        nxt = app.waitlist_store.get(second.id)
        assert nxt.status == RequestStatus.OFFER_SENT
        assert nxt.offered_start == "09:00"


class TestSlotQueries:
    def test_slots_by_service_name(self, app):
        result = app.appointments.get_available_slots(TUESDAY, "anna", "Soin")
        assert result.slots[:4] == ["09:00", "09:45", "10:30", "11:15"]
        assert "12:00" not in result.slots

    def test_closed_day_reports_reason(self, app):
        result = app.appointments.get_available_slots(SUNDAY, "anna", "Coupe")
        assert result.reason == "weekly_closure"
