"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytest

from salon_scheduler.bootstrap import SchedulerApp, create_app
from salon_scheduler.schemas.booking_schema import Booking, BookingStatus
from salon_scheduler.schemas.schedule_schema import (
    DayHours,
    LeavePeriod,
    ScheduleConfig,
    Service,
    WorkerSchedule,
)
from salon_scheduler.schemas.waitlist_schema import JoinRequest, WaitingRequest

# 2026-06-15 is a Monday.
MONDAY = date(2026, 6, 15)
TUESDAY = date(2026, 6, 16)
SUNDAY = date(2026, 6, 21)

SERVICES = {
    "Coupe": 30,
    "Couleur": 90,
    "Brushing": 20,
    "Soin": 45,
    "Barbe": 15,
}


class FakeClock:
    """Mutable wall clock handed to the engine as ``now_fn``."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Notifier that keeps what it was asked to send."""

    def __init__(self) -> None:
        self.joined: list[WaitingRequest] = []
        self.offers: list[WaitingRequest] = []

    def send_waitlist_joined(self, request: WaitingRequest) -> None:
        self.joined.append(request.model_copy())

    def send_slot_offer(self, request: WaitingRequest) -> None:
        self.offers.append(request.model_copy())


def make_schedule(
    open_time: str = "09:00",
    close_time: str = "18:00",
    break_start: Optional[str] = "12:00",
    break_end: Optional[str] = "14:00",
    closed_weekdays: Iterable[int] = (6,),
    workers: Optional[dict[str, WorkerSchedule]] = None,
    holidays: Iterable[date] = (),
    global_leaves: Iterable[LeavePeriod] = (),
) -> ScheduleConfig:
    """Build a schedule with the same hours every open weekday."""
    closed = set(closed_weekdays)
    hours = DayHours(
        open=open_time, close=close_time, break_start=break_start, break_end=break_end
    )
    return ScheduleConfig(
        business_hours={
            weekday: DayHours(is_open=False) if weekday in closed else hours
            for weekday in range(7)
        },
        workers=workers if workers is not None else {
            "anna": WorkerSchedule(worker_id="anna"),
            "ben": WorkerSchedule(worker_id="ben"),
        },
        global_leaves=list(global_leaves),
        holidays=set(holidays),
        services={name: Service(name=name, duration=d) for name, d in SERVICES.items()},
    )


def book(
    app: SchedulerApp,
    start_time: str,
    service: str = "Coupe",
    worker_id: str = "anna",
    day: date = TUESDAY,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    """Insert a booking straight into the store, skipping facade checks."""
    return app.bookings.create(
        worker_id=worker_id,
        day=day,
        start_time=start_time,
        service_name=service,
        client_name="Existing Client",
        status=status,
    )


def join(
    app: SchedulerApp,
    clock: FakeClock,
    email: str,
    service: str = "Coupe",
    worker_id: Optional[str] = None,
    day: date = TUESDAY,
) -> WaitingRequest:
    """Join the waitlist one second after the previous join."""
    clock.advance(seconds=1)
    return app.waitlist.join(JoinRequest(
        client_name=email.split("@")[0].title(),
        client_email=email,
        target_date=day,
        desired_service=service,
        desired_worker_id=worker_id,
    ))


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 6, 15, 8, 0))


@pytest.fixture
def schedule():
    return make_schedule()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(schedule, notifier, clock):
    return create_app(schedule, notifier=notifier, now_fn=clock)
