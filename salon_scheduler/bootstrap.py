"""Wiring of stores and services into one application object."""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from salon_scheduler.appointments import AppointmentService
from salon_scheduler.events import EventBus
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.stores.booking_store import InMemoryBookingStore
from salon_scheduler.stores.notifier import LoggingNotifier, Notifier
from salon_scheduler.stores.waitlist_store import InMemoryWaitlistStore
from salon_scheduler.waitlist import WaitlistService


@dataclass
class SchedulerApp:
    schedule: ScheduleConfig
    bookings: InMemoryBookingStore
    waitlist_store: InMemoryWaitlistStore
    events: EventBus
    waitlist: WaitlistService
    appointments: AppointmentService


def create_app(
    schedule: ScheduleConfig,
    notifier: Optional[Notifier] = None,
    now_fn: Callable[[], datetime] = datetime.now,
) -> SchedulerApp:
    """Build in-memory stores and the services sharing them."""
    bookings = InMemoryBookingStore(schedule)
    waitlist_store = InMemoryWaitlistStore()
    events = EventBus()
    waitlist = WaitlistService(
        schedule,
        bookings,
        waitlist_store,
        notifier=notifier or LoggingNotifier(),
        events=events,
        now_fn=now_fn,
    )
    appointments = AppointmentService(schedule, bookings, waitlist)
    return SchedulerApp(
        schedule=schedule,
        bookings=bookings,
        waitlist_store=waitlist_store,
        events=events,
        waitlist=waitlist,
        appointments=appointments,
    )
