from salon_scheduler.stores.booking_store import BookingStore, InMemoryBookingStore
from salon_scheduler.stores.notifier import LoggingNotifier, Notifier, deliver
from salon_scheduler.stores.schedule_loader import load_schedule, load_schedule_file
from salon_scheduler.stores.state_file import load_state, save_state
from salon_scheduler.stores.waitlist_store import InMemoryWaitlistStore, WaitlistStore

__all__ = [
    "BookingStore",
    "InMemoryBookingStore",
    "WaitlistStore",
    "InMemoryWaitlistStore",
    "Notifier",
    "LoggingNotifier",
    "deliver",
    "load_schedule",
    "load_schedule_file",
    "load_state",
    "save_state",
]
