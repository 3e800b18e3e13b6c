from salon_scheduler.schemas.booking_schema import (
    Booking,
    BookingRequest,
    BookingStatus,
    SlotResult,
)
from salon_scheduler.schemas.schedule_schema import (
    DayHours,
    LeavePeriod,
    ScheduleConfig,
    Service,
    WorkerSchedule,
)
from salon_scheduler.schemas.waitlist_schema import (
    AnyWorker,
    JoinRequest,
    RequestStatus,
    SpecificWorker,
    WaitingRequest,
    worker_preference,
)

__all__ = [
    "Booking", "BookingRequest", "BookingStatus", "SlotResult",
    "DayHours", "LeavePeriod", "ScheduleConfig", "Service", "WorkerSchedule",
    "AnyWorker", "SpecificWorker", "JoinRequest", "RequestStatus",
    "WaitingRequest", "worker_preference",
]
