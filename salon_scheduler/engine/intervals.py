"""Half-open minute intervals within a single day."""

from dataclasses import dataclass
from typing import Iterable, Optional

from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.schedule_schema import ScheduleConfig
from salon_scheduler.utils import format_hhmm


@dataclass(frozen=True, order=True)
class TimeInterval:
    """[start, end) in minutes since midnight."""
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def clip(self, start: Optional[int] = None, end: Optional[int] = None) -> "TimeInterval":
        return TimeInterval(
            self.start if start is None else max(self.start, start),
            self.end if end is None else min(self.end, end),
        )

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def booking_interval(booking: Booking, schedule: ScheduleConfig) -> TimeInterval:
    """Occupied interval of a booking, using the current service durations."""
    start = booking.start_minutes
    return TimeInterval(start, start + schedule.duration_for(booking.service_name))


def booking_intervals(bookings: Iterable[Booking], schedule: ScheduleConfig) -> list[TimeInterval]:
    return sorted(booking_interval(b, schedule) for b in bookings)
