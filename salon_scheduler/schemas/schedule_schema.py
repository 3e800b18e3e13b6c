"""Schedule configuration models: services, weekly hours, leaves, holidays.

Weekday indices follow ``date.weekday()``: Monday is 0, Sunday is 6.
Raw settings in other shapes are normalised by
``salon_scheduler.stores.schedule_loader`` before they reach these models.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from salon_scheduler.config import settings


class Service(BaseModel):
    """A bookable service. The name is the cross-system key."""
    name: str
    duration: int = Field(gt=0)


class DayHours(BaseModel):
    """Opening hours for one weekday."""
    is_open: bool = True
    open: str = settings.business.default_open
    close: str = settings.business.default_close
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class LeavePeriod(BaseModel):
    """Inclusive date range. ``worker_id`` None means the whole business."""
    start_date: date
    end_date: date
    worker_id: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def _check_weekdays(values):
    for weekday in values:
        if not 0 <= weekday <= 6:
            raise ValueError(f"Weekday index must be between 0 and 6, got {weekday}")
    return values


class WorkerSchedule(BaseModel):
    """Per-worker overrides on top of the business week."""
    worker_id: str
    display_name: Optional[str] = None
    weekly_hours: dict[int, DayHours] = Field(default_factory=dict)
    days_off: set[int] = Field(default_factory=set)
    leaves: list[LeavePeriod] = Field(default_factory=list)

    @field_validator("weekly_hours", "days_off")
    @classmethod
    def _weekday_range(cls, value):
        return _check_weekdays(value)


class ScheduleConfig(BaseModel):
    """Everything the engine reads about opening hours and services."""
    business_hours: dict[int, DayHours] = Field(default_factory=dict)
    workers: dict[str, WorkerSchedule] = Field(default_factory=dict)
    global_leaves: list[LeavePeriod] = Field(default_factory=list)
    holidays: set[date] = Field(default_factory=set)
    services: dict[str, Service] = Field(default_factory=dict)
    default_service_duration: int = settings.business.default_service_duration

    @field_validator("business_hours")
    @classmethod
    def _weekday_range(cls, value):
        return _check_weekdays(value)

    def duration_for(self, service_name: str) -> int:
        """Duration of a stored booking's service, falling back to the default."""
        service = self.services.get(service_name)
        return service.duration if service else self.default_service_duration

    def known_duration(self, service_name: str) -> Optional[int]:
        """Duration for a catalog service, or None when it is not in the catalog."""
        service = self.services.get(service_name)
        return service.duration if service else None

    def worker_ids(self) -> list[str]:
        return sorted(self.workers)
