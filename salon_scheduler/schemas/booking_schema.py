"""Booking and slot-query data models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from salon_scheduler.utils import parse_hhmm


class BookingStatus(str, Enum):
    """Occupancy status of a booking. Both statuses block the interval."""
    CONFIRMED = "CONFIRMED"
    HOLD = "HOLD"


class Booking(BaseModel):
    """A stored booking. Its length comes from the service catalog."""
    id: str
    worker_id: str
    day: date
    start_time: str
    service_name: str
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("start_time")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        if parse_hhmm(value) is None:
            raise ValueError(f"start_time must be HH:MM, got {value!r}")
        return value.strip()

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start_time)  # type: ignore[return-value]


class BookingRequest(BaseModel):
    """Validated input for creating a booking."""
    client_name: str
    day: date
    start_time: str
    service_name: str
    worker_id: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None


class SlotResult(BaseModel):
    """Offerable start times for one worker/date/service."""
    slots: list[str] = Field(default_factory=list)
    reason: Optional[str] = None
