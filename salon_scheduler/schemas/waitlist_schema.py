"""Waiting-request models and the explicit worker preference type."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class RequestStatus(str, Enum):
    """Lifecycle status of a waiting request."""
    WAITING = "WAITING"
    OFFER_SENT = "OFFER_SENT"
    BOOKED = "BOOKED"
    REFUSED = "REFUSED"
    EXPIRED = "EXPIRED"


TERMINAL_STATUSES = frozenset({RequestStatus.BOOKED, RequestStatus.REFUSED, RequestStatus.EXPIRED})
ACTIVE_STATUSES = frozenset({RequestStatus.WAITING, RequestStatus.OFFER_SENT})


class AnyWorker(BaseModel):
    """The client accepts whichever worker has the gap."""
    kind: Literal["any"] = "any"

    def accepts(self, worker_id: str) -> bool:
        return True


class SpecificWorker(BaseModel):
    """The client only wants one worker."""
    kind: Literal["specific"] = "specific"
    worker_id: str

    def accepts(self, worker_id: str) -> bool:
        return self.worker_id == worker_id


WorkerPreference = Annotated[Union[AnyWorker, SpecificWorker], Field(discriminator="kind")]


def worker_preference(worker_id: Optional[str]) -> Union[AnyWorker, SpecificWorker]:
    """Build a preference from a nullable worker id at the store boundary."""
    if worker_id is None or not str(worker_id).strip():
        return AnyWorker()
    return SpecificWorker(worker_id=str(worker_id).strip())


class WaitingRequest(BaseModel):
    """A client waiting for a slot on a given date."""
    id: str
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    target_date: date
    desired_service: str
    worker_preference: WorkerPreference = Field(default_factory=AnyWorker)
    created_at: datetime
    status: RequestStatus = RequestStatus.WAITING
    offer_token: Optional[str] = None
    offer_expires_at: Optional[datetime] = None
    offered_worker_id: Optional[str] = None
    offered_start: Optional[str] = None
    hold_booking_id: Optional[str] = None

    @property
    def fifo_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id)

    def clear_offer(self) -> None:
        """Drop token and hold reference once the offer is resolved."""
        self.offer_token = None
        self.offer_expires_at = None
        self.hold_booking_id = None


class JoinRequest(BaseModel):
    """Validated input for joining the waitlist."""
    client_name: str = Field(min_length=2)
    client_email: str = Field(min_length=3)
    client_phone: Optional[str] = None
    target_date: date
    desired_service: str
    desired_worker_id: Optional[str] = None
