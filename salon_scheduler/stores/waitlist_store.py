"""Waiting-request store contract and in-memory implementation."""

import logging
import threading
import uuid
from collections import Counter
from datetime import date, datetime
from typing import Optional, Protocol

from salon_scheduler.schemas.waitlist_schema import (
    ACTIVE_STATUSES,
    AnyWorker,
    RequestStatus,
    WaitingRequest,
)
from salon_scheduler.utils import normalize_email

logger = logging.getLogger(__name__)

ANY_WORKER_KEY = "any"


def new_request_id() -> str:
    return f"WL-{uuid.uuid4().hex[:8].upper()}"


class WaitlistStore(Protocol):
    def add(self, request: WaitingRequest) -> WaitingRequest: ...

    def get(self, request_id: str) -> Optional[WaitingRequest]: ...

    def find_by_token(self, token: str) -> Optional[WaitingRequest]: ...

    def list_for_date(
        self, day: date, status: Optional[RequestStatus] = None
    ) -> list[WaitingRequest]: ...

    def pending_dates(self) -> list[date]: ...

    def expired_offers(self, now: datetime) -> list[WaitingRequest]: ...

    def waiting_before(self, day: date) -> list[WaitingRequest]: ...

    def find_active(self, email: str, day: date) -> Optional[WaitingRequest]: ...

    def save(self, request: WaitingRequest) -> WaitingRequest: ...

    def claim(
        self, request_id: str, expected: RequestStatus, status: RequestStatus
    ) -> Optional[WaitingRequest]: ...

    def counts_for_date(self, day: date) -> dict[str, int]: ...


class InMemoryWaitlistStore:
    """Dict-backed waiting-request table."""

    def __init__(self) -> None:
        self._requests: dict[str, WaitingRequest] = {}
        self._lock = threading.Lock()

    def add(self, request: WaitingRequest) -> WaitingRequest:
        with self._lock:
            self._requests[request.id] = request
        logger.info(
            "Waiting request %s added for %s (%s)",
            request.id, request.target_date, request.desired_service,
        )
        return request

    def get(self, request_id: str) -> Optional[WaitingRequest]:
        return self._requests.get(request_id)

    def all(self) -> list[WaitingRequest]:
        with self._lock:
            return sorted(self._requests.values(), key=lambda r: r.fifo_key)

    def find_by_token(self, token: str) -> Optional[WaitingRequest]:
        if not token:
            return None
        with self._lock:
            return next(
                (r for r in self._requests.values() if r.offer_token == token), None
            )

    def list_for_date(
        self, day: date, status: Optional[RequestStatus] = None
    ) -> list[WaitingRequest]:
        """Requests for a date in creation order, optionally filtered by status."""
        with self._lock:
            found = [
                r for r in self._requests.values()
                if r.target_date == day and (status is None or r.status == status)
            ]
        return sorted(found, key=lambda r: r.fifo_key)

    def pending_dates(self) -> list[date]:
        """Dates that still have at least one WAITING request."""
        with self._lock:
            days = {
                r.target_date for r in self._requests.values()
                if r.status == RequestStatus.WAITING
            }
        return sorted(days)

    def waiting_before(self, day: date) -> list[WaitingRequest]:
        with self._lock:
            return [
                r for r in self._requests.values()
                if r.status == RequestStatus.WAITING and r.target_date < day
            ]

    def expired_offers(self, now: datetime) -> list[WaitingRequest]:
        """OFFER_SENT requests whose window has closed, oldest first."""
        with self._lock:
            found = [
                r for r in self._requests.values()
                if r.status == RequestStatus.OFFER_SENT
                and r.offer_expires_at is not None
                and r.offer_expires_at < now
            ]
        return sorted(found, key=lambda r: r.fifo_key)

    def find_active(self, email: str, day: date) -> Optional[WaitingRequest]:
        wanted = normalize_email(email)
        with self._lock:
            return next(
                (
                    r for r in self._requests.values()
                    if r.target_date == day
                    and r.status in ACTIVE_STATUSES
                    and normalize_email(r.client_email) == wanted
                ),
                None,
            )

    def save(self, request: WaitingRequest) -> WaitingRequest:
        with self._lock:
            self._requests[request.id] = request
        return request

    def claim(
        self, request_id: str, expected: RequestStatus, status: RequestStatus
    ) -> Optional[WaitingRequest]:
        """
        Move a request from ``expected`` to ``status`` as one atomic step.

        Returns None, changing nothing, when the request is missing or is
        no longer in ``expected``.
        """
        with self._lock:
            request = self._requests.get(request_id)
            if request is None or request.status != expected:
                return None
            request.status = status
        return request

    def counts_for_date(self, day: date) -> dict[str, int]:
        """WAITING requests per desired worker ("any" for no preference)."""
        counts: Counter[str] = Counter()
        for request in self.list_for_date(day, RequestStatus.WAITING):
            preference = request.worker_preference
            key = ANY_WORKER_KEY if isinstance(preference, AnyWorker) else preference.worker_id
            counts[key] += 1
        return dict(counts)

    def reset(self) -> None:
        """Clear all requests. Used by test fixtures for isolation."""
        with self._lock:
            self._requests.clear()
