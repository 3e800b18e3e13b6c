"""
Client notification channel.

Notifications are fire-and-forget with respect to state transitions: a
failed send is retried, then logged, and never undoes the booking-side
change that triggered it.

In production this wraps the email service; the default implementation
only logs what it would send.
"""

import logging
from typing import Any, Callable, Protocol

from salon_scheduler.config import settings
from salon_scheduler.schemas.waitlist_schema import WaitingRequest

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send_waitlist_joined(self, request: WaitingRequest) -> None: ...

    def send_slot_offer(self, request: WaitingRequest) -> None: ...


class LoggingNotifier:
    """Notifier that records messages in the log instead of delivering them."""

    def send_waitlist_joined(self, request: WaitingRequest) -> None:
        logger.info(
            "[notify] %s joined the waitlist for %s (%s)",
            request.client_email, request.target_date, request.desired_service,
        )

    def send_slot_offer(self, request: WaitingRequest) -> None:
        logger.info(
            "[notify] slot offer to %s: %s at %s with %s (token %s..., expires %s)",
            request.client_email,
            request.target_date,
            request.offered_start,
            request.offered_worker_id,
            (request.offer_token or "")[:8],
            request.offer_expires_at,
        )


def deliver(
    send: Callable[..., Any],
    *args: Any,
    retries: int = settings.waitlist.notification_retries,
) -> bool:
    """Call a notifier method, retrying on failure. Never raises.

    Returns:
        True if the notification went out.
    """
    for attempt in range(retries + 1):
        try:
            send(*args)
            return True
        except Exception:
            if attempt < retries:
                logger.warning(
                    "Notification %s failed (attempt %d/%d), retrying",
                    getattr(send, "__name__", send), attempt + 1, retries + 1,
                )
                continue
            logger.exception(
                "Notification %s failed after %d attempts; state change kept",
                getattr(send, "__name__", send), retries + 1,
            )
    return False
