"""Trigger ID logging context for tracing one engine run across modules.

Every entry point (a cancellation, a timeout sweep, a periodic scan, a
client confirm/refuse) sets a trigger ID, so the cascade of matches and
offers it causes can be followed in the logs.

Usage:
    from salon_scheduler.logging_context import new_trigger_id, get_trigger_logger

    new_trigger_id("CANCEL")
    logger = get_trigger_logger(__name__)
    logger.info("Gap detected")  # -> [CANCEL-3f9a1c] Gap detected
"""

import logging
import uuid
from contextvars import ContextVar

_trigger_id: ContextVar[str] = ContextVar("trigger_id", default="-")


def set_trigger_id(trigger_id: str) -> None:
    """Set the trigger ID for the current context."""
    _trigger_id.set(trigger_id)


def new_trigger_id(prefix: str) -> str:
    """Generate, set and return a fresh trigger ID such as ``SCAN-3f9a1c``."""
    trigger_id = f"{prefix}-{uuid.uuid4().hex[:6]}"
    _trigger_id.set(trigger_id)
    return trigger_id


def get_trigger_id() -> str:
    """Retrieve the current trigger ID."""
    return _trigger_id.get()


class TriggerIdFilter(logging.Filter):
    """Injects trigger_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trigger_id = _trigger_id.get()  # type: ignore[attr-defined]
        return True


def get_trigger_logger(name: str) -> logging.Logger:
    """Return a logger with the TriggerIdFilter attached.

    The filter adds ``trigger_id`` to each record so formatters can
    include ``%(trigger_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, TriggerIdFilter) for f in logger.filters):
        logger.addFilter(TriggerIdFilter())
    return logger
