"""
JSON snapshot of the booking and waitlist tables.

Lets the command-line jobs work on the same bookings and waiting
requests across runs when no database backs the stores:

    {"bookings": [...], "waiting_requests": [...]}
"""

import json
import logging
from pathlib import Path
from typing import Union

from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.waitlist_schema import WaitingRequest
from salon_scheduler.stores.booking_store import InMemoryBookingStore
from salon_scheduler.stores.waitlist_store import InMemoryWaitlistStore

logger = logging.getLogger(__name__)


def load_state(
    path: Union[str, Path],
    bookings: InMemoryBookingStore,
    waitlist: InMemoryWaitlistStore,
) -> bool:
    """
    Fill empty stores from a snapshot file.

    Returns:
        False when the file does not exist yet, True otherwise.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No state file at %s, starting empty", path)
        return False

    raw = json.loads(path.read_text(encoding="utf-8"))
    for entry in raw.get("bookings") or []:
        bookings.restore(Booking.model_validate(entry))
    for entry in raw.get("waiting_requests") or []:
        waitlist.add(WaitingRequest.model_validate(entry))
    logger.info(
        "State loaded from %s: %d bookings, %d waiting requests",
        path, len(bookings.all()), len(waitlist.all()),
    )
    return True


def save_state(
    path: Union[str, Path],
    bookings: InMemoryBookingStore,
    waitlist: InMemoryWaitlistStore,
) -> None:
    """Write both tables to ``path``, replacing the previous snapshot."""
    path = Path(path)
    snapshot = {
        "bookings": [b.model_dump(mode="json") for b in bookings.all()],
        "waiting_requests": [r.model_dump(mode="json") for r in waitlist.all()],
    }
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
    tmp.replace(path)
    logger.debug("State saved to %s", path)
