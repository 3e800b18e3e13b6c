"""Domain exceptions raised by the booking and waitlist operations.

Closed days and "no waiting candidate" are normal results and are never
raised. Everything here is terminal for the attempt that raised it and
leaves stored state untouched.
"""


class SchedulerError(Exception):
    """Base class for all scheduler errors."""


class SlotUnavailable(SchedulerError):
    """The requested interval overlaps an existing CONFIRMED or HOLD booking."""


class OutsideOpeningHours(SchedulerError):
    """The requested interval is on a closed day, outside hours, or in the break."""


class BookingNotFound(SchedulerError):
    """No booking exists with the given identifier."""


class UnknownService(SchedulerError):
    """The service name is not in the catalog."""


class TokenInvalid(SchedulerError):
    """No outstanding offer matches the token, or it was already used."""


class OfferExpired(SchedulerError):
    """The offer window closed before the client confirmed."""


class DuplicateWaitingRequest(SchedulerError):
    """The client already has an active waiting request for that date."""


class RequestUnavailable(SchedulerError):
    """The waiting request was already claimed by another offer or left the waitlist."""
