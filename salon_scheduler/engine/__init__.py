from salon_scheduler.engine.availability import (
    Availability,
    AvailabilityResolver,
    ClosureReason,
    EffectiveHours,
)
from salon_scheduler.engine.gaps import full_day_gaps, merged_gap
from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.engine.matcher import GapDescriptor, Match, WaitlistMatcher
from salon_scheduler.engine.offers import (
    InvalidTransitionError,
    OfferLifecycle,
    OfferTrigger,
)
from salon_scheduler.engine.slots import SlotGenerator

__all__ = [
    "Availability",
    "AvailabilityResolver",
    "ClosureReason",
    "EffectiveHours",
    "TimeInterval",
    "SlotGenerator",
    "full_day_gaps",
    "merged_gap",
    "GapDescriptor",
    "Match",
    "WaitlistMatcher",
    "OfferLifecycle",
    "OfferTrigger",
    "InvalidTransitionError",
]
