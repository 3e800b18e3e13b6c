"""
Free-gap detection for one worker on one date.

Operation A (``full_day_gaps``) lists every maximal free interval of the
opening window. Operation B (``merged_gap``) finds the single free
interval around a just-cancelled booking, so two adjacent short
cancellations coalesce into one gap long enough for a longer service.
"""

import logging
from typing import Iterable, Optional

from salon_scheduler.engine.availability import EffectiveHours
from salon_scheduler.engine.intervals import TimeInterval

logger = logging.getLogger(__name__)


def clip_gap(gap: TimeInterval, not_before: Optional[int] = None) -> Optional[TimeInterval]:
    """Drop the part of a gap that is already in the past. None if nothing is left."""
    if not_before is not None:
        gap = gap.clip(start=not_before)
    return None if gap.is_empty else gap


def full_day_gaps(hours: EffectiveHours, occupied: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Maximal free sub-intervals of [open, close] outside bookings and the break.

    Gaps, bookings and the break together partition the opening window.
    """
    segments = [hours.window]
    pause = hours.break_interval
    if pause is not None:
        segments = [
            TimeInterval(hours.open, pause.start),
            TimeInterval(pause.end, hours.close),
        ]

    gaps: list[TimeInterval] = []
    blockers = sorted(occupied)
    for segment in segments:
        cursor = segment.start
        for block in blockers:
            if block.end <= cursor or block.start >= segment.end:
                continue
            if block.start > cursor:
                gaps.append(TimeInterval(cursor, block.start))
            cursor = max(cursor, block.end)
        if cursor < segment.end:
            gaps.append(TimeInterval(cursor, segment.end))
    return [g for g in gaps if not g.is_empty]


def merged_gap(
    hours: EffectiveHours,
    remaining: Iterable[TimeInterval],
    freed: TimeInterval,
    not_before: Optional[int] = None,
) -> Optional[TimeInterval]:
    """
    Widen a freed interval to the free gap that surrounds it.

    Args:
        hours: Effective hours of the worker on that date.
        remaining: Occupied intervals after the cancellation.
        freed: The interval the cancelled booking used to occupy.
        not_before: Earliest allowed start (same-day cancellations).

    Returns:
        The merged gap, or None when nothing usable remains.
    """
    best_start = hours.open
    best_end = hours.close

    for block in remaining:
        if block.end <= freed.start:
            best_start = max(best_start, block.end)
        if block.start >= freed.end:
            best_end = min(best_end, block.start)

    pause = hours.break_interval
    if pause is not None:
        if freed.start < pause.start:
            best_end = min(best_end, pause.start)
        if freed.start >= pause.end:
            best_start = max(best_start, pause.end)
        if pause.start <= best_start < pause.end:
            best_start = pause.end
        if pause.start < best_end <= pause.end:
            best_end = pause.start

    gap = clip_gap(TimeInterval(best_start, best_end), not_before)
    if gap is None:
        logger.debug("No gap left around %s after break/clock clipping", freed)
    return gap

