"""
Normalise raw settings into a typed ScheduleConfig.

Stored settings come in several historical shapes: opening hours as a
seven-entry list indexed Sunday-first, as a dict keyed by that index,
or as a legacy ``{"start", "end", "closedDays"}`` object; break keys as
``breakStart``/``breakEnd`` or ``pause_start``/``pause_end``; days off
as a list or a JSON string. All of that is resolved here so the engine
never branches on shape.

Raw weekday indices use the storage convention (0 = Sunday). Typed
models use ``date.weekday()`` (0 = Monday).
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from salon_scheduler.config import settings
from salon_scheduler.schemas.schedule_schema import (
    DayHours,
    LeavePeriod,
    ScheduleConfig,
    Service,
    WorkerSchedule,
)

logger = logging.getLogger(__name__)


def storage_to_weekday(index: int) -> int:
    """Convert a Sunday-first index (0 = Sunday) to ``date.weekday()``."""
    return (int(index) - 1) % 7


def _day_hours(raw: dict[str, Any], default_open: bool = False) -> DayHours:
    is_open = raw.get("isOpen", raw.get("is_open", default_open))
    return DayHours(
        is_open=bool(is_open),
        open=raw.get("open") or raw.get("start") or settings.business.default_open,
        close=raw.get("close") or raw.get("end") or settings.business.default_close,
        break_start=raw.get("breakStart") or raw.get("break_start") or raw.get("pause_start"),
        break_end=raw.get("breakEnd") or raw.get("break_end") or raw.get("pause_end"),
    )


def normalize_opening_hours(raw: Any) -> dict[int, DayHours]:
    """Turn any stored opening-hours shape into a weekday -> DayHours map."""
    if raw is None:
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw)

    if isinstance(raw, list):
        return {
            storage_to_weekday(index): _day_hours(entry)
            for index, entry in enumerate(raw)
            if isinstance(entry, dict)
        }

    if isinstance(raw, dict) and ("start" in raw or "closedDays" in raw) and not any(
        key.isdigit() for key in raw
    ):
        closed = {storage_to_weekday(d) for d in raw.get("closedDays") or []}
        base = _day_hours(raw, default_open=True)
        return {
            weekday: base.model_copy(update={"is_open": weekday not in closed})
            for weekday in range(7)
        }

    if isinstance(raw, dict):
        return {
            storage_to_weekday(int(key)): _day_hours(entry)
            for key, entry in raw.items()
            if str(key).isdigit() and isinstance(entry, dict)
        }

    raise ValueError(f"Unsupported opening hours shape: {type(raw).__name__}")


def _days_off(raw: Any) -> set[int]:
    if not raw:
        return set()
    if isinstance(raw, str):
        raw = json.loads(raw)
    return {storage_to_weekday(d) for d in raw}


def _leave(raw: dict[str, Any]) -> LeavePeriod:
    worker_id = raw.get("worker_id", raw.get("admin_id"))
    return LeavePeriod(
        start_date=raw["start_date"],
        end_date=raw["end_date"],
        worker_id=None if worker_id is None else str(worker_id),
    )


def load_schedule(raw: dict[str, Any]) -> ScheduleConfig:
    """Build a ScheduleConfig from a raw settings mapping."""
    if "business_hours" in raw:
        return ScheduleConfig.model_validate(raw)

    services = {}
    for entry in raw.get("services") or []:
        service = Service(name=entry["name"], duration=int(entry["duration"]))
        services[service.name] = service

    leaves = [_leave(entry) for entry in raw.get("leaves") or []]
    global_leaves = [leave for leave in leaves if leave.worker_id is None]

    workers: dict[str, WorkerSchedule] = {}
    for entry in raw.get("workers") or []:
        worker_id = str(entry["id"])
        workers[worker_id] = WorkerSchedule(
            worker_id=worker_id,
            display_name=entry.get("display_name") or entry.get("username"),
            weekly_hours=normalize_opening_hours(entry.get("opening_hours")),
            days_off=_days_off(entry.get("days_off")),
            leaves=[leave for leave in leaves if leave.worker_id == worker_id],
        )

    opening_hours = raw.get("opening_hours", raw.get("openingHours"))
    config = ScheduleConfig(
        business_hours=normalize_opening_hours(opening_hours),
        workers=workers,
        global_leaves=global_leaves,
        holidays=set(raw.get("holidays") or []),
        services=services,
    )
    logger.info(
        "Schedule loaded: %d workers, %d services, %d holidays",
        len(workers), len(services), len(config.holidays),
    )
    return config


def load_schedule_file(path: Union[str, Path], encoding: Optional[str] = "utf-8") -> ScheduleConfig:
    """Read a JSON settings file and normalise it."""
    with open(path, encoding=encoding) as handle:
        return load_schedule(json.load(handle))
