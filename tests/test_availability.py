"""Tests for closure rules and effective opening hours."""

from datetime import date

from salon_scheduler.engine.availability import (
    AvailabilityResolver,
    ClosureReason,
    EffectiveHours,
    parse_day_hours,
)
from salon_scheduler.engine.intervals import TimeInterval
from salon_scheduler.schemas.schedule_schema import DayHours, LeavePeriod, WorkerSchedule
from tests.conftest import MONDAY, SUNDAY, TUESDAY, make_schedule


def resolver_for(**kwargs) -> AvailabilityResolver:
    return AvailabilityResolver(make_schedule(**kwargs))


class TestClosurePriority:
    def test_open_weekday_is_open(self):
        availability = resolver_for().resolve(TUESDAY, "anna")
        assert availability.is_open
        assert availability.reason is None

    def test_holiday(self):
        availability = resolver_for(holidays=[TUESDAY]).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.HOLIDAY

    def test_weekly_closure(self):
        availability = resolver_for().resolve(SUNDAY, "anna")
        assert availability.reason == ClosureReason.WEEKLY_CLOSURE

    def test_global_leave(self):
        leave = LeavePeriod(start_date=MONDAY, end_date=TUESDAY)
        availability = resolver_for(global_leaves=[leave]).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.GLOBAL_LEAVE

    def test_worker_day_off(self):
        workers = {"anna": WorkerSchedule(worker_id="anna", days_off={TUESDAY.weekday()})}
        availability = resolver_for(workers=workers).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.WORKER_OFF_DAY

    def test_worker_override_closed_counts_as_day_off(self):
        workers = {
            "anna": WorkerSchedule(
                worker_id="anna", weekly_hours={TUESDAY.weekday(): DayHours(is_open=False)}
            )
        }
        availability = resolver_for(workers=workers).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.WORKER_OFF_DAY

    def test_worker_leave(self):
        leave = LeavePeriod(start_date=TUESDAY, end_date=TUESDAY, worker_id="anna")
        workers = {"anna": WorkerSchedule(worker_id="anna", leaves=[leave])}
        availability = resolver_for(workers=workers).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.WORKER_LEAVE

    def test_holiday_masks_worker_leave(self):
        leave = LeavePeriod(start_date=TUESDAY, end_date=TUESDAY, worker_id="anna")
        workers = {"anna": WorkerSchedule(worker_id="anna", leaves=[leave])}
        availability = resolver_for(workers=workers, holidays=[TUESDAY]).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.HOLIDAY

    def test_global_leave_masks_worker_day_off(self):
        global_leave = LeavePeriod(start_date=TUESDAY, end_date=TUESDAY)
        workers = {"anna": WorkerSchedule(worker_id="anna", days_off={TUESDAY.weekday()})}
        availability = resolver_for(
            workers=workers, global_leaves=[global_leave]
        ).resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.GLOBAL_LEAVE

    def test_other_worker_unaffected_by_personal_leave(self):
        leave = LeavePeriod(start_date=TUESDAY, end_date=TUESDAY, worker_id="anna")
        workers = {
            "anna": WorkerSchedule(worker_id="anna", leaves=[leave]),
            "ben": WorkerSchedule(worker_id="ben"),
        }
        assert resolver_for(workers=workers).resolve(TUESDAY, "ben").is_open

    def test_leave_end_date_is_inclusive(self):
        leave = LeavePeriod(start_date=date(2026, 6, 10), end_date=TUESDAY)
        resolver = resolver_for(global_leaves=[leave])
        assert not resolver.resolve(TUESDAY).is_open
        assert resolver.resolve(date(2026, 6, 17)).is_open


class TestEffectiveHours:
    def test_business_hours_used_without_override(self):
        hours = resolver_for().resolve(TUESDAY, "anna").hours
        assert hours == EffectiveHours(540, 1080, 720, 840)

    def test_worker_override_hours(self):
        workers = {
            "anna": WorkerSchedule(
                worker_id="anna",
                weekly_hours={TUESDAY.weekday(): DayHours(open="10:00", close="16:00")},
            )
        }
        hours = resolver_for(workers=workers).resolve(TUESDAY, "anna").hours
        assert (hours.open, hours.close) == (600, 960)
        assert hours.break_interval is None

    def test_business_level_query_without_worker(self):
        assert resolver_for().resolve(TUESDAY).is_open

    def test_unparseable_hours_close_the_day(self):
        availability = resolver_for(open_time="nine").resolve(TUESDAY, "anna")
        assert availability.reason == ClosureReason.WEEKLY_CLOSURE

    def test_close_before_open_closes_the_day(self):
        availability = resolver_for(open_time="18:00", close_time="09:00").resolve(TUESDAY)
        assert availability.reason == ClosureReason.WEEKLY_CLOSURE


class TestParseDayHours:
    def test_inverted_break_is_ignored(self):
        hours = parse_day_hours(DayHours(open="09:00", close="18:00", break_start="14:00", break_end="12:00"))
        assert hours.break_interval is None

    def test_unparseable_break_is_ignored(self):
        hours = parse_day_hours(DayHours(open="09:00", close="18:00", break_start="lunch", break_end="14:00"))
        assert hours.break_interval is None

    def test_break_clipped_to_window(self):
        hours = parse_day_hours(DayHours(open="09:00", close="13:00", break_start="12:00", break_end="14:00"))
        assert hours.break_interval == TimeInterval(720, 780)

    def test_admits_rejects_break_overlap(self):
        hours = EffectiveHours(540, 1080, 720, 840)
        assert hours.admits(TimeInterval(690, 720))
        assert not hours.admits(TimeInterval(700, 730))
        assert not hours.admits(TimeInterval(1060, 1090))
