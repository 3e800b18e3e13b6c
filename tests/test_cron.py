"""Tests for the asyncio background job runner."""

import asyncio

import pytest

from salon_scheduler.config import CronConfig
from salon_scheduler.cron import CronRunner
from salon_scheduler.schemas.waitlist_schema import RequestStatus
from tests.conftest import book, join


class RecordingSleep:
    """Sleep function that records requested delays and yields once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def runner(app, sleep):
    config = CronConfig(timeout_sweep_seconds=60, scan_interval_seconds=1800, startup_delay_seconds=5)
    return CronRunner(app.waitlist, config=config, sleep_fn=sleep)


class TestRunPeriodic:
    @pytest.mark.asyncio
    async def test_runs_requested_number_of_times(self, runner, sleep):
        calls = []
        runs = await runner.run_periodic("job", lambda: calls.append(1), interval=60, max_runs=3)
        assert runs == 3
        assert len(calls) == 3
        assert sleep.calls == [60, 60]

    @pytest.mark.asyncio
    async def test_initial_delay(self, runner, sleep):
        await runner.run_periodic("job", lambda: None, interval=1800, initial_delay=5, max_runs=1)
        assert sleep.calls == [5]

    @pytest.mark.asyncio
    async def test_failing_job_keeps_loop_alive(self, runner):
        attempts = []

        def flaky():
            attempts.append(1)
            raise RuntimeError("database unavailable")

        runs = await runner.run_periodic("flaky", flaky, interval=1, max_runs=2)
        assert runs == 2
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_run_job_returns_result(self, runner):
        assert await runner.run_job("answer", lambda: 42) == 42


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, runner):
        tasks = runner.start()
        assert len(tasks) == 2
        await asyncio.sleep(0)
        assert runner.running

        await runner.stop()
        assert not runner.running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, runner):
        first = runner.start()
        second = runner.start()
        assert set(first) == set(second)
        await runner.stop()

    @pytest.mark.asyncio
    async def test_sweep_job_expires_offers(self, runner, app, clock):
        target = book(app, "10:00", "Couleur")
        request = join(app, clock, "claire@example.com", service="Couleur")
        app.appointments.cancel_booking(target.id)
        clock.advance(minutes=25)

        await runner.run_periodic("timeout_sweep", app.waitlist.handle_timeouts, 60, max_runs=1)

        assert app.waitlist_store.get(request.id).status == RequestStatus.EXPIRED
