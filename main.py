"""
Command-line entry point for the scheduler engine.

Loads the schedule from SCHEDULE_FILE (or --schedule) and the bookings
and waiting requests from STATE_FILE (or --state), runs one of the
commands below, then writes the state file back.

Usage:
    Available slots:  python main.py slots 2026-06-20 anna "Coupe femme"
    One scan:         python main.py scan
    One sweep:        python main.py sweep
    Background jobs:  python main.py run
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from salon_scheduler.bootstrap import SchedulerApp, create_app
from salon_scheduler.config import settings
from salon_scheduler.cron import CronRunner
from salon_scheduler.stores.schedule_loader import load_schedule_file
from salon_scheduler.stores.state_file import load_state, save_state

logger = logging.getLogger(__name__)


def _build_app(args: argparse.Namespace) -> SchedulerApp:
    app = create_app(load_schedule_file(args.schedule))
    load_state(args.state, app.bookings, app.waitlist_store)
    return app


def _persist(app: SchedulerApp, args: argparse.Namespace) -> None:
    save_state(args.state, app.bookings, app.waitlist_store)


def _cmd_slots(app: SchedulerApp, args: argparse.Namespace) -> int:
    result = app.appointments.get_available_slots(
        date.fromisoformat(args.day), args.worker, args.service
    )
    if result.slots:
        print(" ".join(result.slots))
    else:
        print(f"No slots ({result.reason})")
    return 0


def _cmd_scan(app: SchedulerApp, args: argparse.Namespace) -> int:
    matches = app.waitlist.scan()
    _persist(app, args)
    print(f"{len(matches)} offers sent")
    return 0


def _cmd_sweep(app: SchedulerApp, args: argparse.Namespace) -> int:
    expired = app.waitlist.handle_timeouts()
    _persist(app, args)
    print(f"{len(expired)} offers expired")
    return 0


def _cmd_run(app: SchedulerApp, args: argparse.Namespace) -> int:
    runner = CronRunner(app.waitlist)
    try:
        asyncio.run(runner.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        _persist(app, args)
    return 0


COMMANDS = {
    "slots": _cmd_slots,
    "scan": _cmd_scan,
    "sweep": _cmd_sweep,
    "run": _cmd_run,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=settings.engine_name)
    parser.add_argument(
        "--schedule", default=settings.schedule_file, help="Path to the JSON schedule file"
    )
    parser.add_argument(
        "--state", default=settings.state_file,
        help="Path to the JSON bookings/waitlist snapshot (created if missing)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    slots = sub.add_parser("slots", help="List bookable start times")
    slots.add_argument("day", help="Date as YYYY-MM-DD")
    slots.add_argument("worker", help="Worker id")
    slots.add_argument("service", help="Service name")

    sub.add_parser("scan", help="Run one waitlist scan")
    sub.add_parser("sweep", help="Expire timed-out offers once")
    sub.add_parser("run", help="Run the sweep and scan loops until interrupted")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    app = _build_app(args)
    return COMMANDS[args.command](app, args)


if __name__ == "__main__":
    sys.exit(main())
