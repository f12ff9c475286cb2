"""
timelog entry point.

Usage:
    # Log two hours on issue 5 (queued if Redmine is unreachable)
    timelog log --issue 5 --hours 2 --activity 9 --comment "Code review"

    # Retry everything waiting in the offline queue
    timelog retry

    # Show the offline queue
    timelog queue
"""

import argparse
import asyncio
import datetime as dt
import logging
import sys

from pydantic import ValidationError

from .config import settings
from .delivery import DeliveryEngine, RedmineClient
from .exceptions import ConfigurationError, TimelogError
from .logging_config import setup_logging
from .models import Outcome, RedmineSettings, TimeEntry
from .state import SqliteStore, StateSurface

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timelog",
        description="Record Redmine time entries, queueing them while offline.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    log = commands.add_parser("log", help="Send a time entry (queued if offline)")
    log.add_argument("--issue", type=int, required=True, help="Redmine issue id")
    log.add_argument("--hours", type=float, required=True, help="Hours spent")
    log.add_argument("--activity", type=int, required=True, help="Redmine activity id")
    log.add_argument(
        "--date",
        type=dt.date.fromisoformat,
        default=None,
        help="Day the time was spent, YYYY-MM-DD (default: today)",
    )
    log.add_argument("--comment", default="", help="Free-text comment")

    commands.add_parser("retry", help="Retry queued entries in order")
    commands.add_parser("queue", help="List queued entries")
    return parser


async def sync_settings(state: StateSurface) -> None:
    """Overwrite persisted Redmine settings with non-empty values from the environment."""
    current = state.settings.get()
    configured = RedmineSettings(
        redmine_url=settings.redmine_url or current.redmine_url,
        api_key=settings.redmine_api_key or current.api_key,
    )
    if configured != current:
        await state.settings.update(configured)


def print_queue(state: StateSurface) -> None:
    items = state.queue.snapshot()
    if not items:
        print("Offline queue is empty.")
        return
    print(f"{'ID':<24} {'Issue':>7} {'Date':<10} {'Hours':>6}  Redmine")
    print("-" * 70)
    for item in items:
        entry = item.payload
        print(f"{item.id:<24} {entry.issue_id:>7} {entry.spent_on:<10} {entry.hours:>6.2f}  {item.redmine_url}")


async def run(args: argparse.Namespace) -> int:
    async with SqliteStore(settings.db_path) as store:
        state = await StateSurface.load(store)
        await sync_settings(state)

        if args.command == "queue":
            print_queue(state)
            return 0

        state.status.subscribe(lambda message: message and print(message))
        engine = DeliveryEngine(state, RedmineClient())

        if args.command == "retry":
            await engine.drain()
            return 0 if state.queue.is_empty() else 1

        if not state.settings.get().is_complete:
            raise ConfigurationError("Set REDMINE_URL and REDMINE_API_KEY (environment or .env) first.")

        entry = TimeEntry(
            issue_id=args.issue,
            date=args.date or dt.date.today(),
            hours=args.hours,
            activity_id=args.activity,
            comments=args.comment,
        )
        outcome = await engine.submit(entry)
        return 1 if outcome is Outcome.REJECTED else 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.logs_dir, settings.log_json)

    try:
        return asyncio.run(run(args))
    except ValidationError as e:
        print(f"[!] Invalid time entry: {e}", file=sys.stderr)
        return 2
    except TimelogError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
