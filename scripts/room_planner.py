"""Room planner views for a date as JSON or table.

Standalone CLI script driving the room planner engine. Reads the calendar
snapshot and the room catalog either from the management console API or from
JSON files, and prints the requested view.

Run with: python scripts/room_planner.py day --date 2026-03-02
Table:    python scripts/room_planner.py day --date 2026-03-02 --table
Offline:  python scripts/room_planner.py day --date 2026-03-02 --snapshot data/snapshot.json --rooms data/rooms.json
Search:   python scripts/room_planner.py search --date 2026-03-02 --start 10:00 --end 12:00 --only-available
Layout:   python scripts/room_planner.py layout --date 2026-03-02

API settings come from .env (PLANNER_API_URL, PLANNER_API_TOKEN).

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.room_planner.aggregator import aggregate_activities, parse_time_of_day  # noqa: E402
from src.room_planner.availability import search_availability  # noqa: E402
from src.room_planner.client import CalendarClient  # noqa: E402
from src.room_planner.config import PlannerConfig, get_config  # noqa: E402
from src.room_planner.logging import (  # noqa: E402
    bind_view_context,
    clear_view_context,
    setup_logging,
)
from src.room_planner.models import CalendarSnapshot, Room, RoomRow  # noqa: E402
from src.room_planner.planner import (  # noqa: E402
    build_day_columns,
    build_room_rows,
    planner_summary,
)
from src.room_planner.timegrid import time_to_minutes  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Room planner views for a date as JSON or table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # Input options shared by every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--date", required=True, help="Date, YYYY-MM-DD.")
    common.add_argument(
        "--snapshot",
        metavar="FILE",
        help="Read the calendar snapshot from a JSON file instead of the API.",
    )
    common.add_argument(
        "--rooms",
        metavar="FILE",
        help="Read the room catalog from a JSON file instead of the API.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    day = sub.add_parser("day", parents=[common], help="Rooms with their free slots for a date.")
    day.add_argument(
        "--table",
        action="store_true",
        help="Output human-readable table instead of JSON.",
    )

    search = sub.add_parser("search", parents=[common], help="Which rooms are free in a time window.")
    search.add_argument("--start", required=True, help="Window start, HH:MM.")
    search.add_argument("--end", required=True, help="Window end, HH:MM.")
    search.add_argument(
        "--only-available",
        action="store_true",
        help="Only list rooms with no conflicting activity.",
    )
    search.add_argument("--room-type", help="Only rooms of this type.")
    search.add_argument("--min-capacity", type=int, help="Only rooms holding at least N people.")

    sub.add_parser("layout", parents=[common], help="Grid layout of each room's activities.")

    return parser.parse_args(argv)


def _load_snapshot(args: argparse.Namespace, client: CalendarClient | None) -> CalendarSnapshot:
    if args.snapshot:
        _log(f"  Loading snapshot from {args.snapshot}")
        payload = json.loads(Path(args.snapshot).read_text(encoding="utf-8"))
        return CalendarSnapshot.model_validate(payload)
    _log(f"  Fetching calendar for {args.date}...")
    return client.fetch_snapshot(args.date)


def _load_rooms(args: argparse.Namespace, client: CalendarClient | None) -> list[Room]:
    if args.rooms:
        _log(f"  Loading rooms from {args.rooms}")
        payload = json.loads(Path(args.rooms).read_text(encoding="utf-8"))
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        return [Room.model_validate(item) for item in items]
    _log("  Fetching rooms...")
    return client.fetch_rooms()


def _format_table(rows: list[RoomRow]) -> str:
    """Format room rows as a human-readable table."""
    if not rows:
        return "No rooms."

    headers = ["Room", "Now", "Activities", "Free slots"]
    body = []
    for row in rows:
        now = row.current_activity.title if row.current_activity else ""
        free = ", ".join(str(slot) for slot in row.free_slots) or "-"
        body.append([row.room.display_name, now, str(row.total_activities_count), free])

    widths = [len(h) for h in headers]
    for line in body:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(cells: list[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells))

    lines = [fmt_row(headers), "  ".join("-" * w for w in widths)]
    lines.extend(fmt_row(line) for line in body)
    return "\n".join(lines)


def _check_search_window(args: argparse.Namespace) -> None:
    """Normalise --start/--end to HH:MM and reject an empty window.

    Raises:
        ValueError: If a time is malformed or --end is not after --start.
    """
    args.start = parse_time_of_day(args.start)
    args.end = parse_time_of_day(args.end)
    if time_to_minutes(args.end) <= time_to_minutes(args.start):
        raise ValueError(f"--end {args.end} must be after --start {args.start}")


def main(args: argparse.Namespace) -> None:
    """Load inputs, build the requested view, print it."""
    if args.command == "search":
        _check_search_window(args)

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    bind_view_context(command=args.command, date=args.date)
    try:
        _render(args, config)
    finally:
        clear_view_context()


def _render(args: argparse.Namespace, config: PlannerConfig) -> None:
    grid = config.time_grid()

    _log(f"room_planner: starting ({args.command} {args.date})")

    client = None if (args.snapshot and args.rooms) else CalendarClient(config)
    snapshot = _load_snapshot(args, client)
    rooms = _load_rooms(args, client)
    activities = aggregate_activities(snapshot)
    _log(f"  {len(activities)} activities, {len(rooms)} rooms")

    if args.command == "day":
        now = datetime.now(ZoneInfo(config.timezone_name)).replace(tzinfo=None)
        rows = build_room_rows(rooms, activities, args.date, now=now, grid=grid)
        if args.table:
            print(_format_table(rows))
        else:
            output = {
                "summary": planner_summary(rows, args.date, now).model_dump(mode="json"),
                "rooms": [row.model_dump(mode="json") for row in rows],
            }
            print(json.dumps(output, indent=2, ensure_ascii=False))
    elif args.command == "search":
        results = search_availability(
            args.date,
            args.start,
            args.end,
            rooms,
            activities,
            only_available=args.only_available,
            room_type=args.room_type,
            min_capacity=args.min_capacity,
            grid=grid,
        )
        output = [result.model_dump(mode="json") for result in results]
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        columns = build_day_columns(rooms, activities, args.date, grid=grid)
        output = [column.model_dump(mode="json") for column in columns]
        print(json.dumps(output, indent=2, ensure_ascii=False))

    _log("room_planner: done")


def run(argv: list[str] | None = None) -> int:
    """Parse arguments, run, and map failures to exit code 1."""
    args = _parse_args(argv)
    try:
        main(args)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(run())
