"""Room planner views built from a snapshot of activities.

Three views share the same derivations:

* the room list (one RoomRow per room with its free slots and what is on now),
* the day grid (one column per room, overlapping activities side by side),
* the week grid (one column per date of the week).

Every function here is a pure function of its inputs and is recomputed on
each data refresh.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from src.room_planner.aggregator import sort_by_start, status_style
from src.room_planner.free_slots import active_activities, compute_free_slots
from src.room_planner.layout import layout_overlapping_events
from src.room_planner.logging import get_logger
from src.room_planner.models import (
    Activity,
    ActivityType,
    GridColumn,
    PlannerSummary,
    PositionedEntry,
    Room,
    RoomRow,
)
from src.room_planner.timegrid import DEFAULT_GRID, TimeGrid, week_dates

log = get_logger(__name__)


def _is_today(day: str, now: datetime | None) -> bool:
    return now is not None and now.date().isoformat() == day


def _visible_rooms(rooms: Iterable[Room], room_ids: Sequence[str] | None) -> list[Room]:
    visible = [room for room in rooms if room.is_bookable]
    if room_ids:
        wanted = set(room_ids)
        visible = [room for room in visible if room.id in wanted]
    return visible


def _of_types(
    activities: Iterable[Activity], activity_types: Iterable[ActivityType] | None
) -> list[Activity]:
    wanted = set(activity_types or ())
    return [a for a in activities if not wanted or a.type in wanted]


def current_activity(activities: Iterable[Activity], now: datetime) -> Activity | None:
    """The first non-cancelled activity running at now, if any."""
    minutes = now.hour * 60 + now.minute
    day = now.date().isoformat()
    for activity in activities:
        if activity.is_cancelled or activity.date != day:
            continue
        if activity.start_minutes <= minutes < activity.end_minutes:
            return activity
    return None


def build_room_rows(
    rooms: Iterable[Room],
    activities: Iterable[Activity],
    day: str,
    *,
    now: datetime | None = None,
    room_ids: Sequence[str] | None = None,
    activity_types: Iterable[ActivityType] | None = None,
    show_now_only: bool = False,
    grid: TimeGrid = DEFAULT_GRID,
) -> list[RoomRow]:
    """Build the room list for a date.

    Only rooms with status AVAILABLE are listed. For today the free slots
    start at the current time and each row knows what is running now.

    Args:
        rooms: Room catalog.
        activities: Aggregated activities (any dates; other dates are ignored).
        day: Displayed date, "YYYY-MM-DD".
        now: Current local time; decides whether day is today.
        room_ids: Only list these rooms.
        activity_types: Only consider these kinds. None or empty means all.
        show_now_only: For today, only list rooms occupied right now.
        grid: Operating window.

    Returns:
        Rows ordered: occupied now, then with activities, then by number of
        activities (descending), then by room name.
    """
    is_today = _is_today(day, now)
    by_room: dict[str, list[Activity]] = {}
    for activity in _of_types(activities, activity_types):
        if activity.room_id is not None and activity.date == day:
            by_room.setdefault(activity.room_id, []).append(activity)

    not_before = f"{now.hour:02d}:{now.minute:02d}" if is_today else None

    rows: list[RoomRow] = []
    for room in _visible_rooms(rooms, room_ids):
        room_activities = sort_by_start(by_room.get(room.id, []))
        active = active_activities(room_activities)
        running = current_activity(room_activities, now) if is_today else None

        rows.append(
            RoomRow(
                room=room,
                activities=room_activities,
                free_slots=compute_free_slots(
                    active,
                    grid.window_start,
                    grid.window_end,
                    not_before=not_before,
                    slot_minutes=grid.slot_minutes,
                ),
                current_activity=running,
                is_occupied_now=running is not None,
                has_activities=bool(active),
                total_activities_count=len(room_activities),
            )
        )

    if show_now_only and is_today:
        return [row for row in rows if row.is_occupied_now]

    rows.sort(
        key=lambda row: (
            not row.is_occupied_now,
            not row.has_activities,
            -row.total_activities_count,
            row.room.name,
        )
    )
    return rows


def planner_summary(rows: Sequence[RoomRow], day: str, now: datetime | None = None) -> PlannerSummary:
    """Counters for the room list header."""
    total = len(rows)
    with_activities = sum(1 for row in rows if row.has_activities)
    occupied = sum(1 for row in rows if row.is_occupied_now)
    return PlannerSummary(
        total_rooms=total,
        with_activities=with_activities,
        without_activities=total - with_activities,
        occupied_now=occupied,
        free_now=total - occupied,
        is_today=_is_today(day, now),
    )


def _positioned(activities: Sequence[Activity], grid: TimeGrid) -> list[PositionedEntry]:
    return [
        PositionedEntry(
            entry=entry,
            position=grid.position_percent(entry.start_time, entry.end_time),
            style=status_style(entry.activity.status),
        )
        for entry in layout_overlapping_events(activities)
    ]


def build_day_columns(
    rooms: Iterable[Room],
    activities: Iterable[Activity],
    day: str,
    *,
    room_ids: Sequence[str] | None = None,
    activity_types: Iterable[ActivityType] | None = None,
    grid: TimeGrid = DEFAULT_GRID,
) -> list[GridColumn]:
    """Day grid: one column per room with laid-out, positioned activities.

    Cancelled activities are kept and positioned; their style tells the
    renderer to mute them.
    """
    by_room: dict[str, list[Activity]] = {}
    for activity in _of_types(activities, activity_types):
        if activity.room_id is not None and activity.date == day:
            by_room.setdefault(activity.room_id, []).append(activity)

    columns = [
        GridColumn(
            column_id=room.id,
            label=room.display_name,
            entries=_positioned(sort_by_start(by_room.get(room.id, [])), grid),
        )
        for room in _visible_rooms(rooms, room_ids)
    ]
    log.debug("day_columns_built", day=day, columns=len(columns))
    return columns


def build_week_columns(
    activities: Iterable[Activity],
    day: str,
    *,
    room_ids: Sequence[str] | None = None,
    activity_types: Iterable[ActivityType] | None = None,
    grid: TimeGrid = DEFAULT_GRID,
) -> list[GridColumn]:
    """Week grid: one column per date, Monday to Sunday, of the week of day.

    Cancelled activities are left out of the week view.
    """
    wanted_rooms = set(room_ids or ())
    by_date: dict[str, list[Activity]] = {d: [] for d in week_dates(day)}
    for activity in _of_types(activities, activity_types):
        if activity.is_cancelled or activity.date not in by_date:
            continue
        if wanted_rooms and activity.room_id not in wanted_rooms:
            continue
        by_date[activity.date].append(activity)

    return [
        GridColumn(column_id=d, label=d, entries=_positioned(sort_by_start(items), grid))
        for d, items in by_date.items()
    ]

