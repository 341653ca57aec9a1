"""Room availability search and free-slot lookup.

search_availability() answers "which rooms are free on this date between
these times, and if not, what is in the way". find_free_slot() finds the
nearest place to paste or move an activity into a room's day.
"""

from collections.abc import Iterable, Sequence

from src.room_planner.aggregator import sort_by_start
from src.room_planner.free_slots import active_activities, compute_free_slots
from src.room_planner.layout import intervals_overlap
from src.room_planner.logging import get_logger
from src.room_planner.models import Activity, AvailabilityResult, FreeSlotResult, Room
from src.room_planner.timegrid import DEFAULT_GRID, TimeGrid, minutes_to_time, time_to_minutes

log = get_logger(__name__)


def _window_overlaps(activity: Activity, start: int, end: int) -> bool:
    return intervals_overlap(activity.start_minutes, activity.end_minutes, start, end)


def find_conflicts(
    activities: Iterable[Activity], time_start: str, time_end: str
) -> list[Activity]:
    """Return the non-cancelled activities overlapping [time_start, time_end).

    Uses the same half-open overlap rule as the layout engine: an activity
    ending exactly at time_start (or starting at time_end) is not a conflict.
    """
    start = time_to_minutes(time_start)
    end = time_to_minutes(time_end)
    return [a for a in activities if not a.is_cancelled and _window_overlaps(a, start, end)]


def _room_matches(
    room: Room,
    *,
    room_id: str | None,
    room_type: str | None,
    min_area: float | None,
    min_capacity: int | None,
) -> bool:
    if room_id and room.id != room_id:
        return False
    if room_type and room.type != room_type:
        return False
    if min_area and (room.area or 0) < min_area:
        return False
    if min_capacity and (room.capacity or 0) < min_capacity:
        return False
    return True


def search_availability(
    date: str,
    time_start: str,
    time_end: str,
    rooms: Sequence[Room],
    all_activities: Iterable[Activity],
    *,
    only_available: bool = False,
    room_id: str | None = None,
    room_type: str | None = None,
    min_area: float | None = None,
    min_capacity: int | None = None,
    grid: TimeGrid = DEFAULT_GRID,
) -> list[AvailabilityResult]:
    """Report, per room, whether [time_start, time_end) is free on date.

    Conflicts are computed for every room first; only_available is applied
    afterwards so the explanation of why a room is busy is never lost during
    the computation itself.

    Args:
        date: Day to check, "YYYY-MM-DD".
        time_start: Window start, "HH:MM".
        time_end: Window end, "HH:MM".
        rooms: Room catalog. Only rooms with status AVAILABLE are searched.
        all_activities: Activities of any rooms and dates.
        only_available: Drop rooms with at least one conflict from the result.
        room_id: Restrict the search to one room.
        room_type: Restrict to rooms of this type.
        min_area: Restrict to rooms at least this large.
        min_capacity: Restrict to rooms holding at least this many people.
        grid: Operating window used for the free-slot suggestions.

    Returns:
        Results with available rooms first, then rooms with fewer activities.
    """
    by_room: dict[str, list[Activity]] = {}
    for activity in all_activities:
        if activity.room_id is not None and activity.date == date:
            by_room.setdefault(activity.room_id, []).append(activity)

    search_start = time_to_minutes(time_start)
    search_end = time_to_minutes(time_end)

    results: list[AvailabilityResult] = []
    for room in rooms:
        if not room.is_bookable:
            continue
        if not _room_matches(
            room,
            room_id=room_id,
            room_type=room_type,
            min_area=min_area,
            min_capacity=min_capacity,
        ):
            continue

        room_activities = sort_by_start(by_room.get(room.id, []))
        conflicts = find_conflicts(room_activities, time_start, time_end)
        free_slots = compute_free_slots(
            active_activities(room_activities), grid.window_start, grid.window_end
        )
        containing = [
            slot
            for slot in free_slots
            if time_to_minutes(slot.start_time) <= search_start
            and time_to_minutes(slot.end_time) >= search_end
        ]

        results.append(
            AvailabilityResult(
                room=room,
                is_available=not conflicts,
                conflicting_activities=conflicts,
                available_slots=containing,
                first_free_slot=containing[0] if containing else None,
                activities_count=len(room_activities),
            )
        )

    if only_available:
        results = [r for r in results if r.is_available]

    # Stable sort keeps catalog order among equals
    results.sort(key=lambda r: (not r.is_available, r.activities_count))

    log.info(
        "availability_searched",
        date=date,
        time_start=time_start,
        time_end=time_end,
        rooms=len(results),
        available=sum(1 for r in results if r.is_available),
    )
    return results


def find_free_slot(
    activities: Iterable[Activity],
    preferred_start: str,
    duration_minutes: int,
    *,
    exclude_id: str | None = None,
    grid: TimeGrid = DEFAULT_GRID,
) -> FreeSlotResult:
    """Find where an activity of the given length fits into a room's day.

    Tries the preferred start first, then later starts in slot steps, then
    earlier ones. Cancelled activities and the activity being moved
    (exclude_id) do not block.
    """
    blocking = [a for a in activities if not a.is_cancelled and a.id != exclude_id]
    preferred = time_to_minutes(preferred_start)
    window_start = grid.window_start_minutes
    window_end = grid.window_end_minutes

    def is_free(start: int) -> bool:
        end = start + duration_minutes
        if start < window_start or end > window_end:
            return False
        return not any(_window_overlaps(a, start, end) for a in blocking)

    def found(start: int, direction: str | None = None, offset: int | None = None) -> FreeSlotResult:
        return FreeSlotResult(
            found=True,
            start_time=minutes_to_time(start),
            end_time=minutes_to_time(start + duration_minutes),
            shifted=direction is not None,
            shift_direction=direction,
            shift_minutes=offset,
        )

    if is_free(preferred):
        return found(preferred)

    steps = range(grid.slot_minutes, grid.window_total_minutes + 1, grid.slot_minutes)

    for offset in steps:
        candidate = preferred + offset
        if candidate + duration_minutes > window_end:
            break
        if is_free(candidate):
            return found(candidate, "forward", offset)

    for offset in steps:
        candidate = preferred - offset
        if candidate < window_start:
            break
        if is_free(candidate):
            return found(candidate, "backward", offset)

    log.debug(
        "free_slot_not_found",
        preferred_start=preferred_start,
        duration_minutes=duration_minutes,
    )
    return FreeSlotResult(
        found=False,
        start_time=preferred_start,
        end_time=minutes_to_time(preferred + duration_minutes),
    )
