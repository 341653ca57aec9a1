"""Free interval computation for one room on one day."""

from collections.abc import Iterable, Sequence
from math import ceil

from src.room_planner.models import Activity, TimeSlot
from src.room_planner.timegrid import minutes_to_time, time_to_minutes


def active_activities(activities: Iterable[Activity]) -> list[Activity]:
    """Drop cancelled activities; a cancelled booking does not occupy the room."""
    return [a for a in activities if not a.is_cancelled]


def _slot(start: int, end: int) -> TimeSlot:
    return TimeSlot(
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        duration_minutes=end - start,
    )


def compute_free_slots(
    activities: Sequence[Activity],
    window_start: str,
    window_end: str,
    *,
    not_before: str | None = None,
    slot_minutes: int = 30,
) -> list[TimeSlot]:
    """Return the free intervals of [window_start, window_end).

    Preconditions (not re-checked): the activities belong to one room and one
    day, are sorted by start time and contain no cancelled entries (see
    active_activities()).

    A cursor walks the window; every gap before the next activity becomes a
    free slot and the cursor advances to max(cursor, activity end), so
    overlapping, nested and back-to-back activities never produce zero-width
    or overlapping slots. Together with the occupied intervals the result
    partitions the window exactly.

    Args:
        activities: Sorted, non-cancelled activities of one room and day.
        window_start: Opening time, "HH:MM".
        window_end: Closing time, "HH:MM".
        not_before: Current time when the day is today. The cursor starts at
            this time rounded up to the next slot boundary, so time that has
            already passed is not offered.
        slot_minutes: Rounding step for not_before.
    """
    start = time_to_minutes(window_start)
    end = time_to_minutes(window_end)

    cursor = start
    if not_before is not None:
        rounded = ceil(time_to_minutes(not_before) / slot_minutes) * slot_minutes
        cursor = max(cursor, rounded)

    free: list[TimeSlot] = []
    for activity in activities:
        if cursor >= end:
            break
        activity_start = min(activity.start_minutes, end)
        if activity_start > cursor:
            free.append(_slot(cursor, activity_start))
        cursor = max(cursor, activity.end_minutes)

    if cursor < end:
        free.append(_slot(cursor, end))
    return free


def occupied_intervals(activities: Sequence[Activity]) -> list[tuple[int, int]]:
    """Merge sorted activities into disjoint (start, end) minute intervals."""
    merged: list[tuple[int, int]] = []
    for activity in activities:
        start, end = activity.start_minutes, activity.end_minutes
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged
