"""Side-by-side layout of overlapping activities.

Activities in one grid column (a room on a day, or a day in the week view)
that overlap in time are split into lateral columns so they render without
covering each other. Assignment is greedy interval colouring inside each
overlap cluster.
"""

from collections.abc import Sequence

from src.room_planner.models import Activity, LayoutEntry


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """True if half-open minute intervals [a_start, a_end) and [b_start, b_end) intersect."""
    return a_start < b_end and b_start < a_end


def overlaps(a: Activity, b: Activity) -> bool:
    """True if the two activities intersect in time. Touching ends do not."""
    return intervals_overlap(a.start_minutes, a.end_minutes, b.start_minutes, b.end_minutes)


def _clusters(ordered: Sequence[Activity]) -> list[list[Activity]]:
    """Split start-sorted activities into maximal transitively-overlapping runs."""
    clusters: list[list[Activity]] = []
    current: list[Activity] = []
    cluster_end = 0

    for activity in ordered:
        if current and activity.start_minutes < cluster_end:
            current.append(activity)
            cluster_end = max(cluster_end, activity.end_minutes)
        else:
            if current:
                clusters.append(current)
            current = [activity]
            cluster_end = activity.end_minutes

    if current:
        clusters.append(current)
    return clusters


def layout_overlapping_events(activities: Sequence[Activity]) -> list[LayoutEntry]:
    """Assign every activity a column and a column count.

    Activities are ordered by (start, end, id) so the result is the same on
    every re-render. Within a cluster each activity takes the lowest column
    whose last activity has ended by its start, or opens a new column. All
    members of a cluster share total_columns; separate clusters are sized
    independently, so an isolated activity renders full width.

    Precondition: every activity has a positive duration.

    Returns:
        Layout entries in (start, end, id) order.
    """
    ordered = sorted(activities, key=lambda a: (a.start_minutes, a.end_minutes, a.id))

    entries: list[LayoutEntry] = []
    for cluster in _clusters(ordered):
        column_ends: list[int] = []
        assigned: list[int] = []

        for activity in cluster:
            for column, column_end in enumerate(column_ends):
                if column_end <= activity.start_minutes:
                    column_ends[column] = activity.end_minutes
                    break
            else:
                column = len(column_ends)
                column_ends.append(activity.end_minutes)
            assigned.append(column)

        total_columns = len(column_ends)
        entries.extend(
            LayoutEntry(activity=activity, column=column, total_columns=total_columns)
            for activity, column in zip(cluster, assigned)
        )
    return entries
