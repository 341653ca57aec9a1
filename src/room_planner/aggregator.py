"""Normalise the four source record kinds into Activity values.

Each source kind (class session, rental, event, reservation) has one adapter.
Adapters are the only place raw input is validated: they parse the record,
normalise times to "HH:MM" and dates to "YYYY-MM-DD", reject non-positive
durations and namespace the id by kind. Everything downstream (free slots,
layout, availability) can then assume clean input.

Colours and status styles come from lookup tables so every consumer sees the
same visual semantics for the same status.
"""

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from src.room_planner.errors import MalformedRecordError
from src.room_planner.logging import get_logger
from src.room_planner.models import (
    Activity,
    ActivityStatus,
    ActivityType,
    CalendarSnapshot,
    ClassSession,
    Event,
    Rental,
    Reservation,
    StatusStyle,
)
from src.room_planner.timegrid import time_to_minutes

log = get_logger(__name__)

# Colour per class session type, plus one per non-class activity kind
ACTIVITY_COLORS: dict[str, str] = {
    "GROUP_CLASS": "#3b82f6",  # blue
    "INDIVIDUAL_CLASS": "#10b981",  # green
    "OPEN_CLASS": "#f59e0b",  # amber
    "EVENT": "#8b5cf6",  # purple, class sessions of type EVENT
    ActivityType.RENTAL.value: "#dc2626",  # red
    ActivityType.EVENT.value: "#8b5cf6",  # purple
    ActivityType.RESERVATION.value: "#f59e0b",  # amber
}

ACTIVITY_TYPE_LABELS: dict[ActivityType, str] = {
    ActivityType.CLASS: "Class",
    ActivityType.RENTAL: "Rental",
    ActivityType.EVENT: "Event",
    ActivityType.RESERVATION: "Reservation",
}

CLASS_SESSION_LABELS: dict[str, str] = {
    "GROUP_CLASS": "Group class",
    "INDIVIDUAL_CLASS": "Individual class",
    "OPEN_CLASS": "Open class",
    "EVENT": "Event",
}

STATUS_STYLES: dict[ActivityStatus, StatusStyle] = {
    ActivityStatus.PLANNED: StatusStyle(label="Planned", semantic="info"),
    ActivityStatus.ONGOING: StatusStyle(label="Ongoing", semantic="success"),
    ActivityStatus.COMPLETED: StatusStyle(label="Completed", semantic="neutral"),
    ActivityStatus.CANCELLED: StatusStyle(
        label="Cancelled",
        semantic="error",
        muted=True,
        strikethrough=True,
        opacity=0.6,
    ),
}

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")
_HHMMSS = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")


def status_style(status: ActivityStatus) -> StatusStyle:
    """Look up the visual style of a status."""
    return STATUS_STYLES[status]


def parse_time_of_day(value: str) -> str:
    """Normalise a time value to "HH:MM".

    Accepts "HH:MM", "HH:MM:SS" and ISO-8601 datetimes (with a "T" or a space
    between date and time). For datetimes only the
    UTC time of day is kept; the date part is discarded in favour of the
    record's own date field.

    Raises:
        ValueError: If the value matches none of the formats or is out of range.
    """
    if not value:
        raise ValueError("empty time value")

    match = _HHMM.match(value) or _HHMMSS.match(value)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
    elif "T" in value or " " in value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        hours, minutes = parsed.hour, parsed.minute
    else:
        raise ValueError(f"unrecognised time {value!r}")

    if hours > 23 or minutes > 59:
        raise ValueError(f"time out of range {value!r}")
    return f"{hours:02d}:{minutes:02d}"


def parse_calendar_date(value: str) -> str:
    """Normalise a date value ("YYYY-MM-DD" or ISO datetime) to "YYYY-MM-DD"."""
    return date.fromisoformat(value[:10]).isoformat()


def _normalise(
    record_type: ActivityType,
    raw: dict[str, Any] | BaseModel,
    model: type[BaseModel],
) -> tuple[Any, str, str, str]:
    """Validate a raw record and return (record, date, start, end).

    Raises:
        MalformedRecordError: On schema errors, unparseable values or a
            non-positive duration.
    """
    record_id = str(raw.get("id", "")) if isinstance(raw, dict) else str(getattr(raw, "id", ""))
    try:
        record = raw if isinstance(raw, model) else model.model_validate(raw)
        day = parse_calendar_date(record.date)
        start = parse_time_of_day(record.start_time)
        end = parse_time_of_day(record.end_time)
    except (ValidationError, ValueError, TypeError, AttributeError) as e:
        raise MalformedRecordError(
            f"{record_type.value} {record_id!r}: {e}",
            record_type=record_type.value,
            record_id=record_id,
        ) from e

    if time_to_minutes(end) <= time_to_minutes(start):
        raise MalformedRecordError(
            f"{record_type.value} {record_id!r}: end {end} is not after start {start}",
            record_type=record_type.value,
            record_id=record_id,
        )
    return record, day, start, end


def class_session_to_activity(raw: dict[str, Any] | ClassSession) -> Activity:
    """Adapt a class session: titled by group, subtitled by teacher or studio."""
    record, day, start, end = _normalise(ActivityType.CLASS, raw, ClassSession)

    teacher_name = None
    if record.teacher:
        teacher_name = f"{record.teacher.last_name} {record.teacher.first_name[:1]}."
    studio_name = record.group.studio.name if record.group and record.group.studio else None
    group_name = record.group.name if record.group else None

    return Activity(
        id=f"{ActivityType.CLASS.value}:{record.id}",
        source_id=record.id,
        type=ActivityType.CLASS,
        room_id=record.room_id,
        date=day,
        start_time=start,
        end_time=end,
        title=group_name or CLASS_SESSION_LABELS.get(record.type, ACTIVITY_TYPE_LABELS[ActivityType.CLASS]),
        subtitle=teacher_name or studio_name,
        status=record.status,
        color=ACTIVITY_COLORS.get(record.type, ACTIVITY_COLORS["GROUP_CLASS"]),
        original_data=record,
    )


def rental_to_activity(raw: dict[str, Any] | Rental) -> Activity:
    """Adapt a rental: titled by event type, subtitled by client."""
    record, day, start, end = _normalise(ActivityType.RENTAL, raw, Rental)
    return Activity(
        id=f"{ActivityType.RENTAL.value}:{record.id}",
        source_id=record.id,
        type=ActivityType.RENTAL,
        room_id=record.room_id,
        date=day,
        start_time=start,
        end_time=end,
        title=record.event_type or ACTIVITY_TYPE_LABELS[ActivityType.RENTAL],
        subtitle=record.client_name,
        status=record.status,
        color=ACTIVITY_COLORS[ActivityType.RENTAL.value],
        original_data=record,
    )


def event_to_activity(raw: dict[str, Any] | Event) -> Activity:
    """Adapt an event: the event type supplies subtitle and colour."""
    record, day, start, end = _normalise(ActivityType.EVENT, raw, Event)
    event_type = record.event_type
    return Activity(
        id=f"{ActivityType.EVENT.value}:{record.id}",
        source_id=record.id,
        type=ActivityType.EVENT,
        room_id=record.room_id,
        date=day,
        start_time=start,
        end_time=end,
        title=record.name,
        subtitle=event_type.name if event_type else None,
        status=record.status,
        color=(event_type.color if event_type and event_type.color else None)
        or ACTIVITY_COLORS[ActivityType.EVENT.value],
        original_data=record,
    )


def reservation_to_activity(raw: dict[str, Any] | Reservation) -> Activity:
    """Adapt a reservation: subtitled by whoever holds it."""
    record, day, start, end = _normalise(ActivityType.RESERVATION, raw, Reservation)
    return Activity(
        id=f"{ActivityType.RESERVATION.value}:{record.id}",
        source_id=record.id,
        type=ActivityType.RESERVATION,
        room_id=record.room_id,
        date=day,
        start_time=start,
        end_time=end,
        title=ACTIVITY_TYPE_LABELS[ActivityType.RESERVATION],
        subtitle=record.reserved_by,
        status=record.status,
        color=ACTIVITY_COLORS[ActivityType.RESERVATION.value],
        original_data=record,
    )


ADAPTERS: dict[ActivityType, Callable[[Any], Activity]] = {
    ActivityType.CLASS: class_session_to_activity,
    ActivityType.RENTAL: rental_to_activity,
    ActivityType.EVENT: event_to_activity,
    ActivityType.RESERVATION: reservation_to_activity,
}


def _adapt_all(
    activity_type: ActivityType, records: Iterable[Any], skipped: list[MalformedRecordError]
) -> list[Activity]:
    adapter = ADAPTERS[activity_type]
    activities: list[Activity] = []
    for raw in records:
        try:
            activities.append(adapter(raw))
        except MalformedRecordError as e:
            log.warning(
                "activity_skipped",
                activity_type=e.record_type,
                record_id=e.record_id,
                reason=str(e),
            )
            skipped.append(e)
    return activities


def aggregate_activities(
    snapshot: CalendarSnapshot,
    activity_types: Iterable[ActivityType] | None = None,
) -> list[Activity]:
    """Merge the four record lists of a snapshot into one list of activities.

    Activities without a room are kept; room-scoped computations filter them
    out themselves. Malformed records are logged and omitted.

    Args:
        snapshot: Raw calendar payload.
        activity_types: Kinds to include. None or empty means all kinds.

    Returns:
        Activities in source order: classes, rentals, events, reservations.
    """
    wanted = set(activity_types or ()) or set(ActivityType)
    sources = (
        (ActivityType.CLASS, snapshot.schedules),
        (ActivityType.RENTAL, snapshot.rentals),
        (ActivityType.EVENT, snapshot.events),
        (ActivityType.RESERVATION, snapshot.reservations),
    )

    skipped: list[MalformedRecordError] = []
    activities: list[Activity] = []
    for activity_type, records in sources:
        if activity_type in wanted:
            activities.extend(_adapt_all(activity_type, records, skipped))

    log.debug(
        "activities_aggregated",
        total=len(activities),
        skipped=len(skipped),
        types=sorted(t.value for t in wanted),
    )
    return activities


def sort_by_start(activities: Iterable[Activity]) -> list[Activity]:
    """Sort activities by start time, then end time, then id."""
    return sorted(activities, key=lambda a: (a.start_time, a.end_time, a.id))


def group_by_room(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    """Group activities by room id, each group sorted by start time.

    Activities without a room are left out.
    """
    by_room: dict[str, list[Activity]] = {}
    for activity in activities:
        if activity.room_id is None:
            continue
        by_room.setdefault(activity.room_id, []).append(activity)
    return {room_id: sort_by_start(items) for room_id, items in by_room.items()}
