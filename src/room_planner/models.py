"""Pydantic models for room planner data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Input records arrive from the API with camelCase keys; every input model accepts
those through a camelCase alias generator and also takes snake_case names.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.room_planner.timegrid import GridPosition, time_to_minutes

# Rooms under maintenance or closed are hidden from the planner and the search
AVAILABLE_ROOM_STATUS = "AVAILABLE"

_INPUT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    coerce_numbers_to_str=True,
    extra="ignore",
)


class ActivityType(str, Enum):
    """The four kinds of bookable activity. Closed set."""

    CLASS = "class"
    RENTAL = "rental"
    EVENT = "event"
    RESERVATION = "reservation"


class ActivityStatus(str, Enum):
    """Calendar event status shared by all four source kinds."""

    PLANNED = "PLANNED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Source records (as delivered by the calendar API)
# ---------------------------------------------------------------------------
class _SourceRecord(BaseModel):
    model_config = _INPUT_CONFIG

    id: str
    room_id: str | None = None
    date: str  # "YYYY-MM-DD" or an ISO datetime
    start_time: str  # "HH:MM", "HH:MM:SS" or an ISO datetime
    end_time: str
    status: ActivityStatus = ActivityStatus.PLANNED


class StudioRef(BaseModel):
    model_config = _INPUT_CONFIG

    name: str


class GroupRef(BaseModel):
    model_config = _INPUT_CONFIG

    name: str
    studio: StudioRef | None = None


class TeacherRef(BaseModel):
    model_config = _INPUT_CONFIG

    first_name: str
    last_name: str


class EventTypeRef(BaseModel):
    model_config = _INPUT_CONFIG

    name: str
    color: str | None = None


class ClassSession(_SourceRecord):
    """A scheduled class (group, individual or open session)."""

    type: str = "GROUP_CLASS"  # GROUP_CLASS, INDIVIDUAL_CLASS, OPEN_CLASS, EVENT
    group: GroupRef | None = None
    teacher: TeacherRef | None = None


class Rental(_SourceRecord):
    """A room hired out to a client."""

    event_type: str | None = None
    client_name: str | None = None


class Event(_SourceRecord):
    """A one-off event (concert, exhibition opening, ...)."""

    name: str
    event_type: EventTypeRef | None = None


class Reservation(_SourceRecord):
    """A room held without a concrete booking yet."""

    reserved_by: str | None = None


class Room(BaseModel):
    """An entry of the room catalog."""

    model_config = _INPUT_CONFIG

    id: str
    name: str
    number: str | None = None
    type: str | None = None
    area: float | None = None
    capacity: int | None = None
    status: str = AVAILABLE_ROOM_STATUS

    @property
    def is_bookable(self) -> bool:
        return self.status == AVAILABLE_ROOM_STATUS

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.number})" if self.number else self.name


class CalendarSnapshot(BaseModel):
    """Raw calendar payload for one date.

    Records are kept as plain dicts; each one is validated by its adapter so
    a single malformed record can be skipped without losing the rest.
    """

    model_config = _INPUT_CONFIG

    schedules: list[dict[str, Any]] = Field(default_factory=list)
    rentals: list[dict[str, Any]] = Field(default_factory=list)
    events: list[dict[str, Any]] = Field(default_factory=list)
    reservations: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Normalised and derived values
# ---------------------------------------------------------------------------
class StatusStyle(BaseModel):
    """Visual semantics of a status, identical for every consumer."""

    model_config = {"frozen": True}

    label: str
    semantic: str  # success, warning, error, info, neutral
    muted: bool = False
    strikethrough: bool = False
    opacity: float = 1.0


class Activity(BaseModel):
    """A normalised, time-bounded bookable unit regardless of source kind."""

    model_config = {"frozen": True}

    id: str  # "<type>:<source id>", unique across all four kinds
    source_id: str
    type: ActivityType
    room_id: str | None = None  # None for activities not placed in a room yet
    date: str  # "YYYY-MM-DD"
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM", strictly after start_time
    title: str
    subtitle: str | None = None
    status: ActivityStatus
    color: str
    original_data: Any = Field(default=None, exclude=True, repr=False)

    @property
    def is_cancelled(self) -> bool:
        return self.status == ActivityStatus.CANCELLED

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


class TimeSlot(BaseModel):
    """A free interval inside the operating window."""

    model_config = {"frozen": True}

    start_time: str
    end_time: str
    duration_minutes: int

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


class LayoutEntry(BaseModel):
    """An activity with its lateral placement among overlapping activities."""

    model_config = {"frozen": True}

    activity: Activity
    column: int = Field(ge=0)
    total_columns: int = Field(ge=1)

    @property
    def id(self) -> str:
        return self.activity.id

    @property
    def start_time(self) -> str:
        return self.activity.start_time

    @property
    def end_time(self) -> str:
        return self.activity.end_time


class SelectionState(BaseModel):
    """An in-progress drag over one grid column."""

    column_id: str  # room id in the day view, date in the week view
    start_row: int
    end_row: int

    @property
    def row_bounds(self) -> tuple[int, int]:
        return min(self.start_row, self.end_row), max(self.start_row, self.end_row)


class SelectionRequest(BaseModel):
    """A completed selection: create an activity in this interval."""

    model_config = {"frozen": True}

    column_id: str
    start_time: str
    end_time: str


class FreeSlotResult(BaseModel):
    """Outcome of looking for room to paste or move an activity."""

    found: bool
    start_time: str
    end_time: str
    shifted: bool = False
    shift_direction: str | None = None  # "forward" or "backward"
    shift_minutes: int | None = None


class AvailabilityResult(BaseModel):
    """Availability of one room for a searched window."""

    room: Room
    is_available: bool
    conflicting_activities: list[Activity] = Field(default_factory=list)
    available_slots: list[TimeSlot] = Field(default_factory=list)
    first_free_slot: TimeSlot | None = None
    activities_count: int = 0

    @property
    def conflicting_activity(self) -> Activity | None:
        return self.conflicting_activities[0] if self.conflicting_activities else None


class RoomRow(BaseModel):
    """One room of the planner's list view for a date."""

    room: Room
    activities: list[Activity] = Field(default_factory=list)
    free_slots: list[TimeSlot] = Field(default_factory=list)
    current_activity: Activity | None = None
    is_occupied_now: bool = False  # only meaningful for today
    has_activities: bool = False  # any non-cancelled activity on the date
    total_activities_count: int = 0


class PositionedEntry(BaseModel):
    """A layout entry with everything a renderer needs to draw its card."""

    entry: LayoutEntry
    position: GridPosition
    style: StatusStyle


class GridColumn(BaseModel):
    """One column of the grid: a room (day view) or a date (week view)."""

    column_id: str
    label: str
    entries: list[PositionedEntry] = Field(default_factory=list)


class PlannerSummary(BaseModel):
    """Counters shown above the room list."""

    total_rooms: int
    with_activities: int
    without_activities: int
    occupied_now: int  # only meaningful for today
    free_now: int
    is_today: bool
