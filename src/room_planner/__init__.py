"""Room planner scheduling engine.

Turns a calendar snapshot (class sessions, rentals, events, reservations)
into the room planner's views: free slots per room, side-by-side layout of
overlapping activities, availability search, drag selection and the "now"
line.
"""

from src.room_planner.aggregator import aggregate_activities
from src.room_planner.availability import find_conflicts, find_free_slot, search_availability
from src.room_planner.clock import CurrentTimeIndicator, current_time_position
from src.room_planner.free_slots import compute_free_slots
from src.room_planner.layout import layout_overlapping_events, overlaps
from src.room_planner.models import (
    Activity,
    ActivityStatus,
    ActivityType,
    CalendarSnapshot,
    LayoutEntry,
    Room,
    TimeSlot,
)
from src.room_planner.selection import SelectionStateMachine
from src.room_planner.timegrid import TimeGrid

__all__ = [
    "Activity",
    "ActivityStatus",
    "ActivityType",
    "CalendarSnapshot",
    "CurrentTimeIndicator",
    "LayoutEntry",
    "Room",
    "SelectionStateMachine",
    "TimeGrid",
    "TimeSlot",
    "aggregate_activities",
    "compute_free_slots",
    "current_time_position",
    "find_conflicts",
    "find_free_slot",
    "layout_overlapping_events",
    "overlaps",
    "search_availability",
]
