"""Coordinate mapping for the room grid.

The grid covers a fixed daily operating window [start_hour, end_hour) split
into equal rows of slot_minutes each. Everything here is a pure function of
wall-clock strings ("HH:MM"), row indices and percentages; pixels belong to
the renderer.

Time strings are assumed well-formed. The aggregation adapters are the only
place that normalises raw input, so a malformed string reaching this module
is a programmer error and surfaces as the ValueError int() raises.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from pydantic import BaseModel


def time_to_minutes(time: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = time.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class GridPosition(BaseModel):
    """Vertical placement of an activity card, as a share of the window."""

    model_config = {"frozen": True}

    top: float  # percent from the top of the window
    height: float  # percent of the window height
    row_start: int  # first row the card touches
    row_span: int  # rows the card covers (rounded up)


class DropPosition(BaseModel):
    """Where a dragged activity lands after snapping to the grid."""

    model_config = {"frozen": True}

    start_time: str
    end_time: str
    row: int


class TimeGrid(BaseModel):
    """Operating window split into rows of slot_minutes.

    Defaults match the room planner: 08:00-22:00 in 30 minute rows (28 rows).
    """

    model_config = {"frozen": True}

    start_hour: int = 8
    end_hour: int = 22
    slot_minutes: int = 30

    @property
    def window_start_minutes(self) -> int:
        return self.start_hour * 60

    @property
    def window_end_minutes(self) -> int:
        return self.end_hour * 60

    @property
    def window_total_minutes(self) -> int:
        return self.window_end_minutes - self.window_start_minutes

    @property
    def window_start(self) -> str:
        return minutes_to_time(self.window_start_minutes)

    @property
    def window_end(self) -> str:
        return minutes_to_time(self.window_end_minutes)

    @property
    def total_rows(self) -> int:
        return self.window_total_minutes // self.slot_minutes

    def clamp_minutes(self, minutes: int) -> int:
        """Clamp a minute value into [window start, window end]."""
        return max(self.window_start_minutes, min(minutes, self.window_end_minutes))

    def position_percent(self, start_time: str, end_time: str) -> GridPosition:
        """Place an activity on the grid.

        Both endpoints are clamped into the window first. An activity entirely
        outside the window collapses to zero height but still gets a position;
        the renderer decides whether to show it.
        """
        start = self.clamp_minutes(time_to_minutes(start_time))
        end = self.clamp_minutes(time_to_minutes(end_time))
        end = max(start, end)
        total = self.window_total_minutes
        offset = start - self.window_start_minutes

        row_start = min(offset // self.slot_minutes, max(self.total_rows - 1, 0))
        row_span = math.ceil((end - start) / self.slot_minutes)

        return GridPosition(
            top=offset / total * 100,
            height=(end - start) / total * 100,
            row_start=row_start,
            row_span=row_span,
        )

    def row_to_time(self, row: int) -> tuple[str, str]:
        """Return the (start, end) wall-clock interval a row represents."""
        minutes = self.window_start_minutes + row * self.slot_minutes
        return minutes_to_time(minutes), minutes_to_time(minutes + self.slot_minutes)

    def time_to_row(self, time: str) -> int:
        """Return the row containing the given time.

        Lossy: any time inside a row maps to that row, so converting back with
        row_to_time() lands at most one slot earlier.
        """
        return (time_to_minutes(time) - self.window_start_minutes) // self.slot_minutes

    def is_within_window(self, time: str) -> bool:
        """True if the time falls in [window start, window end]."""
        minutes = time_to_minutes(time)
        return self.window_start_minutes <= minutes <= self.window_end_minutes

    def time_labels(self) -> list[str]:
        """Start time of every row, top to bottom."""
        return [self.row_to_time(row)[0] for row in range(self.total_rows)]

    def drop_position(self, row: float, duration_minutes: int) -> DropPosition:
        """Snap a dragged activity to a row and keep it inside the window.

        The row is rounded to the nearest whole row and clamped to the grid.
        If the activity would run past the end of the window it is shifted
        earlier so it keeps its duration, as long as it still starts inside
        the window; otherwise its end is cut at the window end.

        Args:
            row: Fractional row under the pointer (pixel offset / row height).
            duration_minutes: Length of the dragged activity.
        """
        snapped = max(0, min(round(row), self.total_rows - 1))
        start = self.window_start_minutes + snapped * self.slot_minutes
        end = start + duration_minutes

        if end > self.window_end_minutes:
            end = self.window_end_minutes
            shifted_start = end - duration_minutes
            if shifted_start >= self.window_start_minutes:
                return DropPosition(
                    start_time=minutes_to_time(shifted_start),
                    end_time=minutes_to_time(end),
                    row=(shifted_start - self.window_start_minutes) // self.slot_minutes,
                )

        return DropPosition(
            start_time=minutes_to_time(start),
            end_time=minutes_to_time(end),
            row=snapped,
        )


DEFAULT_GRID = TimeGrid()


def week_start(day: str) -> str:
    """Monday of the week containing day ("YYYY-MM-DD")."""
    d = date.fromisoformat(day)
    return (d - timedelta(days=d.weekday())).isoformat()


def week_dates(day: str) -> list[str]:
    """The seven dates, Monday to Sunday, of the week containing day."""
    monday = date.fromisoformat(week_start(day))
    return [(monday + timedelta(days=offset)).isoformat() for offset in range(7)]
