"""The "now" line on the room grid.

current_time_position() is the pure computation. CurrentTimeIndicator owns
the once-a-minute refresh as an asyncio task scoped to an ``async with``
block, so the timer is released on every exit path of the owning view.
"""

import asyncio
import contextlib
from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from src.room_planner.config import get_config
from src.room_planner.logging import get_logger
from src.room_planner.timegrid import DEFAULT_GRID, TimeGrid, week_dates

log = get_logger(__name__)


def current_time_position(now: datetime, day: str, grid: TimeGrid = DEFAULT_GRID) -> float | None:
    """Percent offset of now within the window, or None if there is no line.

    There is no line when day is not today, or when now is before opening or
    after closing; the position is never clamped to an edge.
    """
    if now.date().isoformat() != day:
        return None
    minutes = now.hour * 60 + now.minute
    if minutes < grid.window_start_minutes or minutes > grid.window_end_minutes:
        return None
    return (minutes - grid.window_start_minutes) / grid.window_total_minutes * 100


def is_current_week(day: str, today: date) -> bool:
    """True if the week containing day also contains today."""
    return today.isoformat() in week_dates(day)


class CurrentTimeIndicator:
    """Keeps the "now" position of a displayed date up to date.

    Usage:
        async with CurrentTimeIndicator("2026-03-02", on_update=view.set_now_line):
            ...  # view is mounted; on_update fires now and once a minute

    Args:
        day: Displayed date, or any date of the displayed week when week=True.
        on_update: Receives the new position (percent) or None.
        grid: Operating window.
        refresh_seconds: Interval between recomputations.
        week: Week view; the line shows on whichever day is today.
        now_fn: Clock, injectable for tests. Defaults to the wall clock in
            timezone_name.
        timezone_name: Timezone that decides what "today" is. Defaults to
            the configured planner timezone.
    """

    def __init__(
        self,
        day: str,
        on_update: Callable[[float | None], None],
        *,
        grid: TimeGrid = DEFAULT_GRID,
        refresh_seconds: float = 60.0,
        week: bool = False,
        now_fn: Callable[[], datetime] | None = None,
        timezone_name: str | None = None,
    ) -> None:
        self.day = day
        self.grid = grid
        self.refresh_seconds = refresh_seconds
        self.week = week
        self._on_update = on_update
        self.timezone_name = timezone_name or get_config().timezone_name
        self._now_fn = now_fn or (lambda: datetime.now(ZoneInfo(self.timezone_name)))
        self._task: asyncio.Task | None = None
        self.position: float | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _shows_today(self, today: date) -> bool:
        if self.week:
            return is_current_week(self.day, today)
        return self.day == today.isoformat()

    def refresh(self) -> float | None:
        """Recompute the position once and report it."""
        now = self._now_fn()
        if self._shows_today(now.date()):
            self.position = current_time_position(now, now.date().isoformat(), self.grid)
        else:
            self.position = None
        self._on_update(self.position)
        return self.position

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_seconds)
            try:
                self.refresh()
            except Exception as e:
                log.warning("now_indicator_refresh_failed", error=str(e), day=self.day)

    async def __aenter__(self) -> "CurrentTimeIndicator":
        # Re-entering restarts the timer
        await self.aclose()
        if not self._shows_today(self._now_fn().date()):
            self.position = None
            self._on_update(None)
            return self

        self.refresh()
        self._task = asyncio.create_task(self._run())
        log.debug("now_indicator_started", day=self.day, refresh_seconds=self.refresh_seconds)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop the refresh task. Safe to call more than once."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        log.debug("now_indicator_stopped", day=self.day)
