"""Click-and-drag interval selection over grid cells.

A two-state machine: IDLE until a cell is pressed, SELECTING while the
pointer drags over cells of the same column, and back to IDLE on release.
Release always completes the gesture, including a release reported by a
global pointer-up outside the grid, so the machine never stays stuck in
SELECTING. There is no cancel gesture.
"""

from collections.abc import Callable
from enum import Enum

from src.room_planner.logging import get_logger
from src.room_planner.models import SelectionRequest, SelectionState
from src.room_planner.timegrid import DEFAULT_GRID, TimeGrid

log = get_logger(__name__)


class SelectionPhase(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"


class SelectionStateMachine:
    """Tracks one drag gesture over a grid and reports the chosen interval.

    Columns are rooms in the day view and dates in the week view; the machine
    treats the column id as opaque.

    Args:
        on_select: Called once per completed gesture with the selected
            interval. The consumer turns it into a create-activity request.
        grid: Grid used to translate rows into wall-clock times.
    """

    def __init__(
        self,
        on_select: Callable[[SelectionRequest], None],
        grid: TimeGrid = DEFAULT_GRID,
    ) -> None:
        self._on_select = on_select
        self._grid = grid
        self._selection: SelectionState | None = None

    @property
    def phase(self) -> SelectionPhase:
        return SelectionPhase.IDLE if self._selection is None else SelectionPhase.SELECTING

    @property
    def selection(self) -> SelectionState | None:
        return self._selection

    def press(self, column_id: str, row: int) -> None:
        """Start a gesture on a cell. A press while selecting restarts it."""
        self._selection = SelectionState(column_id=column_id, start_row=row, end_row=row)

    def enter(self, column_id: str, row: int) -> None:
        """Move the free end of the selection. Other columns are ignored."""
        if self._selection is None or self._selection.column_id != column_id:
            return
        self._selection.end_row = row

    def release(self) -> SelectionRequest | None:
        """Finish the gesture and emit the selected interval.

        Safe to call while idle (a stray global pointer-up): nothing is emitted.

        Returns:
            The emitted request, or None if no gesture was in progress.
        """
        selection = self._selection
        if selection is None:
            return None

        # Reset first so a failing callback cannot leave the gesture open
        self._selection = None

        first_row, last_row = selection.row_bounds
        start_time, _ = self._grid.row_to_time(first_row)
        _, end_time = self._grid.row_to_time(last_row)
        request = SelectionRequest(
            column_id=selection.column_id,
            start_time=start_time,
            end_time=end_time,
        )
        log.debug(
            "selection_completed",
            column_id=request.column_id,
            start_time=start_time,
            end_time=end_time,
        )
        self._on_select(request)
        return request

    def is_cell_selected(self, column_id: str, row: int) -> bool:
        """True if the cell lies inside the in-progress selection."""
        if self._selection is None or self._selection.column_id != column_id:
            return False
        first_row, last_row = self._selection.row_bounds
        return first_row <= row <= last_row
