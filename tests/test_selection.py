import unittest

from src.room_planner.models import SelectionRequest
from src.room_planner.selection import SelectionPhase, SelectionStateMachine
from src.room_planner.timegrid import TimeGrid


class SelectionStateMachineTest(unittest.TestCase):
    def setUp(self):
        self.requests = []
        self.machine = SelectionStateMachine(self.requests.append)

    def test_starts_idle(self):
        self.assertEqual(self.machine.phase, SelectionPhase.IDLE)
        self.assertIsNone(self.machine.selection)

    def test_single_cell_click(self):
        self.machine.press("room-1", 4)
        self.assertEqual(self.machine.phase, SelectionPhase.SELECTING)
        request = self.machine.release()

        self.assertEqual(request, SelectionRequest(column_id="room-1", start_time="10:00", end_time="10:30"))
        self.assertEqual(self.requests, [request])
        self.assertEqual(self.machine.phase, SelectionPhase.IDLE)

    def test_drag_down(self):
        self.machine.press("room-1", 2)
        self.machine.enter("room-1", 3)
        self.machine.enter("room-1", 5)
        request = self.machine.release()
        self.assertEqual((request.start_time, request.end_time), ("09:00", "11:00"))

    def test_drag_up_normalises_bounds(self):
        self.machine.press("room-1", 5)
        self.machine.enter("room-1", 2)
        request = self.machine.release()
        self.assertEqual((request.start_time, request.end_time), ("09:00", "11:00"))

    def test_other_column_is_ignored(self):
        self.machine.press("room-1", 2)
        self.machine.enter("room-2", 6)
        self.assertEqual(self.machine.selection.row_bounds, (2, 2))
        request = self.machine.release()
        self.assertEqual(request.column_id, "room-1")
        self.assertEqual(request.end_time, "09:30")

    def test_enter_while_idle_does_nothing(self):
        self.machine.enter("room-1", 3)
        self.assertEqual(self.machine.phase, SelectionPhase.IDLE)

    def test_release_while_idle_emits_nothing(self):
        self.assertIsNone(self.machine.release())
        self.assertEqual(self.requests, [])

    def test_release_fires_once(self):
        self.machine.press("room-1", 1)
        self.machine.release()
        self.machine.release()
        self.assertEqual(len(self.requests), 1)

    def test_press_while_selecting_restarts(self):
        self.machine.press("room-1", 1)
        self.machine.enter("room-1", 4)
        self.machine.press("room-2", 7)
        request = self.machine.release()
        self.assertEqual(request.column_id, "room-2")
        self.assertEqual((request.start_time, request.end_time), ("11:30", "12:00"))

    def test_failing_callback_still_resets(self):
        def explode(request):
            raise RuntimeError("consumer failed")

        machine = SelectionStateMachine(explode)
        machine.press("room-1", 1)
        with self.assertRaises(RuntimeError):
            machine.release()
        self.assertEqual(machine.phase, SelectionPhase.IDLE)

    def test_is_cell_selected(self):
        self.machine.press("2026-03-02", 3)
        self.machine.enter("2026-03-02", 1)
        self.assertTrue(self.machine.is_cell_selected("2026-03-02", 1))
        self.assertTrue(self.machine.is_cell_selected("2026-03-02", 2))
        self.assertTrue(self.machine.is_cell_selected("2026-03-02", 3))
        self.assertFalse(self.machine.is_cell_selected("2026-03-02", 4))
        self.assertFalse(self.machine.is_cell_selected("2026-03-03", 2))

    def test_custom_grid(self):
        machine = SelectionStateMachine(self.requests.append, TimeGrid(start_hour=9, end_hour=21, slot_minutes=60))
        machine.press("room-1", 0)
        machine.enter("room-1", 1)
        request = machine.release()
        self.assertEqual((request.start_time, request.end_time), ("09:00", "11:00"))


if __name__ == "__main__":
    unittest.main()
