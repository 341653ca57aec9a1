import asyncio
import unittest
from datetime import date, datetime
from unittest import mock

from src.room_planner.clock import CurrentTimeIndicator, current_time_position, is_current_week
from src.room_planner.config import PlannerConfig
from tests.factories import DAY


class CurrentTimePositionTest(unittest.TestCase):
    def test_inside_window(self):
        position = current_time_position(datetime(2026, 3, 2, 15, 0), DAY)
        self.assertAlmostEqual(position, 50.0)

    def test_window_edges(self):
        self.assertEqual(current_time_position(datetime(2026, 3, 2, 8, 0), DAY), 0)
        self.assertEqual(current_time_position(datetime(2026, 3, 2, 22, 0), DAY), 100)

    def test_outside_window_has_no_line(self):
        self.assertIsNone(current_time_position(datetime(2026, 3, 2, 7, 59), DAY))
        self.assertIsNone(current_time_position(datetime(2026, 3, 2, 22, 1), DAY))

    def test_other_day_has_no_line(self):
        self.assertIsNone(current_time_position(datetime(2026, 3, 3, 15, 0), DAY))

    def test_is_current_week(self):
        self.assertTrue(is_current_week(DAY, date(2026, 3, 8)))
        self.assertFalse(is_current_week(DAY, date(2026, 3, 9)))


class CurrentTimeIndicatorTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.updates = []
        self.now = datetime(2026, 3, 2, 15, 0)

    def _indicator(self, day=DAY, **kwargs):
        return CurrentTimeIndicator(
            day,
            self.updates.append,
            refresh_seconds=0.01,
            now_fn=lambda: self.now,
            **kwargs,
        )

    async def test_reports_immediately_and_refreshes(self):
        async with self._indicator() as indicator:
            self.assertTrue(indicator.is_running)
            self.assertAlmostEqual(self.updates[0], 50.0)
            self.now = datetime(2026, 3, 2, 16, 24)
            await asyncio.sleep(0.1)

        self.assertAlmostEqual(self.updates[-1], 60.0)
        self.assertFalse(indicator.is_running)

    async def test_not_today_starts_no_timer(self):
        async with self._indicator(day="2026-03-03") as indicator:
            self.assertFalse(indicator.is_running)
            self.assertIsNone(indicator.position)
        self.assertEqual(self.updates, [None])

    async def test_week_view_follows_today(self):
        async with self._indicator(day="2026-03-05", week=True) as indicator:
            self.assertTrue(indicator.is_running)
            self.assertAlmostEqual(indicator.position, 50.0)

    async def test_timer_released_when_body_raises(self):
        indicator = self._indicator()
        with self.assertRaises(ValueError):
            async with indicator:
                raise ValueError("view failed")
        self.assertFalse(indicator.is_running)

    async def test_no_updates_after_exit(self):
        async with self._indicator():
            pass
        count = len(self.updates)
        await asyncio.sleep(0.1)
        self.assertEqual(len(self.updates), count)

    async def test_failing_callback_keeps_timer_alive(self):
        calls = []

        def flaky(position):
            calls.append(position)
            if len(calls) == 2:
                raise RuntimeError("render failed")

        indicator = CurrentTimeIndicator(DAY, flaky, refresh_seconds=0.01, now_fn=lambda: self.now)
        async with indicator:
            await asyncio.sleep(0.1)
            self.assertTrue(indicator.is_running)
        self.assertGreater(len(calls), 2)

    async def test_reentering_cancels_previous_timer(self):
        indicator = self._indicator()
        await indicator.__aenter__()
        first_task = indicator._task
        await indicator.__aenter__()
        self.assertTrue(first_task.done())
        self.assertTrue(indicator.is_running)

        await indicator.aclose()
        self.assertFalse(indicator.is_running)
        count = len(self.updates)
        await asyncio.sleep(0.1)
        self.assertEqual(len(self.updates), count)

    async def test_remount_after_exit(self):
        indicator = self._indicator()
        async with indicator:
            pass
        async with indicator:
            self.assertTrue(indicator.is_running)
        self.assertFalse(indicator.is_running)

    async def test_aclose_is_idempotent(self):
        indicator = self._indicator()
        await indicator.__aenter__()
        await indicator.aclose()
        await indicator.aclose()
        self.assertFalse(indicator.is_running)


class IndicatorTimezoneTest(unittest.TestCase):
    def test_defaults_to_configured_timezone(self):
        config = PlannerConfig(_env_file=None, timezone_name="Asia/Tokyo")
        with mock.patch("src.room_planner.clock.get_config", return_value=config):
            indicator = CurrentTimeIndicator(DAY, lambda position: None)
        self.assertEqual(indicator.timezone_name, "Asia/Tokyo")

    def test_planner_default_timezone(self):
        with mock.patch("src.room_planner.clock.get_config", return_value=PlannerConfig(_env_file=None)):
            indicator = CurrentTimeIndicator(DAY, lambda position: None)
        self.assertEqual(indicator.timezone_name, "Europe/Moscow")

    def test_explicit_timezone_wins(self):
        indicator = CurrentTimeIndicator(DAY, lambda position: None, timezone_name="UTC")
        self.assertEqual(indicator.timezone_name, "UTC")


if __name__ == "__main__":
    unittest.main()
