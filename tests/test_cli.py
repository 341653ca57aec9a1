import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

import structlog
from structlog.testing import capture_logs

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "scripts")))
import room_planner as cli  # noqa: E402

from src.room_planner.config import PlannerConfig  # noqa: E402
from tests.factories import DAY  # noqa: E402


class RoomPlannerCliTest(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.snapshot_path = os.path.join(self.tmp.name, "snapshot.json")
        self.rooms_path = os.path.join(self.tmp.name, "rooms.json")
        self.write_json(
            self.snapshot_path,
            {
                "rentals": [
                    {"id": "1", "roomId": "room-1", "date": DAY, "startTime": "14:30", "endTime": "15:30"}
                ]
            },
        )
        self.write_json(
            self.rooms_path,
            {
                "data": [
                    {"id": "room-1", "name": "Hall"},
                    {"id": "room-2", "name": "Studio"},
                    {"id": "room-3", "name": "Basement", "status": "MAINTENANCE"},
                ]
            },
        )

        # Keep the global structlog configuration untouched
        patches = [
            mock.patch.object(cli, "setup_logging"),
            mock.patch.object(cli, "get_config", return_value=PlannerConfig(_env_file=None)),
        ]
        self.setup_logging = patches[0].start()
        patches[1].start()
        for patch in patches:
            self.addCleanup(patch.stop)

    def tearDown(self):
        self.tmp.cleanup()
        structlog.contextvars.clear_contextvars()

    def write_json(self, path, payload):
        with open(path, "w", encoding="utf-8") as file:
            json.dump(payload, file)

    def run_cli(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with capture_logs(), redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.run(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def offline(self, *argv):
        return self.run_cli(*argv, "--snapshot", self.snapshot_path, "--rooms", self.rooms_path)

    def test_search_only_available(self):
        code, out, _ = self.offline(
            "search", "--date", DAY, "--start", "14:00", "--end", "15:00", "--only-available"
        )
        self.assertEqual(code, 0)
        self.assertEqual([r["room"]["id"] for r in json.loads(out)], ["room-2"])

    def test_search_reports_conflicts(self):
        code, out, _ = self.offline("search", "--date", DAY, "--start", "14:00", "--end", "15:00")
        self.assertEqual(code, 0)
        results = {r["room"]["id"]: r for r in json.loads(out)}
        self.assertEqual(set(results), {"room-1", "room-2"})
        self.assertFalse(results["room-1"]["is_available"])

    def test_search_rejects_empty_window(self):
        for start, end in (("15:00", "15:00"), ("16:00", "15:00")):
            with self.subTest(start=start, end=end):
                code, out, err = self.offline("search", "--date", DAY, "--start", start, "--end", end)
                self.assertEqual(code, 1)
                self.assertEqual(out, "")
                self.assertIn("must be after", err)
        self.setup_logging.assert_not_called()

    def test_search_rejects_malformed_time(self):
        code, _, err = self.offline("search", "--date", DAY, "--start", "noon", "--end", "15:00")
        self.assertEqual(code, 1)
        self.assertIn("ERROR", err)

    def test_day_json(self):
        code, out, _ = self.offline("day", "--date", DAY)
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["summary"]["total_rooms"], 2)
        self.assertEqual([row["room"]["id"] for row in payload["rooms"]], ["room-1", "room-2"])

    def test_day_table(self):
        code, out, _ = self.offline("day", "--date", DAY, "--table")
        self.assertEqual(code, 0)
        self.assertIn("Free slots", out)
        self.assertIn("08:00 - 14:30", out)

    def test_layout(self):
        code, out, _ = self.offline("layout", "--date", DAY)
        self.assertEqual(code, 0)
        columns = json.loads(out)
        self.assertEqual([c["column_id"] for c in columns], ["room-1", "room-2"])
        self.assertEqual(len(columns[0]["entries"]), 1)

    def test_view_context_cleared_after_run(self):
        self.offline("day", "--date", DAY)
        self.assertEqual(structlog.contextvars.get_contextvars(), {})

    def test_view_context_cleared_after_failure(self):
        code, _, err = self.run_cli(
            "day", "--date", DAY, "--snapshot", os.path.join(self.tmp.name, "missing.json"),
            "--rooms", self.rooms_path,
        )
        self.assertEqual(code, 1)
        self.assertIn("ERROR", err)
        self.assertEqual(structlog.contextvars.get_contextvars(), {})


if __name__ == "__main__":
    unittest.main()
