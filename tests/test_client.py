import unittest
from unittest import mock

import requests

from src.room_planner.client import CalendarClient
from src.room_planner.config import PlannerConfig
from src.room_planner.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)


def _response(status_code=200, payload=None):
    response = mock.Mock(status_code=status_code)
    response.json.return_value = payload
    return response


class CalendarClientTest(unittest.TestCase):
    def setUp(self):
        self.config = PlannerConfig(
            _env_file=None,
            api_url="http://api.test/api/",
            api_token="secret",
            retry_attempts=3,
            retry_backoff_seconds=0,
        )
        self.session = mock.MagicMock()
        self.session.headers = {}
        self.client = CalendarClient(self.config, session=self.session)

    def test_sets_auth_header(self):
        self.assertEqual(self.session.headers["Authorization"], "Bearer secret")

    def test_fetch_snapshot(self):
        payload = {
            "schedules": [{"id": "1", "roomId": "room-1", "date": "2026-03-02", "startTime": "10:00", "endTime": "11:00"}],
            "rentals": [],
        }
        self.session.get.return_value = _response(payload=payload)

        snapshot = self.client.fetch_snapshot("2026-03-02", room_ids=["room-1"])

        self.assertEqual(len(snapshot.schedules), 1)
        self.assertEqual(snapshot.events, [])
        self.session.get.assert_called_once_with(
            "http://api.test/api/calendar-events",
            params={"date": "2026-03-02", "roomId": ["room-1"]},
            timeout=self.config.request_timeout_seconds,
        )

    def test_fetch_rooms_unwraps_paginated_payload(self):
        self.session.get.return_value = _response(
            payload={"data": [{"id": "room-1", "name": "Hall", "capacity": 40}]}
        )
        rooms = self.client.fetch_rooms()
        self.assertEqual([room.id for room in rooms], ["room-1"])
        self.assertEqual(rooms[0].capacity, 40)

    def test_fetch_rooms_plain_list(self):
        self.session.get.return_value = _response(payload=[{"id": "room-1", "name": "Hall"}])
        self.assertEqual(len(self.client.fetch_rooms()), 1)

    def test_retries_server_errors(self):
        self.session.get.side_effect = [
            _response(503),
            _response(502),
            _response(payload={"schedules": []}),
        ]
        snapshot = self.client.fetch_snapshot("2026-03-02")
        self.assertEqual(snapshot.schedules, [])
        self.assertEqual(self.session.get.call_count, 3)

    def test_retries_connection_errors_then_gives_up(self):
        self.session.get.side_effect = requests.ConnectionError("reset")
        with self.assertRaises(TransientError):
            self.client.fetch_snapshot("2026-03-02")
        self.assertEqual(self.session.get.call_count, 3)

    def test_rate_limit_is_retried(self):
        self.session.get.side_effect = [_response(429), _response(payload=[])]
        self.assertEqual(self.client.fetch_rooms(), [])
        self.assertEqual(self.session.get.call_count, 2)

    def test_rate_limit_error_is_transient(self):
        self.assertTrue(issubclass(RateLimitError, TransientError))

    def test_auth_failure_is_not_retried(self):
        self.session.get.return_value = _response(401)
        with self.assertRaises(AuthenticationError):
            self.client.fetch_rooms()
        self.assertEqual(self.session.get.call_count, 1)

    def test_not_found_is_permanent(self):
        self.session.get.return_value = _response(404)
        with self.assertRaises(PermanentError):
            self.client.fetch_snapshot("2026-03-02")
        self.assertEqual(self.session.get.call_count, 1)

    def test_invalid_json_is_permanent(self):
        response = _response()
        response.json.side_effect = ValueError("not json")
        self.session.get.return_value = response
        with self.assertRaises(PermanentError):
            self.client.fetch_rooms()

    def test_unexpected_rooms_payload(self):
        self.session.get.return_value = _response(payload=[{"name": "no id"}])
        with self.assertRaises(PermanentError):
            self.client.fetch_rooms()


if __name__ == "__main__":
    unittest.main()
