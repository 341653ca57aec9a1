"""Read-only client for the management console's calendar API.

Fetches the two inputs the planner needs: the calendar snapshot for a date
(class sessions, rentals, events, reservations) and the room catalog.
Failures are classified into TransientError (retried with backoff) and
PermanentError (raised immediately).
"""

from collections.abc import Sequence
from typing import Any

import requests
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.room_planner.config import PlannerConfig, get_config
from src.room_planner.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from src.room_planner.logging import get_logger
from src.room_planner.models import CalendarSnapshot, Room

logger = get_logger(__name__)


class CalendarClient:
    """Thin wrapper over requests.Session for the two planner endpoints.

    Args:
        config: Planner configuration (API URL, token, timeout, retries).
        session: Optional pre-built session, mainly for tests.
    """

    CALENDAR_PATH = "/calendar-events"
    ROOMS_PATH = "/rooms"

    def __init__(
        self,
        config: PlannerConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or get_config()
        self.base_url = self.config.api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if self.config.api_token:
            self.session.headers.update({"Authorization": f"Bearer {self.config.api_token}"})

        # Bind retry policy to the configured attempt count
        self._get_json = retry(
            stop=stop_after_attempt(self.config.retry_attempts),
            wait=wait_exponential(multiplier=self.config.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )(self._get_json_once)

        logger.debug("calendar_client_initialized", base_url=self.base_url)

    def _get_json_once(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(
                url, params=params, timeout=self.config.request_timeout_seconds
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("api_request_failed", url=url, error=str(e))
            raise TransientError(f"GET {path} failed: {e}") from e

        if resp.status_code == 429:
            logger.warning("api_rate_limited", url=url)
            raise RateLimitError(f"GET {path}: rate limited")
        if resp.status_code in (401, 403):
            logger.error("api_auth_failed", url=url, status=resp.status_code)
            raise AuthenticationError(f"GET {path}: {resp.status_code}")
        if resp.status_code >= 500:
            logger.warning("api_server_error", url=url, status=resp.status_code)
            raise TransientError(f"GET {path}: {resp.status_code}")
        if resp.status_code != 200:
            logger.error("api_request_rejected", url=url, status=resp.status_code)
            raise PermanentError(f"GET {path}: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise PermanentError(f"GET {path}: response is not JSON") from e

    def fetch_snapshot(self, day: str, room_ids: Sequence[str] | None = None) -> CalendarSnapshot:
        """Fetch all calendar records for a date.

        Args:
            day: Date, "YYYY-MM-DD".
            room_ids: Restrict to these rooms. None or empty fetches every room.

        Raises:
            TransientError: If the API stayed unreachable after all retries.
            PermanentError: On 4xx responses or an unexpected payload.
        """
        params: dict[str, Any] = {"date": day}
        if room_ids:
            params["roomId"] = list(room_ids)

        payload = self._get_json(self.CALENDAR_PATH, params)
        try:
            snapshot = CalendarSnapshot.model_validate(payload)
        except ValidationError as e:
            raise PermanentError(f"Unexpected calendar payload: {e}") from e

        logger.info(
            "calendar_fetched",
            date=day,
            schedules=len(snapshot.schedules),
            rentals=len(snapshot.rentals),
            events=len(snapshot.events),
            reservations=len(snapshot.reservations),
        )
        return snapshot

    def fetch_rooms(self) -> list[Room]:
        """Fetch the room catalog.

        Raises:
            TransientError: If the API stayed unreachable after all retries.
            PermanentError: On 4xx responses or an unexpected payload.
        """
        payload = self._get_json(self.ROOMS_PATH)
        # Paginated endpoints wrap the list in {"data": [...]}
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        try:
            rooms = [Room.model_validate(item) for item in items]
        except (ValidationError, TypeError) as e:
            raise PermanentError(f"Unexpected rooms payload: {e}") from e

        logger.info("rooms_fetched", count=len(rooms))
        return rooms
