"""Error hierarchy for the room planner.

Two families live here:

* ``MalformedRecordError`` is raised by the aggregation adapters when a source
  record cannot be turned into a well-formed activity. The aggregator catches
  it, logs the record and moves on, so one bad record never breaks the layout
  of its siblings.
* ``ClientError`` and its subclasses classify calendar API failures so tenacity
  retry decorators can tell transient failures (retry) from permanent ones
  (give up).

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def fetch_snapshot(date: str):
        ...
"""


class PlannerError(Exception):
    """Base exception for all room planner errors."""

    pass


class MalformedRecordError(PlannerError):
    """A source record has unusable time, date or duration values.

    Examples: "25:99" as a start time, a date that is not YYYY-MM-DD,
    an end time at or before the start time.
    """

    def __init__(self, message: str, *, record_type: str = "", record_id: str = "") -> None:
        super().__init__(message)
        self.record_type = record_type
        self.record_id = record_id


class ClientError(PlannerError):
    """Base exception for calendar API failures."""

    pass


class TransientError(ClientError):
    """Temporary failure that may succeed on retry.

    Examples: connection resets, timeouts, 502/503 from the API gateway.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded (HTTP 429) - needs longer backoff.

    Inherits from TransientError so tenacity will retry it.
    """

    pass


class PermanentError(ClientError):
    """Failure that won't succeed on retry.

    Examples: 404 for an unknown endpoint, a payload that is not valid JSON.
    """

    pass


class AuthenticationError(PermanentError):
    """Token missing, expired or rejected (HTTP 401/403).

    Requires a new API token, cannot be fixed by retry.
    """

    pass
