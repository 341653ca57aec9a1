"""Room planner configuration loaded from environment variables.

Covers the calendar API connection, the daily operating window of the grid
and logging output.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from src.room_planner.timegrid import TimeGrid


class PlannerConfig(BaseSettings):
    """Room planner configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Calendar API (read-only)
    api_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the management console API",
    )
    api_token: str = Field(
        default="",
        description="Bearer token sent with every API request",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Per-request timeout for API calls",
    )
    retry_attempts: int = Field(
        default=3,
        description="Attempts for transient API failures before giving up",
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Base delay of the exponential backoff between retries",
    )

    # Operating window of the room grid
    day_start_hour: int = Field(
        default=8,
        ge=0,
        le=23,
        description="First hour shown on the grid (inclusive)",
    )
    day_end_hour: int = Field(
        default=22,
        ge=1,
        le=24,
        description="Hour the grid ends at (exclusive)",
    )
    slot_minutes: int = Field(
        default=30,
        gt=0,
        description="Duration of one grid row in minutes",
    )

    # Current-time indicator
    now_refresh_seconds: float = Field(
        default=60.0,
        gt=0,
        description="How often the 'now' line is recomputed",
    )
    timezone_name: str = Field(
        default="Europe/Moscow",
        description="Timezone used to decide what 'today' and 'now' mean",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "PLANNER_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def _check_window(self) -> "PlannerConfig":
        if self.day_end_hour <= self.day_start_hour:
            raise ValueError("day_end_hour must be after day_start_hour")
        window_minutes = (self.day_end_hour - self.day_start_hour) * 60
        if window_minutes % self.slot_minutes:
            raise ValueError("slot_minutes must divide the operating window evenly")
        return self

    def time_grid(self) -> TimeGrid:
        """Build the TimeGrid described by this configuration."""
        return TimeGrid(
            start_hour=self.day_start_hour,
            end_hour=self.day_end_hour,
            slot_minutes=self.slot_minutes,
        )


# Singleton pattern
_config: PlannerConfig | None = None


def get_config() -> PlannerConfig:
    """Get the planner configuration singleton.

    Returns:
        PlannerConfig: Planner configuration instance
    """
    global _config
    if _config is None:
        _config = PlannerConfig()
    return _config
