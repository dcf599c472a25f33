"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Park counts that are interesting enough to name the parks involved.
DEFAULT_HR_PARK_OUTLIERS: frozenset[int] = frozenset({1, 2, 3, 27, 28, 29})


class Settings(BaseSettings):
    """Gameday bot configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_enabled: bool = False
    admin_roles: list[str] = ["Mod", "Moderator", "Admin", "Administrator"]

    # Database
    database_url: str = "sqlite+aiosqlite:///gameday.db"

    # Environment
    gameday_env: str = "development"

    # Upstream data providers
    statsapi_base_url: str = "https://statsapi.mlb.com"
    gameday_socket_url: str = "wss://ws.statsapi.mlb.com/api/v1/game/push/subscribe/gameday"
    savant_base_url: str = "https://baseballsavant.mlb.com"
    http_timeout_seconds: float = 15.0

    # Polling
    status_poll_interval_seconds: int = 300
    savant_poll_interval_seconds: float = 15.0
    savant_max_attempts: int = 10
    hr_park_outliers: frozenset[int] = DEFAULT_HR_PARK_OUTLIERS

    # Presentation
    favorite_team_id: int | None = None
    team_color_contrast_ratio: float = 1.5

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_poll_budget(self) -> Settings:
        """A backfill poll needs at least one attempt to ever fill a placeholder."""
        if self.savant_max_attempts < 1:
            msg = "SAVANT_MAX_ATTEMPTS must be at least 1"
            raise ValueError(msg)
        if self.savant_poll_interval_seconds < 0:
            msg = "SAVANT_POLL_INTERVAL_SECONDS cannot be negative"
            raise ValueError(msg)
        return self
