"""
Application configuration.

Settings are loaded from environment variables (prefixed with TIDINGS_)
and an optional .env file at the repository root.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"


class Settings(BaseSettings):
    """
    Application settings from environment variables.

    Construct once at process start and pass the instance to consumers.
    """

    model_config = SettingsConfigDict(
        env_prefix="TIDINGS_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str = "sqlite+aiosqlite:///./tidings.db"
    redis_url: str = "redis://localhost:6379/0"

    # HTTP
    http_timeout_seconds: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
    )

    # Refresh scheduling
    refresh_interval_minutes: int = Field(default=30, ge=0)  # 0 = manual refresh only
    refresh_on_wifi_only: bool = False
    minimum_refresh_interval_minutes: int = Field(default=15, ge=0)
    full_content_delay_seconds: float = Field(default=0.1, ge=0)

    # Notifications
    notifications_enabled: bool = True

    # OPML
    opml_export_title: str = "Tidings Subscriptions"

    # Logging
    log_level: str = "INFO"
