"""auditfeed configuration.

Application settings loaded from environment variables with AUDITFEED_ prefix.

Example:
    >>> from auditfeed.core.config import get_settings
    >>> settings = get_settings(log_level="DEBUG")
    >>> settings.log_level
    'DEBUG'
    >>> settings.page_size
    1000
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auditfeed.core.exceptions import ConfigurationError
from auditfeed.utils.timestamps import parse_timestamp

# Pagination style used by each source
SOURCE_STYLES: dict[str, str] = {
    "jira": "offset",
    "org-events": "cursor",
}


class Settings(BaseSettings):
    """Application settings.

    Loads from environment variables with AUDITFEED_ prefix.

    Example:
        >>> from auditfeed.core.config import Settings
        >>> s = Settings(api_endpoint="https://example.atlassian.net")
        >>> s.api_endpoint
        'https://example.atlassian.net'
        >>> s.sleep_ms
        200
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDITFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Source
    source: Literal["jira", "org-events"] = Field(default="jira", description="Remote API to export")
    api_endpoint: str = Field(default="", description="Jira site URL or admin API base URL")
    api_email: str = Field(default="", description="Account email (Jira basic auth)")
    api_token: str = Field(default="", description="API token")
    org_id: str = Field(default="", description="Organization id (org-events source)")

    # Query
    query_filter: str = Field(default="", description="Free-text filter sent with each request")
    page_size: int = Field(default=1000, ge=1, le=10000)
    from_date: datetime | None = Field(default=None, description="Override the stored watermark")
    lookback_days: int = Field(default=365, ge=0, description="Initial window length")

    # Checkpoint
    checkpoint_path: Path = Field(default=Path("jira_state.json"))

    # Pacing
    sleep_ms: int = Field(default=200, ge=0, description="Delay between pages")
    rate_limit_fallback: int = Field(default=50, ge=0, description="Wait when Retry-After is absent")
    rate_limit_max_delay: int | None = Field(default=None, ge=0)
    rate_limit_max_attempts: int | None = Field(default=None, ge=1)
    request_timeout: float = Field(default=30.0, ge=1.0)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(default="json")
    debug: bool = Field(default=False)

    @field_validator("from_date", mode="before")
    @classmethod
    def parse_from_date(cls, v: Any) -> Any:
        """Accept the same timestamp formats as the API."""
        if isinstance(v, str):
            if not v.strip():
                return None
            return parse_timestamp(v)
        return v

    @property
    def lookback(self) -> timedelta:
        return timedelta(days=self.lookback_days)

    @property
    def pagination_style(self) -> str:
        return SOURCE_STYLES[self.source]

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()

    def validate_credentials(self) -> None:
        """Check that the selected source has what it needs.

        Raises:
            ConfigurationError: Naming the missing settings.
        """
        required = ["api_token"]
        if self.source == "jira":
            required += ["api_endpoint", "api_email"]
        else:
            required += ["org_id"]

        missing = [name for name in required if not getattr(self, name)]
        if missing:
            names = ", ".join(f"AUDITFEED_{name.upper()}" for name in missing)
            raise ConfigurationError(f"Missing required settings for {self.source}: {names}")


def get_settings(**overrides: Any) -> Settings:
    """Get settings with optional overrides.

    Overrides set to None are ignored so CLI options that were not given
    fall through to the environment.

    Example:
        >>> from auditfeed.core.config import get_settings
        >>> s = get_settings(sleep_ms=500, page_size=None)
        >>> (s.sleep_ms, s.page_size)
        (500, 1000)
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
