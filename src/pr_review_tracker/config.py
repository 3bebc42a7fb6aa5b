"""Configuration settings for PR Review Tracker."""

from datetime import UTC, date, datetime, time, timedelta
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitHubConfig(BaseModel):
    """Configuration for the GitHub API client.

    Controls search pagination and the retry policy applied to
    rate-limited or transiently failing requests.
    """

    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Search results per page (GitHub maximum is 100)",
    )
    max_pages: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Page-count ceiling for a single author search",
    )

    # Retry policy
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries on rate limit / network errors before degrading",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay for exponential backoff",
    )
    max_backoff_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Upper bound for any single backoff delay",
    )


class SyncConfig(BaseModel):
    """Configuration for per-user PR sync.

    Defines the tracking window searched for each tracked user.
    """

    tracking_since: date = Field(
        default=date(2025, 10, 1),
        description="Only PRs created on/after this date are tracked",
    )
    tracking_until: date | None = Field(
        default=None,
        description="Optional inclusive end date of the tracking window",
    )

    @model_validator(mode="after")
    def _check_window(self) -> "SyncConfig":
        if self.tracking_until is not None and self.tracking_until < self.tracking_since:
            raise ValueError("tracking_until must not be before tracking_since")
        return self

    @property
    def since(self) -> datetime:
        """Start of the tracking window as a UTC datetime."""
        return datetime.combine(self.tracking_since, time.min, tzinfo=UTC)

    @property
    def until(self) -> datetime | None:
        """End of the tracking window as a UTC datetime (None if open-ended)."""
        if self.tracking_until is None:
            return None
        return datetime.combine(self.tracking_until, time.max, tzinfo=UTC)


class RefreshConfig(BaseModel):
    """Configuration for full-roster refresh runs."""

    cooldown_hours: float = Field(
        default=10.0,
        ge=0.0,
        description="Minimum hours between two completed refresh runs",
    )
    user_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Courtesy delay between users (rate limit friendliness)",
    )
    recent_log_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Number of per-user outcomes kept in the recent log",
    )

    @property
    def cooldown(self) -> timedelta:
        """Get the cooldown window as a timedelta."""
        return timedelta(hours=self.cooldown_hours)


class MetricsConfig(BaseModel):
    """Configuration for review-health metrics."""

    stuck_threshold_hours: float = Field(
        default=168.0,
        gt=0.0,
        description="Hours in review after which a PR counts as stuck (7 days)",
    )

    @property
    def stuck_threshold(self) -> timedelta:
        """Get the stuck threshold as a timedelta."""
        return timedelta(hours=self.stuck_threshold_hours)


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Database
    # --------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./pr_review_tracker.db",
        description="Async database connection string",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Component configuration
    # --------------------------------------------------------------------------
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub client pagination and retry configuration",
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Tracking window configuration",
    )
    refresh: RefreshConfig = Field(
        default_factory=RefreshConfig,
        description="Full-roster refresh configuration",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Review metrics configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
