"""
Central configuration for the Match Centre services.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings shared across the feed, session and API layers."""

    model_config = SettingsConfigDict(
        env_prefix="MC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    debug: bool = False
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Unique pod/container ID, bound to every log line")

    # ── Feed endpoints ───────────────────────────────────────
    calendar_api_url: str = "https://api.fifa.com/api/v3/calendar"
    live_api_url: str = "https://api.fifa.com/api/v3/live/football"
    statistics_api_url: str = "https://api.fifa.com/api/v3/statistics"
    team_logo_template: str = "https://api.fifa.com/api/v3/picture/teams-sq-1/{team_id}"
    competition_logo_template: str = (
        "https://api.fifa.com/api/v3/picture/competitions-sq-4/{competition_id}"
    )

    # ── Feed request shaping ─────────────────────────────────
    default_locale: str = "en-GB"
    feed_language: str = "en"
    match_fetch_count: int = 500
    standings_fetch_count: int = 200
    head_to_head_count: int = 10
    feed_request_timeout_s: float = 10.0
    feed_max_retries: int = 2

    # ── Polling ──────────────────────────────────────────────
    poll_interval_s: float = 30.0

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["*"]

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @field_validator("poll_interval_s")
    @classmethod
    def _positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval_s must be positive")
        return v

    @field_validator("calendar_api_url", "live_api_url", "statistics_api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
