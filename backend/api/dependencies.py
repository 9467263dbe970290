"""
Dependency injection for the API service.
Provides the shared feed provider and settings to route handlers.
"""
from __future__ import annotations

from shared.config import Settings, get_settings

from ingest.providers.base import FeedProvider

# Module-level singleton, initialized at startup
_feed: FeedProvider | None = None


def init_dependencies(feed: FeedProvider) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _feed
    _feed = feed


def reset_dependencies() -> None:
    global _feed
    _feed = None


def get_feed() -> FeedProvider:
    """FastAPI dependency: returns the shared feed provider."""
    if _feed is None:
        raise RuntimeError("FeedProvider not initialized, call init_dependencies first")
    return _feed


def get_app_settings() -> Settings:
    return get_settings()
