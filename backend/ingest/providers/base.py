"""
Abstract base class for match feed providers.
Defines the fetch contract the session layer depends on.
"""
from __future__ import annotations

import abc
import time
from datetime import datetime
from typing import Any, Awaitable, Optional, TypeVar

from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_FAILURES

logger = get_logger(__name__)

T = TypeVar("T")


class FeedProvider(abc.ABC):
    """
    Abstract feed source.

    The public ``fetch_*`` methods wrap the provider-specific ``_fetch_*``
    coroutines with timing and error handling. A fetch that fails for any
    reason is logged here and returned as ``None``; an empty list or payload
    is a successful "no data" answer.
    """

    name: str = "feed"

    async def start(self) -> None:
        """Acquire provider resources (HTTP client etc.)."""

    async def close(self) -> None:
        """Release provider resources."""

    async def _guard(self, operation: str, coro: Awaitable[T], **context: Any) -> Optional[T]:
        start = time.perf_counter()
        try:
            result = await coro
        except Exception as exc:
            FEED_FAILURES.labels(operation=operation).inc()
            logger.error(
                "feed_fetch_error",
                provider=self.name,
                operation=operation,
                error=str(exc),
                latency_ms=round((time.perf_counter() - start) * 1000, 2),
                **context,
            )
            return None
        if result is None:
            FEED_FAILURES.labels(operation=operation).inc()
        logger.debug(
            "feed_fetch_done",
            provider=self.name,
            operation=operation,
            ok=result is not None,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            **context,
        )
        return result

    async def fetch_matches(
        self, start: datetime, end: datetime, language: str, count: int
    ) -> Optional[list[dict[str, Any]]]:
        """Raw match records kicking off between ``start`` and ``end`` (UTC)."""
        return await self._guard(
            "matches",
            self._fetch_matches(start, end, language, count),
            start=start.isoformat(),
            end=end.isoformat(),
        )

    async def fetch_standings(
        self, competition_id: str, season_id: str, stage_id: str, language: str
    ) -> Optional[dict[str, Any]]:
        return await self._guard(
            "standings",
            self._fetch_standings(competition_id, season_id, stage_id, language),
            competition_id=competition_id,
            season_id=season_id,
            stage_id=stage_id,
        )

    async def fetch_head_to_head(
        self,
        team_a: str,
        team_b: str,
        language: str,
        count: int,
        before: Optional[datetime] = None,
    ) -> Optional[dict[str, Any]]:
        """Head-to-head record of two teams, limited to matches up to ``before`` when given."""
        return await self._guard(
            "head_to_head",
            self._fetch_head_to_head(team_a, team_b, language, count, before),
            team_a=team_a,
            team_b=team_b,
        )

    async def fetch_match_detail(
        self,
        competition_id: str,
        season_id: str,
        stage_id: str,
        match_id: str,
        language: str,
    ) -> Optional[dict[str, Any]]:
        return await self._guard(
            "match_detail",
            self._fetch_match_detail(competition_id, season_id, stage_id, match_id, language),
            match_id=match_id,
        )

    # ── Abstract methods (each provider implements these) ───────────────
    @abc.abstractmethod
    async def _fetch_matches(
        self, start: datetime, end: datetime, language: str, count: int
    ) -> Optional[list[dict[str, Any]]]:
        ...

    @abc.abstractmethod
    async def _fetch_standings(
        self, competition_id: str, season_id: str, stage_id: str, language: str
    ) -> Optional[dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def _fetch_head_to_head(
        self,
        team_a: str,
        team_b: str,
        language: str,
        count: int,
        before: Optional[datetime] = None,
    ) -> Optional[dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def _fetch_match_detail(
        self,
        competition_id: str,
        season_id: str,
        stage_id: str,
        match_id: str,
        language: str,
    ) -> Optional[dict[str, Any]]:
        ...
