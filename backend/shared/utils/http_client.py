"""
Async HTTP client wrapper for feed requests.
Includes retry logic, timeout management, and metrics collection.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_LATENCY, FEED_REQUESTS

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "match-centre/1.0",
}


class FeedHTTPClient:
    """
    Async HTTP client for the match feed.
    Handles timeouts, retries on 429/5xx/timeouts, and records metrics per request.
    Paths are absolute URLs; the feed is split over several base paths.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._timeout = timeout_s or settings.feed_request_timeout_s
        self._max_retries = max(1, max_retries if max_retries is not None else settings.feed_max_retries)
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FeedHTTPClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        endpoint: str = "unknown",
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Args:
            url: Absolute feed URL.
            params: Query parameters.
            endpoint: Endpoint label for metrics and logs.
            headers: Extra headers merged over the client defaults for this request.

        Raises:
            httpx.HTTPStatusError: On non-retryable HTTP errors.
            httpx.TimeoutException: If all retries are exhausted.
            ValueError: If the body is not JSON.
        """
        if not self._client:
            raise RuntimeError("FeedHTTPClient not started. Call start() first.")

        last_exc: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 1):
            start_time = time.perf_counter()
            status = "unknown"
            try:
                resp = await self._client.get(url, params=params, headers=headers)
                status = str(resp.status_code)

                if resp.status_code == 429 and attempt < self._max_retries:
                    logger.warning("feed_rate_limited", endpoint=endpoint, attempt=attempt)
                    retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
                    await asyncio.sleep(min(retry_after, 10.0))
                    continue

                if resp.status_code >= 500 and attempt < self._max_retries:
                    logger.warning(
                        "feed_server_error",
                        endpoint=endpoint,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                    await asyncio.sleep(1.0 * attempt)
                    continue

                resp.raise_for_status()
                logger.debug(
                    "feed_request_success",
                    endpoint=endpoint,
                    status=resp.status_code,
                    latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return resp.json()

            except httpx.TimeoutException as exc:
                status = "timeout"
                last_exc = exc
                logger.warning("feed_timeout", endpoint=endpoint, attempt=attempt)
                if attempt < self._max_retries:
                    await asyncio.sleep(1.0 * attempt)
                    continue

            except httpx.HTTPStatusError as exc:
                status = str(exc.response.status_code)
                logger.error(
                    "feed_http_error",
                    endpoint=endpoint,
                    status=exc.response.status_code,
                    attempt=attempt,
                )
                raise

            except httpx.TransportError as exc:
                status = "error"
                last_exc = exc
                logger.error("feed_transport_error", endpoint=endpoint, error=str(exc), attempt=attempt)
                if attempt < self._max_retries:
                    await asyncio.sleep(1.0 * attempt)
                    continue

            finally:
                FEED_REQUESTS.labels(endpoint=endpoint, status=status).inc()
                FEED_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start_time)

        if last_exc:
            raise last_exc
        raise RuntimeError(f"Feed request failed after {self._max_retries} attempts")


def _parse_retry_after(value: str | None) -> float:
    try:
        return float(value) if value else 2.0
    except ValueError:
        return 2.0
