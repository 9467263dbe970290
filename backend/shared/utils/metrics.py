"""
Metrics for the Match Centre.
Wraps prometheus_client; all collectors are module-level singletons.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
FEED_REQUESTS = Counter(
    "mc_feed_requests_total",
    "Total feed HTTP requests",
    ["endpoint", "status"],
)
FEED_FAILURES = Counter(
    "mc_feed_failures_total",
    "Feed fetches that ended in an absent result",
    ["operation"],
)
NORMALIZED_RECORDS = Counter(
    "mc_normalized_records_total",
    "Raw match records normalized into canonical matches",
)
SKIPPED_RECORDS = Counter(
    "mc_skipped_records_total",
    "Raw match records skipped because they carried no identity",
)
POLL_TICKS = Counter(
    "mc_poll_ticks_total",
    "Poll ticks by outcome",
    ["outcome"],
)
RECONCILED_MATCHES = Counter(
    "mc_reconciled_matches_total",
    "Matches whose live fields changed during reconciliation",
)

# ── Histograms ──────────────────────────────────────────────────────────
FEED_LATENCY = Histogram(
    "mc_feed_latency_seconds",
    "Feed request latency in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
VIEW_BUILD = Histogram(
    "mc_view_build_seconds",
    "Time to turn a feed response into a grouped day view",
    ["stage"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5),
)

# ── Gauges ──────────────────────────────────────────────────────────────
ACTIVE_POLLERS = Gauge(
    "mc_active_pollers",
    "Number of running periodic poll tasks",
)
VISIBLE_GROUPS = Gauge(
    "mc_visible_groups",
    "Competition groups in the most recently built day view",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Iterator[None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
