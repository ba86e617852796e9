"""
Prometheus Metrics for the scrape/triage pipeline

Provides:
- Task duration and failure counts per Celery task
- Listings scraped per board, by dedup outcome (new/duplicate/updated)
- Triage results by recommendation, and fallback count
- Stale scrape runs failed by the janitor

Usage:
    from rolecall.metrics import start_metrics_server
    start_metrics_server(9100)           # scheduler: exactly 9100
    start_metrics_server(9101, span=8)   # worker: first free of 9101-9108

Metrics Endpoint:
    GET http://<host>:<port>/metrics
"""

import logging
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

TASK_DURATION = Histogram(
    "rolecall_task_duration_seconds",
    "Time spent executing pipeline tasks",
    ["task_name"],
    buckets=[0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

TASK_FAILURES = Counter(
    "rolecall_task_failures_total",
    "Number of pipeline task failures",
    ["task_name"]
)

LISTINGS_SCRAPED = Counter(
    "rolecall_listings_scraped_total",
    "Scraped listings by board and dedup outcome",
    ["board", "outcome"]
)

TRIAGE_RESULTS = Counter(
    "rolecall_triage_results_total",
    "AI triage results by recommendation",
    ["recommendation"]
)

TRIAGE_FALLBACKS = Counter(
    "rolecall_triage_fallbacks_total",
    "Triage calls that fell back to the neutral result"
)

STALE_RUNS_REAPED = Counter(
    "rolecall_stale_scrape_runs_total",
    "Scrape runs failed by the janitor after exceeding the run timeout"
)


# ==================== Helper Functions ====================

def record_task(task_name: str, duration: float) -> None:
    """Record a task's wall-clock duration."""
    TASK_DURATION.labels(task_name=task_name).observe(duration)


def record_task_failure(task_name: str) -> None:
    TASK_FAILURES.labels(task_name=task_name).inc()


def record_listing(board: str, outcome: str) -> None:
    LISTINGS_SCRAPED.labels(board=board, outcome=outcome).inc()


def record_triage(recommendation: str) -> None:
    TRIAGE_RESULTS.labels(recommendation=recommendation).inc()


def record_triage_fallback() -> None:
    TRIAGE_FALLBACKS.inc()


def record_stale_runs(count: int) -> None:
    if count:
        STALE_RUNS_REAPED.inc(count)


def start_metrics_server(port: int, span: int = 1) -> Optional[int]:
    """
    Expose /metrics on the first free port in [port, port + span).

    Several processes started from one configuration each need their own
    port, so a bind failure moves on to the next candidate instead of
    taking the process down.

    Args:
        port: First candidate port (0 disables the endpoint)
        span: Number of consecutive ports to try

    Returns:
        The bound port, or None if disabled or no port was free
    """
    if not port:
        return None

    for candidate in range(port, port + max(span, 1)):
        try:
            start_http_server(candidate)
        except OSError as e:
            logger.debug(f"Metrics port {candidate} unavailable: {e}")
            continue
        logger.info(f"Prometheus metrics exposed on port {candidate}")
        return candidate

    logger.error(
        f"No free metrics port in {port}-{port + max(span, 1) - 1}, "
        "continuing without a metrics endpoint"
    )
    return None
