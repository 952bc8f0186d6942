"""Prometheus metrics for the catalog query engine."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

QUERIES_TOTAL = Counter(
    "tool_navigator_queries_total",
    "Number of catalog queries served",
    ["mode"],
)

QUERY_RESULTS = Counter(
    "tool_navigator_query_results_total",
    "Number of entries returned by catalog queries",
    ["mode"],
)

STORAGE_ERRORS = Counter(
    "tool_navigator_storage_errors_total",
    "Number of storage collaborator failures",
    ["operation"],
)

QUERY_DURATION = Histogram(
    "tool_navigator_query_duration_seconds",
    "Duration of catalog queries in seconds",
    ["mode"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


def record_query(mode: str, result_count: int) -> None:
    """
    Record a completed query.

    Args:
        mode: Query mode (e.g. 'search', 'ranking', 'category-leaders')
        result_count: Number of entries returned
    """
    QUERIES_TOTAL.labels(mode=mode).inc()
    QUERY_RESULTS.labels(mode=mode).inc(result_count)
    logger.debug(f"Recorded {mode} query with {result_count} results")


def record_storage_error(operation: str) -> None:
    STORAGE_ERRORS.labels(operation=operation).inc()
    logger.warning(f"Storage error recorded for operation {operation}")


class QueryTimer:
    """Context manager observing the duration of one query into QUERY_DURATION."""

    def __init__(self, mode: str):
        self.mode = mode
        self.start_time: Optional[float] = None

    def __enter__(self) -> "QueryTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            QUERY_DURATION.labels(mode=self.mode).observe(time.perf_counter() - self.start_time)
