"""
Prometheus instruments for the planner.

Everything registers on a private CollectorRegistry, so importing this
module twice (tests, reloads) never trips the global registry. Service
timings arrive through BaseService.measure_operation; the scheduling and
cache counters are bumped directly by the services that own those events.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "planner_service_operation_duration_seconds",
    "Wall time of measured service operations",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

service_operations_total = Counter(
    "planner_service_operations_total",
    "Measured service operations by outcome",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "planner_errors_total",
    "Failed service operations by exception class",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

scheduling_conflicts_total = Counter(
    "planner_scheduling_conflicts_total",
    "Time block writes rejected because they overlapped existing blocks",
    registry=REGISTRY,
)

calendar_cache_requests_total = Counter(
    "planner_calendar_cache_requests_total",
    "Calendar cache lookups by outcome",
    ["result"],  # hit | miss
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Recording helpers plus a short-lived cache of the exposition text."""

    _snapshot_lock: Lock = Lock()
    _snapshot: Optional[bytes] = None
    _snapshot_taken_at: Optional[float] = None
    _snapshot_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Args:
            service: Service class name, e.g. "TimeBlockService"
            operation: Name given to measure_operation, e.g. "create_time_block"
            duration: Seconds spent
            status: "success" or "error"
            error_type: Exception class name when status is "error"
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(duration)
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_scheduling_conflict() -> None:
        scheduling_conflicts_total.inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_calendar_cache(hit: bool) -> None:
        calendar_cache_requests_total.labels(result="hit" if hit else "miss").inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Exposition text for REGISTRY, regenerated at most once a second."""
        cls = PrometheusMetrics
        snapshot, taken_at = cls._snapshot, cls._snapshot_taken_at
        if snapshot is not None and taken_at is not None:
            if monotonic() - taken_at <= cls._snapshot_ttl_seconds:
                return snapshot

        with cls._snapshot_lock:
            cls._snapshot = cast(bytes, generate_latest(REGISTRY))
            cls._snapshot_taken_at = monotonic()
            return cls._snapshot

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._snapshot_lock:
            PrometheusMetrics._snapshot = None
            PrometheusMetrics._snapshot_taken_at = None


prometheus_metrics = PrometheusMetrics()
