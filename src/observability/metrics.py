"""
Prometheus metrics for the auction registry.

Counts dispatcher operations by outcome, times them, and reports the
number of live auctions per status when scraped.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    REGISTRY,
)
import time
from typing import Callable, Dict, Optional


# ============================================================================
# CORE METRICS
# ============================================================================

operations_total = Counter(
    "auction_registry_operations_total",
    "Total number of auction operations dispatched",
    ["operation", "outcome"],  # outcome: ok or the error kind
)

operation_latency = Histogram(
    "auction_registry_operation_latency_seconds",
    "Time to complete an auction operation",
    ["operation"],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

auctions_gauge = Gauge(
    "auction_registry_auctions", "Number of live auctions", ["status"]
)


# ============================================================================
# HELPERS
# ============================================================================


class MetricsContext:
    """
    Context manager timing one operation.

    Example:
        with MetricsContext("createAuction"):
            store.create_auction(payload)
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        operation_latency.labels(operation=self.operation).observe(duration)
        return False


# ============================================================================
# METRICS COLLECTOR
# ============================================================================


class MetricsCollector:
    """
    Centralized metrics collection and export.

    status_counter, when set, is polled on every export to refresh the
    per-status auction gauge.
    """

    def __init__(self, status_counter: Optional[Callable[[], Dict[str, int]]] = None):
        self.status_counter = status_counter

    def record_operation(self, operation: str, outcome: str):
        """Record a dispatched operation and its outcome."""
        operations_total.labels(operation=operation, outcome=outcome).inc()

    def update_auction_counts(self):
        if self.status_counter is None:
            return
        for status, count in self.status_counter().items():
            auctions_gauge.labels(status=status).set(count)

    def get_metrics(self) -> bytes:
        """
        Get metrics in Prometheus format.

        Returns:
            Metrics as bytes in Prometheus exposition format
        """
        self.update_auction_counts()
        return generate_latest(REGISTRY)


def setup_metrics_endpoint_fastapi(app, collector: MetricsCollector):
    """
    Setup metrics endpoint for FastAPI app.

    Args:
        app: FastAPI application instance
        collector: Collector whose metrics are exported
    """
    from fastapi import Response

    @app.get("/metrics")
    async def metrics():
        return Response(
            content=collector.get_metrics(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )
