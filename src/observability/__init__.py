"""
Observability module for tracing and metrics.

Provides OpenTelemetry and Prometheus integration for the auction registry.
"""

from .tracing import (
    setup_tracing,
    shutdown_tracing,
    create_span,
    get_tracer
)
from .metrics import MetricsCollector, MetricsContext, setup_metrics_endpoint_fastapi

__all__ = [
    'setup_tracing',
    'shutdown_tracing',
    'create_span',
    'get_tracer',
    'MetricsCollector',
    'MetricsContext',
    'setup_metrics_endpoint_fastapi'
]
