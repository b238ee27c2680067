"""
Distributed tracing with OpenTelemetry.

Wraps auction operations in spans so requests can be followed from the
HTTP surface down to the store.
"""

import logging
from typing import Dict, Any, Optional, ContextManager
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.trace import Status, StatusCode, Span

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Optional[trace.Tracer] = None
_tracer_provider: Optional[TracerProvider] = None


def setup_tracing(service_name: str, otlp_endpoint: Optional[str] = None) -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing for the service.

    Args:
        service_name: Name of the service (e.g., "auction-registry")
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")

    Returns:
        Configured tracer instance
    """
    global _tracer, _tracer_provider

    if _tracer_provider:
        _tracer_provider.shutdown()

    resource = Resource(attributes={SERVICE_NAME: service_name})
    _tracer_provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        try:
            otlp_exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
            _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
            logger.info(f"Configured OTLP exporter: {otlp_endpoint}")
        except Exception as e:
            logger.warning(f"Failed to configure OTLP exporter: {e}")

    # The global provider can only be set once per process
    trace.set_tracer_provider(_tracer_provider)
    _tracer = _tracer_provider.get_tracer(__name__)

    logger.info(f"Initialized tracing for service: {service_name}")

    return _tracer


def get_tracer() -> trace.Tracer:
    """
    Get the tracer instance.

    Returns a no-op tracer when setup_tracing() was never called.
    """
    if _tracer is None:
        return trace.NoOpTracer()
    return _tracer


@contextmanager
def create_span(
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
) -> ContextManager[Span]:
    """
    Create a trace span with optional attributes.

    Usage:
        with create_span("auction.createAuction", {"auction.id": "..."}):
            ...

    Args:
        name: Span name
        attributes: Optional span attributes
        kind: Span kind (INTERNAL, SERVER, CLIENT, PRODUCER, CONSUMER)

    Yields:
        Active span
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        name, kind=kind, record_exception=False, set_status_on_exception=False
    ) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def shutdown_tracing():
    """
    Shutdown tracing and flush all pending spans.

    Should be called before application exit.
    """
    global _tracer, _tracer_provider

    if _tracer_provider:
        _tracer_provider.shutdown()
        logger.info("Tracing shutdown complete")
    _tracer = None
    _tracer_provider = None
