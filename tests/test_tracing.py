"""
Tests for OpenTelemetry tracing helpers.

Tests the no-op fallback, setup/shutdown of the module tracer and error
recording on spans.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

import observability.tracing as tracing_module
from observability.tracing import create_span, get_tracer, setup_tracing, shutdown_tracing


@pytest.fixture(autouse=True)
def reset_tracing():
    shutdown_tracing()
    yield
    shutdown_tracing()


@pytest.fixture
def exporter():
    setup_tracing("auction-registry-test")
    span_exporter = InMemorySpanExporter()
    tracing_module._tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return span_exporter


class TestTracerLifecycle:
    """Test tracer setup and shutdown"""

    def test_fallback_is_noop(self):
        tracer = get_tracer()

        assert isinstance(tracer, trace.NoOpTracer)
        with create_span("auction.getAllAuctions") as span:
            assert not span.is_recording()

    def test_setup_then_shutdown(self):
        tracer = setup_tracing("auction-registry-test")

        assert get_tracer() is tracer
        with create_span("auction.getAllAuctions") as span:
            assert span.is_recording()

        shutdown_tracing()

        assert isinstance(get_tracer(), trace.NoOpTracer)
        assert tracing_module._tracer_provider is None

    def test_repeated_setup_uses_new_provider(self):
        first = setup_tracing("auction-registry-test")
        first_provider = tracing_module._tracer_provider

        second = setup_tracing("auction-registry-test")

        assert second is not first
        assert tracing_module._tracer_provider is not first_provider
        assert get_tracer() is second


class TestCreateSpan:
    """Test span attributes and error recording"""

    def test_attributes(self, exporter):
        with create_span("auction.getAuctionById", {"auction.id": "a1", "skipped": None}):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "auction.getAuctionById"
        assert span.attributes["auction.id"] == "a1"
        assert "skipped" not in span.attributes

    def test_error_recorded_and_reraised(self, exporter):
        with pytest.raises(ValueError):
            with create_span("auction.endAuction"):
                raise ValueError("time remaining")

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.status.description == "time remaining"
        assert [event.name for event in span.events] == ["exception"]
