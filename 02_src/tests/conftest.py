"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def settings():
    """Settings with demo delays disabled."""
    from tracebridge.config import Settings

    return Settings(
        service_name="tracebridge-test",
        pre_publish_delay=0.0,
        post_publish_delay=0.0,
        consume_delay=0.0,
    )


@pytest.fixture
def span_exporter():
    """Collect finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(settings, span_exporter):
    """Telemetry pipeline exporting to memory; never touches the global provider."""
    from tracebridge.telemetry import init_telemetry

    tel = init_telemetry(settings, exporter=span_exporter)
    yield tel
    tel.shutdown()


@pytest.fixture
def tracer(telemetry):
    """Tracer bound to the in-memory pipeline."""
    return telemetry.tracer


@pytest.fixture
def broker():
    """In-memory broker."""
    from tracebridge.broker import InMemoryBroker

    return InMemoryBroker()


@pytest.fixture
def producer(broker, tracer, settings):
    """Producer handler wired to the in-memory broker."""
    from tracebridge.handlers import ProducerHandler

    return ProducerHandler(broker, tracer, settings)


@pytest.fixture
def consumer(tracer, settings):
    """Consumer handler."""
    from tracebridge.handlers import ConsumerHandler

    return ConsumerHandler(tracer, settings)


@pytest.fixture
def traced_headers(tracer):
    """Headers carrying the context of a finished client span."""
    from tracebridge.propagation import current_carrier

    with tracer.start_as_current_span("client request") as span:
        headers = current_carrier()
    return {"headers": headers, "span_context": span.get_span_context()}


@pytest_asyncio.fixture
async def application(settings, span_exporter):
    """Started Application using the in-memory broker."""
    from tracebridge.app import Application

    app = Application(settings=settings, span_exporter=span_exporter)
    await app.start()
    yield app
    await app.stop()
