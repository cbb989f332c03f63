"""Process-wide OpenTelemetry pipeline.

The pipeline is created once per process by ``init_telemetry`` and handed to
the components that need a tracer. ``Telemetry.shutdown`` flushes pending spans
and is safe to call more than once, so it can be registered with ``atexit``
and also called from the web server's lifespan shutdown.
"""

import atexit
from typing import Protocol

from opentelemetry import trace
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from ..config import TRACE_EXPORTERS, Settings
from ..errors import TelemetryConfigurationError
from ..logging_config import get_logger

logger = get_logger(__name__)

INSTRUMENTATION_NAME = "tracebridge"


class ITelemetry(Protocol):
    """Handle to the process telemetry pipeline."""

    @property
    def tracer(self) -> trace.Tracer:
        """Tracer used by handlers."""
        ...

    def shutdown(self) -> None:
        """Flush and release exporters."""
        ...


class Telemetry:
    """Owns the tracer provider and its span processors."""

    def __init__(self, provider: TracerProvider):
        self._provider = provider
        self._tracer = provider.get_tracer(INSTRUMENTATION_NAME)
        self._closed = False

    @property
    def provider(self) -> TracerProvider:
        return self._provider

    @property
    def tracer(self) -> trace.Tracer:
        return self._tracer

    @property
    def closed(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        """Flush pending spans and shut the provider down."""
        if self._closed:
            return
        self._closed = True
        atexit.unregister(self.shutdown)
        try:
            self._provider.force_flush()
            self._provider.shutdown()
            logger.info("OpenTelemetry SDK shut down")
        except Exception:
            logger.exception("Error shutting down OpenTelemetry SDK")


def _exporter_choice(settings: Settings) -> str:
    if settings.trace_exporter:
        return settings.trace_exporter
    return "otlp" if settings.otlp_endpoint else "console"


def _build_exporter(settings: Settings) -> SpanExporter:
    """Pick the exporter for this process."""
    choice = _exporter_choice(settings)

    if choice == "cloudtrace":
        # Project falls back to the one of the default credentials
        logger.info("Cloud Trace exporter configured: %s", settings.gcp_project or "<default>")
        return CloudTraceSpanExporter(project_id=settings.gcp_project)

    if choice == "otlp":
        if not settings.otlp_endpoint:
            raise TelemetryConfigurationError(
                "OTLP exporter needs OTEL_EXPORTER_OTLP_ENDPOINT",
                {"exporter": choice},
            )
        logger.info("OTLP exporter configured: %s", settings.otlp_endpoint)
        return OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)

    if choice == "console":
        logger.info("Console exporter configured")
        return ConsoleSpanExporter()

    raise TelemetryConfigurationError(
        f"Unknown trace exporter: {choice}",
        {"exporter": choice, "choices": list(TRACE_EXPORTERS)},
    )


def init_telemetry(
    settings: Settings,
    exporter: SpanExporter | None = None,
) -> Telemetry:
    """
    Initialize the telemetry pipeline for this process.

    Args:
        settings: Service settings (service name, region, exporter choice).
        exporter: Explicit exporter. Spans are exported synchronously when
                  given, which is what tests rely on.

    Returns:
        Telemetry handle owning the provider.
    """
    resource = Resource.create(
        {
            SERVICE_NAME: settings.service_name,
            "cloud.region": settings.region,
        }
    )
    provider = TracerProvider(resource=resource, shutdown_on_exit=False)

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(_build_exporter(settings)))

    if settings.install_global_provider:
        trace.set_tracer_provider(provider)

    telemetry = Telemetry(provider)
    if settings.register_atexit:
        atexit.register(telemetry.shutdown)

    logger.info(
        "OpenTelemetry initialized",
        extra={"context": {"service": settings.service_name, "region": settings.region}},
    )
    return telemetry
