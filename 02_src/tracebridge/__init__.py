"""Trace-context propagation across an HTTP → message broker → consumer hop."""

from .app import Application, IApplication
from .broker import IBroker, InMemoryBroker, PubSubBroker, create_broker
from .config import Settings
from .errors import (
    BrokerConfigurationError,
    MissingTraceContextError,
    PublishError,
    TelemetryConfigurationError,
    TraceBridgeError,
)
from .handlers import ConsumerHandler, ProducerHandler, ProducerResponse
from .models import Message
from .propagation import extract, inject, run_with_context, with_context
from .telemetry import ITelemetry, Telemetry, init_telemetry

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "Message",
    # Propagation
    "extract",
    "inject",
    "with_context",
    "run_with_context",
    # Components
    "IBroker",
    "InMemoryBroker",
    "PubSubBroker",
    "create_broker",
    "ProducerHandler",
    "ProducerResponse",
    "ConsumerHandler",
    "ITelemetry",
    "Telemetry",
    "init_telemetry",
    # Errors
    "TraceBridgeError",
    "MissingTraceContextError",
    "PublishError",
    "TelemetryConfigurationError",
    "BrokerConfigurationError",
]
