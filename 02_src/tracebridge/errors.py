"""Exception types raised by tracebridge components."""

from typing import Any


class TraceBridgeError(Exception):
    """Base error for the producer/consumer service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured form for log context."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class MissingTraceContextError(TraceBridgeError):
    """Inbound request carried no extractable trace context."""

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("No parent context found", details)


class PublishError(TraceBridgeError):
    """Broker rejected or failed to acknowledge a publish."""


class BrokerConfigurationError(TraceBridgeError):
    """Broker backend is misconfigured or the operation is unsupported."""


class TelemetryConfigurationError(TraceBridgeError):
    """Trace exporter selection is invalid."""
