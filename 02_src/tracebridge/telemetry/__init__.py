"""Telemetry module."""

from .telemetry import ITelemetry, Telemetry, init_telemetry

__all__ = ["ITelemetry", "Telemetry", "init_telemetry"]
