"""Propagation module."""

from .bridge import (
    current_carrier,
    extract,
    has_span_context,
    has_trace_context,
    inject,
    run_with_context,
    run_with_context_async,
    trace_fields,
    with_context,
)

__all__ = [
    "current_carrier",
    "extract",
    "has_span_context",
    "has_trace_context",
    "inject",
    "run_with_context",
    "run_with_context_async",
    "trace_fields",
    "with_context",
]
