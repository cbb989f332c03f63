"""Trace context propagation across HTTP headers and message attributes.

The carrier is any string-keyed mapping. Request headers and broker message
attributes go through the same code path; nothing here knows which transport
the carrier came from.
"""

from collections.abc import Awaitable, Callable, Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from typing import TypeVar

from opentelemetry import baggage, propagate, trace
from opentelemetry import context as otel_context
from opentelemetry.context import Context

T = TypeVar("T")


def trace_fields() -> frozenset[str]:
    """Carrier keys owned by the configured propagator."""
    return frozenset(propagate.get_global_textmap().fields)


def has_span_context(ctx: Context | None) -> bool:
    """Whether a context names a parent span (trace id and span id)."""
    if ctx is None:
        return False
    return trace.get_current_span(ctx).get_span_context().is_valid


def has_trace_context(ctx: Context) -> bool:
    """Whether a context carries a valid span context or any baggage."""
    return has_span_context(ctx) or bool(baggage.get_all(ctx))


def extract(carrier: Mapping[str, str] | None) -> Context | None:
    """Rebuild a trace context from a carrier.

    Returns None when the carrier holds no recognised keys. That is an
    ordinary outcome, not an error.
    """
    if not carrier:
        return None
    ctx = propagate.extract(carrier, context=Context())
    if not has_trace_context(ctx):
        return None
    return ctx


def inject(ctx: Context, carrier: MutableMapping[str, str]) -> None:
    """Write the trace keys for ``ctx`` into ``carrier``.

    Only propagator-owned keys are written, so unrelated entries survive and
    repeated injection of the same context leaves the carrier unchanged.
    ``ctx`` is always the context written; use ``current_carrier`` for the
    ambient one.
    """
    if ctx is None:
        raise TypeError("inject() needs an explicit context; use current_carrier()")
    propagate.inject(carrier, context=ctx)


def current_carrier() -> dict[str, str]:
    """Serialize the active context into a fresh carrier."""
    carrier: dict[str, str] = {}
    inject(otel_context.get_current(), carrier)
    return carrier


@contextmanager
def with_context(ctx: Context | None) -> Iterator[Context]:
    """Make ``ctx`` the ambient context for the duration of the block.

    The previous context is restored on exit, including when the block raises.
    A None context leaves the ambient context untouched.
    """
    if ctx is None:
        yield otel_context.get_current()
        return

    token = otel_context.attach(ctx)
    try:
        yield ctx
    finally:
        otel_context.detach(token)


def run_with_context(ctx: Context | None, operation: Callable[[], T]) -> T:
    """Run a synchronous operation under ``ctx``."""
    with with_context(ctx):
        return operation()


async def run_with_context_async(
    ctx: Context | None, operation: Callable[[], Awaitable[T]]
) -> T:
    """Run a coroutine function under ``ctx``."""
    with with_context(ctx):
        return await operation()
