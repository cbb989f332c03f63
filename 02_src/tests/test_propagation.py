"""Tests for the propagation bridge."""

import pytest
from opentelemetry import baggage, trace
from opentelemetry import context as otel_context
from opentelemetry.context import Context
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags, TraceState

from tracebridge.propagation import (
    extract,
    has_span_context,
    has_trace_context,
    inject,
    run_with_context,
    run_with_context_async,
    trace_fields,
    with_context,
)


def make_context(
    trace_id: int = 0x0AF7651916CD43DD8448EB211C80319C,
    span_id: int = 0x00F067AA0BA902B7,
    sampled: bool = True,
    trace_state: TraceState | None = None,
) -> Context:
    """Build a context holding a remote span context."""
    span_context = SpanContext(
        trace_id=trace_id,
        span_id=span_id,
        is_remote=True,
        trace_flags=TraceFlags(TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT),
        trace_state=trace_state or TraceState(),
    )
    return trace.set_span_in_context(NonRecordingSpan(span_context), Context())


def span_context_of(ctx: Context) -> SpanContext:
    return trace.get_current_span(ctx).get_span_context()


class TestExtract:
    """Tests for extract()."""

    def test_empty_carrier_is_absent(self):
        """Test that an empty carrier yields no context."""
        assert extract({}) is None

    def test_none_carrier_is_absent(self):
        """Test that a missing carrier yields no context."""
        assert extract(None) is None

    def test_unrelated_keys_are_absent(self):
        """Test that carriers without trace keys yield no context."""
        assert extract({"content-type": "text/plain", "x-custom": "1"}) is None

    def test_malformed_traceparent_is_absent(self):
        """Test that an invalid traceparent is treated as absent, not an error."""
        assert extract({"traceparent": "not-a-traceparent"}) is None

    def test_valid_traceparent(self):
        """Test extracting a W3C traceparent header."""
        ctx = extract(
            {"traceparent": "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"}
        )

        assert ctx is not None
        sc = span_context_of(ctx)
        assert sc.trace_id == 0x0AF7651916CD43DD8448EB211C80319C
        assert sc.span_id == 0xB7AD6B7169203331
        assert sc.trace_flags.sampled
        assert sc.is_remote

    def test_extract_ignores_ambient_context(self, tracer):
        """Test that extraction depends only on the carrier."""
        with tracer.start_as_current_span("ambient"):
            assert extract({}) is None
            assert extract({"x-other": "1"}) is None

    def test_baggage_only_counts_as_context(self):
        """Test that a carrier with baggage but no span is still a context."""
        ctx = extract({"baggage": "tenant=acme"})

        assert ctx is not None
        assert baggage.get_baggage("tenant", ctx) == "acme"

    def test_baggage_only_has_no_parent_span(self):
        """Test that baggage alone does not name a parent span."""
        ctx = extract({"baggage": "tenant=acme"})

        assert not has_span_context(ctx)
        assert has_span_context(
            extract({"traceparent": "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"})
        )
        assert not has_span_context(None)


class TestInject:
    """Tests for inject()."""

    def test_round_trip(self):
        """Test extract(inject(C)) reconstructs C."""
        original = make_context(trace_state=TraceState([("vendor", "value")]))
        carrier: dict[str, str] = {}

        inject(original, carrier)
        restored = extract(carrier)

        assert restored is not None
        before, after = span_context_of(original), span_context_of(restored)
        assert after.trace_id == before.trace_id
        assert after.span_id == before.span_id
        assert after.trace_flags == before.trace_flags
        assert after.trace_state == before.trace_state

    def test_round_trip_unsampled(self):
        """Test that the sampling decision survives the round trip."""
        carrier: dict[str, str] = {}
        inject(make_context(sampled=False), carrier)

        restored = extract(carrier)
        assert restored is not None
        assert not span_context_of(restored).trace_flags.sampled

    def test_round_trip_with_baggage(self):
        """Test that baggage survives the round trip."""
        original = baggage.set_baggage("tenant", "acme", make_context())
        carrier: dict[str, str] = {}

        inject(original, carrier)
        restored = extract(carrier)

        assert baggage.get_baggage("tenant", restored) == "acme"

    def test_round_trip_recording_span(self, tracer):
        """Test round trip of a locally started span."""
        with tracer.start_as_current_span("local") as span:
            carrier: dict[str, str] = {}
            inject(otel_context.get_current(), carrier)

        restored = extract(carrier)
        assert span_context_of(restored).trace_id == span.get_span_context().trace_id
        assert span_context_of(restored).span_id == span.get_span_context().span_id

    def test_inject_is_idempotent(self):
        """Test injecting twice equals injecting once."""
        ctx = make_context()
        once: dict[str, str] = {}
        twice: dict[str, str] = {}

        inject(ctx, once)
        inject(ctx, twice)
        inject(ctx, twice)

        assert once == twice

    def test_inject_preserves_unrelated_keys(self):
        """Test that injection leaves non-trace keys untouched."""
        carrier = {"content-type": "application/json", "x-request-id": "abc"}

        inject(make_context(), carrier)

        assert carrier["content-type"] == "application/json"
        assert carrier["x-request-id"] == "abc"
        assert "traceparent" in carrier

    def test_inject_writes_only_trace_fields(self):
        """Test that only propagator-owned keys are written."""
        carrier: dict[str, str] = {}

        inject(baggage.set_baggage("k", "v", make_context()), carrier)

        assert set(carrier) <= trace_fields()

    def test_inject_empty_context_writes_nothing(self):
        """Test that an empty context produces an empty carrier."""
        carrier: dict[str, str] = {}

        inject(Context(), carrier)

        assert carrier == {}

    def test_explicit_empty_context_ignores_active_span(self, tracer):
        """Test that inject writes the given context, never the ambient one."""
        carrier: dict[str, str] = {}

        with tracer.start_as_current_span("ambient"):
            inject(Context(), carrier)

        assert carrier == {}

    def test_inject_requires_a_context(self):
        """Test that a missing context is rejected instead of using the ambient one."""
        with pytest.raises(TypeError):
            inject(None, {})

    def test_trace_fields_include_w3c_keys(self):
        """Test that the default propagator owns the W3C keys."""
        assert {"traceparent", "tracestate", "baggage"} <= trace_fields()


class TestWithContext:
    """Tests for with_context() and friends."""

    def test_spans_are_parented(self, tracer):
        """Test spans started inside with_context are children of the context."""
        parent = make_context()

        with with_context(parent):
            with tracer.start_as_current_span("child") as child:
                pass

        assert child.parent is not None
        assert child.parent.span_id == span_context_of(parent).span_id
        assert child.get_span_context().trace_id == span_context_of(parent).trace_id

    def test_restores_previous_context(self):
        """Test the prior ambient context is restored on exit."""
        before = otel_context.get_current()

        with with_context(make_context()):
            assert has_trace_context(otel_context.get_current())

        assert otel_context.get_current() == before

    def test_restores_previous_context_on_error(self):
        """Test the prior ambient context is restored when the body raises."""
        before = otel_context.get_current()

        with pytest.raises(RuntimeError):
            with with_context(make_context()):
                raise RuntimeError("boom")

        assert otel_context.get_current() == before

    def test_none_context_is_noop(self):
        """Test that a None context leaves the ambient context alone."""
        before = otel_context.get_current()

        with with_context(None) as active:
            assert active == before

    def test_run_with_context_returns_result(self):
        """Test run_with_context returns the operation result."""
        parent = make_context()

        result = run_with_context(
            parent,
            lambda: trace.get_current_span().get_span_context().span_id,
        )

        assert result == span_context_of(parent).span_id

    @pytest.mark.asyncio
    async def test_run_with_context_async(self):
        """Test the coroutine variant scopes the context around the await."""
        parent = make_context()
        before = otel_context.get_current()

        async def operation():
            return trace.get_current_span().get_span_context().trace_id

        result = await run_with_context_async(parent, operation)

        assert result == span_context_of(parent).trace_id
        assert otel_context.get_current() == before
