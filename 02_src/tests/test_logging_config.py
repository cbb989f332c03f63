"""Tests for structured logging."""

import json
import logging
import sys

from tracebridge.logging_config import JSONFormatter, TraceContextFilter, setup_logging


def make_record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tracebridge.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def render(record: logging.LogRecord, project_id: str | None = None) -> dict:
    TraceContextFilter(project_id).filter(record)
    return json.loads(JSONFormatter().format(record))


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        """Test the base JSON fields."""
        data = render(make_record())

        assert data["severity"] == "INFO"
        assert data["logger"] == "tracebridge.test"
        assert data["message"] == "hello"
        assert data["logging.googleapis.com/sourceLocation"]["line"] == 10
        assert "trace_id" not in data
        assert "logging.googleapis.com/trace" not in data

    def test_context_extra(self):
        """Test the context extra is emitted."""
        data = render(make_record(context={"attributes": {"traceparent": "x"}}))

        assert data["context"] == {"attributes": {"traceparent": "x"}}

    def test_exception(self):
        """Test exception info is rendered."""
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = render(record)
        assert "ValueError: bad" in data["exception"]


class TestTraceContextFilter:
    """Tests for TraceContextFilter."""

    def test_ids_of_active_span(self, tracer):
        """Test records inside a span carry its trace and span ids."""
        with tracer.start_as_current_span("op") as span:
            data = render(make_record())

        sc = span.get_span_context()
        assert data["trace_id"] == format(sc.trace_id, "032x")
        assert data["span_id"] == format(sc.span_id, "016x")
        assert data["logging.googleapis.com/spanId"] == data["span_id"]
        assert data["logging.googleapis.com/trace_sampled"] is True
        assert "logging.googleapis.com/trace" not in data

    def test_project_qualifies_trace(self, tracer):
        """Test a project turns the trace id into a Cloud Trace resource name."""
        with tracer.start_as_current_span("op") as span:
            data = render(make_record(), project_id="demo")

        trace_id = format(span.get_span_context().trace_id, "032x")
        assert data["logging.googleapis.com/trace"] == f"projects/demo/traces/{trace_id}"

    def test_never_drops_records(self):
        """Test the filter only annotates."""
        assert TraceContextFilter().filter(make_record()) is True


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_writes_traced_json_to_file(self, tmp_path, tracer):
        """Test records land in the file as JSON with the span's trace."""
        log_file = tmp_path / "logs" / "app.log"
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            setup_logging(log_level="debug", log_file=str(log_file), project_id="demo")
            with tracer.start_as_current_span("op") as span:
                logging.getLogger("tracebridge.test").info("written")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)

        data = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        trace_id = format(span.get_span_context().trace_id, "032x")
        assert data["message"] == "written"
        assert data["logging.googleapis.com/trace"] == f"projects/demo/traces/{trace_id}"
