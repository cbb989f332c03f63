"""Structured JSON logs that line up with the active trace.

Records are written one JSON object per line using the field names Cloud
Logging recognises (``severity``, ``logging.googleapis.com/trace`` and
friends), so a log entry emitted inside the producer or consumer span shows up
under that span in Cloud Trace. Outside Google Cloud the plain ``trace_id`` and
``span_id`` fields serve the same purpose for any other backend.
"""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path

from opentelemetry import trace

from .config import DEFAULT_LOG_PATH

CLOUD_TRACE_KEY = "logging.googleapis.com/trace"
CLOUD_SPAN_KEY = "logging.googleapis.com/spanId"
CLOUD_SAMPLED_KEY = "logging.googleapis.com/trace_sampled"
CLOUD_SOURCE_KEY = "logging.googleapis.com/sourceLocation"


class TraceContextFilter(logging.Filter):
    """Stamps each record with the ids of the span active when it was logged.

    Args:
        project_id: Google Cloud project. When set, records also carry the
                    fully qualified Cloud Trace resource name.
    """

    def __init__(self, project_id: str | None = None):
        super().__init__()
        self.project_id = project_id

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
            record.trace_sampled = span_context.trace_flags.sampled
            if self.project_id:
                record.cloud_trace = f"projects/{self.project_id}/traces/{record.trace_id}"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            CLOUD_SOURCE_KEY: {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            entry["trace_id"] = trace_id
            entry["span_id"] = record.span_id
            entry[CLOUD_SPAN_KEY] = record.span_id
            entry[CLOUD_SAMPLED_KEY] = record.trace_sampled
            cloud_trace = getattr(record, "cloud_trace", None)
            if cloud_trace:
                entry[CLOUD_TRACE_KEY] = cloud_trace

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Structured payload passed as extra={"context": {...}}
        context = getattr(record, "context", None)
        if context is not None:
            entry["context"] = context

        return json.dumps(entry, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    project_id: str | None = None,
) -> None:
    """
    Route the root logger to stdout and a rotating file, both as JSON.

    Args:
        log_level: Level name. Defaults to LOG_LEVEL, then INFO.
        log_file: Log file path. Defaults to LOG_FILE, then 04_logs/app.log.
        project_id: Project used to qualify trace ids. Defaults to
                    GOOGLE_CLOUD_PROJECT; unqualified when neither is set.
    """
    log_level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_file = log_file or os.getenv("LOG_FILE") or str(DEFAULT_LOG_PATH)
    project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT") or None

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    handler_defaults = {"formatter": "json", "filters": ["trace_context"]}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "trace_context": {
                    "()": "tracebridge.logging_config.TraceContextFilter",
                    "project_id": project_id,
                },
            },
            "formatters": {
                "json": {"()": "tracebridge.logging_config.JSONFormatter"},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    **handler_defaults,
                },
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": log_file,
                    "maxBytes": 10 * 1024 * 1024,
                    "backupCount": 5,
                    "encoding": "utf-8",
                    **handler_defaults,
                },
            },
            "root": {"level": log_level, "handlers": ["stdout", "file"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; configuration is applied once by ``setup_logging``."""
    return logging.getLogger(name)
