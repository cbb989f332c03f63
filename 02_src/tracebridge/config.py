"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_TOPIC = "test"
DEFAULT_MESSAGE_TEXT = "Hello from Firebase!"
DEFAULT_BROKER_HISTORY_LIMIT = 1000

TRACE_EXPORTERS = ("console", "otlp", "cloudtrace")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _env_list(name: str, default: list[str]) -> list[str]:
    """Read a comma-separated list from the environment."""
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings for the producer/consumer service."""

    service_name: str = "firebase-functions"
    topic: str = DEFAULT_TOPIC
    region: str = "asia-northeast1"

    # Broker: "memory" (in-process) or "pubsub" (Google Cloud Pub/Sub)
    broker_backend: str = "memory"
    gcp_project: str | None = None
    broker_history_limit: int = DEFAULT_BROKER_HISTORY_LIMIT

    # Telemetry: trace_exporter is "console", "otlp" or "cloudtrace"; None picks
    # otlp when an endpoint is set, console otherwise
    trace_exporter: str | None = None
    otlp_endpoint: str | None = None
    install_global_provider: bool = False
    register_atexit: bool = False

    # Producer behaviour
    require_parent_context: bool = True
    pre_publish_delay: float = 0.5
    post_publish_delay: float = 0.5
    consume_delay: float = 1.0

    # HTTP
    api_host: str = "localhost"
    api_port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "firebase-functions"),
            topic=os.getenv("TOPIC_NAME", DEFAULT_TOPIC),
            region=os.getenv("REGION", "asia-northeast1"),
            broker_backend=os.getenv("BROKER_BACKEND", "memory").lower(),
            gcp_project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
            broker_history_limit=_env_int(
                "BROKER_HISTORY_LIMIT", DEFAULT_BROKER_HISTORY_LIMIT
            ),
            trace_exporter=(os.getenv("TRACE_EXPORTER") or "").lower() or None,
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            install_global_provider=_env_bool("TELEMETRY_INSTALL_GLOBAL", True),
            register_atexit=_env_bool("TELEMETRY_REGISTER_ATEXIT", True),
            require_parent_context=_env_bool("REQUIRE_PARENT_CONTEXT", True),
            pre_publish_delay=_env_float("PRE_PUBLISH_DELAY", 0.5),
            post_publish_delay=_env_float("POST_PUBLISH_DELAY", 0.5),
            consume_delay=_env_float("CONSUME_DELAY", 1.0),
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=_env_int("API_PORT", 8000),
            cors_origins=_env_list("CORS_ORIGINS", ["*"]),
        )
