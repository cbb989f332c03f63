"""Broker module."""

from ..config import Settings
from ..errors import BrokerConfigurationError
from .broker import IBroker, InMemoryBroker, MessageHandler
from .pubsub import PubSubBroker


def create_broker(settings: Settings) -> IBroker:
    """Build the broker selected by ``settings.broker_backend``."""
    if settings.broker_backend == "memory":
        return InMemoryBroker(history_limit=settings.broker_history_limit)
    if settings.broker_backend == "pubsub":
        return PubSubBroker(project_id=settings.gcp_project or "")
    raise BrokerConfigurationError(
        f"Unknown broker backend: {settings.broker_backend}",
        {"backend": settings.broker_backend},
    )


__all__ = [
    "IBroker",
    "InMemoryBroker",
    "MessageHandler",
    "PubSubBroker",
    "create_broker",
]
