"""Topic-triggered consumer: resumes the producer's trace when present."""

import asyncio
from typing import Protocol

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from ..config import Settings
from ..logging_config import get_logger
from ..models import Message
from ..propagation import extract, with_context

logger = get_logger(__name__)

SPAN_NAME = "handleTestMessage"


class IConsumerHandler(Protocol):
    """Handles one delivered message."""

    async def handle(self, message: Message) -> None:
        """Process a message."""
        ...


class ConsumerHandler:
    """Logs delivered payloads, inside a span when the message is traced."""

    def __init__(self, tracer: trace.Tracer, settings: Settings):
        self._tracer = tracer
        self._settings = settings

    async def handle(self, message: Message) -> None:
        """Process a message; errors propagate to the delivering platform."""
        parent = extract(message.attributes) if message.attributes else None
        if parent is None:
            self._log_payload(message)
            return

        with with_context(parent):
            # Span ends exactly once on either exit path; exceptions are recorded
            with self._tracer.start_as_current_span(
                SPAN_NAME,
                kind=SpanKind.CONSUMER,
                attributes={
                    "messaging.destination.name": message.topic,
                    "messaging.message.id": message.id,
                },
            ):
                self._log_payload(message)
                await asyncio.sleep(self._settings.consume_delay)

    def _log_payload(self, message: Message) -> None:
        payload = message.json
        logger.info(
            "Received message on '%s' topic",
            message.topic,
            extra={"context": {"message_id": message.id, "payload": payload}},
        )
