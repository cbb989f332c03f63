"""HTTP-triggered producer: publishes a message carrying the caller's trace."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from ..broker import IBroker
from ..config import DEFAULT_MESSAGE_TEXT, Settings
from ..errors import MissingTraceContextError, TraceBridgeError
from ..logging_config import get_logger
from ..models import build_payload, encode_payload
from ..propagation import current_carrier, extract, has_span_context, with_context

logger = get_logger(__name__)

SUCCESS_BODY = "Message published successfully! Message ID: {message_id}"
ERROR_BODY = "Error publishing message"


@dataclass
class ProducerResponse:
    """Outcome of one producer invocation."""

    status_code: int
    body: str
    message_id: str | None = None


class IProducerHandler(Protocol):
    """Handles one inbound HTTP request."""

    async def handle(self, headers: Mapping[str, str]) -> ProducerResponse:
        """Publish a message and report the result."""
        ...


class ProducerHandler:
    """Publishes one message per request under the request's trace context."""

    def __init__(
        self,
        broker: IBroker,
        tracer: trace.Tracer,
        settings: Settings,
    ):
        self._broker = broker
        self._tracer = tracer
        self._settings = settings

    async def handle(self, headers: Mapping[str, str]) -> ProducerResponse:
        """Publish a message and report the result.

        Every failure is caught here once, logged, and turned into a 500.
        """
        try:
            message_id = await self._publish(headers)
        except Exception as e:
            details = e.to_dict() if isinstance(e, TraceBridgeError) else {
                "error": type(e).__name__,
                "message": str(e),
            }
            logger.error(
                "Error publishing message",
                exc_info=e,
                extra={"context": {"topic": self._settings.topic, **details}},
            )
            return ProducerResponse(status_code=500, body=ERROR_BODY)

        return ProducerResponse(
            status_code=200,
            body=SUCCESS_BODY.format(message_id=message_id),
            message_id=message_id,
        )

    async def _publish(self, headers: Mapping[str, str]) -> str:
        parent = extract(headers)
        has_parent_span = has_span_context(parent)
        if not has_parent_span:
            if self._settings.require_parent_context:
                raise MissingTraceContextError({"header_names": sorted(headers)})
            logger.info("No parent context found, starting a new trace")

        # A baggage-only parent still scopes the work so its baggage travels on
        with with_context(parent):
            payload = build_payload(DEFAULT_MESSAGE_TEXT)
            attributes = current_carrier() if has_parent_span else None

            await asyncio.sleep(self._settings.pre_publish_delay)

            with self._tracer.start_as_current_span(
                f"publish {self._settings.topic}",
                kind=SpanKind.PRODUCER,
                attributes={
                    "messaging.system": self._settings.broker_backend,
                    "messaging.destination.name": self._settings.topic,
                },
            ) as span:
                if attributes is None:
                    # New root trace: the publish span is the parent
                    attributes = current_carrier()
                logger.info("attributes", extra={"context": {"attributes": attributes}})

                message_id = await self._broker.publish(
                    self._settings.topic,
                    encode_payload(payload),
                    attributes,
                )
                span.set_attribute("messaging.message.id", message_id)

            await asyncio.sleep(self._settings.post_publish_delay)

        logger.info("Message published", extra={"context": {"message_id": message_id}})
        return message_id
