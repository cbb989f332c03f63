"""In-process broker implementation for pub/sub messaging."""

import asyncio
import functools
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from opentelemetry.context import Context

from ..config import DEFAULT_BROKER_HISTORY_LIMIT
from ..logging_config import get_logger
from ..models import Message
from ..propagation import with_context

logger = get_logger(__name__)

MessageHandler = Callable[[Message], Awaitable[None]]


class IBroker(Protocol):
    """Publishes messages to named topics."""

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Subscribe a handler to a topic."""
        ...

    async def publish(
        self, topic: str, data: bytes, attributes: dict[str, str] | None = None
    ) -> str:
        """Publish a message and return the broker-assigned message id."""
        ...

    async def close(self) -> None:
        """Release broker resources."""
        ...


class InMemoryBroker:
    """
    In-memory pub/sub broker.

    ``publish`` acknowledges as soon as the message is recorded. Subscribers
    run afterwards in background tasks, the way a real broker delivers, so a
    slow consumer never holds up the producer. Only the newest
    ``history_limit`` messages are kept in ``published``.
    """

    def __init__(self, history_limit: int = DEFAULT_BROKER_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._subscribers: dict[str, list[MessageHandler]] = {}
        self._published: deque[Message] = deque(maxlen=history_limit)
        self._deliveries: set[asyncio.Task] = set()

    @property
    def published(self) -> list[Message]:
        """Retained messages, oldest first."""
        return list(self._published)

    @property
    def history_limit(self) -> int:
        return self._published.maxlen

    @property
    def pending(self) -> int:
        """Deliveries still running."""
        return len(self._deliveries)

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Subscribe a handler to a topic."""
        self._subscribers.setdefault(topic, []).append(handler)

    async def publish(
        self, topic: str, data: bytes, attributes: dict[str, str] | None = None
    ) -> str:
        """Record a message, schedule its deliveries and return its id."""
        message = Message(
            id=str(uuid.uuid4()),
            topic=topic,
            data=data,
            attributes=dict(attributes or {}),
            publish_time=datetime.now(timezone.utc),
        )
        self._published.append(message)

        for index, handler in enumerate(self._subscribers.get(topic, [])):
            task = asyncio.create_task(
                self._deliver(handler, message),
                name=f"deliver {topic} {message.id} #{index}",
            )
            self._deliveries.add(task)
            task.add_done_callback(functools.partial(self._delivery_done, message))

        return message.id

    async def _deliver(self, handler: MessageHandler, message: Message) -> None:
        """Run a subscriber outside the publisher's trace context."""
        # Only message attributes may carry trace context across the hop
        with with_context(Context()):
            await handler(message)

    def _delivery_done(self, message: Message, task: asyncio.Task) -> None:
        self._deliveries.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Error in handler %s: %s",
                task.get_name(),
                error,
                exc_info=error,
                extra={"context": {"topic": message.topic, "message_id": message.id}},
            )

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    async def close(self) -> None:
        """Finish in-flight deliveries, then drop subscriptions."""
        await self.drain()
        self._subscribers.clear()
