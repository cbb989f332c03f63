"""Google Cloud Pub/Sub broker."""

import asyncio

from google.cloud import pubsub_v1

from ..errors import BrokerConfigurationError, PublishError
from ..logging_config import get_logger
from .broker import MessageHandler

logger = get_logger(__name__)


class PubSubBroker:
    """Publishes to Cloud Pub/Sub topics.

    Delivery to the consumer happens through a push subscription that posts to
    the service's HTTP endpoint, so ``subscribe`` is not supported here.
    """

    def __init__(self, project_id: str, client: pubsub_v1.PublisherClient | None = None):
        if not project_id:
            raise BrokerConfigurationError(
                "GOOGLE_CLOUD_PROJECT must be set for the pubsub broker"
            )
        self._project_id = project_id
        self._client = client or pubsub_v1.PublisherClient()

    def topic_path(self, topic: str) -> str:
        return self._client.topic_path(self._project_id, topic)

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        raise BrokerConfigurationError(
            "Pub/Sub delivery uses push subscriptions",
            {"topic": topic},
        )

    async def publish(
        self, topic: str, data: bytes, attributes: dict[str, str] | None = None
    ) -> str:
        """Publish and wait for the server-assigned message id."""
        topic_path = self.topic_path(topic)
        try:
            future = self._client.publish(topic_path, data, **(attributes or {}))
            message_id = await asyncio.wrap_future(future)
        except Exception as e:
            raise PublishError(
                f"Failed to publish to {topic_path}: {e}",
                {"topic": topic_path},
            ) from e

        logger.debug("Published %s to %s", message_id, topic_path)
        return message_id

    async def close(self) -> None:
        """Flush batched messages and stop the publisher."""
        await asyncio.to_thread(self._client.stop)
