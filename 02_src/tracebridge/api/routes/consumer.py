"""Pub/Sub push delivery route."""

import base64
import binascii
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from fastapi import APIRouter, HTTPException, Response

from ...app import Application
from ...logging_config import get_logger
from ...models import Message

logger = get_logger(__name__)


class PushMessage(BaseModel):
    """Message part of a Pub/Sub push envelope."""

    model_config = ConfigDict(populate_by_name=True)

    data: str = ""  # base64
    attributes: dict[str, str] | None = None
    message_id: str = Field(alias="messageId")
    publish_time: datetime | None = Field(default=None, alias="publishTime")


class PushEnvelope(BaseModel):
    """Request body posted by a Pub/Sub push subscription."""

    message: PushMessage
    subscription: str | None = None


def to_message(envelope: PushEnvelope, topic: str) -> Message:
    """Convert a push envelope into a broker Message."""
    push = envelope.message
    return Message(
        id=push.message_id,
        topic=topic,
        data=base64.b64decode(push.data, validate=True),
        attributes=dict(push.attributes or {}),
        publish_time=push.publish_time or datetime.now(timezone.utc),
    )


def create_consumer_router(app: Application) -> APIRouter:
    """Create consumer router."""
    router = APIRouter(prefix="/pubsub", tags=["consumer"])

    @router.post("/push", status_code=204)
    async def receive_push(envelope: PushEnvelope) -> Response:
        """Deliver a pushed message to the consumer handler."""
        try:
            message = to_message(envelope, app.settings.topic)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid message data: {e}")

        try:
            await app.consumer.handle(message)
        except Exception as e:
            # Non-2xx makes Pub/Sub redeliver
            logger.error(
                "Consumer failed",
                exc_info=e,
                extra={"context": {"message_id": message.id}},
            )
            raise HTTPException(status_code=500, detail=str(e))

        return Response(status_code=204)

    return router
