"""Producer trigger route."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ...app import Application

TRIGGER_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_producer_router(app: Application) -> APIRouter:
    """Create producer router."""
    router = APIRouter(tags=["producer"])

    @router.api_route("/helloWorld", methods=TRIGGER_METHODS)
    async def hello_world(request: Request) -> PlainTextResponse:
        """Publish a traced message to the topic."""
        result = await app.producer.handle(request.headers)
        return PlainTextResponse(result.body, status_code=result.status_code)

    return router
