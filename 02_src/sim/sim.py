"""SIM implementation - sends traced requests to the producer endpoint."""

import asyncio
from typing import Protocol

import httpx
from opentelemetry import trace
from opentelemetry.trace import SpanKind

from tracebridge.logging_config import get_logger
from tracebridge.propagation import current_carrier

logger = get_logger(__name__)


class ISim(Protocol):
    """Generate traced traffic against the producer."""

    async def start(self) -> None:
        """Start sending requests."""
        ...

    async def stop(self) -> None:
        """Stop sending requests."""
        ...


class Sim:
    """Periodically calls the producer with a fresh root trace per request."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracer: trace.Tracer | None = None,
        interval: float = 5.0,
        max_requests: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._api_url = api_url
        self._tracer = tracer or trace.get_tracer("tracebridge.sim")
        self._interval = interval
        self._max_requests = max_requests
        self._running = False
        self._task: asyncio.Task | None = None
        self._client = client
        self._owns_client = client is None
        self.sent = 0

    async def start(self) -> None:
        """Start the request loop in the background."""
        if self._running:
            return

        self._running = True
        if self._client is None:
            self._client = httpx.AsyncClient()

        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the request loop."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _run(self) -> None:
        try:
            while self._running:
                if self._max_requests is not None and self.sent >= self._max_requests:
                    break
                await self.send_request()
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM loop error: %s", e, exc_info=e)
        finally:
            self._running = False

    async def send_request(self) -> httpx.Response | None:
        """Send one request carrying a new root span's context."""
        if not self._client:
            return None

        with self._tracer.start_as_current_span("sim request", kind=SpanKind.CLIENT):
            headers = current_carrier()
            try:
                response = await self._client.post(
                    f"{self._api_url}/helloWorld",
                    headers=headers,
                    timeout=10.0,
                )
            except httpx.HTTPError as e:
                logger.error("SIM: Failed to call producer: %s", e)
                return None

        self.sent += 1
        if response.status_code == 200:
            logger.info("SIM: %s", response.text)
        else:
            logger.error("SIM: Producer returned %s", response.status_code)
        return response
