"""Application bootstrap and lifecycle management."""

from typing import Protocol

from opentelemetry.sdk.trace.export import SpanExporter

from .broker import IBroker, InMemoryBroker, create_broker
from .config import Settings
from .handlers import ConsumerHandler, ProducerHandler
from .logging_config import get_logger
from .telemetry import Telemetry, init_telemetry

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        broker: IBroker | None = None,
        span_exporter: SpanExporter | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._span_exporter = span_exporter

        # Components (will be initialized in start())
        self._telemetry: Telemetry | None = None
        self._broker: IBroker | None = broker
        self._producer: ProducerHandler | None = None
        self._consumer: ConsumerHandler | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Telemetry (process-lifetime resource)
        self._telemetry = init_telemetry(self._settings, exporter=self._span_exporter)

        # 2. Broker
        if self._broker is None:
            self._broker = create_broker(self._settings)
        logger.info("Broker initialized: %s", type(self._broker).__name__)

        # 3. Handlers (depend on Broker + Telemetry)
        tracer = self._telemetry.tracer
        self._producer = ProducerHandler(self._broker, tracer, self._settings)
        self._consumer = ConsumerHandler(tracer, self._settings)

        # 4. In-process delivery; Pub/Sub delivers via the push endpoint
        if isinstance(self._broker, InMemoryBroker):
            self._broker.subscribe(self._settings.topic, self._consumer.handle)
            logger.info("Consumer subscribed to topic %s", self._settings.topic)

        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._broker:
            await self._broker.close()
            logger.info("Broker closed")
        if self._telemetry:
            self._telemetry.shutdown()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def telemetry(self) -> Telemetry:
        """Get telemetry handle."""
        if not self._telemetry:
            raise RuntimeError("Application not started")
        return self._telemetry

    @property
    def broker(self) -> IBroker:
        """Get broker instance."""
        if not self._broker:
            raise RuntimeError("Application not started")
        return self._broker

    @property
    def producer(self) -> ProducerHandler:
        """Get producer handler."""
        if not self._producer:
            raise RuntimeError("Application not started")
        return self._producer

    @property
    def consumer(self) -> ConsumerHandler:
        """Get consumer handler."""
        if not self._consumer:
            raise RuntimeError("Application not started")
        return self._consumer
