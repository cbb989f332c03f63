"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import consumer, control, producer


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        # Startup
        await application.start()
        yield
        # Shutdown (uvicorn runs this on SIGTERM)
        sim_instance = control.get_sim_instance()
        if sim_instance:
            await sim_instance.stop()
        await application.stop()

    fastapi_app = FastAPI(
        title="Trace Bridge API",
        description="Trace-context propagation across a Pub/Sub hop",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=application.settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.get("/health", tags=["health"])
    async def health() -> dict:
        """Liveness check."""
        return {"status": "ok"}

    # Include routers
    fastapi_app.include_router(producer.create_producer_router(application))
    fastapi_app.include_router(consumer.create_consumer_router(application))
    fastapi_app.include_router(control.create_control_router())

    return fastapi_app
