"""
Log Ingest - FastAPI Application

Application factory. Builds the FastAPI app, wires middleware, error handlers
and routers, and owns the MongoDB store for the lifetime of the process.

Run with: uvicorn logingest.main:create_app --factory
      or: python -m logingest.main
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, configure_logging, get_settings
from .core.errors import StorageFailure, setup_error_handlers
from .core.middleware import RequestLoggingMiddleware
from .db import MongoStore
from .routers import health_router, logs_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    - Startup: connect the store
    - Shutdown: close the store
    """
    store = app.state.store
    settings: Settings = app.state.settings

    logger.info(
        f"🚀 Starting Log Ingest v{__version__} "
        f"(env={settings.ENVIRONMENT}, validate_user_id={settings.VALIDATE_USER_ID})"
    )

    try:
        await store.connect()
        logger.info("✅ Store connected")
    except StorageFailure as e:
        # Keep serving /health; /logs answers 500 until the server is reachable
        logger.error(f"❌ Failed to reach MongoDB: {e.__cause__!r}")

    yield

    logger.info("🛑 Shutting down Log Ingest...")
    await store.close()
    logger.info("✅ Shutdown complete")


def create_app(settings: Settings | None = None, store: Any | None = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Configuration; loaded from the environment when omitted
        store: Object exposing `logs`, `users`, `connect()` and `close()`;
            a MongoStore built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = MongoStore.from_settings(settings)

    app = FastAPI(
        title="Log Ingest",
        description="Batch log ingestion with optional user_id validation.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    # First added = innermost; CORS must be outermost for preflight
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_error_handlers(app)

    app.include_router(health_router)
    app.include_router(logs_router)

    logger.info(f"FastAPI app created: {app.title}")
    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)

    uvicorn.run(
        "logingest.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
