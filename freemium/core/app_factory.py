"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from freemium.api.routes import health_router, premium_router, usage_router
from freemium.core.config import settings
from freemium.core.exception_handlers import setup_exception_handlers
from freemium.core.logging import configure_logging
from freemium.core.middleware import request_id_middleware
from freemium.core.store import close_kv_store


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_kv_store()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log, debug=settings.app.debug)

    app = FastAPI(
        title="Freemium Quota API",
        description=(
            "Tracks per-user usage against a rolling 24-hour free allowance and "
            "manages time-bounded premium grants that lift the limit. Backed by "
            "a key-value store with per-key TTL (in-memory or Redis)."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(usage_router, prefix="/v1")
    app.include_router(premium_router, prefix="/v1")
    app.include_router(health_router)

    return app
