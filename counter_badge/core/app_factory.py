"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from counter_badge.api.routes import counter_router, health_router
from counter_badge.core.config import settings
from counter_badge.core.exception_handlers import setup_exception_handlers
from counter_badge.core.logging import configure_logging
from counter_badge.core.middleware import request_id_middleware
from counter_badge.core.openapi import apply_openapi_customizations
from counter_badge.core.storage import close_counter_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_counter_store()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log, debug=settings.app.debug)

    app = FastAPI(
        title="Visit Counter Badge",
        description=(
            "Serves an SVG visit counter badge for README files. Each request "
            "bumps a persistent counter, except repeated requests from the same "
            "client within the admission window, which only read it."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(counter_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
