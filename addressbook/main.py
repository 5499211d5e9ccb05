"""Address Book API: FastAPI application factory and entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers render every failure as a JSON:API error document
    - ResourceConfig is built once per application from Settings and reaches
      the mappers only through app.state.resources
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - create_app(settings) factory plus a module-level `app` for uvicorn
      (`uvicorn addressbook.main:app`); tests build their own app per test
    - Lifespan over @app.on_event
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from addressbook.api.error_handlers import register_error_handlers
from addressbook.api.routes import health
from addressbook.api.routes.resources import build_resource_router
from addressbook.config import Settings, get_settings
from addressbook.core.domain_types import ResourceType
from addressbook.infrastructure import database
from addressbook.infrastructure.observability import setup_logging
from addressbook.services.resource_registry import build_registry

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        manager = database.init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if settings.database_create_tables:
            await manager.create_tables()
        logger.info("Address Book API started")
        yield
        await manager.dispose()
        logger.info("Address Book API shutting down")

    app = FastAPI(title="Address Book API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.resources = build_registry(settings.resource_config())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(build_resource_router(ResourceType.CONTACTS))
    app.include_router(build_resource_router(ResourceType.PHONE_NUMBERS))

    register_error_handlers(app)
    return app


app = create_app()
