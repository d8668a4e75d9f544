"""DB Explorer API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Catalog discovered once in the lifespan, before any request is served
    - SchemaError during discovery aborts startup: no catalog, no service
    - Global error handlers map every failure to {"error": ...}

Design Decisions:
    - Lifespan over @app.on_event
    - Dispatcher stored on app.state: one read-only instance shared by all requests
    - create_app() factory: tests build apps against their own settings and database
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import explorer, health
from app.config import Settings, get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.introspection import discover
from app.infrastructure.observability import setup_logging
from app.services.crud_dispatcher import CrudDispatcher

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        manager = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            statement_timeout_seconds=settings.statement_timeout_seconds,
        )
        try:
            catalog = await discover(manager.engine)
        except Exception:
            await close_db()
            raise
        app.state.dispatcher = CrudDispatcher(catalog, manager.store, settings)
        logger.info("DB Explorer API started")
        yield
        logger.info("DB Explorer API shutting down")
        app.state.dispatcher = None
        await close_db()

    app = FastAPI(title="DB Explorer API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # health first: its three-segment paths sit outside the explorer's /{table}/{id}
    app.include_router(health.router)
    app.include_router(explorer.router)

    register_error_handlers(app)
    return app


app = create_app()
