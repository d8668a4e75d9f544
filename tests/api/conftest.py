"""API test fixtures — FastAPI app wired to a seeded SQLite database.

Invariants:
    - Each test gets its own app, engine and catalog
    - db_manager patched for the readiness probe; app.state.dispatcher set as the lifespan would

Design Decisions:
    - Lifespan not run by ASGITransport: the fixture performs the same wiring by hand
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

import app.infrastructure.database as db_module
from app.infrastructure.database import DatabaseManager
from app.infrastructure.introspection import discover
from app.main import create_app
from app.services.crud_dispatcher import CrudDispatcher


@pytest.fixture
def extra_ddl():
    """Statements run on the seeded database before discovery. Override by parametrizing."""
    return []


@pytest.fixture
async def api_app(engine, settings, monkeypatch, extra_ddl):
    async with engine.begin() as conn:
        for statement in extra_ddl:
            await conn.execute(text(statement))
    manager = DatabaseManager(settings.database_url)
    monkeypatch.setattr(db_module, "db_manager", manager)
    application = create_app(settings)
    catalog = await discover(manager.engine)
    application.state.dispatcher = CrudDispatcher(catalog, manager.store, settings)
    yield application
    await manager.dispose()


@pytest.fixture
async def client(api_app):
    async with AsyncClient(
        transport=ASGITransport(app=api_app), base_url="http://test",
    ) as c:
        yield c
