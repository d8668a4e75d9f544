"""Root conftest — shared schema fixtures and test configuration.

Invariants:
    - Tests never touch a configured production database
    - Every store-backed test gets a fresh file-backed SQLite database under tmp_path
    - Seed data is identical for every test

Design Decisions:
    - File-backed SQLite over :memory:: each pooled aiosqlite connection must see the same data
"""

import os

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("LOG_FORMAT", "text")

from app.config import Settings  # noqa: E402
from app.core.schema_catalog import Column, Table  # noqa: E402
from app.infrastructure.database import SqlRecordStore  # noqa: E402
from app.infrastructure.introspection import discover  # noqa: E402
from app.services.crud_dispatcher import CrudDispatcher  # noqa: E402

SCHEMA = [
    """
    CREATE TABLE items (
        id INTEGER PRIMARY KEY,
        title VARCHAR(255) NOT NULL,
        description TEXT NOT NULL,
        updated VARCHAR(255) NULL
    )
    """,
    """
    CREATE TABLE users (
        user_id INTEGER PRIMARY KEY,
        login VARCHAR(255) NOT NULL,
        password VARCHAR(255) NOT NULL,
        email VARCHAR(255) NOT NULL,
        info TEXT NOT NULL,
        updated VARCHAR(255) NULL
    )
    """,
    """
    CREATE TABLE scores (
        id INTEGER PRIMARY KEY,
        player VARCHAR(50) NOT NULL,
        points INTEGER NOT NULL,
        ratio REAL NULL,
        active BOOLEAN NULL
    )
    """,
    """
    CREATE TABLE tags (
        name VARCHAR(50) NOT NULL PRIMARY KEY,
        weight INTEGER NOT NULL
    )
    """,
]

SEED = [
    "INSERT INTO items (id, title, description, updated) VALUES "
    "(1, 'database/sql', 'Talk about databases', 'rvasily'), "
    "(2, 'memcache', 'Talk about memcache with a usage example', NULL)",
    "INSERT INTO users (user_id, login, password, email, info, updated) VALUES "
    "(1, 'rvasily', 'love', 'rvasily@example.com', 'none', NULL)",
    "INSERT INTO tags (name, weight) VALUES ('go', 3)",
]


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'explorer.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(
        _env_file=None, database_url=database_url, log_format="text",
    )


@pytest.fixture
async def engine(database_url):
    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        for ddl in SCHEMA:
            await conn.execute(text(ddl))
        for statement in SEED:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()


@pytest.fixture
async def catalog(engine):
    return await discover(engine)


@pytest.fixture
def store(engine):
    return SqlRecordStore(engine, timeout_seconds=5.0)


@pytest.fixture
def dispatcher(catalog, store, settings):
    return CrudDispatcher(catalog, store, settings)


@pytest.fixture
def make_table():
    """Build a Table from (name, declared_type, nullable) triples; first column is the key."""
    def _make(name, columns, auto_key=True):
        built = []
        for i, (col_name, declared, nullable) in enumerate(columns):
            built.append(Column(
                name=col_name,
                declared_type=declared,
                nullable=nullable,
                is_primary_key=i == 0,
                is_auto_generated=auto_key and i == 0,
            ))
        return Table(name=name, columns=tuple(built), primary_key=built[0].name)
    return _make


@pytest.fixture
def items_table(make_table):
    return make_table("items", [
        ("id", "INTEGER", False),
        ("title", "VARCHAR(255)", False),
        ("description", "TEXT", False),
        ("updated", "VARCHAR(255)", True),
    ])
