"""Database Manager — async engine, pooled single-statement execution, error mapping.

Invariants:
    - Every statement checks out its own pooled connection and returns it after one round trip
    - Writes run inside engine.begin(): committed on success, rolled back on exception
    - All SQLAlchemy exceptions mapped to StoreError carrying the driver's own message
    - Every round trip bounded by statement_timeout_seconds (StoreTimeoutError on expiry)
    - Connection pool uses pool_pre_ping for stale connection detection

Design Decisions:
    - Raw text() statements instead of ORM models: the schema is only known at runtime
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - No retry: statements are not assumed idempotent
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Mapping, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.errors import ErrorContext, StoreError, StoreTimeoutError
from app.core.query_builder import DialectTraits, Statement

logger = logging.getLogger(__name__)

T = TypeVar("T")


def store_message(exc: SQLAlchemyError) -> str:
    """The driver's own error text, without SQLAlchemy's statement dump."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc).split("\n", 1)[0]


@asynccontextmanager
async def translate_store_errors(operation: str) -> AsyncGenerator[None, None]:
    """Map SQLAlchemy exceptions raised inside the block to StoreError."""
    try:
        yield
    except IntegrityError as e:
        logger.error(f"DB integrity error: {e}")
        raise StoreError(store_message(e), operation) from e
    except OperationalError as e:
        logger.error(f"DB operational error: {e}")
        raise StoreError(store_message(e), operation) from e
    except DBAPIError as e:
        logger.error(f"DB driver error: {e}")
        raise StoreError(store_message(e), operation) from e
    except SQLAlchemyError as e:
        logger.error(f"SQLAlchemy error: {e}")
        raise StoreError(store_message(e), operation) from e


def dialect_traits(engine: AsyncEngine) -> DialectTraits:
    """Identifier quoting and insert capabilities of the connected dialect."""
    dialect = engine.dialect
    preparer = dialect.identifier_preparer

    def quote(identifier: str) -> str:
        # text() treats a bare colon as a bind marker
        return preparer.quote_identifier(identifier).replace(":", "\\:")

    return DialectTraits(
        quote=quote,
        insert_returning=bool(getattr(dialect, "insert_returning", False)),
        supports_default_values=bool(getattr(dialect, "supports_default_values", True)),
    )


class SqlRecordStore:
    """RecordStore over an AsyncEngine. One statement per call."""

    def __init__(self, engine: AsyncEngine, timeout_seconds: float = 30.0):
        self._engine = engine
        self._timeout = timeout_seconds

    @property
    def dialect(self) -> DialectTraits:
        # read per call: dialect flags are settled on first connect
        return dialect_traits(self._engine)

    async def _bounded(self, operation: str, work: Awaitable[T]) -> T:
        started = time.perf_counter()
        try:
            async with translate_store_errors(operation):
                return await asyncio.wait_for(work, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                f"Statement timed out after {self._timeout}s",
                extra={"operation": operation},
            )
            raise StoreTimeoutError(
                self._timeout, ErrorContext(operation=operation),
            ) from e
        finally:
            logger.debug(
                f"Store {operation} finished",
                extra={
                    "operation": operation,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )

    async def fetch_all(self, statement: Statement) -> list[Mapping[str, object]]:
        async def run() -> list[Mapping[str, object]]:
            async with self._engine.connect() as conn:
                result = await conn.execute(text(statement.sql), statement.params)
                return [dict(row) for row in result.mappings().all()]
        return await self._bounded("query", run())

    async def execute(self, statement: Statement) -> int:
        async def run() -> int:
            async with self._engine.begin() as conn:
                result = await conn.execute(text(statement.sql), statement.params)
                return result.rowcount
        return await self._bounded("execute", run())

    async def insert(self, statement: Statement) -> object:
        async def run() -> object:
            async with self._engine.begin() as conn:
                result = await conn.execute(text(statement.sql), statement.params)
                if statement.returns_key:
                    return result.scalar_one()
                return result.lastrowid
        return await self._bounded("insert", run())


class DatabaseManager:
    """Owns the async engine: pooling, health checks, the record store."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
        statement_timeout_seconds: float = 30.0,
    ):
        options: dict = {"pool_pre_ping": True}
        if make_url(database_url).get_backend_name() != "sqlite":
            options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **options)
        self.store = SqlRecordStore(self.engine, statement_timeout_seconds)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseManager:
    global db_manager
    db_manager = DatabaseManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is None:
        return
    await db_manager.dispose()
    db_manager = None
