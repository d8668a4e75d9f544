"""Schema Discovery — reads table and column metadata from the live store.

Invariants:
    - Read-only: only introspection queries are issued
    - All-or-nothing: any failure raises SchemaError and no Catalog is returned
    - Column order = order reported by the store
    - Declared types are compiled with the connected dialect ("VARCHAR(255)", "INTEGER")

Design Decisions:
    - SQLAlchemy Inspector over SHOW/information_schema queries: one code path for
      MySQL, PostgreSQL and SQLite
    - Inspector is sync-only: run through AsyncConnection.run_sync
"""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Dialect, Inspector
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.errors import SchemaError
from app.core.schema_catalog import Catalog, RawColumn, build_table
from app.infrastructure.database import store_message

logger = logging.getLogger(__name__)


def declared_type(column_info: dict, dialect: Dialect) -> str:
    """Raw type string for a reflected column. Empty when the store declares none."""
    type_ = column_info["type"]
    try:
        return type_.compile(dialect=dialect)
    except SQLAlchemyError:
        return ""


def is_auto_generated(
    column_info: dict, type_name: str, primary_key: list[str], dialect_name: str,
) -> bool:
    """True when the store assigns the column's value on insert."""
    if column_info.get("identity") or column_info.get("computed"):
        return True
    if column_info["name"] not in primary_key:
        return False
    if column_info.get("autoincrement") is True:
        return True
    # SQLite: a lone INTEGER PRIMARY KEY aliases the rowid
    return (
        dialect_name == "sqlite"
        and len(primary_key) == 1
        and type_name.strip().upper() == "INTEGER"
    )


def describe_table(
    inspector: Inspector, dialect: Dialect, table_name: str,
) -> list[RawColumn]:
    primary_key = inspector.get_pk_constraint(table_name).get("constrained_columns") or []
    described: list[RawColumn] = []
    for info in inspector.get_columns(table_name):
        type_name = declared_type(info, dialect)
        described.append(RawColumn(
            name=info["name"],
            declared_type=type_name,
            nullable=bool(info.get("nullable", True)),
            is_primary_key=info["name"] in primary_key,
            is_auto_generated=is_auto_generated(info, type_name, primary_key, dialect.name),
        ))
    return described


def _discover_sync(conn: Connection) -> Catalog:
    inspector = inspect(conn)
    tables = []
    for table_name in inspector.get_table_names():
        tables.append(build_table(
            table_name, describe_table(inspector, conn.dialect, table_name),
        ))
    return Catalog(tables)


async def discover(engine: AsyncEngine) -> Catalog:
    """Build the Catalog from the connected store or raise SchemaError."""
    try:
        async with engine.connect() as conn:
            catalog = await conn.run_sync(_discover_sync)
    except SchemaError as e:
        logger.critical(f"Schema discovery rejected a table: {e.message}",
                        extra={"table": e.table, "error_code": e.code})
        raise
    except SQLAlchemyError as e:
        logger.critical(f"Schema discovery failed: {e}")
        raise SchemaError(f"schema discovery failed: {store_message(e)}") from e
    except OSError as e:
        logger.critical(f"Store unreachable during discovery: {e}")
        raise SchemaError(f"schema discovery failed: {e}") from e

    logger.info(
        f"Discovered {len(catalog)} table(s): {', '.join(catalog.table_names())}",
    )
    return catalog
