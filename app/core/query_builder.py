"""Query Builder — parameterized SQL from catalog metadata, never from caller text.

Invariants:
    - Values are NEVER concatenated into SQL; they travel in Statement.args
    - Identifiers come only from the Catalog and are quoted by the dialect's quoter
    - Placeholders are :p0, :p1, ... in argument order; count mismatch raises
      StatementInvariantError (a bug, not a user error)
    - parse_limit/parse_offset never raise — bad input degrades to the default
    - Pure functions — dialect facts arrive as DialectTraits, no engine access

Design Decisions:
    - Positional names over "?" markers: SQLAlchemy text() binds by name on every driver
    - ORDER BY primary key on list: stable pages across calls
"""

import re
from dataclasses import dataclass
from typing import Callable, Sequence

from app.core.domain_types import ColumnFamily
from app.core.errors import (
    ErrorContext, InvalidIdError, NoFieldsToUpdateError, StatementInvariantError,
)
from app.core.schema_catalog import Column, Table
from app.core.type_families import zero_value

DEFAULT_LIMIT: int = 5
DEFAULT_OFFSET: int = 0
MAX_BIGINT: int = 2**63 - 1

_INT_TOKEN = re.compile(r"[+-]?[0-9]+")
_PLACEHOLDER = re.compile(r"(?<!\\):p([0-9]+)\b")


@dataclass(frozen=True)
class DialectTraits:
    """Store-specific facts the builder needs. Supplied by the shell."""
    quote: Callable[[str], str]
    insert_returning: bool = False
    supports_default_values: bool = True


@dataclass(frozen=True)
class Statement:
    sql: str
    args: tuple = ()
    returns_key: bool = False

    def __post_init__(self):
        found = sorted({int(n) for n in _PLACEHOLDER.findall(self.sql)})
        if found != list(range(len(self.args))):
            raise StatementInvariantError(
                f"statement has placeholders {found} for {len(self.args)} argument(s)",
            )

    @property
    def params(self) -> dict[str, object]:
        return {f"p{i}": value for i, value in enumerate(self.args)}


# ─── Request token parsing ───────────────────────────────────────

def _parse_int(token: object) -> int | None:
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        value = token
    elif isinstance(token, str) and _INT_TOKEN.fullmatch(token.strip()):
        value = int(token.strip())
    else:
        return None
    if abs(value) > MAX_BIGINT:
        return None
    return value


def parse_limit(token: object, default: int = DEFAULT_LIMIT) -> int:
    """Limit from a query token. Absent, unparseable, negative or oversized → default."""
    value = _parse_int(token)
    if value is None or value < 0:
        return default
    return value


def parse_offset(token: object) -> int:
    """Offset from a query token. Absent, unparseable, negative or oversized → 0."""
    value = _parse_int(token)
    if value is None or value < 0:
        return DEFAULT_OFFSET
    return value


def parse_id(token: object, table: Table) -> object:
    """Decode the id token into the primary key's shape or raise InvalidIdError."""
    key = table.primary_key_column
    ctx = ErrorContext(table=table.name, record_id=None if token is None else str(token))
    if token is None or token == "":
        raise InvalidIdError(None, ctx)
    if key.family is ColumnFamily.TEXT:
        return str(token)
    value = _parse_int(token)
    if value is None:
        raise InvalidIdError(str(token), ctx)
    return value


# ─── Statement construction ──────────────────────────────────────

def build_list(table: Table, dialect: DialectTraits, limit: int, offset: int) -> Statement:
    q = dialect.quote
    return Statement(
        f"SELECT * FROM {q(table.name)} ORDER BY {q(table.primary_key)} "
        f"LIMIT :p0 OFFSET :p1",
        (limit, offset),
    )


def build_get(table: Table, dialect: DialectTraits, record_id: object) -> Statement:
    q = dialect.quote
    return Statement(
        f"SELECT * FROM {q(table.name)} WHERE {q(table.primary_key)} = :p0",
        (record_id,),
    )


def insert_values(
    table: Table, supplied: Sequence[tuple[Column, object]],
) -> list[tuple[Column, object]]:
    """Column/value pairs for an insert, in discovery order.

    Auto-generated primary keys are excluded. Omitted NOT NULL columns that
    the store does not generate get their family's zero value.
    """
    given = {column.name: value for column, value in supplied}
    values: list[tuple[Column, object]] = []
    for column in table.columns:
        if column.is_primary_key and column.is_auto_generated:
            continue
        if column.name in given:
            values.append((column, given[column.name]))
            continue
        if column.nullable or column.is_auto_generated:
            continue
        zero = zero_value(column.family)
        if zero is not None:
            values.append((column, zero))
    return values


def build_insert(
    table: Table, dialect: DialectTraits, supplied: Sequence[tuple[Column, object]],
) -> Statement:
    q = dialect.quote
    values = insert_values(table, supplied)
    target = q(table.name)
    if values:
        names = ", ".join(q(column.name) for column, _ in values)
        marks = ", ".join(f":p{i}" for i in range(len(values)))
        sql = f"INSERT INTO {target} ({names}) VALUES ({marks})"
    elif dialect.supports_default_values:
        sql = f"INSERT INTO {target} DEFAULT VALUES"
    else:
        sql = f"INSERT INTO {target} () VALUES ()"
    if dialect.insert_returning:
        sql += f" RETURNING {q(table.primary_key)}"
    return Statement(
        sql, tuple(value for _, value in values), returns_key=dialect.insert_returning,
    )


def build_update(
    table: Table, dialect: DialectTraits,
    assignments: Sequence[tuple[Column, object]], record_id: object,
) -> Statement:
    if not assignments:
        raise NoFieldsToUpdateError(ErrorContext(table=table.name, record_id=str(record_id)))
    q = dialect.quote
    sets = ", ".join(f"{q(column.name)} = :p{i}" for i, (column, _) in enumerate(assignments))
    return Statement(
        f"UPDATE {q(table.name)} SET {sets} "
        f"WHERE {q(table.primary_key)} = :p{len(assignments)}",
        tuple(value for _, value in assignments) + (record_id,),
    )


def build_delete(table: Table, dialect: DialectTraits, record_id: object) -> Statement:
    q = dialect.quote
    return Statement(
        f"DELETE FROM {q(table.name)} WHERE {q(table.primary_key)} = :p0",
        (record_id,),
    )


def ansi_quote(identifier: str) -> str:
    """Double-quote an identifier, doubling embedded quotes and escaping colons."""
    return '"' + identifier.replace('"', '""').replace(":", "\\:") + '"'


ANSI_DIALECT = DialectTraits(quote=ansi_quote)


def inserted_key(table: Table, supplied: Sequence[tuple[Column, object]]) -> object:
    """Key value an insert writes itself, zero fill included. None when the store assigns it."""
    for column, value in insert_values(table, supplied):
        if column.is_primary_key:
            return value
    return None
