"""Value Coercion & Validation — canonical cell values on read, type checks on write.

Invariants:
    - coerce_value: None → None; bytes → str (undecodable bytes replaced), or bool in
      boolean columns; integers in boolean columns → bool, otherwise → int;
      everything else passes through unchanged
    - validate_value: None ok iff nullable; str only for text (and temporal) columns;
      int/float only for numeric columns; bool only for boolean columns; any other shape fails
    - validate_payload stops at the FIRST violation, before any statement is built
    - Pure functions — no IO, no store access

Design Decisions:
    - Coarse checks only: range and precision stay the store's job
    - bool is tested before int: in Python bool is an int subclass
"""

from decimal import Decimal
from numbers import Integral
from typing import Mapping

from app.core.domain_types import ColumnFamily, Record
from app.core.errors import ErrorContext, TypeMismatchError, UnknownFieldError
from app.core.schema_catalog import Column, Table

_BYTES_TYPES = (bytes, bytearray, memoryview)


# ─── Read side ───────────────────────────────────────────────────

def coerce_value(value: object, column: Column | None) -> object:
    """Normalize one driver-native value into its canonical form."""
    if value is None:
        return None
    if isinstance(value, _BYTES_TYPES):
        raw = bytes(value)
        if column is not None and column.family is ColumnFamily.BOOLEAN:
            # MySQL BIT(1) arrives as b"\x00" / b"\x01"
            return int.from_bytes(raw, "big") != 0
        return raw.decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return value
    if isinstance(value, Integral):
        if column is not None and column.family is ColumnFamily.BOOLEAN:
            return bool(value)
        return int(value)
    if (
        isinstance(value, Decimal)
        and column is not None
        and column.is_integer
        and value == value.to_integral_value()
    ):
        return int(value)
    return value


def coerce_row(row: Mapping[str, object], table: Table) -> Record:
    """Normalize every cell of a result row. Columns unknown to the table pass through."""
    return {key: coerce_value(value, table.column(key)) for key, value in row.items()}


# ─── Write side ──────────────────────────────────────────────────

def is_valid_value(value: object, column: Column) -> bool:
    if value is None:
        return column.nullable
    family = column.family
    if isinstance(value, bool):
        return family is ColumnFamily.BOOLEAN
    if isinstance(value, (int, float)):
        return family is ColumnFamily.NUMERIC
    if isinstance(value, str):
        return family in (ColumnFamily.TEXT, ColumnFamily.TEMPORAL)
    return False


def validate_value(value: object, column: Column, table: str | None = None) -> None:
    """Raise TypeMismatchError if value does not fit the column."""
    if not is_valid_value(value, column):
        raise TypeMismatchError(
            column.name, ErrorContext(table=table, debug_info={"type": type(value).__name__}),
        )


def validate_payload(
    payload: Mapping[str, object],
    table: Table,
    *,
    allow_primary_key: bool,
    reject_unknown: bool = False,
) -> list[tuple[Column, object]]:
    """Check a write payload against the table, in payload order.

    Returns the (column, value) pairs that qualify. Unknown field names are
    skipped unless reject_unknown is set. A primary-key field is a type
    mismatch unless allow_primary_key is set; auto-generated primary keys
    are always dropped silently on create.
    """
    accepted: list[tuple[Column, object]] = []
    for field_name, value in payload.items():
        column = table.column(field_name)
        if column is None:
            if reject_unknown:
                raise UnknownFieldError(field_name, ErrorContext(table=table.name))
            continue
        if column.is_primary_key:
            if not allow_primary_key:
                raise TypeMismatchError(field_name, ErrorContext(table=table.name))
            if column.is_auto_generated:
                continue
        validate_value(value, column, table.name)
        accepted.append((column, value))
    return accepted
