"""Type Families — classifies raw declared column types into coarse families.

Invariants:
    - Classification uses the first word of the declared type, lowercased, parameters stripped
      ("varchar(255)" → varchar, "double precision" → double, "int(11) unsigned" → int)
    - Unrecognized types map to ColumnFamily.OTHER, never raise
    - tinyint(1) is boolean; any other tinyint width is numeric
    - Pure functions, no store access

Design Decisions:
    - Word sets over substring search: "point" and "interval" must not read as int
"""

import re

from app.core.domain_types import ColumnFamily

_WORD = re.compile(r"[a-z0-9_]+")
# MySQL spells BOOLEAN as TINYINT(1)
_BOOLEAN_TINYINT = re.compile(r"tinyint\s*\(\s*1\s*\)")

INTEGER_TYPES = frozenset({
    "tinyint", "smallint", "mediumint", "int", "integer", "bigint",
    "int2", "int4", "int8", "serial", "smallserial", "bigserial",
    "serial2", "serial4", "serial8",
})

NUMERIC_TYPES = INTEGER_TYPES | frozenset({
    "float", "float4", "float8", "double", "real",
    "decimal", "numeric", "dec", "fixed", "number",
})

TEXT_TYPES = frozenset({
    "char", "character", "varchar", "nchar", "nvarchar", "varchar2", "nvarchar2",
    "text", "tinytext", "mediumtext", "longtext", "ntext",
    "clob", "nclob", "string", "citext", "enum", "set", "uuid",
})

BOOLEAN_TYPES = frozenset({"bool", "boolean", "bit"})

TEMPORAL_TYPES = frozenset({
    "date", "time", "datetime", "timestamp", "timestamptz", "timetz", "year",
})


def base_type(declared_type: str) -> str:
    """First word of the declared type, lowercased. Empty string if none."""
    head = declared_type.lower().split("(", 1)[0]
    words = _WORD.findall(head)
    return words[0] if words else ""


def column_family(declared_type: str) -> ColumnFamily:
    if _BOOLEAN_TINYINT.match(declared_type.strip().lower()):
        return ColumnFamily.BOOLEAN
    base = base_type(declared_type)
    if base in NUMERIC_TYPES:
        return ColumnFamily.NUMERIC
    if base in TEXT_TYPES:
        return ColumnFamily.TEXT
    if base in BOOLEAN_TYPES:
        return ColumnFamily.BOOLEAN
    if base in TEMPORAL_TYPES:
        return ColumnFamily.TEMPORAL
    return ColumnFamily.OTHER


def is_integer_type(declared_type: str) -> bool:
    return base_type(declared_type) in INTEGER_TYPES


def zero_value(family: ColumnFamily) -> object:
    """Zero-equivalent used to fill omitted NOT NULL columns on insert.

    Returns None for families without a safe zero; the column is then left to the store.
    """
    if family is ColumnFamily.NUMERIC:
        return 0
    if family is ColumnFamily.TEXT:
        return ""
    if family is ColumnFamily.BOOLEAN:
        return False
    return None
