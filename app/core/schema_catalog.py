"""Schema Catalog — immutable, process-wide map of discovered table structure.

Invariants:
    - Every Table has exactly one Column with is_primary_key=True
    - Columns keep discovery order; table_names() keeps discovery order
    - Catalog, Table and Column never mutate after construction
    - build_table is PURE: raw column descriptions in, Table out (or SchemaError)

Design Decisions:
    - Frozen dataclasses + tuple columns + MappingProxyType: concurrent readers need no lock
      because no writer exists after startup
    - Store introspection lives in infrastructure/introspection.py; this module only assembles
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, TypedDict

from app.core.domain_types import ColumnFamily
from app.core.errors import ErrorContext, SchemaError, UnknownTableError
from app.core.type_families import column_family, is_integer_type


class RawColumn(TypedDict):
    """Column description as reported by the store, before assembly."""
    name: str
    declared_type: str
    nullable: bool
    is_primary_key: bool
    is_auto_generated: bool


@dataclass(frozen=True)
class Column:
    name: str
    declared_type: str
    nullable: bool
    is_primary_key: bool = False
    is_auto_generated: bool = False

    @property
    def family(self) -> ColumnFamily:
        return column_family(self.declared_type)

    @property
    def is_integer(self) -> bool:
        return is_integer_type(self.declared_type)


@dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[Column, ...]
    primary_key: str
    _by_name: Mapping[str, Column] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self):
        object.__setattr__(
            self, "_by_name",
            MappingProxyType({c.name: c for c in self.columns}),
        )

    def column(self, name: str) -> Column | None:
        return self._by_name.get(name)

    @property
    def primary_key_column(self) -> Column:
        return self._by_name[self.primary_key]

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)


def build_table(name: str, raw_columns: Iterable[RawColumn]) -> Table:
    """Assemble a Table from raw column descriptions.

    Raises SchemaError when the table has no columns, no primary key, or a
    composite primary key.
    """
    columns = tuple(
        Column(
            name=raw["name"],
            declared_type=raw["declared_type"],
            nullable=bool(raw["nullable"]),
            is_primary_key=bool(raw["is_primary_key"]),
            is_auto_generated=bool(raw["is_auto_generated"]),
        )
        for raw in raw_columns
    )
    if not columns:
        raise SchemaError(f"table {name} has no columns", table=name)

    keys = [c.name for c in columns if c.is_primary_key]
    if not keys:
        raise SchemaError(f"table {name} has no primary key", table=name)
    if len(keys) > 1:
        raise SchemaError(
            f"table {name} has a composite primary key ({', '.join(keys)})",
            table=name,
        )
    return Table(name=name, columns=columns, primary_key=keys[0])


class Catalog:
    """Read-only table registry. Built once, shared by every request."""

    def __init__(self, tables: Iterable[Table]):
        ordered: dict[str, Table] = {}
        for table in tables:
            if table.name in ordered:
                raise SchemaError(f"table {table.name} discovered twice", table=table.name)
            ordered[table.name] = table
        self._tables: Mapping[str, Table] = MappingProxyType(ordered)
        self._sorted_names = tuple(sorted(ordered))

    def lookup(self, table_name: str) -> Table:
        table = self._tables.get(table_name)
        if table is None:
            raise UnknownTableError(table_name, ErrorContext(table=table_name))
        return table

    def get(self, table_name: str) -> Table | None:
        return self._tables.get(table_name)

    def table_names(self) -> tuple[str, ...]:
        return tuple(self._tables)

    def sorted_table_names(self) -> tuple[str, ...]:
        return self._sorted_names

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._tables

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
