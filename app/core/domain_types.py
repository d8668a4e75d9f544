"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid operation kinds and column families encoded as Enums — no raw string matching

Design Decisions:
    - str Enums: serialize to JSON and log without custom encoders
"""

from enum import Enum
from typing import Mapping


# ─── Value Types ─────────────────────────────────────────────────

Record = dict[str, object]
WritePayload = Mapping[str, object]


# ─── Enums ───────────────────────────────────────────────────────

class Operation(str, Enum):
    """Logical operations the dispatcher accepts."""
    LIST_TABLES = "list_tables"
    LIST = "list"
    GET_BY_ID = "get_by_id"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_write(self) -> bool:
        return self in (Operation.CREATE, Operation.UPDATE)


class ColumnFamily(str, Enum):
    """Coarse type family derived from a column's declared type."""
    TEXT = "text"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"
    OTHER = "other"


class ResponseKind(str, Enum):
    """Envelope payload shapes — callers discriminate by operation, not by table."""
    TABLES = "tables"
    RECORDS = "records"
    RECORD = "record"
    INSERTED = "inserted"
    UPDATED = "updated"
    DELETED = "deleted"
