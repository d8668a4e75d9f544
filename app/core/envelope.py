"""Operation Descriptors & Envelopes — the contract between transport and dispatcher.

Invariants:
    - OperationDescriptor is built by the transport adapter, never mutated after
    - Every success is {"response": <shape>}; every failure is {"error": <message>}
    - Shape depends only on ResponseKind — never on the table

Design Decisions:
    - Envelope builders as plain functions returning dicts: FastAPI encodes them as-is
"""

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from app.core.domain_types import Operation, Record, ResponseKind


@dataclass(frozen=True)
class OperationDescriptor:
    method: Operation
    table: str | None = None
    id: str | None = None
    query: Mapping[str, str] = field(default_factory=dict)
    body: object = None


@dataclass(frozen=True)
class DispatchResult:
    status_code: int
    body: dict

    @property
    def ok(self) -> bool:
        return self.status_code < 400


def success(kind: ResponseKind, payload: object, key_name: str | None = None) -> dict:
    """Wrap a payload in the success envelope for its kind."""
    if kind is ResponseKind.INSERTED:
        if not key_name:
            raise ValueError("inserted envelope needs the primary key name")
        return {"response": {key_name: payload}}
    return {"response": {kind.value: payload}}


def tables_envelope(names: Sequence[str]) -> dict:
    return success(ResponseKind.TABLES, list(names))


def records_envelope(records: Sequence[Record]) -> dict:
    return success(ResponseKind.RECORDS, list(records))


def record_envelope(record: Record) -> dict:
    return success(ResponseKind.RECORD, record)


def inserted_envelope(primary_key: str, new_id: object) -> dict:
    return success(ResponseKind.INSERTED, new_id, key_name=primary_key)


def updated_envelope(count: int) -> dict:
    return success(ResponseKind.UPDATED, count)


def deleted_envelope(count: int) -> dict:
    return success(ResponseKind.DELETED, count)


def error_envelope(message: str) -> dict:
    return {"error": message}
