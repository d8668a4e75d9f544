"""Envelope Schemas — Pydantic models documenting the explorer's response shapes.

Invariants:
    - Success bodies are {"response": {...}}; failure bodies are {"error": "<message>"}
    - Record cells are scalars (null, int, float, str, bool) after coercion

Design Decisions:
    - Models describe the OpenAPI contract only: the dispatcher builds plain dicts,
      tests validate them against these models
"""

from typing import Union

from pydantic import BaseModel, RootModel

Cell = Union[None, bool, int, float, str]


class ErrorEnvelope(BaseModel):
    """Any failure."""
    error: str


class TablesPayload(BaseModel):
    tables: list[str]


class RecordsPayload(BaseModel):
    records: list[dict[str, Cell]]


class RecordPayload(BaseModel):
    record: dict[str, Cell]


class UpdatedPayload(BaseModel):
    updated: int


class DeletedPayload(BaseModel):
    deleted: int


class InsertedPayload(RootModel[dict[str, Union[int, str]]]):
    """{<primary key name>: <new id>} — the key name depends on the table."""


class TablesEnvelope(BaseModel):
    response: TablesPayload


class RecordsEnvelope(BaseModel):
    response: RecordsPayload


class RecordEnvelope(BaseModel):
    response: RecordPayload


class InsertedEnvelope(BaseModel):
    response: InsertedPayload


class UpdatedEnvelope(BaseModel):
    response: UpdatedPayload


class DeletedEnvelope(BaseModel):
    response: DeletedPayload


ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Invalid id, type mismatch or nothing to update"},
    404: {"model": ErrorEnvelope, "description": "Unknown table or record not found"},
    500: {"model": ErrorEnvelope, "description": "Store or schema failure"},
}
