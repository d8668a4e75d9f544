"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every store round trip goes through RecordStore
    - One method call = one statement = one round trip; no connection held between calls

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Async in Protocol: implementations do IO; the pure builder and validator
      around them stay synchronous
"""

from typing import Mapping, Protocol

from app.core.query_builder import DialectTraits, Statement


class RecordStore(Protocol):
    """Contract for statement execution — implemented by infrastructure/database.py."""

    @property
    def dialect(self) -> DialectTraits: ...

    async def fetch_all(self, statement: Statement) -> list[Mapping[str, object]]: ...

    async def execute(self, statement: Statement) -> int:
        """Run a write, return affected row count."""
        ...

    async def insert(self, statement: Statement) -> object:
        """Run an insert, return the store-assigned key (RETURNING value or lastrowid)."""
        ...
