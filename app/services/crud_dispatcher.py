"""CRUD Dispatcher — explicit routing from operation descriptor to catalog, builder and store.

Invariants:
    - Pipeline per request: Received → TableResolved → (ValidatePayload) → QueryBuilt
      → Executed → ResponseShaped; no state survives the request
    - Every DbExplorerError resolves into exactly one {"error": ...} envelope (never raises)
    - Writes validate the WHOLE payload before any statement is built
    - Exactly one store round trip per operation, single attempt, no retry
    - The catalog is only read, never written

Design Decisions:
    - Explicit dict from Operation to handler: every mapping visible in one place
    - Pure core (builder, validator, coercion) sandwiched between async store calls
"""

import logging
from typing import Awaitable, Callable, Mapping

from app.config import Settings
from app.core.domain_types import Operation, WritePayload
from app.core.envelope import (
    DispatchResult, OperationDescriptor,
    deleted_envelope, inserted_envelope, record_envelope, records_envelope,
    tables_envelope, updated_envelope,
)
from app.core.errors import (
    DbExplorerError, ErrorContext, ErrorSeverity, RecordNotFoundError, TypeMismatchError,
)
from app.core.query_builder import (
    build_delete, build_get, build_insert, build_list, build_update,
    inserted_key, parse_id, parse_limit, parse_offset,
)
from app.core.repository_protocols import RecordStore
from app.core.schema_catalog import Catalog, Table
from app.core.value_coercion import coerce_row, validate_payload

logger = logging.getLogger(__name__)

Handler = Callable[[OperationDescriptor], Awaitable[dict]]


class CrudDispatcher:
    """Routes operation -> handler. Explicit registration, no auto-discovery."""

    def __init__(self, catalog: Catalog, store: RecordStore, settings: Settings):
        self._catalog = catalog
        self._store = store
        self._default_limit = settings.default_list_limit
        self._reject_unknown = settings.reject_unknown_fields

        self._handlers: dict[Operation, Handler] = {
            Operation.LIST_TABLES: self.list_tables,
            Operation.LIST: self.list_records,
            Operation.GET_BY_ID: self.get_record,
            Operation.CREATE: self.create_record,
            Operation.UPDATE: self.update_record,
            Operation.DELETE: self.delete_record,
        }

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    async def handle(self, descriptor: OperationDescriptor) -> DispatchResult:
        """Run one operation. Returns the envelope and its HTTP status."""
        handler = self._handlers[descriptor.method]
        try:
            body = await handler(descriptor)
        except DbExplorerError as e:
            self._log_failure(descriptor, e)
            return DispatchResult(e.http_status, e.to_response())
        return DispatchResult(200, body)

    # ─── Handlers ────────────────────────────────────────────────

    async def list_tables(self, descriptor: OperationDescriptor) -> dict:
        return tables_envelope(self._catalog.sorted_table_names())

    async def list_records(self, descriptor: OperationDescriptor) -> dict:
        table = self._resolve(descriptor)
        limit = parse_limit(descriptor.query.get("limit"), self._default_limit)
        offset = parse_offset(descriptor.query.get("offset"))
        rows = await self._store.fetch_all(
            build_list(table, self._store.dialect, limit, offset),
        )
        return records_envelope([coerce_row(row, table) for row in rows])

    async def get_record(self, descriptor: OperationDescriptor) -> dict:
        table = self._resolve(descriptor)
        record_id = parse_id(descriptor.id, table)
        rows = await self._store.fetch_all(
            build_get(table, self._store.dialect, record_id),
        )
        if not rows:
            raise RecordNotFoundError(
                table.name, record_id,
                ErrorContext(table=table.name, record_id=str(record_id)),
            )
        return record_envelope(coerce_row(rows[0], table))

    async def create_record(self, descriptor: OperationDescriptor) -> dict:
        table = self._resolve(descriptor)
        payload = self._payload(descriptor, table)
        supplied = validate_payload(
            payload, table, allow_primary_key=True, reject_unknown=self._reject_unknown,
        )
        statement = build_insert(table, self._store.dialect, supplied)
        new_id = await self._store.insert(statement)
        key = table.primary_key_column
        if not statement.returns_key and not key.is_auto_generated:
            given = inserted_key(table, supplied)
            if given is not None:
                new_id = given
        logger.info(
            f"Inserted into {table.name}",
            extra={"table": table.name, "operation": "create", "record_id": str(new_id)},
        )
        return inserted_envelope(table.primary_key, new_id)

    async def update_record(self, descriptor: OperationDescriptor) -> dict:
        table = self._resolve(descriptor)
        record_id = parse_id(descriptor.id, table)
        payload = self._payload(descriptor, table)
        assignments = validate_payload(
            payload, table, allow_primary_key=False, reject_unknown=self._reject_unknown,
        )
        count = await self._store.execute(
            build_update(table, self._store.dialect, assignments, record_id),
        )
        return updated_envelope(count)

    async def delete_record(self, descriptor: OperationDescriptor) -> dict:
        table = self._resolve(descriptor)
        record_id = parse_id(descriptor.id, table)
        count = await self._store.execute(
            build_delete(table, self._store.dialect, record_id),
        )
        return deleted_envelope(count)

    # ─── Helpers ─────────────────────────────────────────────────

    def _resolve(self, descriptor: OperationDescriptor) -> Table:
        return self._catalog.lookup(descriptor.table or "")

    @staticmethod
    def _payload(descriptor: OperationDescriptor, table: Table) -> WritePayload:
        """Write body as a mapping. A non-object body is a type mismatch on the table itself."""
        body = descriptor.body
        if body is None:
            return {}
        if not isinstance(body, Mapping):
            raise TypeMismatchError("body", ErrorContext(table=table.name))
        return body

    @staticmethod
    def _log_failure(descriptor: OperationDescriptor, error: DbExplorerError) -> None:
        extra = error.log_extra()
        extra["table"] = extra["table"] or descriptor.table
        extra["operation"] = descriptor.method.value
        if error.severity is ErrorSeverity.CRITICAL:
            logger.error(f"{descriptor.method.value} failed: {error.message}", extra=extra)
        else:
            logger.warning(f"{descriptor.method.value} rejected: {error.message}", extra=extra)
