"""Explorer Routes — thin HTTP adapter from /{table}/{id} paths to operation descriptors.

Invariants:
    - Routes never contain business logic (delegate to CrudDispatcher)
    - Every response body is the dispatcher's envelope, status from DispatchResult
    - Trailing slashes accepted without redirect
    - Method mapping: GET / tables, GET /{table} list, GET /{table}/{id} get,
      PUT /{table} create, POST /{table}/{id} update, DELETE /{table}/{id} delete

Design Decisions:
    - Body read as raw JSON, not a Pydantic model: field names are only known at runtime
    - Malformed JSON becomes a non-object body, which the dispatcher rejects as a type mismatch
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.domain_types import Operation
from app.core.envelope import OperationDescriptor
from app.core.errors import SchemaError
from app.schemas.envelope import (
    ERROR_RESPONSES, DeletedEnvelope, InsertedEnvelope, RecordEnvelope,
    RecordsEnvelope, TablesEnvelope, UpdatedEnvelope,
)
from app.services.crud_dispatcher import CrudDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(tags=["explorer"])

_MALFORMED_BODY = object()


def get_dispatcher(request: Request) -> CrudDispatcher:
    """FastAPI dependency — dispatcher built in the lifespan after discovery."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise SchemaError("catalog is not loaded")
    return dispatcher


async def read_body(request: Request) -> object:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return await request.json()
    except ValueError:
        logger.warning("Malformed JSON body", extra={"path": request.url.path})
        return _MALFORMED_BODY


async def _dispatch(dispatcher: CrudDispatcher, descriptor: OperationDescriptor) -> JSONResponse:
    result = await dispatcher.handle(descriptor)
    return JSONResponse(
        status_code=result.status_code, content=jsonable_encoder(result.body),
    )


@router.get("/", response_model=TablesEnvelope, responses=ERROR_RESPONSES)
async def list_tables(dispatcher: CrudDispatcher = Depends(get_dispatcher)):
    """Names of every table in the catalog, sorted."""
    return await _dispatch(dispatcher, OperationDescriptor(Operation.LIST_TABLES))


@router.get("/{table}", response_model=RecordsEnvelope, responses=ERROR_RESPONSES)
@router.get("/{table}/", include_in_schema=False)
async def list_records(
    table: str, request: Request,
    dispatcher: CrudDispatcher = Depends(get_dispatcher),
):
    """Page of records. Query: limit (default 5), offset (default 0)."""
    return await _dispatch(dispatcher, OperationDescriptor(
        Operation.LIST, table=table, query=dict(request.query_params),
    ))


@router.get("/{table}/{record_id}", response_model=RecordEnvelope, responses=ERROR_RESPONSES)
@router.get("/{table}/{record_id}/", include_in_schema=False)
async def get_record(
    table: str, record_id: str,
    dispatcher: CrudDispatcher = Depends(get_dispatcher),
):
    return await _dispatch(dispatcher, OperationDescriptor(
        Operation.GET_BY_ID, table=table, id=record_id,
    ))


@router.put("/{table}", response_model=InsertedEnvelope, responses=ERROR_RESPONSES)
@router.put("/{table}/", include_in_schema=False)
async def create_record(
    table: str, request: Request,
    dispatcher: CrudDispatcher = Depends(get_dispatcher),
):
    """Insert a record. Returns {<primary key>: <new id>}."""
    return await _dispatch(dispatcher, OperationDescriptor(
        Operation.CREATE, table=table, body=await read_body(request),
    ))


@router.post("/{table}/{record_id}", response_model=UpdatedEnvelope, responses=ERROR_RESPONSES)
@router.post("/{table}/{record_id}/", include_in_schema=False)
async def update_record(
    table: str, record_id: str, request: Request,
    dispatcher: CrudDispatcher = Depends(get_dispatcher),
):
    return await _dispatch(dispatcher, OperationDescriptor(
        Operation.UPDATE, table=table, id=record_id, body=await read_body(request),
    ))


@router.delete("/{table}/{record_id}", response_model=DeletedEnvelope, responses=ERROR_RESPONSES)
@router.delete("/{table}/{record_id}/", include_in_schema=False)
async def delete_record(
    table: str, record_id: str,
    dispatcher: CrudDispatcher = Depends(get_dispatcher),
):
    return await _dispatch(dispatcher, OperationDescriptor(
        Operation.DELETE, table=table, id=record_id,
    ))
