"""CRUD Dispatcher — operation descriptors in, envelopes out, against a live SQLite store.

Invariants:
    - Every failure becomes {"error": ...} with its status; handle() never raises
    - Writes validate the whole payload before any statement runs
    - List defaults to 5 records from offset 0; offset past the end is an empty list
    - The catalog is never mutated by request handling
"""

import asyncio
from dataclasses import replace

from app.core.domain_types import Operation
from app.core.envelope import OperationDescriptor
from app.core.errors import StoreTimeoutError
from app.core.query_builder import ANSI_DIALECT
from app.infrastructure.database import SqlRecordStore
from app.services.crud_dispatcher import CrudDispatcher


def op(method, table=None, id=None, query=None, body=None):
    return OperationDescriptor(method, table=table, id=id, query=query or {}, body=body)


async def _seed_items(dispatcher, count):
    for i in range(count):
        result = await dispatcher.handle(op(
            Operation.CREATE, "items", body={"title": f"t{i}", "description": "d"},
        ))
        assert result.ok


# --- tables & list -----------------------------------------------------------

async def test_list_tables_sorted(dispatcher):
    result = await dispatcher.handle(op(Operation.LIST_TABLES))
    assert result.status_code == 200
    assert result.body == {"response": {"tables": ["items", "scores", "tags", "users"]}}


async def test_unknown_table(dispatcher):
    result = await dispatcher.handle(op(Operation.LIST, "unknown_table"))
    assert result.status_code == 404
    assert result.body == {"error": "unknown table"}


async def test_list_records(dispatcher):
    result = await dispatcher.handle(op(Operation.LIST, "items"))
    assert result.status_code == 200
    assert result.body == {"response": {"records": [
        {"id": 1, "title": "database/sql", "description": "Talk about databases",
         "updated": "rvasily"},
        {"id": 2, "title": "memcache", "description": "Talk about memcache with a usage example",
         "updated": None},
    ]}}


async def test_list_defaults_to_five_from_zero(dispatcher):
    await _seed_items(dispatcher, 6)
    result = await dispatcher.handle(op(Operation.LIST, "items"))
    records = result.body["response"]["records"]
    assert len(records) == 5
    assert records[0]["id"] == 1


async def test_list_limit_and_offset(dispatcher):
    result = await dispatcher.handle(op(Operation.LIST, "items", query={"limit": "1", "offset": "1"}))
    assert [r["id"] for r in result.body["response"]["records"]] == [2]


async def test_list_bad_tokens_fall_back_to_defaults(dispatcher):
    result = await dispatcher.handle(op(
        Operation.LIST, "items", query={"limit": "abc", "offset": "-4"},
    ))
    assert [r["id"] for r in result.body["response"]["records"]] == [1, 2]


async def test_list_offset_past_end_is_empty(dispatcher):
    result = await dispatcher.handle(op(Operation.LIST, "items", query={"offset": "10"}))
    assert result.status_code == 200
    assert result.body == {"response": {"records": []}}


# --- get ---------------------------------------------------------------------

async def test_get_record(dispatcher):
    result = await dispatcher.handle(op(Operation.GET_BY_ID, "users", id="1"))
    assert result.body == {"response": {"record": {
        "user_id": 1, "login": "rvasily", "password": "love",
        "email": "rvasily@example.com", "info": "none", "updated": None,
    }}}


async def test_get_non_numeric_id(dispatcher):
    result = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="abc"))
    assert result.status_code == 400
    assert result.body == {"error": "invalid id"}


async def test_get_missing_record(dispatcher):
    result = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="100500"))
    assert result.status_code == 404
    assert result.body == {"error": "record not found"}


async def test_get_by_text_key(dispatcher):
    result = await dispatcher.handle(op(Operation.GET_BY_ID, "tags", id="go"))
    assert result.body == {"response": {"record": {"name": "go", "weight": 3}}}


# --- create ------------------------------------------------------------------

async def test_create_round_trip(dispatcher):
    payload = {"title": "db_crud", "description": "", "updated": "me"}
    created = await dispatcher.handle(op(Operation.CREATE, "items", body=payload))
    assert created.body == {"response": {"id": 3}}

    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="3"))
    assert fetched.body["response"]["record"] == {"id": 3, **payload}


async def test_create_ignores_supplied_auto_key_and_unknown_fields(dispatcher):
    created = await dispatcher.handle(op(
        Operation.CREATE, "items", body={"id": 42, "title": "t", "unknown_field": 1},
    ))
    assert created.body == {"response": {"id": 3}}


async def test_create_fills_omitted_not_null_columns(dispatcher):
    created = await dispatcher.handle(op(Operation.CREATE, "scores", body={"ratio": 0.5}))
    new_id = created.body["response"]["id"]
    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "scores", id=str(new_id)))
    assert fetched.body["response"]["record"] == {
        "id": new_id, "player": "", "points": 0, "ratio": 0.5, "active": None,
    }


async def test_create_with_text_key_returns_supplied_key(dispatcher):
    created = await dispatcher.handle(op(Operation.CREATE, "tags", body={"name": "py", "weight": 1}))
    assert created.body == {"response": {"name": "py"}}


class _NoReturningStore(SqlRecordStore):
    @property
    def dialect(self):
        return replace(super().dialect, insert_returning=False)


async def test_create_reports_zero_filled_text_key_without_returning(engine, catalog, settings):
    dispatcher = CrudDispatcher(catalog, _NoReturningStore(engine, 5.0), settings)
    created = await dispatcher.handle(op(Operation.CREATE, "tags", body={"weight": 2}))
    assert created.body == {"response": {"name": ""}}
    listed = await dispatcher.handle(op(Operation.LIST, "tags"))
    assert {"name": "", "weight": 2} in listed.body["response"]["records"]


async def test_boolean_round_trips_as_bool(dispatcher):
    created = await dispatcher.handle(op(
        Operation.CREATE, "scores", body={"player": "a", "points": 1, "active": True},
    ))
    new_id = created.body["response"]["id"]
    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "scores", id=str(new_id)))
    assert fetched.body["response"]["record"]["active"] is True



async def test_create_type_mismatch_writes_nothing(dispatcher):
    result = await dispatcher.handle(op(
        Operation.CREATE, "items", body={"title": 42, "description": "d"},
    ))
    assert result.status_code == 400
    assert result.body == {"error": "field title have invalid type"}
    listed = await dispatcher.handle(op(Operation.LIST, "items"))
    assert len(listed.body["response"]["records"]) == 2


async def test_create_null_in_not_null_column(dispatcher):
    result = await dispatcher.handle(op(Operation.CREATE, "items", body={"title": None}))
    assert result.body == {"error": "field title have invalid type"}


async def test_create_non_object_body(dispatcher):
    result = await dispatcher.handle(op(Operation.CREATE, "items", body=[1, 2]))
    assert result.status_code == 400


async def test_create_duplicate_key_is_store_error(dispatcher):
    result = await dispatcher.handle(op(Operation.CREATE, "tags", body={"name": "go", "weight": 1}))
    assert result.status_code == 500
    assert "UNIQUE" in result.body["error"]


# --- update ------------------------------------------------------------------

async def test_update_record(dispatcher):
    result = await dispatcher.handle(op(
        Operation.UPDATE, "items", id="2", body={"updated": "autotests", "title": "memcache2"},
    ))
    assert result.body == {"response": {"updated": 1}}
    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="2"))
    record = fetched.body["response"]["record"]
    assert record["updated"] == "autotests"
    assert record["title"] == "memcache2"


async def test_update_to_null_in_nullable_column(dispatcher):
    result = await dispatcher.handle(op(Operation.UPDATE, "items", id="1", body={"updated": None}))
    assert result.body == {"response": {"updated": 1}}


async def test_update_primary_key_rejected_without_write(dispatcher):
    result = await dispatcher.handle(op(
        Operation.UPDATE, "items", id="1", body={"title": "changed", "id": 4},
    ))
    assert result.status_code == 400
    assert result.body == {"error": "field id have invalid type"}
    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="1"))
    assert fetched.body["response"]["record"]["title"] == "database/sql"


async def test_update_only_unknown_fields(dispatcher):
    result = await dispatcher.handle(op(Operation.UPDATE, "items", id="1", body={"bogus": "x"}))
    assert result.status_code == 400
    assert result.body == {"error": "nothing to update"}


async def test_update_wrong_type(dispatcher):
    result = await dispatcher.handle(op(Operation.UPDATE, "scores", id="1", body={"points": "ten"}))
    assert result.body == {"error": "field points have invalid type"}


async def test_update_missing_record_counts_zero(dispatcher):
    result = await dispatcher.handle(op(Operation.UPDATE, "items", id="999", body={"title": "x"}))
    assert result.body == {"response": {"updated": 0}}


async def test_strict_mode_rejects_unknown_fields(catalog, store, settings):
    strict = CrudDispatcher(
        catalog, store, settings.model_copy(update={"reject_unknown_fields": True}),
    )
    result = await strict.handle(op(Operation.UPDATE, "items", id="1", body={"bogus": "x"}))
    assert result.status_code == 400
    assert result.body == {"error": "field bogus is unknown"}


# --- delete ------------------------------------------------------------------

async def test_delete_record(dispatcher):
    first = await dispatcher.handle(op(Operation.DELETE, "items", id="1"))
    assert first.body == {"response": {"deleted": 1}}
    second = await dispatcher.handle(op(Operation.DELETE, "items", id="1"))
    assert second.body == {"response": {"deleted": 0}}
    fetched = await dispatcher.handle(op(Operation.GET_BY_ID, "items", id="1"))
    assert fetched.status_code == 404


async def test_delete_invalid_id(dispatcher):
    result = await dispatcher.handle(op(Operation.DELETE, "items", id="one"))
    assert result.body == {"error": "invalid id"}


# --- store failures & concurrency --------------------------------------------

class _TimingOutStore:
    dialect = ANSI_DIALECT

    async def fetch_all(self, statement):
        raise StoreTimeoutError(0.01)

    async def execute(self, statement):
        raise StoreTimeoutError(0.01)

    async def insert(self, statement):
        raise StoreTimeoutError(0.01)


async def test_store_timeout_becomes_internal_error(catalog, settings):
    dispatcher = CrudDispatcher(catalog, _TimingOutStore(), settings)
    result = await dispatcher.handle(op(Operation.LIST, "items"))
    assert result.status_code == 500
    assert result.body == {"error": "statement timed out after 0.01s"}


async def test_concurrent_list_and_update_leave_catalog_intact(dispatcher, catalog):
    before = {t.name: t for t in catalog}
    results = await asyncio.gather(
        dispatcher.handle(op(Operation.LIST, "items")),
        dispatcher.handle(op(Operation.UPDATE, "items", id="2", body={"updated": "x"})),
        dispatcher.handle(op(Operation.LIST, "users")),
        dispatcher.handle(op(Operation.UPDATE, "items", id="1", body={"title": "y"})),
    )
    assert all(r.status_code == 200 for r in results)
    assert {t.name: t for t in catalog} == before
    assert dispatcher.catalog is catalog
