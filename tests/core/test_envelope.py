"""Envelopes — success shapes keyed by response kind, errors as a bare message.

Tests:
    - Each ResponseKind produces its documented shape
    - Inserted envelope is keyed by the primary key name
    - Error responses from the error hierarchy match error_envelope
"""

import pytest

from app.core.domain_types import Operation, ResponseKind
from app.core.envelope import (
    DispatchResult, deleted_envelope, error_envelope, inserted_envelope,
    record_envelope, records_envelope, success, tables_envelope, updated_envelope,
)
from app.core.errors import RecordNotFoundError


def test_success_shapes():
    assert tables_envelope(("a", "b")) == {"response": {"tables": ["a", "b"]}}
    assert records_envelope([{"id": 1}]) == {"response": {"records": [{"id": 1}]}}
    assert record_envelope({"id": 1}) == {"response": {"record": {"id": 1}}}
    assert updated_envelope(1) == {"response": {"updated": 1}}
    assert deleted_envelope(0) == {"response": {"deleted": 0}}


def test_inserted_envelope_uses_key_name():
    assert inserted_envelope("user_id", 2) == {"response": {"user_id": 2}}


def test_inserted_envelope_requires_key_name():
    with pytest.raises(ValueError):
        success(ResponseKind.INSERTED, 1)


def test_error_envelope_matches_error_hierarchy():
    err = RecordNotFoundError("items", 9)
    assert err.to_response() == error_envelope("record not found")


def test_dispatch_result_ok():
    assert DispatchResult(200, {}).ok
    assert not DispatchResult(404, {}).ok


def test_write_operations():
    assert {op for op in Operation if op.is_write} == {Operation.CREATE, Operation.UPDATE}
