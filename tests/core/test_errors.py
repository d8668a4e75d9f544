"""Error Hierarchy — status classification and envelopes.

Tests:
    - not-found errors map to 404, bad-request errors to 400, store/schema errors to 500
    - StoreError keeps the store's message verbatim
    - StoreTimeoutError is a StoreError with its own code
"""

import pytest

from app.core.errors import (
    ErrorCategory, ErrorSeverity, InvalidIdError, NoFieldsToUpdateError,
    RecordNotFoundError, SchemaError, StoreError, StoreTimeoutError,
    TypeMismatchError, UnknownFieldError, UnknownTableError,
)


@pytest.mark.parametrize("error, status", [
    (UnknownTableError("x"), 404),
    (RecordNotFoundError("x", 1), 404),
    (InvalidIdError("abc"), 400),
    (TypeMismatchError("title"), 400),
    (UnknownFieldError("bogus"), 400),
    (NoFieldsToUpdateError(), 400),
    (StoreError("boom"), 500),
    (SchemaError("no tables"), 500),
])
def test_status_classification(error, status):
    assert error.http_status == status


def test_messages():
    assert UnknownTableError("x").to_response() == {"error": "unknown table"}
    assert InvalidIdError("abc").to_response() == {"error": "invalid id"}
    assert TypeMismatchError("title").message == "field title have invalid type"


def test_store_error_keeps_store_message():
    err = StoreError("UNIQUE constraint failed: tags.name", "insert")
    assert err.to_response() == {"error": "UNIQUE constraint failed: tags.name"}
    assert err.category is ErrorCategory.DATABASE
    assert err.severity is ErrorSeverity.CRITICAL


def test_timeout_is_store_error():
    err = StoreTimeoutError(0.5)
    assert isinstance(err, StoreError)
    assert err.code == "STORE_TIMEOUT"
    assert err.category is ErrorCategory.TIMEOUT
    assert "0.5s" in err.message
