"""Error Hierarchy — typed, categorized exceptions for every explorer failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400/404) are recoverable; store and schema errors (500) are critical
    - to_response() produces the REST envelope {"error": <message>}
    - StoreError carries the store's own message verbatim

Design Decisions:
    - Single hierarchy with DbExplorerError base: the dispatcher resolves all of them
      into one envelope, the FastAPI global handler catches any that slip past
    - ErrorContext as dataclass: observability fields travel with the error, not the logger
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    SCHEMA = "schema"
    DATABASE = "database"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    table: str | None = None
    operation: str | None = None
    record_id: str | None = None
    debug_info: dict[str, Any] | None = None


class DbExplorerError(Exception):
    """Base exception for all explorer errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the standard error envelope."""
        return {"error": self.message}

    def log_extra(self) -> dict:
        """Fields surfaced by the JSON log formatter."""
        return {
            "error_code": self.code,
            "table": self.context.table,
            "operation": self.context.operation,
            "record_id": self.context.record_id,
        }


# ─── Request Errors (400/404) ───────────────────────────────────

class UnknownTableError(DbExplorerError):
    """Table name is absent from the catalog."""
    def __init__(self, table: str, context: ErrorContext | None = None):
        super().__init__(
            "unknown table", "UNKNOWN_TABLE", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.table = table


class RecordNotFoundError(DbExplorerError):
    """Lookup by primary key returned no rows."""
    def __init__(self, table: str, record_id: object, context: ErrorContext | None = None):
        super().__init__(
            "record not found", "RECORD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.table = table
        self.record_id = record_id


class InvalidIdError(DbExplorerError):
    """Id token cannot be parsed as the primary key's shape."""
    def __init__(self, token: str | None, context: ErrorContext | None = None):
        super().__init__(
            "invalid id", "INVALID_ID", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.token = token


class TypeMismatchError(DbExplorerError):
    """Payload value does not fit the column's declared type or nullability."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"field {field_name} have invalid type", "TYPE_MISMATCH",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context, 400,
        )
        self.field = field_name


class UnknownFieldError(DbExplorerError):
    """Payload names a column the table does not have (strict mode only)."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"field {field_name} is unknown", "UNKNOWN_FIELD",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context, 400,
        )
        self.field = field_name


class NoFieldsToUpdateError(DbExplorerError):
    """Update payload contained no assignable column."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "nothing to update", "NO_FIELDS_TO_UPDATE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


# ─── Infrastructure Errors (500) ────────────────────────────────

class SchemaError(DbExplorerError):
    """Schema discovery failed. Fatal at startup."""
    def __init__(self, message: str, table: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "SCHEMA_ERROR", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.table = table


class StoreError(DbExplorerError):
    """Statement execution failed in the store. Message is the store's own."""
    def __init__(
        self, message: str, operation: str = "execute",
        context: ErrorContext | None = None,
        code: str = "STORE_ERROR",
        category: ErrorCategory = ErrorCategory.DATABASE,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class StoreTimeoutError(StoreError):
    """Statement did not complete within the configured bound."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"statement timed out after {timeout_seconds:g}s", "execute", context,
            code="STORE_TIMEOUT", category=ErrorCategory.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds


class StatementInvariantError(DbExplorerError):
    """Built statement is internally inconsistent. Indicates a bug, never user input."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "STATEMENT_INVARIANT", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
