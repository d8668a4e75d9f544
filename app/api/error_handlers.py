"""Error Handlers — global exception handlers for the explorer API.

Invariants:
    - DbExplorerError → {"error": <message>} with the error's HTTP status
    - RequestValidationError → {"error": "invalid request"} with 400
    - Exception (catch-all) → {"error": "internal error"} with 500, never leaks internals

Design Decisions:
    - Three-layer handler: domain (DbExplorerError), validation (FastAPI), catch-all (Exception)
    - The dispatcher already resolves request errors; these handlers cover dependency
      failures (catalog not loaded) and bugs
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.envelope import error_envelope
from app.core.errors import DbExplorerError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_explorer_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_explorer_error_handler(app: FastAPI) -> None:

    @app.exception_handler(DbExplorerError)
    async def explorer_error_handler(request: Request, exc: DbExplorerError):
        """Handle explorer errors raised outside the dispatcher."""
        logger.error(
            f"DbExplorerError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("invalid request"),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("internal error"),
        )
