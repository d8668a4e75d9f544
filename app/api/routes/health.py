"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the database is unreachable or no catalog is loaded

Design Decisions:
    - Prefixed path: three segments never collide with the /{table}/{id} explorer routes
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "db-explorer"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — database connectivity and a loaded catalog."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if not db_ok or dispatcher is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable" if not db_ok else "catalog_not_loaded",
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "tables": len(dispatcher.catalog)},
    }
