"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ returns 200 whenever the process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable or the brain space
      was never initialized (readiness)
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.infrastructure import database
from app.services import brain_space as brain_space_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "status": "healthy",
        "service": "brainspace-graph-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — database connectivity plus in-memory graph state."""
    db_ok = await database.db_manager.health_check() if database.db_manager else False
    space = brain_space_module.brain_space
    if not db_ok or space is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable" if not db_ok else "graph_not_initialized",
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "loaded_entries": len(space.store.entries),
    }
