"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the code store is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
      (ADR: production readiness)
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from entrypass.api.dependencies import get_engine
from entrypass.services.lifecycle_engine import LifecycleEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "entrypass-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(engine: LifecycleEngine = Depends(get_engine)):
    """Readiness probe — includes code store connectivity."""
    store_ok = await engine.store.health_check()
    if not store_ok:
        logger.warning("Readiness check failed: code store unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "storage_unavailable",
            },
        )
    return {"status": "ready", "checks": {"storage": "healthy"}}
