"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.db.neo4j import neo4j_health_check
from app.infrastructure.observability.logging import log_readiness

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "comms-analytics"}


@router.get("/readyz")
async def readyz():
    """Readiness check: the graph database must answer."""
    checks = {}

    t0 = time.time()
    neo4j_health = await neo4j_health_check()
    latency_ms = round((time.time() - t0) * 1000, 1)
    is_healthy = bool(neo4j_health.get("healthy", False))

    checks["neo4j"] = {"ok": is_healthy, "latency_ms": latency_ms}
    if is_healthy:
        checks["neo4j"]["database"] = neo4j_health.get("database")
    else:
        checks["neo4j"]["error"] = neo4j_health.get("error", "Neo4j unhealthy")
        if "error_type" in neo4j_health:
            checks["neo4j"]["error_type"] = neo4j_health["error_type"]

    checks["configuration"] = {
        "ok": bool(settings.NEO4J_URI and settings.NEO4J_PASSWORD),
        "environment": settings.environment,
    }
    overall_ok = is_healthy and checks["configuration"]["ok"]
    log_readiness(checks, overall_ok)

    return JSONResponse(
        status_code=status.HTTP_200_OK if overall_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()},
    )
