"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nfl_edge.services.monitoring import check_pipeline_health
from nfl_edge.storage import PipelineStore, get_store

router = APIRouter()


@router.get("/health")
async def health_check(store: PipelineStore = Depends(get_store)) -> dict:
    """
    Health check endpoint for load balancers and monitoring.

    Checks database connectivity and returns service status.
    """
    healthy = await store.ping()
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"database": "ok" if healthy else "error"},
    }


@router.get("/ready")
async def readiness_check() -> dict:
    """Readiness probe."""
    return {"status": "ready"}


@router.get("/health/pipeline")
async def pipeline_health(store: PipelineStore = Depends(get_store)) -> JSONResponse:
    """
    Pipeline health: database, odds freshness, data sources, prediction activity.

    Returns 503 when the pipeline is unhealthy so uptime monitors page on it.
    """
    report = await check_pipeline_health(store)
    status_code = 503 if report["status"] == "unhealthy" else 200
    return JSONResponse(report, status_code=status_code)
