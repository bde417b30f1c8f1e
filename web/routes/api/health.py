"""Health check and metrics endpoints."""
import time

from fastapi import APIRouter, Depends, Request

from core.exceptions import StoreError
from core.models import Actor
from core.observability import Timer, get_correlation_id, metrics
from core.repositories.base import BaseRepository
from core.store import get_client
from web.config import VERSION
from web.routes.auth import require_admin
from web.schemas import HealthResponse, MetricsResponse
from ._deps import START_TIME, get_logger, limiter

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request, client=Depends(get_client)):
    """Health check endpoint for load balancer monitoring."""
    store = {"status": "connected"}
    try:
        with Timer("health_check_store") as timer:
            await BaseRepository(client).count("categories", "health_check")
        store["latency_ms"] = round(timer.elapsed_ms, 2)
    except StoreError as e:
        logger.warning(f"Health check store error: {e.message}")
        store = {"status": "error", "error": e.message}

    return {
        "status": "healthy" if store["status"] == "connected" else "degraded",
        "version": VERSION,
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        "store": store,
    }


@router.get("/metrics", response_model=MetricsResponse)
@limiter.limit("60/minute")
async def get_metrics_endpoint(request: Request, admin: Actor = Depends(require_admin)):
    """Get application metrics (admin only)."""
    return {
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        **metrics.get_stats(),
    }
