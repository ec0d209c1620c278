"""
Lost & Found API — Health endpoint
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from lostfound.api.deps import get_app_settings
from lostfound.core.config import Settings
from lostfound.schemas.common import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, settings: Settings = Depends(get_app_settings)):
    """
    Deep health check: verifies PostgreSQL (and Redis when login rate
    limiting is on). Returns 200 if all dependencies are healthy, 503 otherwise.
    """
    deps: dict[str, str] = {}
    healthy = True

    try:
        await asyncio.wait_for(request.app.state.database.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        deps["database"] = "error"
        healthy = False

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        try:
            await asyncio.wait_for(redis.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
            deps["redis"] = "ok"
        except Exception:
            logger.exception("Health check: redis unreachable")
            deps["redis"] = "error"
            healthy = False

    response = HealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        dependencies=deps,
    )
    return JSONResponse(content=response.model_dump(), status_code=200 if healthy else 503)
