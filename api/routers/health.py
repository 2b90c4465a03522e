# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: health.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, Query, Response, status

from api.dependencies import get_health_service
from api.errors import to_http_exception
from api.schemas.health import DeepHealthResponse, HealthResponse
from services.KBHealthService import KBHealthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    # liveness only; touches no dependency
    return HealthResponse(status="ok", message="Proposal knowledge base API running")


@router.get("/deep", response_model=DeepHealthResponse)
async def deep_health_check(
    response: Response,
    svc: KBHealthService = Depends(get_health_service),
    run_embedding_check: bool = Query(True, description="Make one real embedding call"),
) -> DeepHealthResponse:
    logger.info("GET /health/deep (start) run_embedding_check=%s", run_embedding_check)
    try:
        result = await svc.deep_health(run_embedding_check=run_embedding_check)
    except Exception as e:
        raise to_http_exception(e, "GET /health/deep", logger)

    if result.status != "ok":
        failed = [name for name, ok in result.results.items() if not ok]
        logger.warning("GET /health/deep -> 503 (failed checks: %s)", ", ".join(failed))
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        logger.info("GET /health/deep (done) passed=%d", result.summary.passed)
    return result
