# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: context router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_context_service
from api.errors import to_http_exception
from api.schemas.context import ContextRequest, ContextResponse, ContextSourceModel
from services.KBContextService import KBContextService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/context", tags=["context"])


@router.post("", response_model=ContextResponse)
async def post_context(
    req: ContextRequest,
    svc: KBContextService = Depends(get_context_service),
) -> ContextResponse:
    logger.info("POST /context (start) topic=%r chars=%d", req.topic_hint, len(req.source_text))
    try:
        ctx = await svc.get_relevant_context(
            req.source_text,
            req.topic_hint,
            max_chunks=req.max_chunks,
            category=req.category,
            threshold=req.threshold,
        )
    except Exception as e:
        raise to_http_exception(e, "POST /context", logger)

    return ContextResponse(
        context=ctx.context,
        sources=[
            ContextSourceModel(document=s.document, chunk=s.chunk, similarity=s.similarity)
            for s in ctx.sources
        ],
    )
