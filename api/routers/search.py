# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: search router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_query_service
from api.errors import to_http_exception
from api.schemas.search import SearchRequest, SearchResponse, SearchHit
from services.KBQueryService import KBQueryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def post_search(
    req: SearchRequest,
    svc: KBQueryService = Depends(get_query_service),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        results = await svc.search(
            query_text,
            category=req.category,
            limit=req.limit,
            threshold=req.threshold,
        )
    except Exception as e:
        raise to_http_exception(e, "POST /search", logger)

    hits = [
        SearchHit(
            rank=r.rank,
            doc_id=r.doc_id,
            chunk_index=r.chunk_index,
            document_name=r.document_name,
            content=r.content,
            similarity=r.similarity,
            chunk_metadata=r.chunk_metadata,
            document_metadata=r.document_metadata,
        )
        for r in results
    ]
    return SearchResponse(query=query_text, count=len(hits), results=hits)
