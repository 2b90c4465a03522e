# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-23
# Description: documents.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ingest_service
from api.errors import to_http_exception
from api.schemas.documents import (
    DeleteDocumentResponse,
    IngestBatchRequest,
    IngestBatchResponse,
    IngestDocumentRequest,
    IngestionStatsModel,
    IngestOptionsModel,
    IngestRequest,
    IngestResponse,
)
from document.KBDocument import KBDocumentMetadata
from services.KBIngestService import KBIngestService
from services.types import IngestItem, IngestionSummary, IngestOptions, IngestOutcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _to_metadata(req: IngestDocumentRequest) -> KBDocumentMetadata:
    return KBDocumentMetadata(
        name=req.name.strip(),
        mime_type=req.mime_type,
        size=req.size if req.size is not None else len(req.text.encode("utf-8")),
        description=req.description,
        category=req.category,
        tags=list(req.tags),
    )


def _to_options(model: IngestOptionsModel, svc: KBIngestService) -> IngestOptions:
    overrides = model.chunking.model_dump(exclude_none=True)
    chunking = svc.chunker.options.merged(**overrides) if overrides else None
    return IngestOptions(
        chunking=chunking,
        structured=model.structured,
        generate_embeddings=model.generate_embeddings,
    )


def _to_response(summary: IngestionSummary) -> IngestResponse:
    doc = summary.document
    return IngestResponse(
        outcome=summary.outcome.value,
        name=doc.name if doc else summary.file_name,
        doc_id=doc.doc_id if doc else None,
        doc_type=doc.doc_type if doc else None,
        category=doc.category if doc else None,
        embeddings_generated=doc.embeddings_generated if doc else False,
        embeddings_count=doc.embeddings_count if doc else 0,
        stats=IngestionStatsModel(
            total_chunks=summary.stats.total_chunks,
            total_embeddings=summary.stats.total_embeddings,
            tokens_used=summary.stats.tokens_used,
            processing_time_ms=summary.stats.processing_time_ms,
            success_rate=summary.stats.success_rate,
        ),
        errors=list(summary.errors),
    )


@router.post("/ingest", response_model=IngestResponse)
async def post_ingest_document(
    req: IngestRequest,
    svc: KBIngestService = Depends(get_ingest_service),
) -> IngestResponse:
    logger.info("POST /documents/ingest (start) name='%s' chars=%d", req.name, len(req.text))

    try:
        summary = await svc.ingest_document(
            req.text,
            _to_metadata(req),
            _to_options(req.options, svc),
        )
    except Exception as e:
        raise to_http_exception(e, "POST /documents/ingest", logger)

    resp = _to_response(summary)
    logger.info(
        "POST /documents/ingest (done) name='%s' outcome=%s doc_id=%s embeddings=%d",
        req.name,
        resp.outcome,
        resp.doc_id,
        resp.embeddings_count,
    )
    return resp


@router.post("/ingest/batch", response_model=IngestBatchResponse)
async def post_ingest_batch(
    req: IngestBatchRequest,
    svc: KBIngestService = Depends(get_ingest_service),
) -> IngestBatchResponse:
    logger.info("POST /documents/ingest/batch (start) requested=%d", len(req.documents))

    try:
        items = [IngestItem(text=d.text, metadata=_to_metadata(d)) for d in req.documents]
        summaries = await svc.ingest_documents(items, _to_options(req.options, svc))
    except Exception as e:
        raise to_http_exception(e, "POST /documents/ingest/batch", logger)

    results = [_to_response(s) for s in summaries]
    failed = sum(1 for s in summaries if s.outcome is IngestOutcome.FAILED)
    resp = IngestBatchResponse(
        requested=len(req.documents),
        ingested=sum(1 for s in summaries if s.outcome is IngestOutcome.COMPLETE),
        failed=failed,
        results=results,
    )
    logger.info(
        "POST /documents/ingest/batch (done) requested=%d ingested=%d failed=%d",
        resp.requested,
        resp.ingested,
        resp.failed,
    )
    return resp


@router.delete("/{doc_id}", response_model=DeleteDocumentResponse)
async def delete_document(
    doc_id: str,
    svc: KBIngestService = Depends(get_ingest_service),
) -> DeleteDocumentResponse:
    doc_id = (doc_id or "").strip()
    logger.info("DELETE /documents/{doc_id} (start) doc_id='%s'", doc_id)

    if not doc_id:
        logger.warning("DELETE /documents/{doc_id} -> 400 (doc_id empty)")
        raise HTTPException(status_code=400, detail="doc_id must not be empty")

    try:
        deleted = await svc.delete_document(doc_id)
    except Exception as e:
        raise to_http_exception(e, "DELETE /documents/{doc_id}", logger)

    logger.info("DELETE /documents/{doc_id} (done) doc_id='%s' deleted=%d", doc_id, deleted)
    return DeleteDocumentResponse(doc_id=doc_id, deleted=deleted)
