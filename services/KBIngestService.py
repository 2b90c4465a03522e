# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Description: KBIngestService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from chunking.KBChunk import KBChunk
from chunking.KBChunker import KBChunker
from document.KBDocument import KBDocumentMetadata
from embedding.EmbeddingRecord import BatchProgress, EmbeddingRecord, EmbeddingRequest
from embedding.KBEmbedder import KBEmbedder
from services.types import (
    BatchIngestProgress,
    IngestItem,
    IngestionStats,
    IngestionSummary,
    IngestOptions,
    IngestOutcome,
    IngestProgress,
    IngestStage,
)
from utility.errors import DocumentStoreError
from utility.logging_utils import get_class_logger
from vectorstore.KBVectorStore import KBVectorStore

ProgressCallback = Callable[[IngestProgress], None]
BatchProgressCallback = Callable[[BatchIngestProgress], None]

# Fixed stage boundaries (overall percent for one document)
_PCT_SEGMENT_START = 10
_PCT_SEGMENT_END = 30
_PCT_STORE_DOCUMENT = 50
_PCT_EMBED_START = 60
_PCT_EMBED_END = 85
_PCT_STORE_CHUNKS = 85
_PCT_STORE_CHUNKS_END = 95
_PCT_COMPLETE = 100


class KBIngestService:
    """
    Owns the ingest pipeline for decoded text:
      - segment into fragments
      - register the parent document
      - embed fragments in batches
      - persist fragments that got a vector, then update document counters
    """

    def __init__(
        self,
        *,
        chunker: KBChunker,
        embedder: KBEmbedder,
        store: KBVectorStore,
        document_delay_seconds: float = 0.1,
        logger: logging.Logger | None = None,
    ) -> None:
        self.chunker = chunker
        self.embedder = embedder
        self.store = store
        self.document_delay_seconds = document_delay_seconds
        self.logger = logger or get_class_logger(self.__class__)

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------
    async def ingest_document(
        self,
        text: str,
        metadata: KBDocumentMetadata,
        options: Optional[IngestOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IngestionSummary:
        opts = options or IngestOptions()
        started = time.monotonic()

        def emit(stage: IngestStage, pct: int, message: Optional[str] = None) -> None:
            self.logger.debug("[%s] %s %d%% %s", metadata.name, stage.value, pct, message or "")
            if on_progress is not None:
                on_progress(IngestProgress(stage=stage, progress=pct, message=message))

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        self.logger.info("Ingesting '%s' (%d chars, type=%s)", metadata.name, len(text or ""), metadata.doc_type)

        # 1) Segment
        emit(IngestStage.SEGMENTING, _PCT_SEGMENT_START, "Breaking document into chunks")
        if opts.structured:
            chunks = self.chunker.chunk_with_structure(text, opts.chunking)
        else:
            chunks = self.chunker.chunk_text(text, opts.chunking)
        emit(IngestStage.SEGMENTING, _PCT_SEGMENT_END, f"Produced {len(chunks)} chunks")

        if not chunks:
            self.logger.warning("No chunks produced for '%s'; nothing to ingest", metadata.name)
            emit(IngestStage.COMPLETE, _PCT_COMPLETE, "No content to ingest")
            return IngestionSummary(
                outcome=IngestOutcome.NO_CONTENT,
                stats=IngestionStats(processing_time_ms=elapsed_ms()),
                file_name=metadata.name,
            )

        # 2) Register the document; failure ends this ingestion
        emit(IngestStage.STORING_DOCUMENT, _PCT_STORE_DOCUMENT, "Saving document")
        try:
            document = await self.store.insert_document(metadata, text)
        except Exception as e:
            self.logger.error("Failed to save document '%s': %s", metadata.name, e)
            raise DocumentStoreError(f"Failed to save document '{metadata.name}': {e}") from e

        for c in chunks:
            c.doc_id = document.doc_id

        if not opts.generate_embeddings:
            self.logger.info("Embeddings disabled for '%s'; stored document only", metadata.name)
            emit(IngestStage.COMPLETE, _PCT_COMPLETE, "Document processing complete")
            return IngestionSummary(
                outcome=IngestOutcome.COMPLETE,
                document=document,
                chunks=chunks,
                stats=IngestionStats(
                    total_chunks=len(chunks),
                    processing_time_ms=elapsed_ms(),
                    success_rate=1.0,
                ),
                file_name=metadata.name,
            )

        # 3) Embed
        emit(IngestStage.EMBEDDING, _PCT_EMBED_START, "Generating embeddings")

        def on_batch(p: BatchProgress) -> None:
            span = _PCT_EMBED_END - _PCT_EMBED_START
            emit(
                IngestStage.EMBEDDING,
                _PCT_EMBED_START + int(span * p.processed / p.total),
                f"Generated embeddings for {p.processed}/{p.total} chunks",
            )

        requests = [EmbeddingRequest(text=c.text, id=f"{document.doc_id}_{c.index}") for c in chunks]
        batch = await self.embedder.embed_batch(requests, on_progress=on_batch)
        errors: List[str] = list(batch.errors)

        records = [
            self._to_record(chunks[o.index], o.vector, document.category)
            for o in batch.outcomes
            if o.ok
        ]
        skipped = len(chunks) - len(records)
        if skipped:
            self.logger.warning("Skipping %d/%d fragments without an embedding for '%s'", skipped, len(chunks), metadata.name)

        # 4) Persist fragments, then counters
        emit(IngestStage.STORING_CHUNKS, _PCT_STORE_CHUNKS, "Storing embeddings")
        persisted: List[EmbeddingRecord] = []
        if records:
            try:
                await self.store.insert_chunk_embeddings(document.doc_id, records)
                persisted = records
            except Exception as e:
                msg = f"Failed to store embeddings: {e}"
                self.logger.error("%s (doc_id=%s)", msg, document.doc_id)
                errors.append(msg)

        if persisted:
            embedded_at = datetime.now(timezone.utc)
            try:
                await self.store.update_document_counters(
                    document.doc_id,
                    embeddings_generated=True,
                    embeddings_count=len(persisted),
                    last_embedded_at=embedded_at,
                )
            except Exception as e:
                msg = f"Failed to update document status: {e}"
                self.logger.error("%s (doc_id=%s)", msg, document.doc_id)
                errors.append(msg)
            document = replace(
                document,
                embeddings_generated=True,
                embeddings_count=len(persisted),
                last_embedded_at=embedded_at,
            )
        emit(IngestStage.STORING_CHUNKS, _PCT_STORE_CHUNKS_END, f"Stored {len(persisted)} fragments")

        stats = IngestionStats(
            total_chunks=len(chunks),
            total_embeddings=len(persisted),
            tokens_used=batch.total_tokens_used,
            processing_time_ms=elapsed_ms(),
            success_rate=len(persisted) / len(chunks),
        )
        emit(IngestStage.COMPLETE, _PCT_COMPLETE, "Document processing complete")
        self.logger.info(
            "Ingested '%s' as doc_id '%s': chunks=%d embeddings=%d tokens=%d success=%.2f in %d ms",
            metadata.name,
            document.doc_id,
            stats.total_chunks,
            stats.total_embeddings,
            stats.tokens_used,
            stats.success_rate,
            stats.processing_time_ms,
        )

        return IngestionSummary(
            outcome=IngestOutcome.COMPLETE,
            document=document,
            chunks=chunks,
            records=persisted,
            stats=stats,
            errors=errors,
            file_name=metadata.name,
        )

    @staticmethod
    def _to_record(chunk: KBChunk, vector, category: Optional[str]) -> EmbeddingRecord:
        meta = chunk.to_metadata()
        # category is copied onto each fragment so the store can filter on it
        if category:
            meta["category"] = category
        return EmbeddingRecord(
            doc_id=chunk.doc_id,
            chunk_index=chunk.index,
            text=chunk.text,
            vector=vector,
            metadata=meta,
        )

    async def delete_document(self, doc_id: str) -> int:
        """Remove a document and its fragments. Only ever called on explicit request."""
        deleted = await self.store.delete_by_doc_id(doc_id)
        self.logger.info("Deleted doc_id '%s' (%d fragments)", doc_id, deleted)
        return deleted

    # ------------------------------------------------------------------
    # Many documents
    # ------------------------------------------------------------------
    async def ingest_documents(
        self,
        items: Sequence[IngestItem],
        options: Optional[IngestOptions] = None,
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> List[IngestionSummary]:
        """
        Ingest documents one at a time, in input order. A failing document
        yields a FAILED summary and the batch moves on.
        """
        total = len(items)
        summaries: List[IngestionSummary] = []

        for i, item in enumerate(items):
            name = item.metadata.name

            def forward(p: IngestProgress, i: int = i, name: str = name) -> None:
                if on_progress is None:
                    return
                on_progress(BatchIngestProgress(
                    current_file=i + 1,
                    total_files=total,
                    stage=p.stage,
                    overall_progress=int((i * 100 + p.progress) / total),
                    file_name=name,
                ))

            try:
                summary = await self.ingest_document(item.text, item.metadata, options, on_progress=forward)
            except Exception as e:
                self.logger.error("Failed to ingest '%s': %s", name, e, exc_info=True)
                forward(IngestProgress(stage=IngestStage.FAILED, progress=_PCT_COMPLETE, message=str(e)))
                summary = IngestionSummary(outcome=IngestOutcome.FAILED, errors=[str(e)], file_name=name)

            summaries.append(summary)

            if i < total - 1 and self.document_delay_seconds > 0:
                await asyncio.sleep(self.document_delay_seconds)

        ok = sum(1 for s in summaries if s.outcome is IngestOutcome.COMPLETE)
        self.logger.info("Batch ingest complete: %d/%d documents ingested", ok, total)
        return summaries
