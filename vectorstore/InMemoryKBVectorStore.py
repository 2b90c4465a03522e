# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-05
# Description: InMemoryKBVectorStore
# -----------------------------------------------------------------------------
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from document.KBDocument import KBDocument, KBDocumentMetadata
from embedding.EmbeddingRecord import EmbeddingRecord
from ranking.SimilarityRanker import SimilarityRanker
from utility.logging_utils import get_class_logger
from vectorstore.KBVectorStore import ChunkMatch, KBVectorStore


@dataclass
class InMemoryKBVectorStore(KBVectorStore):
    """
    Process-local store for tests and offline development. Same contract as
    the Chroma store, with brute-force cosine ranking.
    """
    ranker: SimilarityRanker = field(default_factory=SimilarityRanker)
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        self.documents: Dict[str, KBDocument] = {}
        self.records: Dict[str, EmbeddingRecord] = {}

    async def test_connection(self) -> bool:
        return True

    async def insert_document(self, metadata: KBDocumentMetadata, content: str) -> KBDocument:
        doc = KBDocument(
            doc_id=str(uuid.uuid4()),
            name=metadata.name,
            doc_type=metadata.doc_type,
            content=content,
            size=metadata.size,
            description=metadata.description,
            category=metadata.category,
            tags=list(metadata.tags),
            created_at=datetime.now(timezone.utc),
        )
        self.documents[doc.doc_id] = doc
        self.logger.debug("Inserted document '%s' as doc_id '%s'", doc.name, doc.doc_id)
        return replace(doc)

    async def insert_chunk_embeddings(self, doc_id: str, records: Sequence[EmbeddingRecord]) -> int:
        for rec in records:
            if rec.doc_id != doc_id:
                raise ValueError(f"Record doc_id '{rec.doc_id}' does not match insert doc_id '{doc_id}'")
            self.records[rec.record_id] = rec
        return len(records)

    async def update_document_counters(
            self,
            doc_id: str,
            *,
            embeddings_generated: bool,
            embeddings_count: int,
            last_embedded_at: datetime,
    ) -> None:
        if doc_id not in self.documents:
            raise KeyError(f"Unknown doc_id '{doc_id}'")
        self.documents[doc_id] = replace(
            self.documents[doc_id],
            embeddings_generated=embeddings_generated,
            embeddings_count=embeddings_count,
            last_embedded_at=last_embedded_at,
        )

    async def match_chunks(
            self,
            query_vector: Sequence[float],
            *,
            threshold: float,
            limit: int,
            category: Optional[str] = None,
    ) -> List[ChunkMatch]:
        candidates = [rec for rec in self.records.values() if self._in_category(rec.doc_id, category)]
        ranked = self.ranker.rank(
            query_vector,
            candidates,
            top_k=limit,
            threshold=threshold,
            vector_of=lambda rec: rec.vector,
        )
        return [
            ChunkMatch(
                doc_id=r.item.doc_id,
                chunk_index=r.item.chunk_index,
                content=r.item.text,
                similarity=r.similarity,
                metadata=dict(r.item.metadata),
            )
            for r in ranked
        ]

    def _in_category(self, doc_id: str, category: Optional[str]) -> bool:
        if not category:
            return True
        doc = self.documents.get(doc_id)
        return doc is not None and doc.category == category

    async def get_documents_metadata(self, doc_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        return {
            doc_id: self.documents[doc_id].descriptive_metadata()
            for doc_id in dict.fromkeys(doc_ids)
            if doc_id in self.documents
        }

    async def delete_by_doc_id(self, doc_id: str) -> int:
        ids = [rid for rid, rec in self.records.items() if rec.doc_id == doc_id]
        for rid in ids:
            del self.records[rid]
        self.documents.pop(doc_id, None)
        return len(ids)
