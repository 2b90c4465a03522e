# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-15
# Description: KBVectorStore
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from document.KBDocument import KBDocument, KBDocumentMetadata
from embedding.EmbeddingRecord import EmbeddingRecord


@dataclass
class ChunkMatch:
    """One similarity-query hit as returned by the store."""
    doc_id: str
    chunk_index: int
    content: str
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class KBVectorStore(Protocol):
    """
    Document + fragment store. The store is the system of record and assigns
    document identifiers.
    """

    async def test_connection(self) -> bool:
        ...

    async def insert_document(self, metadata: KBDocumentMetadata, content: str) -> KBDocument:
        ...

    async def insert_chunk_embeddings(self, doc_id: str, records: Sequence[EmbeddingRecord]) -> int:
        ...

    async def update_document_counters(
            self,
            doc_id: str,
            *,
            embeddings_generated: bool,
            embeddings_count: int,
            last_embedded_at: datetime,
    ) -> None:
        ...

    async def match_chunks(
            self,
            query_vector: Sequence[float],
            *,
            threshold: float,
            limit: int,
            category: Optional[str] = None,
    ) -> List[ChunkMatch]:
        ...

    async def get_documents_metadata(self, doc_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        ...

    async def delete_by_doc_id(self, doc_id: str) -> int:
        ...
