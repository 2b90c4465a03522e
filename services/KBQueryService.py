# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: KBQueryService
# -----------------------------------------------------------------------------
import logging
from typing import Any, Dict, List, Optional

from embedding.KBEmbedder import KBEmbedder
from ranking.SimilarityRanker import SimilarityRanker
from services.types import SearchResult
from settings import SEARCH_DEFAULTS
from utility.errors import EmptyTextError, RateLimitExceededError, SearchError
from utility.logging_utils import get_class_logger
from vectorstore.KBVectorStore import ChunkMatch, KBVectorStore

# category value meaning "no filter"
ALL_CATEGORIES = "all"


class KBQueryService:
    """
    Semantic search over stored fragments: embed the query, ask the store for
    nearest fragments, attach document metadata, re-check the ordering.
    """

    def __init__(
        self,
        *,
        embedder: KBEmbedder,
        store: KBVectorStore,
        ranker: Optional[SimilarityRanker] = None,
        default_limit: int = SEARCH_DEFAULTS["limit"],
        default_threshold: float = SEARCH_DEFAULTS["threshold"],
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.ranker = ranker or SimilarityRanker()
        self.default_limit = default_limit
        self.default_threshold = default_threshold
        self.logger = logger or get_class_logger(self.__class__)

    async def search(
        self,
        query_text: str,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[SearchResult]:
        if not query_text or not query_text.strip():
            raise EmptyTextError("Search query must not be empty")

        limit = self.default_limit if limit is None else limit
        threshold = self.default_threshold if threshold is None else threshold
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if category == ALL_CATEGORIES:
            category = None

        self.logger.info(
            "Searching knowledge base: query=%r (limit=%d, threshold=%.2f, category=%s)",
            query_text,
            limit,
            threshold,
            category,
        )

        # 1) Embed the query
        try:
            outcome = await self.embedder.embed_query(query_text)
        except (EmptyTextError, RateLimitExceededError):
            raise
        except Exception as e:
            self.logger.error("Query embedding failed: %s", e)
            raise SearchError(f"Search failed: {e}") from e

        # 2) Nearest fragments from the store
        try:
            matches = await self.store.match_chunks(
                outcome.vector,
                threshold=threshold,
                limit=limit,
                category=category,
            )
        except Exception as e:
            self.logger.error("Store similarity query failed: %s", e, exc_info=True)
            raise SearchError(f"Search failed: {e}") from e

        if not matches:
            self.logger.info("No fragments above threshold %.2f", threshold)
            return []

        # 3) Document metadata for the distinct doc ids
        doc_ids = list(dict.fromkeys(m.doc_id for m in matches))
        try:
            doc_meta = await self.store.get_documents_metadata(doc_ids)
        except Exception as e:
            self.logger.error("Document metadata lookup failed: %s", e)
            raise SearchError(f"Search failed: {e}") from e

        # 4) Category again client-side; the store filter may be partial
        if category:
            matches = [m for m in matches if (doc_meta.get(m.doc_id) or {}).get("category") == category]

        ranked = self.ranker.order(
            matches,
            score_of=lambda m: m.similarity,
            top_k=limit,
            threshold=threshold,
        )
        results = [self._to_result(r.item, r.position, doc_meta.get(r.item.doc_id)) for r in ranked]

        self.logger.info("Search complete: %d result(s) from %d document(s)", len(results), len(doc_ids))
        return results

    @staticmethod
    def _to_result(match: ChunkMatch, rank: int, meta: Optional[Dict[str, Any]]) -> SearchResult:
        meta = meta or {}
        return SearchResult(
            doc_id=match.doc_id,
            chunk_index=match.chunk_index,
            content=match.content,
            similarity=match.similarity,
            rank=rank,
            document_name=meta.get("name") or "",
            chunk_metadata=dict(match.metadata),
            document_metadata=dict(meta),
        )
