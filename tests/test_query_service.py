# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: test_query_service.py
# -----------------------------------------------------------------------------
from typing import Dict, List

import pytest

from chunking.ChunkingOptions import ChunkingOptions
from chunking.KBChunker import KBChunker
from conftest import FakeEmbeddings
from document.KBDocument import KBDocumentMetadata
from services.KBIngestService import KBIngestService
from services.KBQueryService import KBQueryService
from services.types import IngestOptions
from utility.errors import EmptyTextError, RateLimitExceededError, SearchError
from utility.RateLimiter import SlidingWindowRateLimiter
from vectorstore.KBVectorStore import ChunkMatch


class StubStore:
    """Returns canned matches; records what it was asked."""

    def __init__(self, matches: List[ChunkMatch], documents: Dict[str, Dict] = None, fail: bool = False):
        self.matches = matches
        self.documents = documents or {}
        self.fail = fail
        self.match_calls = []

    async def match_chunks(self, query_vector, *, threshold, limit, category=None):
        self.match_calls.append({"threshold": threshold, "limit": limit, "category": category})
        if self.fail:
            raise ConnectionError("chroma unreachable")
        return list(self.matches)

    async def get_documents_metadata(self, doc_ids):
        return {d: self.documents[d] for d in doc_ids if d in self.documents}


def _match(doc_id: str, idx: int, sim: float) -> ChunkMatch:
    return ChunkMatch(doc_id=doc_id, chunk_index=idx, content=f"{doc_id} fragment {idx}", similarity=sim, metadata={})


DOCS = {
    "doc-a": {"name": "capabilities.pdf", "category": "company-overview", "tags": ["core"], "description": None},
    "doc-b": {"name": "pricing.docx", "category": "pricing", "tags": [], "description": "2026 price list"},
}


def _service(make_embedder, store, **kwargs) -> KBQueryService:
    return KBQueryService(embedder=make_embedder(), store=store, **kwargs)


@pytest.mark.asyncio
async def test_results_below_threshold_are_dropped(make_embedder):
    store = StubStore([_match("doc-a", 0, 0.9), _match("doc-a", 1, 0.6)], DOCS)
    svc = _service(make_embedder, store)

    results = await svc.search("cloud hosting capabilities", threshold=0.7)

    assert len(results) == 1
    hit = results[0]
    assert hit.similarity == 0.9
    assert hit.rank == 1
    assert hit.document_name == "capabilities.pdf"
    assert hit.document_metadata["category"] == "company-overview"


@pytest.mark.asyncio
async def test_results_are_reordered_and_truncated(make_embedder):
    store = StubStore(
        [_match("doc-a", 0, 0.75), _match("doc-b", 0, 0.95), _match("doc-a", 1, 0.8), _match("doc-b", 1, 0.72)],
        DOCS,
    )
    svc = _service(make_embedder, store)

    results = await svc.search("pricing", limit=3, threshold=0.7)

    assert [r.similarity for r in results] == [0.95, 0.8, 0.75]
    assert [r.rank for r in results] == [1, 2, 3]
    assert store.match_calls[0]["limit"] == 3


@pytest.mark.asyncio
async def test_defaults_apply_when_not_given(make_embedder):
    store = StubStore([], DOCS)
    svc = _service(make_embedder, store, default_limit=4, default_threshold=0.5)

    assert await svc.search("anything") == []
    assert store.match_calls == [{"threshold": 0.5, "limit": 4, "category": None}]


@pytest.mark.asyncio
async def test_category_filter_is_applied_after_the_store(make_embedder):
    # the store ignores the filter; the service still enforces it
    store = StubStore([_match("doc-a", 0, 0.9), _match("doc-b", 0, 0.85)], DOCS)
    svc = _service(make_embedder, store)

    results = await svc.search("pricing tiers", category="pricing", threshold=0.7)

    assert [r.doc_id for r in results] == ["doc-b"]
    assert store.match_calls[0]["category"] == "pricing"


@pytest.mark.asyncio
async def test_all_category_means_no_filter(make_embedder):
    store = StubStore([_match("doc-a", 0, 0.9), _match("doc-b", 0, 0.85)], DOCS)
    svc = _service(make_embedder, store)

    results = await svc.search("pricing tiers", category="all", threshold=0.7)

    assert len(results) == 2
    assert store.match_calls[0]["category"] is None


@pytest.mark.asyncio
async def test_empty_query_is_rejected(make_embedder):
    svc = _service(make_embedder, StubStore([]))

    with pytest.raises(EmptyTextError):
        await svc.search("   ")


@pytest.mark.asyncio
async def test_invalid_limit_is_rejected(make_embedder):
    svc = _service(make_embedder, StubStore([]))

    with pytest.raises(ValueError):
        await svc.search("pricing", limit=0)


@pytest.mark.asyncio
async def test_embedding_failure_becomes_search_error(make_embedder):
    store = StubStore([_match("doc-a", 0, 0.9)], DOCS)
    svc = KBQueryService(embedder=make_embedder(FakeEmbeddings(fail_on_calls={1})), store=store)

    with pytest.raises(SearchError, match="Search failed"):
        await svc.search("pricing")
    assert store.match_calls == []


@pytest.mark.asyncio
async def test_store_failure_becomes_search_error(make_embedder):
    svc = _service(make_embedder, StubStore([], fail=True))

    with pytest.raises(SearchError, match="chroma unreachable"):
        await svc.search("pricing")


@pytest.mark.asyncio
async def test_rate_limit_is_not_wrapped(make_embedder):
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
    svc = KBQueryService(embedder=make_embedder(rate_limiter=limiter), store=StubStore([], DOCS))

    await svc.search("first")
    with pytest.raises(RateLimitExceededError):
        await svc.search("second")


@pytest.mark.asyncio
async def test_search_over_ingested_documents(make_embedder, store, proposal_text):
    embedder = make_embedder()
    ingest = KBIngestService(chunker=KBChunker(), embedder=embedder, store=store, document_delay_seconds=0)
    opts = IngestOptions(chunking=ChunkingOptions(chunk_size=300, overlap_size=50, min_chunk_size=100))
    await ingest.ingest_document(
        proposal_text,
        KBDocumentMetadata(name="proposal.txt", category="company-overview"),
        opts,
    )
    await ingest.ingest_document(
        ("zebra quiz jazz " * 70)[:1000],
        KBDocumentMetadata(name="zoo.txt", category="misc"),
        opts,
    )
    svc = KBQueryService(embedder=embedder, store=store)

    results = await svc.search("proposal", limit=10, threshold=0.0)

    assert results[0].document_name == "proposal.txt"
    assert results[0].similarity > 0.9
    sims = [r.similarity for r in results]
    assert sims == sorted(sims, reverse=True)
    assert [r.rank for r in results] == list(range(1, len(results) + 1))

    misc = await svc.search("proposal", category="misc", threshold=0.0)
    assert misc and all(r.document_name == "zoo.txt" for r in misc)
