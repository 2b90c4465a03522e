# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Description: test_kb_embedder.py
# -----------------------------------------------------------------------------
from types import SimpleNamespace

import numpy as np
import pytest

from conftest import FakeEmbeddings
from embedding.EmbeddingRecord import EmbeddingRequest
from utility.errors import (
    EmbeddingsDisabledError,
    EmbeddingResponseError,
    EmptyTextError,
    RateLimitExceededError,
)
from utility.RateLimiter import SlidingWindowRateLimiter


def _requests(n: int):
    return [EmbeddingRequest(text=f"fragment number {i} about pricing", id=f"doc_{i}") for i in range(n)]


@pytest.mark.asyncio
async def test_batches_are_sent_in_order(make_embedder):
    fake = FakeEmbeddings()
    embedder = make_embedder(fake, batch_size=2)

    result = await embedder.embed_batch(_requests(5))

    assert [len(c) for c in fake.calls] == [2, 2, 1]
    assert result.processed_count == 5
    assert result.errors == []
    assert [o.index for o in result.outcomes] == [0, 1, 2, 3, 4]
    assert all(o.ok for o in result.outcomes)
    assert result.total_tokens_used == 25
    assert all(v.shape == (fake.dim,) for v in result.embeddings)


@pytest.mark.asyncio
async def test_failed_batch_marks_only_its_items(make_embedder):
    embedder = make_embedder(FakeEmbeddings(fail_on_calls={2}), batch_size=2)

    result = await embedder.embed_batch(_requests(5))

    assert result.failed_indices == [2, 3]
    assert result.processed_count == 3
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Batch 2 failed:")
    assert result.embeddings[2].size == 0
    assert result.embeddings[3].size == 0
    assert result.embeddings[4].size > 0


@pytest.mark.asyncio
async def test_empty_items_are_rejected_without_a_provider_call(make_embedder):
    fake = FakeEmbeddings()
    embedder = make_embedder(fake)
    reqs = [EmbeddingRequest(text="real content"), EmbeddingRequest(text="  \n\t "), EmbeddingRequest(text="more")]

    result = await embedder.embed_batch(reqs)

    assert fake.calls == [["real content", "more"]]
    assert result.failed_indices == [1]
    assert len(result.errors) == 1
    assert "Item 1" in result.errors[0]


@pytest.mark.asyncio
async def test_progress_is_reported_after_every_batch(make_embedder):
    embedder = make_embedder(FakeEmbeddings(fail_on_calls={1}), batch_size=2)
    events = []

    await embedder.embed_batch(_requests(5), on_progress=events.append)

    assert [e.batch_index for e in events] == [1, 2, 3]
    assert [e.processed for e in events] == [2, 4, 5]
    assert [e.succeeded for e in events] == [0, 2, 3]
    assert all(e.total == 5 and e.total_batches == 3 for e in events)


@pytest.mark.asyncio
async def test_empty_input_returns_empty_result(make_embedder):
    result = await make_embedder().embed_batch([])

    assert result.outcomes == []
    assert result.processed_count == 0


@pytest.mark.asyncio
async def test_dimension_mismatch_fails_the_batch(make_embedder):
    embedder = make_embedder(FakeEmbeddings(dim=4), expected_dim=8)

    result = await embedder.embed_batch(_requests(2))

    assert result.failed_indices == [0, 1]
    assert "dimensions" in result.errors[0]


@pytest.mark.asyncio
async def test_non_finite_values_fail_the_batch(make_embedder):
    fake = FakeEmbeddings(vector_fn=lambda t: [float("nan")] * 8)
    result = await make_embedder(fake).embed_batch(_requests(1))

    assert result.failed_indices == [0]
    assert "invalid numbers" in result.errors[0]


@pytest.mark.asyncio
async def test_response_without_vectors_is_rejected(make_embedder):
    class MissingVectors:
        async def create(self, *, model, input):
            return SimpleNamespace(data=[SimpleNamespace(index=0)], usage=None)

    embedder = make_embedder()
    embedder.client = SimpleNamespace(embeddings=MissingVectors())

    with pytest.raises(EmbeddingResponseError):
        await embedder.embed_query("hello")


@pytest.mark.asyncio
async def test_usage_falls_back_to_estimate(make_embedder):
    embedder = make_embedder(FakeEmbeddings(report_usage=False))

    outcome = await embedder.embed_query("one two three four")

    assert outcome.tokens_used == 3  # ceil(4 * 0.75)


@pytest.mark.asyncio
async def test_vectors_are_unit_length(make_embedder):
    outcome = await make_embedder().embed_query("capabilities overview")

    assert np.linalg.norm(outcome.vector) == pytest.approx(1.0, rel=1e-5)


@pytest.mark.asyncio
async def test_embed_query_rejects_empty_text(make_embedder):
    with pytest.raises(EmptyTextError):
        await make_embedder().embed_query("   ")


@pytest.mark.asyncio
async def test_disabled_embedder(make_embedder):
    fake = FakeEmbeddings()
    embedder = make_embedder(fake, enabled=False)

    with pytest.raises(EmbeddingsDisabledError):
        await embedder.embed_query("anything")

    result = await embedder.embed_batch(_requests(2))
    assert result.failed_indices == [0, 1]
    assert fake.calls == []
    assert embedder.is_configured() is False


@pytest.mark.asyncio
async def test_rate_limit_rejects_immediately(make_embedder):
    now = [0.0]
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, clock=lambda: now[0])
    embedder = make_embedder(rate_limiter=limiter)

    await embedder.embed_query("first")
    now[0] = 15.0
    with pytest.raises(RateLimitExceededError) as exc:
        await embedder.embed_query("second")

    assert exc.value.retry_after_ms == 45_000
    assert embedder.rate_limit_info() == {"max_requests": 1, "window_seconds": 60, "remaining": 0}


def test_preprocess_collapses_whitespace_and_truncates(make_embedder):
    embedder = make_embedder(max_input_tokens=10, chars_per_token=3)

    assert embedder.preprocess_text("  a\n\n b\x07c\t ") == "a bc"
    assert len(embedder.preprocess_text("x" * 100)) == 30


def test_validate_embedding(make_embedder):
    embedder = make_embedder()

    assert embedder.validate_embedding([0.1] * 8) == (True, None)
    ok, err = embedder.validate_embedding([0.1] * 3)
    assert not ok and "8 dimensions" in err
