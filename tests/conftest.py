# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Description: conftest.py
# -----------------------------------------------------------------------------

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, List, Optional, Set

import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from embedding.KBEmbedder import KBEmbedder  # noqa: E402
from vectorstore.InMemoryKBVectorStore import InMemoryKBVectorStore  # noqa: E402

TEST_DIM = 8


def letter_vector(text: str, dim: int = TEST_DIM) -> List[float]:
    """Deterministic toy embedding: letter counts folded into `dim` buckets."""
    vec = [0.0] * dim
    for ch in text.lower():
        if ch.isalpha():
            vec[ord(ch) % dim] += 1.0
    vec[0] += 1.0  # never all-zero
    return vec


class FakeEmbeddings:
    """Stands in for AsyncOpenAI().embeddings."""

    def __init__(
        self,
        *,
        dim: int = TEST_DIM,
        fail_on_calls: Optional[Set[int]] = None,
        vector_fn: Optional[Callable[[str], List[float]]] = None,
        report_usage: bool = True,
    ):
        self.dim = dim
        self.fail_on_calls = fail_on_calls or set()
        self.vector_fn = vector_fn or (lambda t: letter_vector(t, dim))
        self.report_usage = report_usage
        self.calls: List[List[str]] = []

    async def create(self, *, model: str, input: List[str]):
        self.calls.append(list(input))
        if len(self.calls) in self.fail_on_calls:
            raise RuntimeError(f"provider returned 500 on call {len(self.calls)}")

        data = [SimpleNamespace(index=i, embedding=self.vector_fn(t)) for i, t in enumerate(input)]
        usage = SimpleNamespace(total_tokens=5 * len(input)) if self.report_usage else None
        return SimpleNamespace(data=data, usage=usage)


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def make_embedder():
    def _make(embeddings: Optional[FakeEmbeddings] = None, **kwargs) -> KBEmbedder:
        embeddings = embeddings or FakeEmbeddings()
        kwargs.setdefault("model", "test-embed")
        kwargs.setdefault("expected_dim", embeddings.dim)
        kwargs.setdefault("batch_delay_seconds", 0)
        return KBEmbedder(client=SimpleNamespace(embeddings=embeddings), **kwargs)

    return _make


@pytest.fixture
def store() -> InMemoryKBVectorStore:
    return InMemoryKBVectorStore()


@pytest.fixture
def proposal_text() -> str:
    # 1000 characters, no sentence or paragraph boundaries
    return ("proposal " * 112)[:1000]
