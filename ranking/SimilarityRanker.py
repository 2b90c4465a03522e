# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-05
# Description: SimilarityRanker
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from utility.errors import DimensionMismatchError

T = TypeVar("T")


@dataclass(frozen=True)
class RankedCandidate(Generic[T]):
    item: T
    similarity: float
    position: int       # 1-based rank after ordering
    source_index: int   # index in the candidate list passed in


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity in [-1, 1]. A zero-norm vector scores 0.0.
    """
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape[0] != vb.shape[0]:
        raise DimensionMismatchError(va.shape[0], vb.shape[0])

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


class SimilarityRanker:
    """Orders candidates by cosine similarity to a query vector."""

    @staticmethod
    def similarity(a: Sequence[float], b: Sequence[float]) -> float:
        return similarity(a, b)

    def rank(
            self,
            query: Sequence[float],
            candidates: Sequence[Any],
            top_k: Optional[int] = None,
            threshold: Optional[float] = None,
            vector_of: Optional[Callable[[Any], Sequence[float]]] = None,
    ) -> List[RankedCandidate]:
        """
        Score every candidate, drop those below `threshold`, sort by similarity
        descending (ties keep input order), keep at most `top_k`.
        """
        get_vector = vector_of or (lambda c: c)
        scored = [(c, similarity(query, get_vector(c))) for c in candidates]
        return self.order(scored, score_of=None, top_k=top_k, threshold=threshold)

    def order(
            self,
            items: Sequence[Any],
            score_of: Optional[Callable[[Any], float]] = None,
            top_k: Optional[int] = None,
            threshold: Optional[float] = None,
    ) -> List[RankedCandidate]:
        """
        Same filtering and ordering for already-scored items. Without
        `score_of`, items are (item, score) pairs.
        """
        if top_k is not None and top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {top_k}")

        scored: List[Tuple[int, Any, float]] = []
        for i, entry in enumerate(items):
            if score_of is None:
                item, score = entry
            else:
                item, score = entry, score_of(entry)
            if threshold is not None and score < threshold:
                continue
            scored.append((i, item, float(score)))

        # sorted() is stable, so equal scores stay in input order
        scored = sorted(scored, key=lambda t: t[2], reverse=True)
        if top_k is not None:
            scored = scored[:top_k]

        return [
            RankedCandidate(item=item, similarity=score, position=pos, source_index=i)
            for pos, (i, item, score) in enumerate(scored, start=1)
        ]

    def most_similar(
            self,
            query: Sequence[float],
            candidates: Sequence[Any],
            top_k: int = 5,
            threshold: Optional[float] = None,
            vector_of: Optional[Callable[[Any], Sequence[float]]] = None,
    ) -> List[Tuple[Any, float]]:
        return [
            (r.item, r.similarity)
            for r in self.rank(query, candidates, top_k=top_k, threshold=threshold, vector_of=vector_of)
        ]
