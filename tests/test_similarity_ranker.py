# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-05
# Description: test_similarity_ranker.py
# -----------------------------------------------------------------------------
import numpy as np
import pytest

from ranking.SimilarityRanker import SimilarityRanker, similarity
from utility.errors import DimensionMismatchError


def test_similarity_basics():
    assert similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)
    assert similarity([0, 0], [1, 1]) == 0.0
    assert similarity(np.array([1.0, 2.0]), [2.0, 4.0]) == pytest.approx(1.0)


def test_similarity_rejects_unequal_dimensions():
    with pytest.raises(DimensionMismatchError):
        similarity([1, 2, 3], [1, 2])


def test_rank_filters_sorts_and_truncates():
    ranker = SimilarityRanker()
    query = [1.0, 0.0]
    candidates = [[0.0, 1.0], [1.0, 0.1], [1.0, 1.0], [1.0, 0.0]]

    ranked = ranker.rank(query, candidates, top_k=2, threshold=0.5)

    assert [r.source_index for r in ranked] == [3, 1]
    assert [r.position for r in ranked] == [1, 2]
    assert ranked[0].similarity == pytest.approx(1.0)


def test_rank_keeps_input_order_for_ties():
    ranker = SimilarityRanker()
    candidates = [{"id": "a", "v": [1, 1]}, {"id": "b", "v": [1, 1]}, {"id": "c", "v": [1, 1]}]

    ranked = ranker.rank([1, 1], candidates, vector_of=lambda c: c["v"])

    assert [r.item["id"] for r in ranked] == ["a", "b", "c"]


def test_rank_is_deterministic_and_respects_threshold():
    ranker = SimilarityRanker()
    rng = np.random.default_rng(7)
    query = rng.normal(size=16)
    candidates = list(rng.normal(size=(40, 16)))

    first = ranker.rank(query, candidates, top_k=10, threshold=0.1)
    second = ranker.rank(query, candidates, top_k=10, threshold=0.1)

    assert [r.source_index for r in first] == [r.source_index for r in second]
    assert len(first) <= 10
    assert all(r.similarity >= 0.1 for r in first)
    sims = [r.similarity for r in first]
    assert sims == sorted(sims, reverse=True)


def test_order_uses_existing_scores():
    ranker = SimilarityRanker()
    items = [("low", 0.6), ("high", 0.9), ("mid", 0.75)]

    ranked = ranker.order(items, score_of=lambda t: t[1], threshold=0.7)

    assert [r.item[0] for r in ranked] == ["high", "mid"]


def test_most_similar_returns_pairs():
    pairs = SimilarityRanker().most_similar([1, 0], [[0, 1], [1, 0]], top_k=1)

    assert pairs[0][0] == [1, 0]
    assert pairs[0][1] == pytest.approx(1.0)
