# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Description: test_kb_chunker.py
# -----------------------------------------------------------------------------
import pytest

from chunking.ChunkingOptions import ChunkingOptions, optimal_chunk_size
from chunking.KBChunker import KBChunker, clean_text
from utility.errors import InvalidChunkingOptionsError

PROSE = (
    "Acme has delivered proposal automation to public sector clients since 2012. "
    "Our team of forty engineers maintains a single platform. "
    "Do you need on-premise hosting? We support it through a managed appliance. "
    "Implementation typically takes six weeks from contract signature.\n\n"
    "Pricing is per seat with volume discounts above 100 users. "
    "Support is available around the clock with a four hour response target. "
    "Training is delivered remotely or on site, depending on the customer. "
    "All data is encrypted at rest and in transit.\n\n"
) * 6

FIXED = ChunkingOptions(chunk_size=300, overlap_size=50, min_chunk_size=100)
# wide lookback so every cut in PROSE can land on a sentence end
BOUNDARY = ChunkingOptions(chunk_size=300, overlap_size=50, min_chunk_size=100, lookback_ratio=0.5)


def _reconstruct(chunks):
    return chunks[0].text + "".join(c.new_text for c in chunks[1:])


def test_clean_text_normalises_whitespace_and_artefacts():
    raw = "Intro\r\n\r\n\r\n\r\nBody  with\t\ttabs [Page 3] and “quotes”.\x0c [CONFIDENTIAL]  "
    out = clean_text(raw)

    assert "\r" not in out
    assert "\n\n\n" not in out
    assert "[Page 3]" not in out
    assert "CONFIDENTIAL" not in out
    assert '"quotes"' in out
    assert "  " not in out
    assert out.startswith("Intro\n\nBody with tabs")


@pytest.mark.parametrize("text", ["", "   ", "\n\n\t \n"])
def test_empty_or_whitespace_text_yields_no_chunks(text):
    assert KBChunker().chunk_text(text) == []


def test_fixed_size_scenario_produces_four_overlapping_fragments(proposal_text):
    chunks = KBChunker().chunk_text(proposal_text, FIXED)

    assert [(c.char_start, c.char_end) for c in chunks] == [
        (0, 300), (250, 550), (500, 800), (750, 1000),
    ]
    assert [c.index for c in chunks] == [0, 1, 2, 3]
    assert chunks[0].overlap_chars == 0
    assert all(c.overlap_chars == 50 for c in chunks[1:])


def test_fragments_cover_text_without_gaps():
    chunks = KBChunker().chunk_text(PROSE, BOUNDARY)
    cleaned = clean_text(PROSE)

    assert len(chunks) > 1
    assert _reconstruct(chunks) == cleaned
    for c in chunks:
        assert c.text == cleaned[c.char_start:c.char_end]


def test_fragment_lengths_respect_bounds():
    chunks = KBChunker().chunk_text(PROSE, BOUNDARY)

    for c in chunks:
        assert c.char_count <= BOUNDARY.chunk_size
    for c in chunks[:-1]:
        assert c.char_count >= BOUNDARY.min_chunk_size
    for prev, cur in zip(chunks, chunks[1:]):
        assert cur.overlap_chars <= BOUNDARY.overlap_size
        assert cur.char_start == prev.char_end - cur.overlap_chars


def test_cuts_prefer_sentence_or_paragraph_boundaries():
    chunks = KBChunker().chunk_text(PROSE, BOUNDARY)

    for c in chunks[:-1]:
        assert c.text.rstrip()[-1] in ".?!"


def test_chunking_is_deterministic():
    chunker = KBChunker()
    first = chunker.chunk_text(PROSE, BOUNDARY)
    second = chunker.chunk_text(PROSE, BOUNDARY)

    assert [(c.char_start, c.char_end, c.text) for c in first] == [
        (c.char_start, c.char_end, c.text) for c in second
    ]


def test_short_text_is_a_single_fragment():
    chunks = KBChunker().chunk_text("What is your uptime guarantee? 99.9%.", FIXED)

    assert len(chunks) == 1
    assert chunks[0].has_questions is True
    assert chunks[0].has_numbers is True
    assert chunks[0].word_count == 6


def test_short_tail_is_rebalanced_into_the_last_fragment():
    chunks = KBChunker().chunk_text("x" * 320, FIXED)

    # a plain 300-char cut would leave a 70-char tail
    assert [(c.char_start, c.char_end) for c in chunks] == [(0, 270), (220, 320)]
    assert chunks[-1].char_count == FIXED.min_chunk_size


def test_short_final_fragment_is_kept_when_it_cannot_be_rebalanced():
    opts = ChunkingOptions(chunk_size=150, overlap_size=0, min_chunk_size=100)
    chunks = KBChunker().chunk_text("x" * 170, opts)

    assert [(c.char_start, c.char_end) for c in chunks] == [(0, 150), (150, 170)]


def test_adaptive_chunk_size_follows_document_length():
    assert optimal_chunk_size(500) == 300
    assert optimal_chunk_size(5_000) == 500
    assert optimal_chunk_size(20_000) == 750
    assert optimal_chunk_size(80_000) == 1000

    resolved = ChunkingOptions().resolve(5_000)
    assert resolved.chunk_size == 500

    capped = ChunkingOptions(max_target_size=400).resolve(80_000)
    assert capped.chunk_size == 400


def test_invalid_options_are_reported():
    errors = ChunkingOptions(chunk_size=100, overlap_size=100, min_chunk_size=150).validate()

    assert "Overlap size must be smaller than chunk size" in errors
    assert "Minimum chunk size must be smaller than chunk size" in errors

    with pytest.raises(InvalidChunkingOptionsError) as exc:
        KBChunker(ChunkingOptions(chunk_size=10))
    assert exc.value.errors
    assert isinstance(exc.value, ValueError)


def test_merged_applies_only_given_overrides():
    base = ChunkingOptions(chunk_size=500)
    merged = base.merged(overlap_size=80, chunk_size=None)

    assert merged.chunk_size == 500
    assert merged.overlap_size == 80


def test_structured_chunking_tags_sections():
    text = (
        "1. Company Overview\n"
        "Acme builds proposal software for public sector teams and has done so for twelve years.\n\n"
        "2. Technical Approach\n"
        "Our platform integrates with existing document stores through a documented REST API.\n"
    )
    chunks = KBChunker().chunk_with_structure(text)

    assert [c.section for c in chunks] == ["1. Company Overview", "2. Technical Approach"]
    assert [c.index for c in chunks] == [0, 1]
    assert chunks[0].text.startswith("Acme builds")


def test_structured_chunking_falls_back_to_whole_document():
    chunks = KBChunker().chunk_with_structure("Plain text without any headings at all. " * 3)

    assert len(chunks) == 1
    assert chunks[0].section == "Document Content"


def test_to_metadata_drops_unset_values():
    chunk = KBChunker().chunk_text("Short fragment of text.", FIXED)[0]
    meta = chunk.to_metadata()

    assert "doc_id" not in meta
    assert "section" not in meta
    assert meta["chunk_index"] == 0
    assert meta["character_count"] == chunk.char_count
