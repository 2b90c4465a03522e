# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-11
# Description: KBChunker
# -----------------------------------------------------------------------------
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from chunking.ChunkingOptions import ChunkingOptions
from chunking.KBChunk import KBChunk
from utility.errors import InvalidChunkingOptionsError
from utility.logging_utils import get_class_logger

_PARAGRAPH_BREAK = re.compile(r"\n\n")
_SENTENCE_END = re.compile(r"[.!?]+[\"')\]]*\s+")
_DIGIT = re.compile(r"\d")

# Heading patterns tried in order; the first one that matches more than once wins
_SECTION_PATTERNS = [
    re.compile(r"^(\d+\.?[ \t]+[A-Z][^:\n]*):?[ \t]*$", re.MULTILINE),     # "1. OVERVIEW"
    re.compile(r"^([A-Z][A-Z \t]{3,}):?[ \t]*$", re.MULTILINE),            # "TECHNICAL REQUIREMENTS"
    re.compile(r"^(SECTION[ \t]+\d+[^:\n]*):?[ \t]*$", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)[ \t]*$", re.MULTILINE),  # "Company Overview"
]
_MIN_SECTION_CHARS = 50
_DEFAULT_SECTION_TITLE = "Document Content"


def clean_text(text: str) -> str:
    """
    Normalise raw extracted text before segmentation.

    Paragraph breaks survive as a single blank line; every other whitespace
    run becomes one space. Fragment offsets refer to this cleaned text.
    """
    if not text:
        return ""

    out = text.replace("\r\n", "\n").replace("\r", "\n")
    # control characters except tab/newline (form feed, vertical tab, NUL, ...)
    out = re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", " ", out)
    out = re.sub(r"[“”]", '"', out)
    out = re.sub(r"[‘’]", "'", out)
    # common extraction artefacts
    out = re.sub(r"\[Page \d+\]", "", out, flags=re.IGNORECASE)
    out = re.sub(r"\[CONFIDENTIAL\]", "", out, flags=re.IGNORECASE)

    out = re.sub(r"[ \t]+", " ", out)
    out = re.sub(r" *\n *", "\n", out)
    out = re.sub(r"\n{3,}", "\n\n", out)
    return out.strip()


@dataclass
class _Section:
    title: str
    start: int
    end: int


class KBChunker:
    """
    Splits document text into overlapping, boundary-aware KBChunk objects.

    Deterministic: the same text and options always yield the same fragments.
    """

    def __init__(
        self,
        options: Optional[ChunkingOptions] = None,
        *,
        logger: logging.Logger | None = None,
    ):
        self.options = options or ChunkingOptions()
        self.logger = logger or get_class_logger(self.__class__)

        # fail fast on a default configuration that can never work
        errors = self.options.validate()
        if errors:
            raise InvalidChunkingOptionsError(errors)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def chunk_text(self, text: str, options: Optional[ChunkingOptions] = None) -> List[KBChunk]:
        cleaned = clean_text(text)
        if not cleaned:
            self.logger.warning("No content to chunk (empty or whitespace-only text)")
            return []

        opts = (options or self.options).resolve(len(cleaned))
        self.logger.info(
            "Chunking %d chars: chunk_size=%d overlap=%d min=%d paragraphs=%s sentences=%s",
            len(cleaned),
            opts.chunk_size,
            opts.overlap_size,
            opts.min_chunk_size,
            opts.preserve_paragraphs,
            opts.preserve_sentences,
        )

        chunks = self._split(cleaned, 0, len(cleaned), opts, first_index=0)
        self._log_summary(chunks)
        return chunks

    def chunk_with_structure(self, text: str, options: Optional[ChunkingOptions] = None) -> List[KBChunk]:
        """
        Chunk each detected section separately and tag fragments with the
        section title. Overlap never crosses a section boundary.
        """
        cleaned = clean_text(text)
        if not cleaned:
            self.logger.warning("No content to chunk (empty or whitespace-only text)")
            return []

        opts = (options or self.options).resolve(len(cleaned))
        sections = self.identify_sections(cleaned)
        self.logger.info("Structured chunking: %d section(s) detected", len(sections))

        chunks: List[KBChunk] = []
        for section in sections:
            section_chunks = self._split(cleaned, section.start, section.end, opts, first_index=len(chunks))
            for c in section_chunks:
                c.section = section.title
            chunks.extend(section_chunks)

        self._log_summary(chunks)
        return chunks

    def identify_sections(self, cleaned: str) -> List[_Section]:
        for pattern in _SECTION_PATTERNS:
            matches = list(pattern.finditer(cleaned))
            if len(matches) < 2:
                continue

            sections: List[_Section] = []
            for i, m in enumerate(matches):
                body_start = m.end()
                body_end = matches[i + 1].start() if i + 1 < len(matches) else len(cleaned)
                body_start, body_end = self._trim_span(cleaned, body_start, body_end)
                if body_end - body_start > _MIN_SECTION_CHARS:
                    sections.append(_Section(title=m.group(1).strip(), start=body_start, end=body_end))
            if sections:
                return sections
            break

        return [_Section(title=_DEFAULT_SECTION_TITLE, start=0, end=len(cleaned))]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _trim_span(text: str, start: int, end: int) -> Tuple[int, int]:
        while start < end and text[start].isspace():
            start += 1
        while end > start and text[end - 1].isspace():
            end -= 1
        return start, end

    def _find_cut(self, text: str, start: int, opts: ChunkingOptions, limit: Optional[int] = None) -> int:
        hard_end = start + opts.chunk_size if limit is None else limit
        if not (opts.preserve_paragraphs or opts.preserve_sentences):
            return hard_end

        lookback = int(opts.chunk_size * opts.lookback_ratio)
        lo = max(start + opts.min_chunk_size, start + opts.overlap_size + 1, hard_end - lookback)
        if lo > hard_end:
            return hard_end

        if opts.preserve_paragraphs:
            cut = self._last_boundary(_PARAGRAPH_BREAK, text, start, lo, hard_end)
            if cut is not None:
                return cut
        if opts.preserve_sentences:
            cut = self._last_boundary(_SENTENCE_END, text, start, lo, hard_end)
            if cut is not None:
                return cut
        return hard_end

    @staticmethod
    def _last_boundary(pattern: re.Pattern, text: str, start: int, lo: int, hi: int) -> Optional[int]:
        best: Optional[int] = None
        for m in pattern.finditer(text, start, hi):
            if m.end() >= lo:
                best = m.end()
        return best

    def _split(
        self,
        text: str,
        span_start: int,
        span_end: int,
        opts: ChunkingOptions,
        *,
        first_index: int,
    ) -> List[KBChunk]:
        chunks: List[KBChunk] = []
        start = span_start
        overlap = 0

        while start < span_end:
            if span_end - start <= opts.chunk_size:
                chunks.append(self._make_chunk(text, first_index + len(chunks), start, span_end, overlap))
                break

            cut = self._find_cut(text, start, opts)
            if span_end - cut + opts.overlap_size < opts.min_chunk_size:
                # pull the cut back so the last fragment reaches min_chunk_size
                balanced = span_end + opts.overlap_size - opts.min_chunk_size
                if balanced - start >= opts.min_chunk_size:
                    cut = self._find_cut(text, start, opts, limit=balanced)
            chunks.append(self._make_chunk(text, first_index + len(chunks), start, cut, overlap))

            overlap = opts.overlap_size
            start = cut - overlap

        return chunks

    @staticmethod
    def _make_chunk(text: str, index: int, start: int, end: int, overlap: int) -> KBChunk:
        content = text[start:end]
        return KBChunk(
            index=index,
            text=content,
            char_start=start,
            char_end=end,
            overlap_chars=overlap,
            word_count=len(content.split()),
            has_questions="?" in content,
            has_numbers=bool(_DIGIT.search(content)),
        )

    def _log_summary(self, chunks: List[KBChunk]) -> None:
        if not chunks:
            self.logger.warning("No chunks produced")
            return
        avg_len = sum(c.char_count for c in chunks) / len(chunks)
        self.logger.info(
            "Chunking Summary: chunks=%d | avg_len=%.1f chars | with_questions=%d",
            len(chunks),
            avg_len,
            sum(1 for c in chunks if c.has_questions),
        )
        self.logger.debug("First chunk: %s", chunks[0].short_preview())
