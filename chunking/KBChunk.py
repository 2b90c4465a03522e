# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-10
# Description: KBChunk
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


@dataclass
class KBChunk:
    """
    A bounded, ordered slice of a knowledge-base document.

    `text` is the exact slice cleaned_text[char_start:char_end]. The first
    `overlap_chars` characters repeat the tail of the previous fragment.
    """

    # Position within the document
    index: int
    text: str
    char_start: int
    char_end: int
    overlap_chars: int = 0

    # Derived structure
    word_count: int = 0
    has_questions: bool = False
    has_numbers: bool = False
    section: Optional[str] = None

    # Set once the owning document has been stored
    doc_id: Optional[str] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def new_text(self) -> str:
        """Text contributed by this fragment, without the leading overlap."""
        return self.text[self.overlap_chars:]

    def to_metadata(self) -> Dict[str, Any]:
        r"""
        Converts the chunk into a flat metadata dictionary suitable for
        Chroma/JSON storage. Chroma rejects None values, so they are dropped.
        """
        base_meta = {
            "doc_id": self.doc_id,
            "chunk_index": self.index,
            "char_start": self.char_start,
            "char_end": self.char_end,
            "overlap_chars": self.overlap_chars,
            "word_count": self.word_count,
            "character_count": self.char_count,
            "has_questions": self.has_questions,
            "has_numbers": self.has_numbers,
            "section": self.section,
        }
        base_meta.update(self.metadata)
        return {k: v for k, v in base_meta.items() if v is not None}

    def short_preview(self, n: int = 120) -> str:
        """Return a compact text preview for logging/debugging."""
        clean = " ".join(self.text.split())
        preview = (clean[:n] + "...") if len(clean) > n else clean
        return f"[#{self.index} | {self.char_count} chars] {preview}"
