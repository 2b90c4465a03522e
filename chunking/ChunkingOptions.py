# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: ChunkingOptions
# -----------------------------------------------------------------------------
from dataclasses import dataclass, replace
from typing import List, Optional

from utility.errors import InvalidChunkingOptionsError

MIN_ALLOWED_CHUNK_SIZE = 50
MAX_ALLOWED_CHUNK_SIZE = 4000


def optimal_chunk_size(content_length: int) -> int:
    """Fragment size (characters) suited to a document of `content_length` characters."""
    if content_length < 2_000:
        return 300
    if content_length < 10_000:
        return 500
    if content_length < 50_000:
        return 750
    return 1000


@dataclass(frozen=True)
class ChunkingOptions:
    """
    Segmentation settings. All sizes are in characters.

    chunk_size=None means "adapt to document length" (see optimal_chunk_size),
    bounded by [min_target_size, max_target_size].
    """

    chunk_size: Optional[int] = None
    overlap_size: int = 50
    min_chunk_size: int = 100
    preserve_paragraphs: bool = True
    preserve_sentences: bool = True

    # fraction of chunk_size searched backwards for a paragraph/sentence cut
    lookback_ratio: float = 0.15

    min_target_size: int = 300
    max_target_size: int = 1000

    def validate(self) -> List[str]:
        errors: List[str] = []

        if self.chunk_size is not None:
            if self.chunk_size < MIN_ALLOWED_CHUNK_SIZE:
                errors.append(f"Chunk size too small (minimum {MIN_ALLOWED_CHUNK_SIZE} characters)")
            if self.chunk_size > MAX_ALLOWED_CHUNK_SIZE:
                errors.append(f"Chunk size too large (maximum {MAX_ALLOWED_CHUNK_SIZE} characters)")
            if self.overlap_size >= self.chunk_size:
                errors.append("Overlap size must be smaller than chunk size")
            if self.min_chunk_size >= self.chunk_size:
                errors.append("Minimum chunk size must be smaller than chunk size")

        if self.overlap_size < 0:
            errors.append("Overlap size cannot be negative")
        if self.min_chunk_size < 0:
            errors.append("Minimum chunk size cannot be negative")
        if not 0.0 <= self.lookback_ratio <= 1.0:
            errors.append("Lookback ratio must be between 0 and 1")
        if self.min_target_size > self.max_target_size:
            errors.append("min_target_size must not exceed max_target_size")

        return errors

    def resolve(self, content_length: int) -> "ChunkingOptions":
        """
        Return a copy with a concrete chunk_size, raising
        InvalidChunkingOptionsError if the result is unusable.
        """
        resolved = self
        if self.chunk_size is None:
            size = optimal_chunk_size(content_length)
            size = max(self.min_target_size, min(self.max_target_size, size))
            resolved = replace(self, chunk_size=size)

        errors = resolved.validate()
        if errors:
            raise InvalidChunkingOptionsError(errors)
        return resolved

    def merged(self, **overrides) -> "ChunkingOptions":
        """Copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
