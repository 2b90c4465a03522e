# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Description: EmbeddingRecord
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

import numpy as np


def empty_vector() -> np.ndarray:
    return np.empty(0, dtype=np.float32)


@dataclass(frozen=True)
class EmbeddingRequest:
    text: str
    id: Optional[str] = None


@dataclass
class EmbeddingOutcome:
    """Per-item result: either ok with a vector, or failed with a reason."""
    index: int
    ok: bool
    vector: np.ndarray = field(default_factory=empty_vector)
    error: Optional[str] = None
    tokens_used: int = 0
    request_id: Optional[str] = None

    @classmethod
    def success(cls, index: int, vector: np.ndarray, tokens_used: int, request_id: Optional[str] = None) -> "EmbeddingOutcome":
        return cls(index=index, ok=True, vector=vector, tokens_used=tokens_used, request_id=request_id)

    @classmethod
    def failure(cls, index: int, error: str, request_id: Optional[str] = None) -> "EmbeddingOutcome":
        return cls(index=index, ok=False, error=error, request_id=request_id)


@dataclass(frozen=True)
class BatchProgress:
    processed: int      # items handled so far, failed or not
    succeeded: int
    total: int
    batch_index: int    # 1-based
    total_batches: int


@dataclass
class BatchEmbeddingResult:
    outcomes: List[EmbeddingOutcome]
    total_tokens_used: int = 0
    processed_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def embeddings(self) -> List[np.ndarray]:
        """Vectors aligned with the input; failed items hold an empty vector."""
        return [o.vector if o.ok else empty_vector() for o in self.outcomes]

    @property
    def failed_indices(self) -> List[int]:
        return [o.index for o in self.outcomes if not o.ok]


@dataclass
class EmbeddingRecord:
    """Embedding vector + fragment text + searchable metadata, as persisted."""
    doc_id: str
    chunk_index: int
    text: str
    vector: np.ndarray
    metadata: Dict[str, Any]

    @property
    def record_id(self) -> str:
        return f"{self.doc_id}_{self.chunk_index}"
