# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-02
# Description: errors.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import math


class KBError(Exception):
    """Base class for knowledge-base pipeline errors."""


# --- Input errors (never retried) ---

class EmptyTextError(KBError, ValueError):
    """Text was empty after normalisation."""


class DimensionMismatchError(KBError, ValueError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have the same dimensions ({left} != {right})")
        self.left = left
        self.right = right


class InvalidChunkingOptionsError(KBError, ValueError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("Invalid chunking options: " + "; ".join(errors))
        self.errors = list(errors)


# --- Provider errors ---

class EmbeddingProviderError(KBError):
    """Embedding provider unreachable or returned a non-success status."""


class EmbeddingResponseError(EmbeddingProviderError):
    """Provider answered, but the payload was not usable."""


class EmbeddingsDisabledError(EmbeddingProviderError):
    """Embedding generation is switched off for this deployment."""


# --- Rate limiting ---

class RateLimitExceededError(KBError):
    def __init__(self, retry_after_ms: float) -> None:
        self.retry_after_ms = max(0, int(math.ceil(retry_after_ms)))
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after_ms} ms."
        )


# --- Store errors ---

class StoreError(KBError):
    """External document/vector store call failed."""


class DocumentStoreError(StoreError):
    """The parent document could not be registered."""


# --- Search errors ---

class SearchError(KBError):
    """A search call could not produce a result list."""
