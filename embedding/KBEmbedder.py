# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Description: KBEmbedder
# -----------------------------------------------------------------------------
import asyncio
import math
import re
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np
import openai
from openai import AsyncOpenAI

from config.Config import Config
from embedding.EmbeddingRecord import (
    BatchEmbeddingResult,
    BatchProgress,
    EmbeddingOutcome,
    EmbeddingRequest,
)
from utility.errors import (
    EmbeddingProviderError,
    EmbeddingResponseError,
    EmbeddingsDisabledError,
    EmptyTextError,
    KBError,
)
from utility.logging_utils import get_class_logger
from utility.RateLimiter import SlidingWindowRateLimiter

DEFAULT_EMBED_MODEL = "text-embedding-3-small"
DEFAULT_EMBED_DIMENSIONS = 1536

_WHITESPACE = re.compile(r"\s+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _field(obj: Any, name: str) -> Any:
    """Read `name` from an SDK object or a plain dict payload."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class KBEmbedder:
    """
    Batched embedding client for knowledge-base fragments and search queries.

    Batches run one after another with a fixed pause in between. A failing
    batch marks its own items as failed and the remaining batches still run.
    """

    def __init__(
            self,
            cfg: Optional[Config] = None,
            *,
            client: Any = None,
            model: Optional[str] = None,
            expected_dim: Optional[int] = None,
            batch_size: int = 100,
            batch_delay_seconds: float = 0.1,
            max_input_tokens: int = 8191,
            chars_per_token: int = 3,
            normalize: bool = True,
            enabled: bool = True,
            rate_limiter: Optional[SlidingWindowRateLimiter] = None,
            logger=None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.cfg = cfg
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.max_input_chars = max_input_tokens * chars_per_token
        self.normalize = normalize
        self.enabled = enabled
        self.rate_limiter = rate_limiter
        self.logger = logger or get_class_logger(self.__class__)

        self.model = model or (cfg.openai_embed_model if cfg else None) or DEFAULT_EMBED_MODEL
        if expected_dim is None and cfg is not None:
            expected_dim = cfg.embedding_dimensions
        self.expected_dim = expected_dim

        if client is None and cfg is not None:
            client = AsyncOpenAI(
                api_key=cfg.openai_api_key,
                base_url=cfg.openai_base_url or None,
            )
        self.client = client

        self.logger.info(
            "KBEmbedder initialised (model=%s, dim=%s, batch=%d, delay=%.2fs, enabled=%s)",
            self.model,
            self.expected_dim,
            self.batch_size,
            self.batch_delay_seconds,
            self.enabled,
        )

    # ------------------------------------------------------------------
    # Text helpers
    # ------------------------------------------------------------------
    def preprocess_text(self, text: str) -> str:
        cleaned = _WHITESPACE.sub(" ", text or "")
        cleaned = _CONTROL_CHARS.sub("", cleaned)
        return cleaned[: self.max_input_chars].strip()

    @staticmethod
    def estimate_tokens(text: str) -> int:
        # ~0.75 tokens per word; only used when the provider reports no usage
        return math.ceil(len(text.split()) * 0.75)

    def validate_embedding(self, vector: Sequence[float]) -> Tuple[bool, Optional[str]]:
        arr = np.asarray(vector, dtype=np.float64)
        if arr.ndim != 1:
            return False, "Embedding must be a flat vector"
        if self.expected_dim is not None and arr.shape[0] != self.expected_dim:
            return False, f"Embedding must have {self.expected_dim} dimensions, got {arr.shape[0]}"
        if arr.shape[0] == 0:
            return False, "Embedding is empty"
        if not np.isfinite(arr).all():
            return False, "Embedding contains invalid numbers"
        return True, None

    def is_configured(self) -> bool:
        return self.enabled and self.client is not None

    def rate_limit_info(self) -> dict:
        if self.rate_limiter is None:
            return {"max_requests": None, "window_seconds": None, "remaining": None}
        return {
            "max_requests": self.rate_limiter.max_requests,
            "window_seconds": self.rate_limiter.window_seconds,
            "remaining": self.rate_limiter.remaining_requests(),
        }

    # ------------------------------------------------------------------
    # Provider call
    # ------------------------------------------------------------------
    async def _embed_batch(self, texts: List[str]) -> Tuple[np.ndarray, int]:
        if not self.enabled:
            raise EmbeddingsDisabledError("Embedding generation is disabled for this deployment")
        if self.client is None:
            raise EmbeddingProviderError("No embedding client configured")

        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        try:
            resp = await self.client.embeddings.create(model=self.model, input=texts)
        except openai.APIStatusError as e:
            raise EmbeddingProviderError(f"OpenAI API error ({e.status_code}): {e.message}") from e
        except openai.APIConnectionError as e:
            raise EmbeddingProviderError(f"Embedding provider unreachable: {e}") from e

        return self._parse_response(resp, texts)

    def _parse_response(self, resp: Any, texts: List[str]) -> Tuple[np.ndarray, int]:
        data = _field(resp, "data")
        if not isinstance(data, (list, tuple)):
            raise EmbeddingResponseError("Invalid response format from embedding provider (missing 'data')")
        if len(data) != len(texts):
            raise EmbeddingResponseError(
                f"Embedding count mismatch: got {len(data)} vectors for {len(texts)} inputs"
            )

        items = list(data)
        if all(isinstance(_field(d, "index"), int) for d in items):
            items.sort(key=lambda d: _field(d, "index"))

        vectors: List[List[float]] = []
        for pos, item in enumerate(items):
            emb = _field(item, "embedding")
            if emb is None or len(emb) == 0:
                raise EmbeddingResponseError(f"Response item {pos} has no embedding vector")
            ok, err = self.validate_embedding(emb)
            if not ok:
                raise EmbeddingResponseError(f"Response item {pos}: {err}")
            vectors.append(emb)

        dims = {len(v) for v in vectors}
        if len(dims) > 1:
            raise EmbeddingResponseError(f"Inconsistent embedding dimensions in one response: {sorted(dims)}")

        arr = np.asarray(vectors, dtype=np.float32)

        # Normalize vectors (cosine-friendly)
        if self.normalize:
            norms = np.linalg.norm(arr, axis=1, keepdims=True) + 1e-12
            arr = arr / norms

        usage = _field(resp, "usage")
        tokens = _field(usage, "total_tokens") if usage is not None else None
        if not isinstance(tokens, int):
            tokens = sum(self.estimate_tokens(t) for t in texts)

        return arr, tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def embed_query(self, text: str) -> EmbeddingOutcome:
        """
        Embed one string. Errors propagate immediately.
        """
        clean = self.preprocess_text(text)
        if not clean:
            raise EmptyTextError("Cannot generate embedding for empty text")

        try:
            arr, tokens = await self._embed_batch([clean])
        except KBError:
            raise
        except Exception as e:
            raise EmbeddingProviderError(f"Failed to generate embedding: {e}") from e

        return EmbeddingOutcome.success(0, arr[0], tokens)

    async def embed_batch(
            self,
            requests: Sequence[EmbeddingRequest],
            on_progress: Optional[Callable[[BatchProgress], None]] = None,
    ) -> BatchEmbeddingResult:
        """
        Preprocess → batch → provider → one outcome per request, in input order.
        """
        total = len(requests)
        outcomes: List[Optional[EmbeddingOutcome]] = [None] * total
        errors: List[str] = []
        tokens_used = 0
        succeeded = 0
        processed = 0

        if total == 0:
            return BatchEmbeddingResult(outcomes=[])

        total_batches = math.ceil(total / self.batch_size)
        self.logger.info("Embedding %d texts in %d batch(es) (batch=%d)", total, total_batches, self.batch_size)

        for batch_no, offset in enumerate(range(0, total, self.batch_size), start=1):
            batch = requests[offset:offset + self.batch_size]

            valid: List[Tuple[int, str, Optional[str]]] = []
            for j, req in enumerate(batch):
                idx = offset + j
                clean = self.preprocess_text(req.text)
                if not clean:
                    msg = f"Item {idx} rejected: cannot generate embedding for empty text"
                    self.logger.warning(msg)
                    errors.append(msg)
                    outcomes[idx] = EmbeddingOutcome.failure(idx, "empty text", req.id)
                else:
                    valid.append((idx, clean, req.id))

            if valid:
                try:
                    arr, batch_tokens = await self._embed_batch([t for _, t, _ in valid])
                    for (idx, _, req_id), vec in zip(valid, arr):
                        outcomes[idx] = EmbeddingOutcome.success(idx, vec, batch_tokens, req_id)
                    succeeded += len(valid)
                    tokens_used += batch_tokens
                except Exception as e:
                    msg = f"Batch {batch_no} failed: {e}"
                    self.logger.error("Embedding batch %d/%d at offset %d failed: %s", batch_no, total_batches, offset, e)
                    errors.append(msg)
                    for idx, _, req_id in valid:
                        outcomes[idx] = EmbeddingOutcome.failure(idx, str(e), req_id)

            processed += len(batch)
            if on_progress is not None:
                on_progress(BatchProgress(
                    processed=processed,
                    succeeded=succeeded,
                    total=total,
                    batch_index=batch_no,
                    total_batches=total_batches,
                ))

            # pace batches to stay under the provider's rate limit
            if offset + self.batch_size < total and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)

        self.logger.info(
            "Completed embeddings: %d/%d succeeded, tokens=%d, errors=%d",
            succeeded,
            total,
            tokens_used,
            len(errors),
        )
        return BatchEmbeddingResult(
            outcomes=[o for o in outcomes if o is not None],
            total_tokens_used=tokens_used,
            processed_count=succeeded,
            errors=errors,
        )

    async def test_connection(self) -> bool:
        """
        Simple health check: one tiny embedding call, dimension checked.
        """
        try:
            outcome = await self.embed_query("Knowledge base embedding healthcheck")
            self.logger.info("Embedding healthcheck PASSED (dim=%d)", outcome.vector.shape[0])
            return True
        except Exception as e:
            self.logger.error("Embedding healthcheck FAILED: %s", e)
            return False
