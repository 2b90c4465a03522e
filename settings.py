# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-09
# Updated: 2026-02-04
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Vector storage (Chroma collection names)
# -----------------------------------------------------------------------------
DOCUMENTS_COLLECTION = _env("KB_DOCUMENTS_COLLECTION", "kb_documents")
CHUNKS_COLLECTION = _env("KB_CHUNKS_COLLECTION", "kb_document_embeddings")


# -----------------------------------------------------------------------------
# Segmentation defaults (characters)
# -----------------------------------------------------------------------------
CHUNKING_DEFAULTS: Dict[str, Any] = {
    # 0 means "adapt to document length"
    "chunk_size": _env_int("KB_CHUNK_SIZE", 0),
    "overlap_size": _env_int("KB_CHUNK_OVERLAP", 50),
    "min_chunk_size": _env_int("KB_MIN_CHUNK_SIZE", 100),
    "preserve_paragraphs": _env_bool("KB_PRESERVE_PARAGRAPHS", True),
    "preserve_sentences": _env_bool("KB_PRESERVE_SENTENCES", True),
    "min_target_size": _env_int("KB_MIN_TARGET_CHUNK_SIZE", 300),
    "max_target_size": _env_int("KB_MAX_TARGET_CHUNK_SIZE", 1000),
}


# -----------------------------------------------------------------------------
# Embedding batcher
# -----------------------------------------------------------------------------
# Feature flag: when off, documents are stored without fragments/embeddings
EMBEDDINGS_ENABLED = _env_bool("KB_EMBEDDINGS_ENABLED", True)

EMBEDDING_DEFAULTS: Dict[str, Any] = {
    "batch_size": _env_int("KB_EMBED_BATCH_SIZE", 100),
    "batch_delay_seconds": _env_float("KB_EMBED_BATCH_DELAY_SECONDS", 0.1),
    "max_input_tokens": _env_int("KB_EMBED_MAX_INPUT_TOKENS", 8191),
    "chars_per_token": _env_int("KB_EMBED_CHARS_PER_TOKEN", 3),
    "normalize": _env_bool("KB_EMBED_NORMALIZE", True),
}

# Pause between documents in a batch ingestion
DOCUMENT_DELAY_SECONDS = _env_float("KB_DOCUMENT_DELAY_SECONDS", 0.1)


# -----------------------------------------------------------------------------
# Provider rate limit (sliding window)
# -----------------------------------------------------------------------------
RATE_LIMIT: Dict[str, Any] = {
    "max_requests": _env_int("KB_RATE_LIMIT_MAX_REQUESTS", 100),
    "window_seconds": _env_float("KB_RATE_LIMIT_WINDOW_SECONDS", 60.0),
}


# -----------------------------------------------------------------------------
# Search defaults
# -----------------------------------------------------------------------------
SEARCH_DEFAULTS: Dict[str, Any] = {
    "limit": _env_int("KB_SEARCH_LIMIT", 10),
    "threshold": _env_float("KB_SEARCH_THRESHOLD", 0.7),
    "context_max_chunks": _env_int("KB_CONTEXT_MAX_CHUNKS", 5),
}


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if not DOCUMENTS_COLLECTION or not CHUNKS_COLLECTION:
    raise RuntimeError("Collection names resolved to empty value")

if DOCUMENTS_COLLECTION == CHUNKS_COLLECTION:
    raise RuntimeError("KB_DOCUMENTS_COLLECTION and KB_CHUNKS_COLLECTION must differ")

if not -1.0 <= SEARCH_DEFAULTS["threshold"] <= 1.0:
    raise RuntimeError("KB_SEARCH_THRESHOLD must be between -1 and 1")
