# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: AppContainer.py
# -----------------------------------------------------------------------------
from chunking.ChunkingOptions import ChunkingOptions
from chunking.KBChunker import KBChunker
from config.Config import Config
from embedding.KBEmbedder import KBEmbedder
from services.KBContextService import KBContextService
from services.KBHealthService import KBHealthService
from services.KBIngestService import KBIngestService
from services.KBQueryService import KBQueryService
from settings import (
    CHUNKING_DEFAULTS,
    DOCUMENT_DELAY_SECONDS,
    EMBEDDING_DEFAULTS,
    EMBEDDINGS_ENABLED,
    RATE_LIMIT,
    SEARCH_DEFAULTS,
)
from utility.logging_utils import get_class_logger
from utility.RateLimiter import SlidingWindowRateLimiter
from vectorstore.ChromaKBVectorStore import ChromaKBVectorStore


def default_chunking_options() -> ChunkingOptions:
    values = dict(CHUNKING_DEFAULTS)
    # 0 means adaptive sizing
    values["chunk_size"] = values["chunk_size"] or None
    return ChunkingOptions(**values)


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.
    """

    def __init__(self, cfg: Config | None = None) -> None:
        self.logger = get_class_logger(self.__class__)

        # Configuration
        self.cfg = cfg or Config.from_env()
        self.logger.info("Config: %s", self.cfg.summary())

        # One pacing window per provider, shared by every caller
        self.rate_limiter = SlidingWindowRateLimiter(
            max_requests=RATE_LIMIT["max_requests"],
            window_seconds=RATE_LIMIT["window_seconds"],
        )

        # Core infrastructure
        self.embedder = KBEmbedder(
            self.cfg,
            rate_limiter=self.rate_limiter,
            enabled=EMBEDDINGS_ENABLED,
            **EMBEDDING_DEFAULTS,
        )
        self.store = ChromaKBVectorStore(cfg=self.cfg)
        self.chunker = KBChunker(default_chunking_options())

        # Return a singleton KBIngestService instance
        self.ingest_service = KBIngestService(
            chunker=self.chunker,
            embedder=self.embedder,
            store=self.store,
            document_delay_seconds=DOCUMENT_DELAY_SECONDS,
        )

        # Return a singleton KBQueryService instance
        self.query_service = KBQueryService(
            embedder=self.embedder,
            store=self.store,
            default_limit=SEARCH_DEFAULTS["limit"],
            default_threshold=SEARCH_DEFAULTS["threshold"],
        )

        # Return a singleton KBContextService instance
        self.context_service = KBContextService(query_service=self.query_service)

        # Return a singleton KBHealthService instance
        self.health_service = KBHealthService(embedder=self.embedder, store=self.store)
