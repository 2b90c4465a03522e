# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: KBHealthService.py
# -----------------------------------------------------------------------------
import logging
from typing import Dict

from api.schemas.health import DeepHealthResponse, RateLimitInfo, SmokeTestSummary
from embedding.KBEmbedder import KBEmbedder
from utility.logging_utils import get_class_logger
from vectorstore.KBVectorStore import KBVectorStore


class KBHealthService:
    """
    Runs connection checks against the vector store and the embedding
    provider. Returns DeepHealthResponse for API layer
    """

    def __init__(
        self,
        *,
        embedder: KBEmbedder,
        store: KBVectorStore,
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.logger = logger or get_class_logger(self.__class__)

    async def run_all(self, run_embedding_check: bool = True) -> Dict[str, bool]:
        results: Dict[str, bool] = {}

        try:
            results["vector_store"] = await self.store.test_connection()
        except Exception as e:
            self.logger.exception("Vector store check raised an exception: %s", e)
            results["vector_store"] = False
        self._log_result("vector_store", results["vector_store"])

        if not self.embedder.enabled:
            self.logger.info("Embeddings disabled; skipping provider checks")
            return results

        results["embeddings_configured"] = self.embedder.is_configured()
        self._log_result("embeddings_configured", results["embeddings_configured"])

        # one real provider call; counts against the rate limit
        if run_embedding_check and results["embeddings_configured"]:
            results["embedding_provider"] = await self.embedder.test_connection()
            self._log_result("embedding_provider", results["embedding_provider"])

        return results

    async def deep_health(self, run_embedding_check: bool = True) -> DeepHealthResponse:
        results = await self.run_all(run_embedding_check=run_embedding_check)

        total = len(results)
        passed = sum(1 for ok in results.values() if ok)
        failed = total - passed

        overall_status = "ok" if failed == 0 else "error"

        return DeepHealthResponse(
            status=overall_status,
            results=results,
            summary=SmokeTestSummary(total=total, passed=passed, failed=failed),
            embeddings_enabled=self.embedder.enabled,
            rate_limit=RateLimitInfo(**self.embedder.rate_limit_info()),
        )

    def _log_result(self, name: str, ok: bool) -> None:
        if ok:
            self.logger.info("%s: PASSED", name)
        else:
            self.logger.error("%s: FAILED", name)
