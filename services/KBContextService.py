# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: KBContextService
# -----------------------------------------------------------------------------
import logging
import re
from collections import Counter
from typing import Dict, List, Optional

from services.KBQueryService import KBQueryService
from services.types import ContextSource, RelevantContext
from settings import SEARCH_DEFAULTS
from utility.logging_utils import get_class_logger

# Proposal section -> search keywords
SECTION_KEYWORDS: Dict[str, List[str]] = {
    "executive-summary": ["overview", "company", "value proposition", "solution", "benefits"],
    "technical-approach": ["technical", "features", "capabilities", "architecture", "integration", "API"],
    "pricing": ["pricing", "packages", "costs", "plans", "subscription", "licensing"],
    "company-overview": ["company", "history", "experience", "expertise", "team", "about"],
    "references": ["case studies", "customer", "success stories", "testimonials", "references"],
    "implementation": ["implementation", "deployment", "setup", "installation", "rollout"],
    "support": ["support", "maintenance", "training", "help", "assistance"],
}
DEFAULT_KEYWORDS = ["company", "overview", "capabilities"]

MAX_SOURCE_TERMS = 10
UNKNOWN_DOCUMENT = "Unknown Document"

_WORD = re.compile(r"[a-z0-9][a-z0-9'\-]*")
_STOPWORDS = frozenset("""
    about above after again against also been before being below between both
    could does doing down during each from further have having here into itself
    just more most must only other over same shall should some such than that
    their theirs them then there these they this those through under until very
    were what when where which while whom will with within without would your
    yours please provide describe include including required requirements
""".split())


def significant_terms(text: str, limit: int = MAX_SOURCE_TERMS) -> List[str]:
    """Most frequent words longer than three characters, excluding numbers and stop-words."""
    words = [
        w.strip("'-")
        for w in _WORD.findall((text or "").lower())
    ]
    counts = Counter(
        w for w in words
        if len(w) > 3 and not w.isdigit() and w not in _STOPWORDS
    )
    # most_common keeps first-seen order among equal counts
    return [w for w, _ in counts.most_common(limit)]


def build_context_query(source_text: str, topic_hint: Optional[str]) -> str:
    keywords = SECTION_KEYWORDS.get((topic_hint or "").strip().lower(), DEFAULT_KEYWORDS)
    return " ".join(keywords + significant_terms(source_text))


class KBContextService:
    """
    Builds drafting context: a keyword query for the proposal section, run
    through semantic search, returned as joined text plus provenance.
    """

    def __init__(
        self,
        *,
        query_service: KBQueryService,
        logger: logging.Logger | None = None,
    ) -> None:
        self.query_service = query_service
        self.logger = logger or get_class_logger(self.__class__)

    async def get_relevant_context(
        self,
        source_text: str,
        topic_hint: Optional[str],
        max_chunks: int = SEARCH_DEFAULTS["context_max_chunks"],
        category: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> RelevantContext:
        query = build_context_query(source_text, topic_hint)
        self.logger.info("Context query for topic=%r: %r", topic_hint, query)

        results = await self.query_service.search(
            query,
            category=category,
            limit=max_chunks,
            threshold=threshold,
        )

        context = "\n\n".join(r.content for r in results)
        sources = [
            ContextSource(
                document=r.document_name or UNKNOWN_DOCUMENT,
                chunk=r.chunk_index,
                similarity=r.similarity,
            )
            for r in results
        ]
        self.logger.info("Assembled context: %d fragment(s), %d chars", len(sources), len(context))
        return RelevantContext(context=context, sources=sources)
