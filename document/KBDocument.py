# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-28
# Description: KBDocument
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def doc_type_from_mime(mime_type: Optional[str]) -> str:
    mime = (mime_type or "").lower()
    if "pdf" in mime:
        return "pdf"
    if "word" in mime or "document" in mime:
        return "docx"
    if "powerpoint" in mime or "presentation" in mime:
        return "pptx"
    return "txt"


@dataclass
class KBDocumentMetadata:
    """What the caller declares about a document handed to ingestion."""
    name: str
    mime_type: str = "text/plain"
    size: int = 0
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @property
    def doc_type(self) -> str:
        return doc_type_from_mime(self.mime_type)


@dataclass
class KBDocument:
    """
    A stored knowledge-base document. `doc_id` is assigned by the store;
    only the embedding counters change after insert.
    """
    doc_id: str
    name: str
    doc_type: str
    content: str
    size: int = 0
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    embeddings_generated: bool = False
    embeddings_count: int = 0
    last_embedded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def descriptive_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "tags": list(self.tags),
            "description": self.description,
        }
