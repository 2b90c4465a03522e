# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-06
# Description: types.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from chunking.ChunkingOptions import ChunkingOptions
from chunking.KBChunk import KBChunk
from document.KBDocument import KBDocument, KBDocumentMetadata
from embedding.EmbeddingRecord import EmbeddingRecord


class IngestStage(str, Enum):
    SEGMENTING = "segmenting"
    STORING_DOCUMENT = "storing_document"
    EMBEDDING = "embedding"
    STORING_CHUNKS = "storing_chunks"
    COMPLETE = "complete"
    FAILED = "failed"


class IngestOutcome(str, Enum):
    COMPLETE = "complete"
    NO_CONTENT = "no_content"
    FAILED = "failed"


@dataclass(frozen=True)
class IngestProgress:
    stage: IngestStage
    progress: int          # 0-100, overall for this document
    message: Optional[str] = None


@dataclass(frozen=True)
class BatchIngestProgress:
    current_file: int      # 1-based
    total_files: int
    stage: IngestStage
    overall_progress: int  # 0-100 across the whole batch
    file_name: str


@dataclass
class IngestOptions:
    chunking: Optional[ChunkingOptions] = None
    structured: bool = False
    generate_embeddings: bool = True


@dataclass
class IngestItem:
    text: str
    metadata: KBDocumentMetadata


@dataclass
class IngestionStats:
    total_chunks: int = 0
    total_embeddings: int = 0
    tokens_used: int = 0
    processing_time_ms: int = 0
    success_rate: float = 0.0


@dataclass
class IngestionSummary:
    outcome: IngestOutcome
    document: Optional[KBDocument] = None
    chunks: List[KBChunk] = field(default_factory=list)
    records: List[EmbeddingRecord] = field(default_factory=list)
    stats: IngestionStats = field(default_factory=IngestionStats)
    errors: List[str] = field(default_factory=list)
    file_name: Optional[str] = None


@dataclass
class SearchResult:
    doc_id: str
    chunk_index: int
    content: str
    similarity: float
    rank: int
    document_name: str = ""
    chunk_metadata: Dict[str, Any] = field(default_factory=dict)
    document_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContextSource:
    document: str
    chunk: int
    similarity: float


@dataclass
class RelevantContext:
    context: str
    sources: List[ContextSource] = field(default_factory=list)
