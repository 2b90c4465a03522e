# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-22
# Description: documents.py
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ChunkingOverrides(BaseModel):
    # unset fields fall back to the server defaults
    chunk_size: Optional[int] = Field(None, ge=50, le=4000)
    overlap_size: Optional[int] = Field(None, ge=0)
    min_chunk_size: Optional[int] = Field(None, ge=0)
    preserve_paragraphs: Optional[bool] = None
    preserve_sentences: Optional[bool] = None


class IngestDocumentRequest(BaseModel):
    text: str
    name: str = Field(..., min_length=1)
    mime_type: str = "text/plain"
    size: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class IngestOptionsModel(BaseModel):
    chunking: ChunkingOverrides = Field(default_factory=ChunkingOverrides)
    structured: bool = False
    generate_embeddings: bool = True


class IngestRequest(IngestDocumentRequest):
    options: IngestOptionsModel = Field(default_factory=IngestOptionsModel)


class IngestBatchRequest(BaseModel):
    documents: List[IngestDocumentRequest] = Field(..., min_length=1)
    options: IngestOptionsModel = Field(default_factory=IngestOptionsModel)


class IngestionStatsModel(BaseModel):
    total_chunks: int
    total_embeddings: int
    tokens_used: int
    processing_time_ms: int
    success_rate: float


class IngestResponse(BaseModel):
    outcome: str
    name: Optional[str] = None
    doc_id: Optional[str] = None
    doc_type: Optional[str] = None
    category: Optional[str] = None
    embeddings_generated: bool = False
    embeddings_count: int = 0
    stats: IngestionStatsModel
    errors: List[str] = Field(default_factory=list)


class IngestBatchResponse(BaseModel):
    requested: int
    ingested: int
    failed: int
    results: List[IngestResponse]


class DeleteDocumentResponse(BaseModel):
    doc_id: str
    deleted: int
