# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: search.py
# -----------------------------------------------------------------------------
from typing import Optional, Any, Dict, List

from pydantic import Field, BaseModel

class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    category: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1, le=50)
    threshold: Optional[float] = Field(None, ge=-1.0, le=1.0)

class SearchHit(BaseModel):
    rank: int
    doc_id: str
    chunk_index: int
    document_name: str
    content: str
    similarity: float
    chunk_metadata: Dict[str, Any] = Field(default_factory=dict)
    document_metadata: Dict[str, Any] = Field(default_factory=dict)

class SearchResponse(BaseModel):
    query: str
    count: int
    results: List[SearchHit]
