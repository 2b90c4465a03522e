# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: context.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel, Field

class ContextRequest(BaseModel):
    source_text: str
    topic_hint: Optional[str] = None
    max_chunks: int = Field(5, ge=1, le=20)
    category: Optional[str] = None
    threshold: Optional[float] = Field(None, ge=-1.0, le=1.0)

class ContextSourceModel(BaseModel):
    document: str
    chunk: int
    similarity: float

class ContextResponse(BaseModel):
    context: str
    sources: List[ContextSourceModel]
