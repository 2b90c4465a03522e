# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: health.py
# -----------------------------------------------------------------------------
from typing import Dict, Optional

from pydantic import BaseModel

class HealthResponse(BaseModel):
    status: str
    message: str

class SmokeTestSummary(BaseModel):
    total: int
    passed: int
    failed: int

class RateLimitInfo(BaseModel):
    max_requests: Optional[int] = None
    window_seconds: Optional[float] = None
    remaining: Optional[int] = None

class DeepHealthResponse(BaseModel):
    status: str
    results: Dict[str, bool]
    summary: SmokeTestSummary
    embeddings_enabled: bool = True
    rate_limit: RateLimitInfo = RateLimitInfo()
