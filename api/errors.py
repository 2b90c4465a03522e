# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: errors.py
# -----------------------------------------------------------------------------
import logging

from fastapi import HTTPException

from utility.errors import KBError, RateLimitExceededError


def to_http_exception(e: Exception, route: str, logger: logging.Logger) -> HTTPException:
    """Map a service error onto an HTTP status, logging it the same way every route does."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, RateLimitExceededError):
        logger.warning("%s -> 429: %s", route, e)
        retry_after_s = max(1, -(-e.retry_after_ms // 1000))
        return HTTPException(status_code=429, detail=str(e), headers={"Retry-After": str(retry_after_s)})
    if isinstance(e, ValueError):
        logger.warning("%s -> 400: %s", route, e)
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, KBError):
        logger.exception("%s -> 502: %s", route, e)
        return HTTPException(status_code=502, detail=str(e))
    logger.exception("%s -> 500: %s", route, e)
    return HTTPException(status_code=500, detail=f"{route} failed: {e}")
