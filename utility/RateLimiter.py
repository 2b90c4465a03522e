# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-02
# Description: RateLimiter.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque

from utility.errors import RateLimitExceededError
from utility.logging_utils import get_class_logger


class SlidingWindowRateLimiter:
    """
    Sliding-window request counter for an outbound provider.

    At most `max_requests` calls are admitted in any `window_seconds` interval.
    A call made while the window is full is rejected immediately with
    RateLimitExceededError carrying the retry-after in milliseconds; nothing is
    queued. One instance should be shared by every caller of the same provider.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._timestamps: Deque[float] = deque()
        self.logger = logger or get_class_logger(self.__class__)

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    def can_make_request(self) -> bool:
        self._evict(self._clock())
        return len(self._timestamps) < self.max_requests

    def remaining_requests(self) -> int:
        self._evict(self._clock())
        return max(0, self.max_requests - len(self._timestamps))

    def time_until_reset_ms(self) -> float:
        """Milliseconds until the oldest request in the window expires."""
        now = self._clock()
        self._evict(now)
        if not self._timestamps:
            return 0.0
        return max(0.0, (self.window_seconds - (now - self._timestamps[0])) * 1000.0)

    def acquire(self) -> None:
        """Admit one request or raise RateLimitExceededError."""
        now = self._clock()
        self._evict(now)

        if len(self._timestamps) >= self.max_requests:
            retry_after_ms = (self.window_seconds - (now - self._timestamps[0])) * 1000.0
            self.logger.warning(
                "Rate limit reached (%d requests / %.1fs); retry after %.0f ms",
                self.max_requests,
                self.window_seconds,
                retry_after_ms,
            )
            raise RateLimitExceededError(retry_after_ms)

        self._timestamps.append(now)

    def reset(self) -> None:
        self._timestamps.clear()
