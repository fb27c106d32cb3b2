"""
Per-owner fixed-window rate limit for form generation.
"""

from __future__ import annotations

import math
import time

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from ai_form_builder.settings import Settings


class GenerateRateLimiter:
    """At most `max_requests` generations per owner per `window_sec`; a non-positive value disables it."""

    def __init__(self, max_requests: int, window_sec: int) -> None:
        self.enabled = max_requests > 0 and window_sec > 0
        self._item = RateLimitItemPerSecond(max(1, max_requests), max(1, window_sec))
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerateRateLimiter":
        return cls(settings.generate_rate_limit_max, settings.generate_rate_limit_window_sec)

    def hit(self, key: str) -> bool:
        if not self.enabled:
            return True
        return self._limiter.hit(self._item, "generate", key)

    def retry_after(self, key: str) -> int:
        stats = self._limiter.get_window_stats(self._item, "generate", key)
        return max(1, math.ceil(stats.reset_time - time.time()))


__all__ = ["GenerateRateLimiter"]
