from __future__ import annotations

import re
import threading

from cachetools import TTLCache

from rise_hrm.utils.errors import ApiError

_LIMIT_RE = re.compile(r"^\s*(\d+)\s*(?:/|per)\s*(second|minute|hour)\s*$", re.IGNORECASE)
_PER_MINUTE = {"second": 60, "minute": 1, "hour": 1 / 60}


class InMemoryRateLimiter:
    """
    Per-key hit counters kept in a TTLCache.

    Counters live for `window_seconds` from the first hit in the window; the
    cache bound keeps memory flat under a flood of distinct keys. State is per
    process, so every gunicorn worker enforces its own limit.
    """

    def __init__(self, *, window_seconds: int = 60, max_keys: int = 50_000):
        self.window_seconds = window_seconds
        self._counts: TTLCache = TTLCache(maxsize=max_keys, ttl=window_seconds)
        self._lock = threading.Lock()

    @staticmethod
    def parse_limit_per_minute(limit: str) -> int:
        """'300 per minute', '5/second' or '1000 per hour' as hits per minute; unparseable means 300."""
        m = _LIMIT_RE.match(str(limit or ""))
        if not m:
            return 300
        return max(1, int(int(m.group(1)) * _PER_MINUTE[m.group(2).lower()]))

    def check(self, key: str, limit: str) -> tuple[int, int]:
        """Count one hit; returns (allowed, remaining) or raises RATE_LIMITED."""
        allowed = self.parse_limit_per_minute(limit)
        with self._lock:
            # Re-inserting would restart the TTL, so bump the counter in place.
            counter = self._counts.get(key)
            if counter is None:
                counter = [0]
                self._counts[key] = counter
            counter[0] += 1
            current = counter[0]

        if current > allowed:
            raise ApiError(
                "RATE_LIMITED",
                "Rate limit exceeded",
                status=429,
                details={"limit": allowed, "windowSeconds": self.window_seconds},
            )
        return allowed, allowed - current

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
