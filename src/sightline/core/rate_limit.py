"""
In-process request pacing.

The elevation API enforces a per-second quota. One limiter is shared by every search
that uses the same client, so it has to be thread-safe.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class TokenBucketRateLimiter:
    """Token bucket limiter for N requests per second (best-effort)."""

    max_per_second: float
    burst: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        rps = float(self.max_per_second)
        if rps <= 0:
            raise ValueError("max_per_second must be > 0")
        self._capacity = float(self.burst) if self.burst is not None else max(1.0, rps)
        self._tokens = self._capacity
        self._refill_per_sec = rps
        self._last = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last
        if elapsed <= 0:
            return
        self._tokens = min(self._capacity, self._tokens + elapsed * self._refill_per_sec)
        self._last = now

    def acquire(self, tokens: float = 1.0) -> None:
        need = float(tokens)
        if need <= 0:
            return
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= need:
                    self._tokens -= need
                    return
                missing = need - self._tokens
            # Sleep outside the lock so other threads can refill/check.
            sleep_s = max(0.01, missing / self._refill_per_sec)
            time.sleep(min(1.0, sleep_s))
