"""Per-receipt budget of LLM calls."""

from __future__ import annotations

import threading


class RateLimiter:
    """Counts LLM calls for one receipt; safe to share between worker threads."""

    def __init__(self, max_calls: int) -> None:
        self.max_calls = max_calls
        self._calls = 0
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        with self._lock:
            return self._calls

    @property
    def remaining(self) -> int:
        with self._lock:
            return max(self.max_calls - self._calls, 0)

    def can_make_call(self) -> bool:
        return self.remaining > 0

    def try_acquire(self) -> bool:
        """Reserve one call if budget remains; check and increment happen atomically."""
        with self._lock:
            if self._calls >= self.max_calls:
                return False
            self._calls += 1
            return True

    def record_call(self) -> None:
        with self._lock:
            self._calls += 1

    def reset(self) -> None:
        with self._lock:
            self._calls = 0
