"""Tests for the per-receipt LLM call budget."""

from __future__ import annotations

import threading

from splitsmart.runtime.rate_limiter import RateLimiter


def test_budget_is_counted_and_reset() -> None:
    limiter = RateLimiter(2)

    assert limiter.try_acquire()
    limiter.record_call()
    assert not limiter.can_make_call()
    assert not limiter.try_acquire()
    assert limiter.calls == 2
    assert limiter.remaining == 0

    limiter.reset()
    assert limiter.remaining == 2


def test_concurrent_acquire_never_exceeds_budget() -> None:
    limiter = RateLimiter(5)
    granted: list[bool] = []
    lock = threading.Lock()
    start = threading.Barrier(50)

    def worker() -> None:
        start.wait()
        acquired = limiter.try_acquire()
        with lock:
            granted.append(acquired)

    threads = [threading.Thread(target=worker) for _ in range(50)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert granted.count(True) == 5
    assert limiter.calls == 5
