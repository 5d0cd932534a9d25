import random
import threading
import time


class SimpleRateLimiter:
    """
    Spaces request starts at least 1/requests_per_sec apart, across threads.

    Each caller reserves the next free slot under the lock and sleeps outside it,
    so concurrent callers queue up behind each other instead of racing.
    """

    def __init__(self, requests_per_sec: float) -> None:
        if requests_per_sec <= 0:
            raise ValueError("requests_per_sec must be > 0")
        self._min_interval = 1.0 / requests_per_sec
        self._next_slot: float = float("-inf")
        self._lock = threading.Lock()

    def reserve(self) -> float:
        """Claim the next slot; returns its monotonic start time."""
        with self._lock:
            slot = max(time.monotonic(), self._next_slot)
            self._next_slot = slot + self._min_interval
            return slot

    def wait(self) -> None:
        delay = self.reserve() - time.monotonic()
        if delay > 0:
            time.sleep(delay)


def backoff_delay(attempt: int, base: float = 0.25, cap: float = 4.0) -> float:
    t = min(cap, base * (2 ** attempt))
    return t * (0.7 + random.random() * 0.6)


def backoff_sleep(attempt: int) -> None:
    time.sleep(backoff_delay(attempt))
