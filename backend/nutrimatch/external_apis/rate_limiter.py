"""
Token-bucket limiter shared by every outbound call to the external database.
USDA FDC allows 1000 requests/hour per key: ~0.278 tokens/s with a burst of 10.
"""
import logging
import threading
import time
from typing import Callable, Optional

from nutrimatch.errors import LookupCancelledError, RateLimitedError

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS_PER_HOUR = 1000
DEFAULT_BURST = 10


class TokenBucketLimiter:
    def __init__(
        self,
        rate_per_second: float = DEFAULT_REQUESTS_PER_HOUR / 3600.0,
        burst: int = DEFAULT_BURST,
        clock: Callable[[], float] = time.monotonic,
    ):
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self.rate = rate_per_second
        self.burst = max(1, int(burst))
        self._clock = clock
        self._tokens = float(self.burst)
        self._updated = clock()
        self._lock = threading.Lock()
        # Stands in for a caller event that is never set
        self._never = threading.Event()

    @classmethod
    def per_hour(cls, requests_per_hour: int, burst: int = DEFAULT_BURST) -> "TokenBucketLimiter":
        return cls(rate_per_second=requests_per_hour / 3600.0, burst=burst)

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._updated = now

    def try_acquire(self) -> float:
        """Take a token if available and return 0, else return seconds until one is."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self.rate

    def wait(
        self,
        cancel: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Block until a token is granted.
        Raises LookupCancelledError if `cancel` is set while waiting and
        RateLimitedError if `timeout` seconds pass first.
        """
        event = cancel or self._never
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            if event.is_set():
                raise LookupCancelledError("cancelled while waiting for rate limiter")
            delay = self.try_acquire()
            if delay == 0.0:
                return
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise RateLimitedError("rate limiter wait timed out", status_code=429)
                delay = min(delay, remaining)
            logger.debug("RATE_LIMIT waiting %.2fs for token", delay)
            event.wait(delay)
