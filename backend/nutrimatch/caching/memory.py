"""
In-process TTL cache: one dict behind a reader/writer lock.
Expired entries read as absent and are evicted on access; a daemon thread
sweeps the rest every `sweep_interval` seconds.
Values are round-tripped through JSON on write so callers never share a
live object with the cache.
"""
import json
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from nutrimatch.caching.base import CacheBackend
from nutrimatch.errors import CacheError

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 600.0


class ReadWriteLock:
    """Many concurrent readers or one writer. Writers are not starved."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class MemoryCache(CacheBackend):
    """
    Thread-safe volatile cache.
    Stored values are JSON-shaped copies (objects with to_dict() are stored as
    their dict form); callers rebuild domain objects on read.
    """

    def __init__(
        self,
        sweep_interval: Optional[float] = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._data: Dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        self._clock = clock
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        if sweep_interval and sweep_interval > 0:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(sweep_interval,),
                name="memory-cache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock.read():
            entry = self._data.get(key)
            if entry is None:
                return None
            if not entry.expired(now):
                return json.loads(json.dumps(entry.value))
        self._evict_if_expired(key)
        return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        try:
            stored = json.loads(json.dumps(_to_jsonable(value)))
        except (TypeError, ValueError) as e:
            raise CacheError(f"value for key={key} is not serializable: {e}") from e
        entry = CacheEntry(key=key, value=stored, expires_at=self._clock() + ttl)
        with self._lock.write():
            self._data[key] = entry

    def delete(self, key: str) -> None:
        with self._lock.write():
            self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        now = self._clock()
        with self._lock.read():
            entry = self._data.get(key)
            if entry is None:
                return False
            if not entry.expired(now):
                return True
        self._evict_if_expired(key)
        return False

    def size(self) -> int:
        with self._lock.read():
            return len(self._data)

    def clear(self) -> None:
        with self._lock.write():
            self._data = {}

    def sweep(self) -> int:
        """Evict every expired entry; return how many were removed."""
        now = self._clock()
        with self._lock.write():
            expired = [k for k, e in self._data.items() if e.expired(now)]
            for k in expired:
                del self._data[k]
        if expired:
            logger.info("CACHE sweep evicted=%d", len(expired))
        return len(expired)

    def close(self) -> None:
        """Stop the background sweeper."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)

    def _evict_if_expired(self, key: str) -> None:
        # Re-check under the write lock; a writer may have refreshed the key.
        now = self._clock()
        with self._lock.write():
            entry = self._data.get(key)
            if entry is not None and entry.expired(now):
                del self._data[key]
                logger.debug("CACHE expired key=%s evicted on access", key)

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            self.sweep()
