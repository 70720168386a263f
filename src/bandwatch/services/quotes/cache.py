"""TTL cache for provider payloads and the shared request throttle."""

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from ...config.logging import get_logger
from .models import RawSeries

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A validated payload, its decoded series and the monotonic fetch time."""

    payload: Dict[str, Any]
    series: RawSeries
    fetched_at: float


class QuoteCache:
    """
    Payload cache keyed by provider symbol key.

    Expired entries are pruned on every store, and a key's lock is dropped
    once nobody holds it and the key has no entry, so both maps stay bounded
    by the keys fetched within one TTL.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self.hits = 0
        self.misses = 0
        self.logger = logger.bind(component="quote_cache")

    @asynccontextmanager
    async def key_lock(self, key: str) -> AsyncIterator[None]:
        """Serialise the read-then-write sequence for one key."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                if key not in self._entries:
                    del self._locks[key]

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.fetched_at < self.ttl_seconds

    def get_fresh(self, key: str) -> Optional[CacheEntry]:
        """Return the cached entry if it is younger than the TTL."""
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry, self._clock()):
            self.hits += 1
            return entry
        self.misses += 1
        return None

    def put(self, key: str, payload: Dict[str, Any], series: RawSeries) -> CacheEntry:
        self.prune_expired()
        entry = self._entries[key] = CacheEntry(
            payload=payload, series=series, fetched_at=self._clock()
        )
        return entry

    def prune_expired(self) -> int:
        """Drop expired entries and the idle locks of their keys."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items() if not self._is_fresh(entry, now)
        ]
        for key in expired:
            del self._entries[key]
            if key not in self._lock_users:
                self._locks.pop(key, None)
        if expired:
            self.logger.debug("Pruned expired charts", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        for key in [k for k in self._locks if k not in self._lock_users]:
            del self._locks[key]
        self.logger.info("Quote cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._entries),
            "locks": len(self._locks),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl_seconds,
        }


class RequestThrottle:
    """
    Minimum gap between the start times of consecutive upstream calls.

    The gap is shared by every symbol; concurrent callers queue on one lock.
    """

    def __init__(
        self,
        min_gap_seconds: float,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.min_gap_seconds = min_gap_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None
        self.logger = logger.bind(component="request_throttle")

    @property
    def last_request_at(self) -> Optional[float]:
        return self._last_request_at

    async def acquire(self) -> float:
        """
        Wait for the gap to elapse, then stamp the call start.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                remaining = self.min_gap_seconds - (
                    self._clock() - self._last_request_at
                )
                if remaining > 0:
                    self.logger.debug("Throttling upstream request", wait_s=remaining)
                    await self._sleep(remaining)
                    waited = remaining
            self._last_request_at = self._clock()
            return waited
