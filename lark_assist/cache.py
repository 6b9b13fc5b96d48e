"""
Response cache + request coalescing.

Time-bounded, size-bounded in-memory cache of backend responses. Concurrent
requests for the same key share one in-flight producer call.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from lark_assist.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 1800  # 30 minutes
DEFAULT_MAX_ENTRIES = 50


def canonicalize_text(text: Optional[str]) -> str:
    """
    Canonicalize free text for use in a cache key.

    Args:
        text: Raw text

    Returns:
        Trimmed text with line breaks and whitespace runs collapsed
    """
    if not text:
        return ""
    text = text.strip()
    text = re.sub(r'[\r\n]+', ' ', text)
    return re.sub(r'\s+', ' ', text)


def make_cache_key(endpoint: str, *parts: str) -> str:
    return "|".join([endpoint, *(canonicalize_text(p) for p in parts)])


@dataclass
class CacheEntry(Generic[T]):
    key: str
    response: T
    created_at: float


class ResponseCache(Generic[T]):
    """
    In-memory cache with TTL expiry and oldest-first eviction.

    Pending producer calls are tracked per key so that at most one request
    per key is in flight.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        s = get_settings()
        self.ttl_seconds = float(s.cache_ttl_seconds if ttl_seconds is None else ttl_seconds)
        self.max_entries = int(s.cache_max_entries if max_entries is None else max_entries)
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._pending: Dict[str, "asyncio.Task[T]"] = {}

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def purge(self) -> None:
        """Drop expired entries, then evict oldest until within max_entries."""
        now = self._clock()
        for key in [k for k, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[key]

        excess = len(self._entries) - self.max_entries
        if excess > 0:
            oldest = sorted(self._entries.values(), key=lambda e: e.created_at)[:excess]
            for entry in oldest:
                del self._entries[entry.key]

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry.response

    def put(self, key: str, response: T) -> None:
        self._entries[key] = CacheEntry(key=key, response=response, created_at=self._clock())
        self.purge()

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def _produce(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        try:
            response = await producer()
            self.put(key, response)
            return response
        finally:
            self._pending.pop(key, None)

    async def fetch_cached(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        self.purge()

        cached = self.get(key)
        if cached is not None:
            logger.debug("[CACHE] hit", extra={"key_len": len(key)})
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce(key, producer))
            # registered before the first await so concurrent callers coalesce
            self._pending[key] = task
        else:
            logger.debug("[CACHE] joining pending request", extra={"key_len": len(key)})

        return await asyncio.shield(task)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def pending_count(self) -> int:
        return len(self._pending)

    def stats(self) -> Dict[str, Any]:
        return {"entries": self.size(), "pending": self.pending_count(), "ttl_seconds": self.ttl_seconds}


__all__ = [
    "CacheEntry",
    "ResponseCache",
    "canonicalize_text",
    "make_cache_key",
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_MAX_ENTRIES",
]
