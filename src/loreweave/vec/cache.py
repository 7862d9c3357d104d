"""Embedding query cache: TTL + size bound, hash-keyed.

Wraps an EmbeddingAdapter so repeated or overlapping queries (successive
edits re-triggering similar retrieval) don't hit the provider again.

Usage:
    cache = EmbeddingCache(EmbeddingAdapter(config), ttl_seconds=3600, max_size=100)
    await cache.get_or_compute("dragon clan")
    await cache.get_or_compute("dragon clan")  # cached
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from loreweave.observability.emitter import emit
from loreweave.observability.events import EmbeddingCacheSwept
from loreweave.observability.logging import get_logger
from loreweave.vec.embeddings import EmbeddingAdapter

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    vector: list[float]
    timestamp: float


class EmbeddingCache:
    """Memoizes adapter vectors by sha256(text).

    An entry is reused until it is `ttl_seconds` old. When the map grows
    past `max_size`, expired entries are swept first; if that isn't
    enough the least recently used entries go.

    Empty vectors are never cached, so a provider that comes back is
    picked up on the next call.

    Safe to share across coroutines on one event loop: every write is an
    idempotent overwrite.
    """

    def __init__(
        self,
        adapter: EmbeddingAdapter,
        ttl_seconds: float = 3600,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.adapter = adapter
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    @property
    def available(self) -> bool:
        return self.adapter.available

    @property
    def signature(self) -> str:
        return self.adapter.signature

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_compute(self, text: str) -> list[float]:
        key = self._hash(text)
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None and now - entry.timestamp < self._ttl:
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.vector

        self._misses += 1
        vector = await self.adapter.embed(text)
        if not vector:
            return vector

        self._entries[key] = CacheEntry(vector=vector, timestamp=now)
        self._entries.move_to_end(key)
        if len(self._entries) > self._max_size:
            self._sweep(now)
        return vector

    def _sweep(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.timestamp >= self._ttl]
        for key in expired:
            del self._entries[key]

        evicted = 0
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)
            evicted += 1

        emit(EmbeddingCacheSwept(expired=len(expired), evicted=evicted, size=len(self._entries)))

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    @property
    def cache_stats(self) -> dict[str, int]:
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "max_size": self._max_size,
        }

    @staticmethod
    def _hash(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()
