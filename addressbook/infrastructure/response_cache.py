"""Response Cache: rendered GET documents keyed by path and query string.

Invariants:
    - Entries expire after ttl_seconds and are evicted LRU past max_entries
    - Each entry is indexed under every resource type it depends on;
      invalidate(T) drops all entries indexed under T
    - The index for a type never holds more than max_entries + 1 keys:
      keys TTLCache has already dropped are pruned on store()
    - A document built while one of its types was invalidated is not stored
    - Query parameter order does not change the key
"""

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Iterable
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

CacheKey = tuple[str, tuple[tuple[str, str], ...]]
Generation = tuple[int, ...]


def make_cache_key(path: str, query_items: Iterable[tuple[str, str]]) -> CacheKey:
    return path, tuple(sorted(query_items))


class ResponseCache:
    def __init__(
        self,
        max_entries: int = 1024,
        ttl_seconds: float = 300.0,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self._entries: TTLCache = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=timer,
        )
        self._keys_by_type: dict[str, set[CacheKey]] = defaultdict(set)
        self._generations: dict[str, int] = defaultdict(int)
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> dict[str, Any] | None:
        document = self._entries.get(key)
        if document is None:
            self.misses += 1
            return None
        self.hits += 1
        return document

    def generation(self, depends_on: Iterable[str]) -> Generation:
        """Snapshot taken before building a document; store() compares against it."""
        return tuple(self._generations[t] for t in sorted(depends_on))

    def store(
        self,
        key: CacheKey,
        document: dict[str, Any],
        depends_on: Iterable[str],
        generation: Generation | None = None,
    ) -> bool:
        """Cache `document` unless a type it depends on was invalidated since `generation`."""
        depends_on = sorted(set(depends_on))
        if generation is not None and self.generation(depends_on) != generation:
            logger.debug(
                f"Skipped caching {key[0]}: invalidated while building",
                extra={"cache": "stale"},
            )
            return False
        self._entries[key] = document
        for resource_type in depends_on:
            keys = self._keys_by_type[resource_type]
            keys.add(key)
            if len(keys) > self.max_entries:
                self._keys_by_type[resource_type] = {
                    k for k in keys if k in self._entries
                }
        return True

    def invalidate(self, resource_type: str) -> int:
        """Drop every entry that depends on resource_type; returns how many were live."""
        self._generations[resource_type] += 1
        dropped = 0
        for key in self._keys_by_type.pop(resource_type, set()):
            if self._entries.pop(key, None) is not None:
                dropped += 1
        if dropped:
            logger.debug(
                f"Invalidated {dropped} cached response(s)",
                extra={"resource_type": resource_type, "cache": "invalidate"},
            )
        return dropped
