"""
cache/query_cache.py — Query result cache for the orchestrator

Stores settled query results under a composite key such as
["products", 2] or ["reviews", product_id, page]. Keys are serialized
deterministically (sorted JSON) so equal keys always hit the same slot.

Business Rules:
- Only settled successes are stored; errors are never cached
- invalidate(prefix) drops every key that starts with the prefix, so
  invalidate(["cart"]) also drops ["cart", 17]
- clear() drops everything (logout, 401)
- Least recently used entries are evicted past max_size

Called by: orchestrator.py
Depends on: nothing outside the stdlib
"""

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

log = logging.getLogger("storefront.cache")


def make_key(key: Sequence[Any]) -> str:
    """Deterministic string form of a composite query key."""
    if isinstance(key, (str, bytes)):
        key = [key]
    return json.dumps(list(key), sort_keys=True, default=str, separators=(",", ":"))


@dataclass(frozen=True)
class CacheEntry:
    key: tuple
    value: Any
    updated_at: float

    def age(self) -> float:
        return time.monotonic() - self.updated_at


class QueryCache:
    """LRU cache of query results."""

    def __init__(self, max_size: int = 500) -> None:
        self._max_size = max_size
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Sequence[Any]) -> bool:
        return make_key(key) in self._entries

    def get(self, key: Sequence[Any], max_age: float | None = None) -> CacheEntry | None:
        """Entry for `key`, or None on miss or when older than max_age seconds."""
        cache_key = make_key(key)
        entry = self._entries.get(cache_key)
        if entry is None:
            log.debug("Cache MISS: %s", cache_key)
            return None
        if max_age is not None and entry.age() > max_age:
            log.debug("Cache STALE: %s", cache_key)
            return None
        self._entries.move_to_end(cache_key)
        log.debug("Cache HIT: %s", cache_key)
        return entry

    def set(self, key: Sequence[Any], value: Any) -> None:
        cache_key = make_key(key)
        if cache_key in self._entries:
            self._entries.move_to_end(cache_key)
        elif len(self._entries) >= self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Cache EVICT: %s", evicted)
        key_tuple = (key,) if isinstance(key, (str, bytes)) else tuple(key)
        self._entries[cache_key] = CacheEntry(key=key_tuple, value=value, updated_at=time.monotonic())

    def invalidate(self, prefix: Sequence[Any]) -> int:
        """Drop every entry whose key starts with `prefix`. Returns count."""
        prefix_tuple = (prefix,) if isinstance(prefix, (str, bytes)) else tuple(prefix)
        n = len(prefix_tuple)
        doomed = [k for k, e in self._entries.items() if e.key[:n] == prefix_tuple]
        for k in doomed:
            del self._entries[k]
        if doomed:
            log.debug("Cache invalidated %d entries under %s", len(doomed), make_key(prefix_tuple))
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
