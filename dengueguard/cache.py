from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    fetched_at: float


class TTLCache(Generic[T]):
    """In-memory TTL cache for upstream responses.

    Expired entries are not evicted proactively; they are dropped on the next
    read of the same key and replaced by the following ``put``.
    """

    DEFAULT_TTL = 10 * 60

    def __init__(self, ttl: float = DEFAULT_TTL, time_func: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._time_func = time_func
        self._storage: Dict[str, CacheEntry[T]] = {}
        self.hits = 0
        self.misses = 0

    def is_expired(self, entry: CacheEntry[T]) -> bool:
        return self._time_func() - entry.fetched_at >= self.ttl

    def get(self, key: str) -> Optional[T]:
        entry = self._storage.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self.is_expired(entry):
            self._storage.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        return entry.data

    def put(self, key: str, value: T) -> CacheEntry[T]:
        entry = CacheEntry(data=value, fetched_at=self._time_func())
        self._storage[key] = entry
        return entry

    def clear(self) -> None:
        self._storage.clear()

    def stats(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "keys": len(self._storage)}

    def __contains__(self, key: str) -> bool:
        entry = self._storage.get(key)
        return entry is not None and not self.is_expired(entry)

    def __len__(self) -> int:
        return len(self._storage)


__all__ = ["CacheEntry", "TTLCache"]
