"""Bounded in-memory caches for fingerprints and page-pair differences."""
from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

from comparison.models import Difference, Fingerprint
from config.settings import settings
from utils.logging import logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

FingerprintKey = Tuple[str, int]  # (document id, page number)
PairKey = Tuple[str, str, int, int, str]  # (base id, compare id, base page, compare page, config digest)

_MISSING = object()


class LRUCache(Generic[K, V]):
    """
    Thread-safe least-recently-used map with a fixed capacity.

    Values are expected to be immutable; eviction is the only mutation.
    A capacity of 0 disables caching.
    """

    def __init__(self, capacity: int = 256):
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                self.hits += 1
                return self._data[key]
            self.misses += 1
            return default

    def put(self, key: K, value: V) -> None:
        if self.capacity == 0:
            return
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self.capacity:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("Cache evicted %s", evicted)

    def get_or_compute(self, key: K, factory: Callable[[], V]) -> V:
        """Return the cached value or build, store and return it.

        ``factory`` runs outside the lock; two threads racing on the same key
        may both compute, and the later value wins.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = factory()
        self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class ComparisonCache:
    """Fingerprints per (document, page) and raw differences per page pair.

    Shared across runs by passing the same instance to ``compare``; entries
    are only looked up when the caller supplies document ids.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = settings.cache_size
        self.fingerprints: LRUCache[FingerprintKey, Fingerprint] = LRUCache(capacity)
        self.pair_results: LRUCache[PairKey, Tuple[Difference, ...]] = LRUCache(capacity)

    def fingerprint(self, document_id: str, page_number: int, factory: Callable[[], Fingerprint]) -> Fingerprint:
        return self.fingerprints.get_or_compute((document_id, page_number), factory)

    def pair_result(
        self,
        key: PairKey,
        factory: Callable[[], Tuple[Difference, ...]],
    ) -> Tuple[Difference, ...]:
        return self.pair_results.get_or_compute(key, factory)

    def clear(self) -> None:
        self.fingerprints.clear()
        self.pair_results.clear()
