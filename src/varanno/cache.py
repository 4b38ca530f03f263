"""
Caching module for varanno.
Memoizes annotation lookups so repeated queries for the same variant, common
when several samples share a cohort, only reach the index once.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional

from .exceptions import CacheError
from .model import FrequencyData, PathogenicityData, Variant, VariantData

# Configure logging
log = logging.getLogger("varanno")

_MISSING = object()


class AnnotationCache:
    """Thread-safe, size-bounded LRU cache of annotation results."""

    def __init__(self, max_size: Optional[int] = 100_000, enabled: bool = True, name: str = "variant_data"):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of entries before the least recently used
                one is evicted; None for unbounded
            enabled: Whether caching is enabled
            name: Label used in logs and statistics
        """
        if max_size is not None and max_size < 1:
            raise CacheError("Cache size must be positive", details=repr(max_size))
        self.max_size = max_size
        self.enabled = enabled
        self.name = name
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

        if self.enabled:
            log.info(f"Cache '{name}' initialized (max size: {max_size if max_size else 'unbounded'})")

    def peek(self, key: Hashable, default=None):
        """Return the cached value without touching recency or statistics."""
        with self._lock:
            return self._entries.get(key, default)

    def put(self, key: Hashable, value: Any):
        """
        Store a value, evicting the least recently used entry if full.

        Empty results are stored like any other value.
        """
        if not self.enabled:
            return
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self.max_size is not None:
                while len(self._entries) > self.max_size:
                    self._entries.popitem(last=False)
                    self._evictions += 1

    def get(self, key: Hashable, compute_fn: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        compute_fn runs outside the lock, so two threads missing on the same
        key may both compute it; the last one to finish wins.

        Args:
            key: Cache key
            compute_fn: Zero-argument callable producing the value

        Returns:
            Cached or freshly computed value
        """
        if not self.enabled:
            return compute_fn()

        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is not _MISSING:
                self._entries.move_to_end(key)
                self._hits += 1
            else:
                self._misses += 1
        if value is not _MISSING:
            log.debug(f"Cache hit for {self.name} (key: {key})")
            return value

        log.debug(f"Cache miss for {self.name} (key: {key})")
        value = compute_fn()
        self.put(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> int:
        """
        Invalidate cache entries.

        Args:
            key: Entry to drop; None clears the whole cache

        Returns:
            Number of cache entries invalidated
        """
        with self._lock:
            if key is None:
                count = len(self._entries)
                self._entries.clear()
            else:
                count = 1 if self._entries.pop(key, _MISSING) is not _MISSING else 0
        if count:
            log.info(f"Invalidated {count} entries from cache '{self.name}'")
        return count

    def count_entries(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self):
        return self.count_entries()

    def __contains__(self, key):
        with self._lock:
            return key in self._entries

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        if not self.enabled:
            return {"enabled": False, "name": self.name}

        with self._lock:
            lookups = self._hits + self._misses
            return {
                "enabled": True,
                "name": self.name,
                "max_size": self.max_size,
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
            }


class CachingVariantDataStore:
    """
    Wraps a VariantDataStore with an AnnotationCache keyed by variant identity.

    Entries hold the unmasked result of each source queried so far, so the
    effect class of the variant is applied on every lookup, hit or miss.
    Exposes the same lookups as the store it wraps.
    """

    def __init__(self, store, cache: Optional[AnnotationCache] = None):
        self.store = store
        self.cache = cache if cache is not None else AnnotationCache()

    def _cached(self, lookup, variant: Variant):
        cached = self.cache.get(variant.key, dict)
        known = dict(cached)
        result = lookup(variant, known=known)
        if len(known) > len(cached):
            self.cache.put(variant.key, known)
        return result

    def get_variant_data(self, variant: Variant) -> VariantData:
        return self._cached(self.store.get_variant_data, variant)

    def get_frequency_data(self, variant: Variant) -> FrequencyData:
        return self._cached(self.store.get_frequency_data, variant)

    def get_pathogenicity_data(self, variant: Variant) -> PathogenicityData:
        return self._cached(self.store.get_pathogenicity_data, variant)

    def close(self):
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
