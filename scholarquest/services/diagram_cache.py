"""
Diagram Cache
=============

Process-wide LRU cache for diagram validation results, so the same
generated SVG shown to a whole class is only checked once.

Entries are never shared across processes and are bounded by
`max_entries`; the least recently used entry goes first.
"""
import hashlib
import logging
import threading
from collections import OrderedDict

from scholarquest.config import config

logger = logging.getLogger(__name__)


def make_key(mode, content):
    """Cache key for one piece of diagram content in one validation mode."""
    digest = hashlib.sha256((content or "").encode("utf-8")).hexdigest()
    return mode + ":" + digest


class DiagramCache:
    """
    Bounded LRU cache.

    Example:
        >>> cache = DiagramCache(max_entries=2)
        >>> cache.get_or_compute("a", lambda: 1)
        1
        >>> cache.get_or_compute("a", lambda: 2)  # Cache hit
        1
    """

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries

    def get(self, key, default=None):
        with self._lock:
            if key not in self._entries:
                self.misses += 1
                return default
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def put(self, key, value):
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted diagram cache entry %s", evicted)

    def get_or_compute(self, key, compute):
        """Return the cached value for key, computing and storing it on a miss."""
        missing = object()
        value = self.get(key, missing)
        if value is not missing:
            return value
        # Computed outside the lock; a concurrent miss just computes twice
        value = compute()
        self.put(key, value)
        return value

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self):
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }


# Global cache instance
diagram_cache = DiagramCache(max_entries=config.diagram_cache_size)


def reset_diagram_cache(max_entries=None):
    """Replace the global cache (config change, or between tests)."""
    global diagram_cache
    diagram_cache = DiagramCache(max_entries=max_entries or config.diagram_cache_size)
    return diagram_cache


def get_diagram_cache():
    return diagram_cache
