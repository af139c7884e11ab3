import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from vreddit_proxy.configs import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Represents a cache entry with metadata."""

    value: str
    expires_at: Optional[float] = None
    access_count: int = 0
    last_access: float = 0.0


class LRUMemoryCache:
    """
    Thread-safe LRU memory cache bounded by entry count, with optional expiry.

    Entries are a best-effort optimization: they may be evicted at any time and
    nothing should depend on a lookup succeeding.
    """

    def __init__(self, maxsize: int, ttl: int = 0):
        self.maxsize = maxsize
        self.ttl = ttl
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._cache.pop(key, None)  # Remove and re-insert for LRU
            if entry is None:
                return None
            if entry.expires_at is not None and time.time() >= entry.expires_at:
                return None
            entry.access_count += 1
            entry.last_access = time.time()
            self._cache[key] = entry
            return entry.value

    def set(self, key: str, value: str) -> None:
        if self.maxsize <= 0:
            return
        with self._lock:
            self._cache.pop(key, None)
            while len(self._cache) >= self.maxsize:
                evicted_key, _ = self._cache.popitem(last=False)
                logger.debug(f"Evicted cache entry for {evicted_key}")

            expires_at = time.time() + self.ttl if self.ttl > 0 else None
            self._cache[key] = CacheEntry(value=value, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


# Post URL -> DASH manifest URL
RESOLUTION_CACHE = LRUMemoryCache(maxsize=settings.resolution_cache_size, ttl=settings.resolution_cache_ttl)


def get_cached_manifest_url(post_url: str) -> Optional[str]:
    """Get a previously resolved manifest URL for a post, if caching is enabled."""
    if not settings.enable_resolution_cache:
        return None
    return RESOLUTION_CACHE.get(post_url)


def set_cached_manifest_url(post_url: str, manifest_url: str) -> None:
    """Remember the manifest URL a post resolved to, if caching is enabled."""
    if settings.enable_resolution_cache:
        RESOLUTION_CACHE.set(post_url, manifest_url)
