"""
TTL-based cache with LRU eviction.
"""
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional


class TTLCache:
    """
    Thread-safe TTL cache with per-entry expiry and optional LRU eviction.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_size: Optional[int] = None,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Default time-to-live in seconds (0 for no expiry)
            max_size: Maximum number of entries (None for unlimited)
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        # key -> (value, expires_at or None)
        self._cache: "OrderedDict[str, tuple[Any, Optional[float]]]" = OrderedDict()
        self._lock = threading.RLock()

        # Statistics
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache if exists and not expired.
        """
        with self._lock:
            if key not in self._cache:
                self.misses += 1
                return None

            value, expires_at = self._cache[key]

            # Check TTL
            if expires_at is not None and time.time() >= expires_at:
                del self._cache[key]
                self.misses += 1
                return None

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """
        Set value in cache, optionally with its own TTL.
        """
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        expires_at = time.time() + ttl if ttl else None

        with self._lock:
            # Evict if at max size
            if self.max_size and len(self._cache) >= self.max_size:
                if key not in self._cache:
                    # Remove oldest item
                    self._cache.popitem(last=False)

            self._cache[key] = (value, expires_at)
            self._cache.move_to_end(key)

    def invalidate(self, key: str) -> bool:
        """Remove a specific key from cache. Returns whether it was present."""
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self.hits + self.misses
            hit_rate = self.hits / total if total > 0 else 0
            return {
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": hit_rate,
                "size": len(self._cache),
                "max_size": self.max_size,
            }
