"""
Cache backends for the loaded settings map.

The adapter is picked from the ``cache_config`` option:

    {"adapter": "file", "path": "cache"}
    {"adapter": "memory", "max_size": 100}
    {"adapter": "dummy"}
"""
import hashlib
import os
import pickle
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from settings_store.cache.ttl_cache import TTLCache
from settings_store.errors import CacheBackendError
from settings_store.utils.logging import get_logger

logger = get_logger(__name__)

_ENTRY_FIELDS = {"name", "time", "ttl", "data"}


class CacheBackend(ABC):
    """get/save/delete of named entries with a TTL"""

    adapter = "base"

    @abstractmethod
    def get(self, name: str) -> Optional[Any]:
        """Return the cached entry, or None if absent or expired"""

    @abstractmethod
    def save(self, name: str, data: Any, ttl_seconds: int) -> bool:
        """Store an entry; ttl 0 means it never expires"""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove an entry. Deleting a missing entry is not an error."""


class MemoryCacheBackend(CacheBackend):
    """Process-local cache, shared by every store holding this instance"""

    adapter = "memory"

    def __init__(self, max_size: Optional[int] = None):
        self._cache = TTLCache(ttl_seconds=0, max_size=max_size)

    def get(self, name: str) -> Optional[Any]:
        return self._cache.get(name)

    def save(self, name: str, data: Any, ttl_seconds: int) -> bool:
        self._cache.set(name, data, ttl_seconds=ttl_seconds)
        return True

    def delete(self, name: str) -> bool:
        self._cache.invalidate(name)
        return True

    def stats(self) -> Dict[str, Any]:
        return self._cache.stats()


class FileCacheBackend(CacheBackend):
    """One pickle file per entry under a cache directory"""

    adapter = "file"

    def __init__(self, path: Union[str, Path] = "cache"):
        self.path = Path(path)

    def _entry_path(self, name: str) -> Path:
        digest = hashlib.sha1(name.encode("utf-8")).hexdigest()
        return self.path / f"{digest}.cache"

    def get(self, name: str) -> Optional[Any]:
        entry_path = self._entry_path(name)
        try:
            with open(entry_path, "rb") as f:
                entry = pickle.load(f)
        except FileNotFoundError:
            return None
        except Exception as e:
            raise CacheBackendError(f"Could not read cache entry {name!r}: {e}") from e

        if (
            not isinstance(entry, dict)
            or not _ENTRY_FIELDS <= entry.keys()
            or not isinstance(entry["time"], (int, float))
            or not isinstance(entry["ttl"], (int, float))
        ):
            raise CacheBackendError(f"Malformed cache entry {name!r}")

        if entry["name"] != name:
            return None

        ttl = entry["ttl"]
        if ttl and time.time() > entry["time"] + ttl:
            logger.debug(f"Cache entry expired: {name}")
            self.delete(name)
            return None

        return entry["data"]

    def save(self, name: str, data: Any, ttl_seconds: int) -> bool:
        entry = {"name": name, "time": time.time(), "ttl": ttl_seconds, "data": data}
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            # Write to a temp file then replace, readers never see a partial entry
            fd, tmp_name = tempfile.mkstemp(dir=str(self.path), suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    pickle.dump(entry, f, protocol=pickle.HIGHEST_PROTOCOL)
                os.replace(tmp_name, self._entry_path(name))
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, pickle.PicklingError, TypeError, AttributeError) as e:
            raise CacheBackendError(f"Could not write cache entry {name!r}: {e}") from e
        return True

    def delete(self, name: str) -> bool:
        try:
            self._entry_path(name).unlink(missing_ok=True)
        except OSError as e:
            raise CacheBackendError(f"Could not delete cache entry {name!r}: {e}") from e
        return True


class NullCacheBackend(CacheBackend):
    """Caching switched on but nothing is kept"""

    adapter = "dummy"

    def get(self, name: str) -> Optional[Any]:
        return None

    def save(self, name: str, data: Any, ttl_seconds: int) -> bool:
        return True

    def delete(self, name: str) -> bool:
        return True


ADAPTERS = {
    FileCacheBackend.adapter: FileCacheBackend,
    MemoryCacheBackend.adapter: MemoryCacheBackend,
    NullCacheBackend.adapter: NullCacheBackend,
}


def create_cache_backend(cache_config: Optional[Mapping[str, Any]] = None) -> CacheBackend:
    """
    Create a cache backend from a cache_config mapping

    Args:
        cache_config: {"adapter": <name>, **adapter options}

    Raises:
        CacheBackendError: unknown adapter or bad adapter options
    """
    options = dict(cache_config or {"adapter": "file"})
    adapter = options.pop("adapter", "file")

    backend_cls = ADAPTERS.get(adapter)
    if backend_cls is None:
        raise CacheBackendError(f"Unknown cache adapter: {adapter}")

    try:
        backend = backend_cls(**options)
    except TypeError as e:
        raise CacheBackendError(f"Invalid options for cache adapter {adapter!r}: {e}") from e

    logger.info(f"Cache backend initialized: {adapter}")
    return backend
