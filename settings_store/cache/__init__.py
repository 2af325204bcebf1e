"""Cache backends for loaded settings"""
from settings_store.cache.backends import (
    ADAPTERS,
    CacheBackend,
    FileCacheBackend,
    MemoryCacheBackend,
    NullCacheBackend,
    create_cache_backend,
)
from settings_store.cache.ttl_cache import TTLCache

__all__ = [
    "ADAPTERS",
    "CacheBackend",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "NullCacheBackend",
    "TTLCache",
    "create_cache_backend",
]
