"""
Typed key/value settings store with an optional cache
"""
from settings_store.accessor import SettingsProxy
from settings_store.backends import BackingStore, MemoryBackingStore, SQLiteBackingStore
from settings_store.cache import (
    CacheBackend,
    FileCacheBackend,
    MemoryCacheBackend,
    NullCacheBackend,
    create_cache_backend,
)
from settings_store.codecs import JsonCodec, PhpSerializeCodec, ValueCodec
from settings_store.config import Settings, StoreConfig, get_settings, resolve_config
from settings_store.errors import (
    BackingStoreError,
    CacheBackendError,
    CodecError,
    InvalidKeyError,
    SettingsError,
    UnknownSettingError,
    UnsupportedValueTypeError,
)
from settings_store.store import SettingsStore, create_settings_store

__version__ = "1.0.0"

__all__ = [
    # Store
    "SettingsStore",
    "SettingsProxy",
    "create_settings_store",
    # Config
    "Settings",
    "StoreConfig",
    "get_settings",
    "resolve_config",
    # Backends
    "BackingStore",
    "MemoryBackingStore",
    "SQLiteBackingStore",
    "CacheBackend",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "NullCacheBackend",
    "create_cache_backend",
    # Codecs
    "ValueCodec",
    "PhpSerializeCodec",
    "JsonCodec",
    # Errors
    "SettingsError",
    "UnknownSettingError",
    "InvalidKeyError",
    "UnsupportedValueTypeError",
    "BackingStoreError",
    "CacheBackendError",
    "CodecError",
]
