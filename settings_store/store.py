"""
Typed key/value settings backed by a table, with an optional cache

All settings are loaded into memory when the store is created. Reads are
served from memory; writes go to the table first, then to memory, then to
the cache when caching is enabled.
"""
import copy
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from settings_store.backends.base import BackingStore
from settings_store.backends.sqlite import SQLiteBackingStore
from settings_store.cache.backends import CacheBackend, create_cache_backend
from settings_store.codecs import (
    JsonCodec,
    ValueCodec,
    decode_value,
    encode_value,
    get_codec,
    is_scalar,
)
from settings_store.config import StoreConfig, get_settings, resolve_config
from settings_store.errors import InvalidKeyError, UnknownSettingError, UnsupportedValueTypeError
from settings_store.utils.logging import get_logger, log_setting_change

logger = get_logger(__name__)


class SettingsStore:
    """
    In-memory view of the settings table.

    Usage:
        store = SettingsStore(SQLiteBackingStore("data/settings.db"), config={"cache": True})
        store.set("maintenance_mode", True)
        store.get("maintenance_mode")
    """

    def __init__(
        self,
        backing_store: BackingStore,
        cache_backend: Optional[CacheBackend] = None,
        config: Union[StoreConfig, Mapping[str, Any], None] = None,
        *,
        base_config: Optional[Mapping[str, Any]] = None,
        codec: Optional[ValueCodec] = None,
    ):
        """
        Args:
            backing_store: Reader/writer for the settings table
            cache_backend: Cache to use; built from cache_config when caching
                is enabled and none is given
            config: Per-instance options, merged over base_config
            base_config: Base options (defaults to the environment)
            codec: Structured codec used when serialize is enabled
                (JsonCodec by default, PhpSerializeCodec for PHP-era tables)
        """
        self._config = resolve_config(config, base=base_config)
        self._backing_store = backing_store
        self._codec = codec or JsonCodec()
        self._settings: Dict[str, Any] = {}

        self._cache: Optional[CacheBackend] = None
        if self._config.cache:
            self._cache = cache_backend or create_cache_backend(self._config.cache_config)

        self.reload()

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def cache_backend(self) -> Optional[CacheBackend]:
        return self._cache

    def reload(self, force: bool = False) -> bool:
        """
        Reload settings from the cache or the table

        A valid cache entry is used unless `force` is set; otherwise the
        table is read, decoded and written back to the cache.

        Args:
            force: Ignore any cached copy and read the table
        """
        cfg = self._config

        if not force and self._cache is not None:
            cached = self._cache.get(cfg.cache_name)
            if cached:
                self._replace(copy.deepcopy(dict(cached)))
                logger.debug(f"Loaded {len(self._settings)} settings from cache '{cfg.cache_name}'")
                return True

        settings: Dict[str, Any] = {}
        for row in self._backing_store.read_all_rows(cfg.table):
            key = row[cfg.key_field]
            settings[key] = decode_value(row[cfg.value_field], cfg.serialize, self._codec)

        self._replace(settings)
        logger.debug(f"Loaded {len(settings)} settings from table '{cfg.table}'")

        if self._cache is not None:
            self._cache.save(cfg.cache_name, copy.deepcopy(settings), cfg.cache_ttl)

        return True

    def _replace(self, settings: Dict[str, Any]) -> None:
        # Swap contents in place so views from get_all() stay current
        self._settings.clear()
        self._settings.update(settings)

    def get(self, key: str) -> Any:
        """
        Return a setting's value

        Raises:
            UnknownSettingError: the setting is not loaded
        """
        try:
            return self._settings[key]
        except (KeyError, TypeError):
            raise UnknownSettingError(key) from None

    def get_all(self) -> Mapping[str, Any]:
        """
        Read-only live view of every loaded setting

        The view reflects later set() and reload() calls on this store.
        """
        return MappingProxyType(self._settings)

    def has(self, key: str) -> bool:
        return isinstance(key, str) and key in self._settings

    def set(self, key: str, value: Any) -> bool:
        """
        Create or update a setting

        Raises:
            InvalidKeyError: key is not a non-empty string
            UnsupportedValueTypeError: non-scalar value with serialize off
            CodecError: the codec cannot store the value without loss
        """
        if not isinstance(key, str) or not key:
            raise InvalidKeyError(key)

        cfg = self._config
        if not cfg.serialize and not is_scalar(value):
            raise UnsupportedValueTypeError(value)

        stored_value = encode_value(value, cfg.serialize, self._codec)

        if key in self._settings:
            self._backing_store.update_row(
                cfg.table, cfg.key_field, key, {cfg.value_field: stored_value}
            )
            action = "update"
        else:
            self._backing_store.insert_row(
                cfg.table, {cfg.key_field: key, cfg.value_field: stored_value}
            )
            action = "insert"

        self._settings[key] = copy.deepcopy(value)
        log_setting_change(action, key, table=cfg.table)

        if self._cache is not None:
            self._cache.delete(cfg.cache_name)
            self._cache.save(cfg.cache_name, copy.deepcopy(self._settings), cfg.cache_ttl)
            logger.debug(f"Refreshed cache '{cfg.cache_name}'")

        return True

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._settings

    def __len__(self) -> int:
        return len(self._settings)

    def __repr__(self) -> str:
        return f"<SettingsStore table={self._config.table!r} settings={len(self._settings)}>"


def create_settings_store(
    db_path: Union[str, Path, None] = None,
    config: Union[StoreConfig, Mapping[str, Any], None] = None,
    cache_backend: Optional[CacheBackend] = None,
    codec: Union[ValueCodec, str, None] = None,
) -> SettingsStore:
    """
    Build a SQLite-backed store, creating its table if needed

    Args:
        db_path: Database file (defaults to SETTINGS_DB_PATH)
        config: Store options
        cache_backend: Optional cache backend instance
        codec: Codec instance or name ("php", "json")
    """
    store_config = resolve_config(config)
    backing_store = SQLiteBackingStore(db_path or get_settings().db_path)
    backing_store.create_table(store_config.table, store_config.key_field, store_config.value_field)

    if isinstance(codec, str):
        codec = get_codec(codec)

    return SettingsStore(backing_store, cache_backend, store_config, codec=codec)
