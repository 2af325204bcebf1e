"""
Configuration management for the settings store
"""
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Options a caller may override; anything else is ignored
CONFIG_WHITELIST = (
    "table",
    "key_field",
    "value_field",
    "cache",
    "cache_name",
    "cache_ttl",
    "cache_config",
    "serialize",
)


class Settings(BaseSettings):
    """Process-wide settings loaded from the environment and .env"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store defaults
    table: str = Field(default="settings", alias="SETTINGS_TABLE")
    key_field: str = Field(default="key", alias="SETTINGS_KEY_FIELD")
    value_field: str = Field(default="value", alias="SETTINGS_VALUE_FIELD")
    cache: bool = Field(default=False, alias="SETTINGS_CACHE")
    cache_name: str = Field(default="settings", alias="SETTINGS_CACHE_NAME")
    cache_ttl: int = Field(default=300, alias="SETTINGS_CACHE_TTL")
    cache_config: Dict[str, Any] = Field(
        default_factory=lambda: {"adapter": "file"}, alias="SETTINGS_CACHE_CONFIG"
    )
    serialize: bool = Field(default=False, alias="SETTINGS_SERIALIZE")

    # Storage
    db_path: str = Field(default="data/settings.db", alias="SETTINGS_DB_PATH")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="logs/settings_store.log", alias="LOG_FILE")
    changes_log: str = Field(default="logs/settings_changes.log", alias="CHANGES_LOG")

    def store_options(self) -> Dict[str, Any]:
        """Store options that were explicitly configured"""
        return {
            name: getattr(self, name)
            for name in CONFIG_WHITELIST
            if name in self.model_fields_set
        }


class StoreConfig(BaseModel):
    """Immutable configuration of a single SettingsStore instance"""

    model_config = ConfigDict(frozen=True)

    table: str = Field(default="settings", min_length=1)
    key_field: str = Field(default="key", min_length=1)
    value_field: str = Field(default="value", min_length=1)
    cache: bool = False
    cache_name: str = Field(default="settings", min_length=1)
    cache_ttl: int = Field(default=300, ge=0)
    cache_config: Dict[str, Any] = Field(default_factory=lambda: {"adapter": "file"})
    serialize: bool = False


def _whitelisted(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    result = {}
    for key, value in (options or {}).items():
        if key in CONFIG_WHITELIST:
            result[key] = value
        else:
            logger.debug(f"Ignoring unrecognized settings option: {key}")
    return result


def resolve_config(
    overrides: Union[StoreConfig, Mapping[str, Any], None] = None,
    base: Optional[Mapping[str, Any]] = None,
) -> StoreConfig:
    """
    Build a StoreConfig from defaults, base options and overrides

    Priority:
    1. Hard-coded defaults
    2. Base options (the environment / .env when not given)
    3. Explicit overrides

    Args:
        overrides: Per-instance options, or a ready StoreConfig
        base: Base options; defaults to get_settings().store_options()
    """
    if isinstance(overrides, StoreConfig):
        return overrides

    if base is None:
        base = get_settings().store_options()

    merged = {**_whitelisted(base), **_whitelisted(overrides)}
    return StoreConfig(**merged)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment"""
    global _settings
    _settings = Settings()
    return _settings
