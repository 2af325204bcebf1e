"""
Exceptions raised by the settings store and its bundled backends
"""
from typing import Any


class SettingsError(Exception):
    """Base class for settings store errors"""


class UnknownSettingError(SettingsError, LookupError):
    """A setting was requested that is not loaded in memory"""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Unknown setting: {key!r}")


class InvalidKeyError(SettingsError, ValueError):
    """Setting names must be non-empty strings"""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Setting name must be a non-empty string, got {key!r}")


class UnsupportedValueTypeError(SettingsError, TypeError):
    """Only scalar/null values are accepted when serialization is disabled"""

    def __init__(self, value: Any):
        self.value_type = type(value)
        super().__init__(
            f"Only scalar/null values are permitted when serialization is disabled, "
            f"got {self.value_type.__name__}"
        )


class BackingStoreError(SettingsError):
    """Reading or writing the settings table failed"""


class CacheBackendError(SettingsError):
    """The cache backend could not be created, read or written"""


class CodecError(SettingsError, ValueError):
    """A value could not be encoded or decoded"""
