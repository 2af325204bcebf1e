"""
Attribute-style access to a SettingsStore

    settings = SettingsProxy(store)
    settings.site_name
    settings.maintenance_mode = False
"""
from typing import Any

from settings_store.errors import UnknownSettingError
from settings_store.store import SettingsStore


class SettingsProxy:
    """Thin wrapper mapping attribute and item access onto get/set"""

    __slots__ = ("_store",)

    def __init__(self, store: SettingsStore):
        object.__setattr__(self, "_store", store)

    def __getattr__(self, key: str) -> Any:
        if key.startswith("__"):
            raise AttributeError(key)
        try:
            return self._store.get(key)
        except UnknownSettingError as e:
            raise AttributeError(key) from e

    def __setattr__(self, key: str, value: Any) -> None:
        self._store.set(key, value)

    def __getitem__(self, key: str) -> Any:
        return self._store.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._store.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self._store.get_all()))
