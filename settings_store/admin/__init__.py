"""Admin API for the settings store"""
from settings_store.admin.routes import SettingUpdate, create_settings_router

__all__ = ["SettingUpdate", "create_settings_router"]
