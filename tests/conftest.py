"""
Pytest configuration and fixtures for settings store tests.
"""
import os

import pytest

from settings_store.backends import MemoryBackingStore, SQLiteBackingStore
from settings_store.cache import MemoryCacheBackend


# ============================================
# Environment Fixtures
# ============================================

@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test without .env files or SETTINGS_* variables."""
    for var in list(os.environ):
        if var.startswith("SETTINGS_") or var in ("LOG_LEVEL", "LOG_FILE", "CHANGES_LOG"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("settings_store.config._settings", None)
    yield


# ============================================
# Backing Store Fixtures
# ============================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "settings.db"


@pytest.fixture
def sqlite_store(db_path):
    """SQLite backing store with the default settings table."""
    backing = SQLiteBackingStore(db_path)
    backing.create_table("settings", "key", "value")
    return backing


@pytest.fixture
def memory_store():
    """Memory backing store pre-populated with two settings."""
    return MemoryBackingStore({
        "settings": [
            {"key": "site_name", "value": "My Site"},
            {"key": "maintenance_mode", "value": "|true|"},
        ]
    })


# ============================================
# Cache Fixtures
# ============================================

@pytest.fixture
def memory_cache():
    return MemoryCacheBackend()
