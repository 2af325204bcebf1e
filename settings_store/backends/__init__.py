"""Backing stores for the settings table"""
from settings_store.backends.base import BackingStore
from settings_store.backends.memory import MemoryBackingStore
from settings_store.backends.sqlite import SQLiteBackingStore, quote_identifier

__all__ = [
    "BackingStore",
    "MemoryBackingStore",
    "SQLiteBackingStore",
    "quote_identifier",
]
