"""Tests for SettingsStore."""
from unittest.mock import MagicMock

import pytest

from settings_store.backends import MemoryBackingStore, SQLiteBackingStore
from settings_store.cache import FileCacheBackend, MemoryCacheBackend
from settings_store.codecs import JsonCodec, PhpSerializeCodec
from settings_store.errors import (
    BackingStoreError,
    CacheBackendError,
    CodecError,
    InvalidKeyError,
    UnknownSettingError,
    UnsupportedValueTypeError,
)
from settings_store.store import SettingsStore, create_settings_store


class TestConstruction:
    """Store construction and initial load."""

    def test_loads_and_decodes_rows(self, memory_store):
        store = SettingsStore(memory_store, config={"serialize": False})

        assert dict(store.get_all()) == {"site_name": "My Site", "maintenance_mode": True}
        assert memory_store.reads == 1

    def test_unknown_options_are_ignored(self, memory_store):
        store = SettingsStore(memory_store, config={"serialize": False, "colour": "blue"})

        assert not hasattr(store.config, "colour")
        assert store.get("site_name") == "My Site"

    def test_custom_table_and_fields(self):
        backing = MemoryBackingStore({"options": [{"name": "theme", "data": "dark"}]})
        store = SettingsStore(
            backing,
            config={"table": "options", "key_field": "name", "value_field": "data"},
        )

        assert store.get("theme") == "dark"

    def test_base_config_is_overridden(self, memory_store):
        store = SettingsStore(
            memory_store,
            config={"cache_ttl": 10},
            base_config={"cache_ttl": 60, "cache_name": "app_settings"},
        )

        assert store.config.cache_ttl == 10
        assert store.config.cache_name == "app_settings"

    def test_environment_base_config(self, memory_store, monkeypatch):
        monkeypatch.setenv("SETTINGS_CACHE_NAME", "from_env")

        store = SettingsStore(memory_store)

        assert store.config.cache_name == "from_env"

    def test_cache_backend_built_from_config(self, memory_store, tmp_path):
        store = SettingsStore(
            memory_store,
            config={"cache": True, "cache_config": {"adapter": "file", "path": str(tmp_path / "c")}},
        )

        assert isinstance(store.cache_backend, FileCacheBackend)
        assert store.cache_backend.get("settings") == {"site_name": "My Site", "maintenance_mode": True}

    def test_no_cache_backend_when_disabled(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache)

        assert store.cache_backend is None
        assert memory_cache.get("settings") is None

    def test_invalid_cache_adapter_fails(self, memory_store):
        with pytest.raises(CacheBackendError):
            SettingsStore(memory_store, config={"cache": True, "cache_config": {"adapter": "nope"}})

    def test_backing_store_failure_propagates(self):
        backing = MagicMock()
        backing.read_all_rows.side_effect = BackingStoreError("db down")

        with pytest.raises(BackingStoreError):
            SettingsStore(backing)

    def test_duplicate_rows_last_wins(self):
        backing = MemoryBackingStore({
            "settings": [
                {"key": "a", "value": "first"},
                {"key": "a", "value": "second"},
            ]
        })
        store = SettingsStore(backing)

        assert store.get("a") == "second"


class TestGet:
    """Reads from memory."""

    def test_get_existing(self, memory_store):
        store = SettingsStore(memory_store)
        assert store.get("site_name") == "My Site"

    def test_unknown_key_raises(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache, config={"cache": True})
        memory_cache.get = MagicMock(wraps=memory_cache.get)
        reads_before = memory_store.reads

        with pytest.raises(UnknownSettingError) as exc_info:
            store.get("does_not_exist")

        assert exc_info.value.key == "does_not_exist"
        assert memory_store.reads == reads_before
        memory_cache.get.assert_not_called()

    def test_unknown_setting_is_lookup_error(self, memory_store):
        store = SettingsStore(memory_store)
        with pytest.raises(LookupError):
            store.get("missing")

    def test_get_all_is_read_only(self, memory_store):
        store = SettingsStore(memory_store)
        view = store.get_all()

        with pytest.raises(TypeError):
            view["site_name"] = "changed"

    def test_contains_and_len(self, memory_store):
        store = SettingsStore(memory_store)

        assert "site_name" in store
        assert "missing" not in store
        assert store.has("maintenance_mode")
        assert len(store) == 2


class TestSet:
    """Writes through to the backing store."""

    def test_update_existing_setting(self, memory_store):
        store = SettingsStore(memory_store, config={"serialize": False})

        assert store.set("maintenance_mode", False) is True

        rows = memory_store.tables["settings"]
        assert {"key": "maintenance_mode", "value": "|false|"} in rows
        assert memory_store.updates == 1
        assert memory_store.inserts == 0
        assert store.get("maintenance_mode") is False

    def test_insert_new_setting(self, memory_store):
        store = SettingsStore(memory_store)

        store.set("items_per_page", 25)

        assert {"key": "items_per_page", "value": 25} in memory_store.tables["settings"]
        assert memory_store.inserts == 1
        assert store.get("items_per_page") == 25

    @pytest.mark.parametrize("value", ["text", 42, 3.5, True, False, None, ""])
    def test_scalar_round_trip(self, sqlite_store, value):
        store = SettingsStore(sqlite_store)
        store.set("setting", value)

        assert store.get("setting") == value

        store.reload(force=True)
        assert store.get("setting") == value

    def test_booleans_and_null_reload_as_values(self, sqlite_store):
        store = SettingsStore(sqlite_store)
        store.set("on", True)
        store.set("off", False)
        store.set("nothing", None)

        fresh = SettingsStore(sqlite_store)

        assert fresh.get("on") is True
        assert fresh.get("off") is False
        assert fresh.get("nothing") is None
        raw = {row["key"]: row["value"] for row in sqlite_store.read_all_rows("settings")}
        assert raw == {"on": "|true|", "off": "|false|", "nothing": "|null|"}

    @pytest.mark.parametrize("key", ["", None, 5, b"bytes"])
    def test_invalid_key(self, memory_store, key):
        store = SettingsStore(memory_store)

        with pytest.raises(InvalidKeyError):
            store.set(key, "value")

        assert memory_store.inserts == 0

    @pytest.mark.parametrize("value", [{"a": 1}, [1, 2], (1,), {1, 2}, object()])
    def test_structured_value_rejected_without_serialize(self, memory_store, value):
        store = SettingsStore(memory_store)
        before = dict(store.get_all())
        rows_before = [dict(r) for r in memory_store.tables["settings"]]

        with pytest.raises(UnsupportedValueTypeError):
            store.set("site_name", value)

        assert dict(store.get_all()) == before
        assert memory_store.tables["settings"] == rows_before
        assert memory_store.updates == 0

    def test_failed_write_leaves_memory_unchanged(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache, config={"cache": True})
        memory_store.update_row = MagicMock(side_effect=BackingStoreError("disk full"))

        with pytest.raises(BackingStoreError):
            store.set("site_name", "New Name")

        assert store.get("site_name") == "My Site"
        assert memory_cache.get("settings")["site_name"] == "My Site"

    def test_integer_out_of_sqlite_range(self, sqlite_store):
        store = SettingsStore(sqlite_store)

        with pytest.raises(BackingStoreError):
            store.set("big", 2 ** 70)

        assert "big" not in store

    def test_sqlite_insert_conflict_propagates(self, sqlite_store):
        store = SettingsStore(sqlite_store)
        # Row written behind the store's back, so set() will try to insert
        sqlite_store.insert_row("settings", {"key": "late", "value": "x"})

        with pytest.raises(BackingStoreError):
            store.set("late", "y")

        assert "late" not in store


class TestSerializeMode:
    """Structured values with serialization enabled."""

    def test_structured_value_survives_new_instance(self, sqlite_store):
        store = SettingsStore(sqlite_store, config={"serialize": True})
        store.set("prefs", {"theme": "dark", "count": 3})

        fresh = SettingsStore(sqlite_store, config={"serialize": True})

        assert fresh.get("prefs") == {"theme": "dark", "count": 3}

    @pytest.mark.parametrize("value", [
        "plain",
        7,
        2.25,
        True,
        False,
        None,
        [1, "two", 3.0],
        [],
        {},
        {"0": "a"},
        {"nested": {"list": [True, None], "empty": {}}},
    ])
    def test_round_trip(self, sqlite_store, value):
        store = SettingsStore(sqlite_store, config={"serialize": True})
        store.set("value", value)

        assert store.get("value") == value
        store.reload(force=True)
        assert store.get("value") == value
        assert type(store.get("value")) is type(value)

    @pytest.mark.parametrize("value", [
        (1, 2),
        {1: "int key"},
        {"inner": (1,)},
        float("nan"),
        {1, 2},
        object(),
    ])
    def test_lossy_values_rejected(self, memory_store, value):
        store = SettingsStore(memory_store, config={"serialize": True})
        rows_before = [dict(r) for r in memory_store.tables["settings"]]

        with pytest.raises(CodecError):
            store.set("site_name", value)

        assert memory_store.tables["settings"] == rows_before
        assert store.get("site_name") == "My Site"

    def test_values_are_stored_as_json(self, sqlite_store):
        store = SettingsStore(sqlite_store, config={"serialize": True})
        store.set("name", "abc")
        store.set("prefs", {"theme": "dark"})

        values = {row["key"]: row["value"] for row in sqlite_store.read_all_rows("settings")}
        assert values == {"name": '"abc"', "prefs": '{"theme": "dark"}'}

    def test_unserialized_rows_pass_through(self):
        backing = MemoryBackingStore({"settings": [{"key": "legacy", "value": "hello"}]})
        store = SettingsStore(backing, config={"serialize": True})

        assert store.get("legacy") == "hello"

    def test_existing_php_data_is_read(self):
        backing = MemoryBackingStore({
            "settings": [{"key": "colors", "value": 'a:2:{i:0;s:3:"red";i:1;s:4:"blue";}'}]
        })
        store = SettingsStore(backing, config={"serialize": True}, codec=PhpSerializeCodec())

        assert store.get("colors") == ["red", "blue"]

    def test_php_codec_writes_php_format(self, sqlite_store):
        store = SettingsStore(sqlite_store, config={"serialize": True}, codec=PhpSerializeCodec())
        store.set("name", "abc")

        assert sqlite_store.read_all_rows("settings") == [{"key": "name", "value": 's:3:"abc";'}]
        fresh = SettingsStore(sqlite_store, config={"serialize": True}, codec=PhpSerializeCodec())
        assert fresh.get("name") == "abc"

    def test_json_codec_explicit(self, sqlite_store):
        store = SettingsStore(sqlite_store, config={"serialize": True}, codec=JsonCodec())
        store.set("prefs", {"theme": "dark"})

        assert SettingsStore(sqlite_store, config={"serialize": True}, codec=JsonCodec()).get("prefs") == {
            "theme": "dark"
        }


class TestReload:
    """Reload protocol and cache coherency."""

    def test_forced_reload_is_idempotent(self, sqlite_store):
        store = SettingsStore(sqlite_store)
        store.set("a", "1")
        store.set("b", True)

        store.reload(force=True)
        first = dict(store.get_all())
        store.reload(force=True)
        second = dict(store.get_all())

        assert first == second == {"a": "1", "b": True}

    def test_reload_replaces_map(self, memory_store):
        store = SettingsStore(memory_store)
        memory_store.tables["settings"] = [{"key": "only", "value": "one"}]

        store.reload()

        assert dict(store.get_all()) == {"only": "one"}

    def test_cache_hit_wins_over_table(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache, config={"cache": True})
        memory_store.tables["settings"].append({"key": "new_row", "value": "x"})
        reads_before = memory_store.reads

        assert store.reload() is True

        assert "new_row" not in store
        assert memory_store.reads == reads_before

    def test_cached_mapping_is_used_verbatim(self, memory_store, memory_cache):
        memory_cache.save("settings", {"from_cache": "|true|"}, 300)

        store = SettingsStore(memory_store, memory_cache, config={"cache": True})

        assert dict(store.get_all()) == {"from_cache": "|true|"}
        assert memory_store.reads == 0

    def test_forced_reload_bypasses_cache(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache, config={"cache": True})
        memory_store.tables["settings"].append({"key": "new_row", "value": "x"})

        store.reload(force=True)

        assert store.get("new_row") == "x"
        assert memory_cache.get("settings")["new_row"] == "x"

    def test_empty_cache_entry_falls_back_to_table(self, memory_store, memory_cache):
        memory_cache.save("settings", {}, 300)

        store = SettingsStore(memory_store, memory_cache, config={"cache": True})

        assert store.get("site_name") == "My Site"
        assert memory_store.reads == 1

    def test_reload_saves_cache_with_ttl(self, memory_store):
        cache = MagicMock()
        cache.get.return_value = None

        SettingsStore(memory_store, cache, config={"cache": True, "cache_name": "s", "cache_ttl": 42})

        cache.save.assert_called_once_with(
            "s", {"site_name": "My Site", "maintenance_mode": True}, 42
        )

    def test_set_refreshes_cache(self, memory_store):
        cache = MagicMock()
        cache.get.return_value = None
        store = SettingsStore(memory_store, cache, config={"cache": True})
        cache.reset_mock()

        store.set("site_name", "Renamed")

        cache.delete.assert_called_once_with("settings")
        cache.save.assert_called_once_with(
            "settings", {"site_name": "Renamed", "maintenance_mode": True}, 300
        )

    def test_cache_is_a_copy(self, memory_store, memory_cache):
        store = SettingsStore(memory_store, memory_cache, config={"cache": True})
        cached = memory_cache.get("settings")

        store.set("extra", "value")

        assert "extra" not in cached
        assert memory_cache.get("settings")["extra"] == "value"

    def test_shared_cache_between_instances(self, sqlite_store, memory_cache):
        writer = SettingsStore(sqlite_store, memory_cache, config={"cache": True})
        writer.set("greeting", "hello")

        reader = SettingsStore(SQLiteBackingStore(sqlite_store.db_path), memory_cache, config={"cache": True})

        assert reader.get("greeting") == "hello"

    def test_cache_failure_after_write_propagates(self, memory_store):
        cache = MagicMock()
        cache.get.return_value = None
        store = SettingsStore(memory_store, cache, config={"cache": True})
        cache.save.side_effect = CacheBackendError("cache offline")

        with pytest.raises(CacheBackendError):
            store.set("site_name", "Renamed")

        # The row was persisted before the cache refresh failed
        assert store.get("site_name") == "Renamed"

    def test_mutating_returned_value_does_not_reach_cache(self, sqlite_store, memory_cache):
        writer = SettingsStore(sqlite_store, memory_cache, config={"cache": True, "serialize": True})
        writer.set("prefs", {"theme": "dark"})

        writer.get("prefs")["theme"] = "light"

        reader = SettingsStore(sqlite_store, memory_cache, config={"cache": True, "serialize": True})
        assert reader.get("prefs") == {"theme": "dark"}

    def test_mutating_set_argument_does_not_reach_store(self, sqlite_store, memory_cache):
        store = SettingsStore(sqlite_store, memory_cache, config={"cache": True, "serialize": True})
        prefs = {"tags": ["a"]}
        store.set("prefs", prefs)

        prefs["tags"].append("b")

        assert store.get("prefs") == {"tags": ["a"]}
        assert memory_cache.get("settings")["prefs"] == {"tags": ["a"]}

    def test_cache_hit_is_copied(self, memory_store, memory_cache):
        memory_cache.save("settings", {"prefs": {"theme": "dark"}}, 300)
        store = SettingsStore(memory_store, memory_cache, config={"cache": True, "serialize": True})

        store.get("prefs")["theme"] = "light"

        assert memory_cache.get("settings") == {"prefs": {"theme": "dark"}}

    def test_get_all_view_follows_reload(self, memory_store):
        store = SettingsStore(memory_store)
        view = store.get_all()
        memory_store.tables["settings"] = [{"key": "only", "value": "one"}]

        store.reload(force=True)

        assert dict(view) == {"only": "one"}

    def test_failed_reload_keeps_settings(self, memory_store):
        store = SettingsStore(memory_store)
        memory_store.read_all_rows = MagicMock(side_effect=BackingStoreError("db down"))

        with pytest.raises(BackingStoreError):
            store.reload(force=True)

        assert store.get("site_name") == "My Site"


class TestScenarios:
    """End-to-end usage."""

    def test_scalar_scenario(self, sqlite_store):
        sqlite_store.insert_row("settings", {"key": "site_name", "value": "My Site"})
        sqlite_store.insert_row("settings", {"key": "maintenance_mode", "value": "|true|"})

        store = SettingsStore(sqlite_store, config={"serialize": False})
        assert dict(store.get_all()) == {"site_name": "My Site", "maintenance_mode": True}

        store.set("maintenance_mode", False)

        raw = {row["key"]: row["value"] for row in sqlite_store.read_all_rows("settings")}
        assert raw["maintenance_mode"] == "|false|"
        assert store.get("maintenance_mode") is False

    def test_create_settings_store(self, db_path):
        store = create_settings_store(db_path, config={"serialize": True}, codec="json")
        store.set("prefs", {"theme": "dark", "count": 3})

        fresh = create_settings_store(db_path, config={"serialize": True}, codec="json")

        assert fresh.get("prefs") == {"theme": "dark", "count": 3}

    def test_create_settings_store_default_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SETTINGS_DB_PATH", str(tmp_path / "env.db"))

        store = create_settings_store(config={"cache": True, "cache_config": {"adapter": "memory"}})
        store.set("x", 1)

        assert (tmp_path / "env.db").exists()
        assert isinstance(store.cache_backend, MemoryCacheBackend)
