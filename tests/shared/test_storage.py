"""Tests for the local/session key-value stores."""

import json

from shared.storage import (
    JsonFileStore,
    MemoryStore,
    get_local_storage,
    get_session_storage,
    reset_storage,
    set_storage,
)


class TestMemoryStore:
    def test_set_get_remove(self):
        store = MemoryStore()
        store.set_item("cart", "{}")
        assert store.get_item("cart") == "{}"
        store.remove_item("cart")
        assert store.get_item("cart") is None

    def test_remove_missing_key(self):
        store = MemoryStore()
        store.remove_item("missing")
        assert store.data == {}


class TestJsonFileStore:
    def test_values_survive_a_new_instance(self, tmp_path):
        path = tmp_path / "local_storage.json"
        JsonFileStore(path).set_item("cart", json.dumps({"items": []}))

        assert json.loads(JsonFileStore(path).get_item("cart")) == {"items": []}

    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "nope" / "store.json").get_item("cart") is None

    def test_remove(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        store.set_item("a", "1")
        store.set_item("b", "2")
        store.remove_item("a")
        assert store.get_item("a") is None
        assert store.get_item("b") == "2"
        assert not (tmp_path / "store.json.tmp").exists()


class TestFactories:
    def test_local_storage_is_file_backed_when_configured(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STOREFRONT_STORAGE_DIR", str(tmp_path))
        reset_storage()
        store = get_local_storage()
        store.set_item("cart", "{}")
        assert isinstance(store, JsonFileStore)
        assert (tmp_path / "local_storage.json").exists()

    def test_local_storage_defaults_to_memory(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_STORAGE_DIR", raising=False)
        reset_storage()
        assert isinstance(get_local_storage(), MemoryStore)

    def test_session_storage_is_a_singleton(self):
        assert get_session_storage() is get_session_storage()
        assert get_session_storage() is not get_local_storage()

    def test_set_storage(self):
        local, session = MemoryStore(), MemoryStore()
        set_storage(local=local, session=session)
        assert get_local_storage() is local
        assert get_session_storage() is session
