"""Tests for core.storage: key-value stores and blob codec."""

import pytest

from rumo.core.exceptions import PersistenceCorruptError
from rumo.core.storage import (
    LocalKeyValueStore,
    MemoryKeyValueStore,
    StorageKeyError,
    StoragePermissionError,
    decode_blob,
    encode_blob,
)


class TestCodec:
    def test_roundtrip(self):
        obj = {"stocks": [{"ticker": "AAPL", "qty": 1.5}], "cash_balance": 0}
        assert decode_blob(encode_blob(obj)) == obj

    def test_non_ascii_kept(self):
        assert "Património" in encode_blob({"name": "Património"})

    def test_corrupt_raises(self):
        with pytest.raises(PersistenceCorruptError):
            decode_blob("{not json")


@pytest.fixture(params=["memory", "local"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryKeyValueStore()
    return LocalKeyValueStore(base_path=str(tmp_path / "kv"))


class TestKeyValueStores:
    def test_get_missing(self, store):
        assert store.get("rumo_data_v1") is None
        assert store.exists("rumo_data_v1") is False

    def test_set_get_overwrite(self, store):
        store.set("rumo_data_v1", "first")
        store.set("rumo_data_v1", "second")
        assert store.get("rumo_data_v1") == "second"

    def test_load_missing_raises(self, store):
        with pytest.raises(StorageKeyError):
            store.load("nope")

    def test_delete(self, store):
        store.set("k", "v")
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None

    def test_keys_with_prefix(self, store):
        store.set("rumo_trades_v1", "[]")
        store.set("rumo_data_v1", "{}")
        store.set("other", "x")
        assert list(store.keys("rumo_")) == ["rumo_data_v1", "rumo_trades_v1"]


class TestLocalKeyValueStore:
    def test_persists_across_instances(self, tmp_path):
        LocalKeyValueStore(base_path=str(tmp_path)).set("rumo_data_v1", '{"cash_balance": 5}')
        assert LocalKeyValueStore(base_path=str(tmp_path)).get("rumo_data_v1") == '{"cash_balance": 5}'

    def test_one_file_per_key_and_no_leftover_temp_files(self, tmp_path):
        store = LocalKeyValueStore(base_path=str(tmp_path))
        store.set("rumo_data_v1", "{}")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["rumo_data_v1.json"]

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", "a\\b", "~home", ".hidden", "nul\x00"])
    def test_unsafe_keys_rejected(self, tmp_path, key):
        store = LocalKeyValueStore(base_path=str(tmp_path))
        with pytest.raises(StoragePermissionError):
            store.set(key, "x")


class TestMemoryKeyValueStore:
    def test_initial_data(self):
        store = MemoryKeyValueStore({"k": "v"})
        assert store.get("k") == "v"
