"""
Tests for the key-value storage layer.
"""

import pytest

from household_budget.services.storage import JsonFileStore, MemoryStore


class TestMemoryStore:
    """Tests for the in-memory store and the shared load/save policy."""

    def test_save_and_load(self):
        store = MemoryStore()
        assert store.save("budget", {"exchangeRate": 64.5}) is True
        assert store.load("budget") == {"exchangeRate": 64.5}

    def test_missing_key_returns_default(self):
        store = MemoryStore()
        assert store.load("missing", []) == []
        assert store.load("missing") is None

    def test_corrupt_value_returns_default(self):
        store = MemoryStore({"budget": "{not json"})
        assert store.load("budget", "fallback") == "fallback"

    def test_empty_value_returns_default(self):
        store = MemoryStore({"budget": ""})
        assert store.load("budget", {}) == {}

    def test_false_is_a_value(self):
        store = MemoryStore()
        store.save("theme", False)
        assert store.load("theme", True) is False

    def test_unserializable_value_is_dropped(self):
        store = MemoryStore()
        assert store.save("budget", {"when": object()}) is False
        assert store.keys() == []

    def test_preserve_copies_raw_text(self):
        store = MemoryStore({"budget": "{not json"})
        assert store.preserve("budget") == "budget.corrupt"
        assert store.read_text("budget.corrupt") == "{not json"
        assert store.read_text("budget") == "{not json"

    def test_preserve_missing_key(self):
        store = MemoryStore()
        assert store.preserve("budget") is None
        assert store.keys() == []

    def test_remove(self):
        store = MemoryStore()
        store.save("session", {"id": "1"})
        store.remove("session")
        store.remove("session")
        assert store.load("session") is None


class TestJsonFileStore:
    """Tests for the file-backed store."""

    def test_writes_one_file_per_key(self, tmp_path):
        store = JsonFileStore(tmp_path / "data")
        store.save("yaifinanzas_budget", {"incomes": []})

        path = tmp_path / "data" / "yaifinanzas_budget.json"
        assert path.exists()
        assert store.path_for("yaifinanzas_budget") == path
        assert store.load("yaifinanzas_budget") == {"incomes": []}

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("budget", {"v": 1})
        store.save("budget", {"v": 2})
        assert store.load("budget") == {"v": 2}
        assert [p.name for p in tmp_path.iterdir()] == ["budget.json"]

    def test_missing_file_returns_default(self, tmp_path):
        store = JsonFileStore(tmp_path)
        assert store.load("budget", {"default": True}) == {"default": True}

    def test_corrupt_file_returns_default(self, tmp_path):
        (tmp_path / "budget.json").write_text("{{{", encoding="utf-8")
        store = JsonFileStore(tmp_path)
        assert store.load("budget", None) is None

    def test_write_failure_is_logged_and_dropped(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileStore(blocker)
        assert store.save("budget", {"v": 1}) is False

    def test_delete(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("session", {"id": "1"})
        store.remove("session")
        assert not (tmp_path / "session.json").exists()

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        store = JsonFileStore(tmp_path)
        with pytest.raises(ValueError, match="Invalid storage key"):
            store.path_for(key)

    def test_unsafe_key_load_returns_default(self, tmp_path):
        store = JsonFileStore(tmp_path)
        assert store.load("../escape", "default") == "default"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
