import pytest

from trackfit.errors import ErrorCode, StorageError
from trackfit.storage.memory_store import MemoryKeyValueStore


class TestMemoryKeyValueStore:
    async def test_set_and_get_roundtrip(self, store):
        await store.set_item("session", {"user": {"id": "u1"}, "expires_at": 5})
        assert await store.get_item("session") == {"user": {"id": "u1"}, "expires_at": 5}

    async def test_get_missing_returns_none(self, store):
        assert await store.get_item("missing") is None

    async def test_returned_values_are_copies(self, store):
        await store.set_item("users", [{"id": "u1"}])
        loaded = await store.get_item("users")
        loaded[0]["id"] = "changed"

        assert await store.get_item("users") == [{"id": "u1"}]

    async def test_remove_item_is_idempotent(self, store):
        await store.set_item("session", 1)
        await store.remove_item("session")
        await store.remove_item("session")

        assert await store.get_item("session") is None

    async def test_clear_only_removes_own_prefix(self):
        store = MemoryKeyValueStore()
        store._items["@Other:key"] = '"kept"'
        await store.set_item("users", [])

        await store.clear()

        assert store._items == {"@Other:key": '"kept"'}

    async def test_unserializable_value_raises_save_error(self, store):
        with pytest.raises(StorageError) as exc_info:
            await store.set_item("users", object())

        assert exc_info.value.code == ErrorCode.STORAGE_SAVE_ERROR
        assert "original_error" in exc_info.value.context

    async def test_corrupted_value_raises_corrupted(self, store):
        store._items["@TrackFit:users"] = "{not json"

        with pytest.raises(StorageError) as exc_info:
            await store.get_item("users")

        assert exc_info.value.code == ErrorCode.STORAGE_CORRUPTED
        assert exc_info.value.context["key"] == "users"
