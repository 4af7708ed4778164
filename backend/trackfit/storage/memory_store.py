"""In-process key-value store."""

from __future__ import annotations

from typing import Any

from trackfit.storage.base import DEFAULT_KEY_PREFIX, KeyValueStore
from trackfit.storage.codec import decode_value, encode_value


class MemoryKeyValueStore(KeyValueStore):
    """Keeps values as JSON text in a dict, so callers get the same
    copy-on-read and corruption semantics as the file store.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        super().__init__(key_prefix)
        self._items: dict[str, str] = {}

    async def set_item(self, key: str, value: Any) -> None:  # noqa: ANN401
        self._items[self._full_key(key)] = encode_value(key, value)

    async def get_item(self, key: str) -> Any | None:  # noqa: ANN401
        raw = self._items.get(self._full_key(key))
        if raw is None:
            return None
        return decode_value(key, raw)

    async def remove_item(self, key: str) -> None:
        self._items.pop(self._full_key(key), None)

    async def clear(self) -> None:
        for full_key in [k for k in self._items if k.startswith(self._key_prefix)]:
            del self._items[full_key]
