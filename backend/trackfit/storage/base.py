"""Abstract interface for the on-device key-value store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

DEFAULT_KEY_PREFIX = "@TrackFit:"


class KeyValueStore(ABC):
    """Async key-value store holding JSON-compatible values.

    Keys are namespaced under ``key_prefix`` so several applications can
    share one backing file. Implementations raise ``StorageError`` for every
    failure, with ``STORAGE_CORRUPTED`` reserved for stored values that no
    longer parse.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._key_prefix = key_prefix

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    @abstractmethod
    async def set_item(self, key: str, value: Any) -> None: ...  # noqa: ANN401

    @abstractmethod
    async def get_item(self, key: str) -> Any | None: ...  # noqa: ANN401

    @abstractmethod
    async def remove_item(self, key: str) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...
