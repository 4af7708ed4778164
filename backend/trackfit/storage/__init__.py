"""On-device key-value persistence."""

from trackfit.storage.base import DEFAULT_KEY_PREFIX, KeyValueStore
from trackfit.storage.file_store import FileKeyValueStore
from trackfit.storage.locks import KeyedLock
from trackfit.storage.memory_store import MemoryKeyValueStore
from trackfit.storage.settings import StorageSettings

__all__ = [
    "DEFAULT_KEY_PREFIX",
    "FileKeyValueStore",
    "KeyValueStore",
    "KeyedLock",
    "MemoryKeyValueStore",
    "StorageSettings",
]
