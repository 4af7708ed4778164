"""File-backed key-value store keeping every entry in one JSON document."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from trackfit.errors import ErrorCode
from trackfit.storage.base import DEFAULT_KEY_PREFIX, KeyValueStore
from trackfit.storage.codec import decode_value, encode_value, storage_error

logger = structlog.get_logger()

_PLAIN_FILE_MODE = 0o644
_SECURE_FILE_MODE = 0o600  # owner read/write only
_SECURE_DIR_MODE = 0o700


class FileKeyValueStore(KeyValueStore):
    """File-backed key-value store.

    The file holds a JSON object mapping prefixed keys to JSON text. It is
    loaded into memory on first access and written back atomically on every
    mutation. An asyncio.Lock serializes mutations within a single process.

    A file that exists but cannot be read or parsed is never overwritten:
    every operation raises STORAGE_LOAD_ERROR until the file is repaired.
    """

    def __init__(
        self,
        file_path: str | Path,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        *,
        file_mode: int = _PLAIN_FILE_MODE,
        dir_mode: int | None = None,
    ) -> None:
        super().__init__(key_prefix)
        self._file_path = Path(file_path)
        self._file_mode = file_mode
        self._dir_mode = dir_mode
        self._items: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    @classmethod
    def secure(cls, file_path: str | Path, key_prefix: str = DEFAULT_KEY_PREFIX) -> FileKeyValueStore:
        """Open a store for credential and session records (owner-only file and directory)."""
        return cls(file_path, key_prefix, file_mode=_SECURE_FILE_MODE, dir_mode=_SECURE_DIR_MODE)

    async def _ensure_loaded(self, key: str) -> None:
        async with self._lock:
            if self._loaded:
                return
            try:
                self._load_from_file()
            except OSError as exc:
                logger.error("failed to load storage file", key=key, path=str(self._file_path))
                raise storage_error(ErrorCode.STORAGE_LOAD_ERROR, key, exc) from exc
            self._loaded = True

    def _load_from_file(self) -> None:
        """Load entries from the JSON file. A missing file is an empty store."""
        self._items = {}

        if not self._file_path.exists():
            return

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            msg = f"Failed to load storage from {self._file_path}"
            raise OSError(msg) from exc

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            msg = f"Expected JSON object of strings at root in {self._file_path}"
            raise OSError(msg)

        self._items = data

    def _save_to_file(self) -> None:
        """Atomically write all entries via temp-file-then-rename."""
        parent = self._file_path.parent
        if self._dir_mode is not None:
            parent.mkdir(mode=self._dir_mode, parents=True, exist_ok=True)
            parent.chmod(self._dir_mode)
        else:
            parent.mkdir(parents=True, exist_ok=True)

        content = json.dumps(self._items, indent=2).encode("utf-8")

        fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".storage_", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fchmod(f.fileno(), self._file_mode)
            Path(tmp_path).replace(self._file_path)
        except BaseException:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise

    async def set_item(self, key: str, value: Any) -> None:  # noqa: ANN401
        encoded = encode_value(key, value)
        await self._ensure_loaded(key)
        full_key = self._full_key(key)
        async with self._lock:
            previous = self._items.get(full_key)
            self._items[full_key] = encoded
            try:
                self._save_to_file()
            except OSError as exc:
                self._restore(full_key, previous)
                logger.error("failed to save to storage", key=key, error=str(exc))
                raise storage_error(ErrorCode.STORAGE_SAVE_ERROR, key, exc) from exc

    async def get_item(self, key: str) -> Any | None:  # noqa: ANN401
        await self._ensure_loaded(key)
        raw = self._items.get(self._full_key(key))
        if raw is None:
            return None
        return decode_value(key, raw)

    async def remove_item(self, key: str) -> None:
        await self._ensure_loaded(key)
        full_key = self._full_key(key)
        async with self._lock:
            if full_key not in self._items:
                return
            previous = self._items.pop(full_key)
            try:
                self._save_to_file()
            except OSError as exc:
                self._items[full_key] = previous
                logger.error("failed to delete from storage", key=key, error=str(exc))
                raise storage_error(ErrorCode.STORAGE_DELETE_ERROR, key, exc) from exc

    async def clear(self) -> None:
        await self._ensure_loaded("all")
        async with self._lock:
            removed = {k: v for k, v in self._items.items() if k.startswith(self._key_prefix)}
            if not removed:
                return
            for full_key in removed:
                del self._items[full_key]
            try:
                self._save_to_file()
            except OSError as exc:
                self._items.update(removed)
                logger.error("failed to clear storage", error=str(exc))
                raise storage_error(ErrorCode.STORAGE_DELETE_ERROR, "all", exc) from exc

    def _restore(self, full_key: str, previous: str | None) -> None:
        if previous is None:
            self._items.pop(full_key, None)
        else:
            self._items[full_key] = previous
