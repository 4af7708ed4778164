"""Persisted single-session manager with absolute expiry."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from trackfit.auth.models import SessionRecord, public_user
from trackfit.errors import ErrorCode, StorageError
from trackfit.storage.codec import storage_error

if TYPE_CHECKING:
    from trackfit.auth.models import User
    from trackfit.storage.base import KeyValueStore

SESSION_KEY = "session"
DEFAULT_SESSION_TIMEOUT_MS = 7 * 24 * 60 * 60 * 1000  # 7 days

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """Store the device's one current-user session.

    Expiry is checked lazily on load; an expired record is deleted at that
    point, so "no session" and "expired session" look the same to callers.
    Storage errors propagate.
    """

    def __init__(self, store: KeyValueStore, timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS) -> None:
        self._store = store
        self._timeout_ms = timeout_ms

    async def save_session(self, user: User) -> SessionRecord:
        """Persist ``user`` as the current session, replacing any previous one."""
        record = SessionRecord(user=public_user(user), expires_at=_now_ms() + self._timeout_ms)
        await self._write(record)
        return record

    async def load_session(self) -> User | None:
        """Return the session user, or None when there is no valid session."""
        record = await self._load_record()
        return record.user if record else None

    async def update_user(self, user: User) -> None:
        """Replace the session user and keep the current expiry. No-op without a valid session."""
        record = await self._load_record()
        if record is None:
            return
        await self._write(record.model_copy(update={"user": public_user(user)}))

    async def clear_session(self) -> None:
        try:
            await self._store.remove_item(SESSION_KEY)
        except StorageError:
            logger.error("failed to clear session")
            raise

    async def refresh_session(self, user: User) -> SessionRecord:
        """Restart the expiry window for ``user``."""
        return await self.save_session(user)

    async def is_session_valid(self) -> bool:
        return await self.load_session() is not None

    async def _write(self, record: SessionRecord) -> None:
        try:
            await self._store.set_item(SESSION_KEY, record.model_dump(mode="json"))
        except StorageError:
            logger.error("failed to save session", user_id=record.user.id)
            raise

    async def _load_record(self) -> SessionRecord | None:
        try:
            data = await self._store.get_item(SESSION_KEY)
        except StorageError:
            logger.error("failed to load session")
            raise
        if data is None:
            return None

        try:
            record = SessionRecord.model_validate(data)
        except ValueError as exc:
            logger.error("stored session is corrupted")
            raise storage_error(ErrorCode.STORAGE_CORRUPTED, SESSION_KEY, exc) from exc

        if _now_ms() > record.expires_at:
            logger.info("session expired", user_id=record.user.id)
            await self.clear_session()
            return None
        return record
