"""Per-email fixed-window limiter for failed sign-in attempts.

The window opens on the first failure and is evaluated lazily: an expired
record is deleted the next time it is read. Storage failures are logged and
swallowed so a broken store never blocks sign-in; only an exceeded limit
raises.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog

from trackfit.auth.models import RateLimitRecord
from trackfit.errors import ErrorCode, RateLimitError, StorageError
from trackfit.messages import message_for
from trackfit.storage.codec import storage_error
from trackfit.storage.locks import KeyedLock

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from trackfit.storage.base import KeyValueStore

RATE_LIMIT_KEY = "auth_rate_limit"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_WINDOW_MS = 15 * 60 * 1000

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


class SignInAttempt:
    """Bookkeeping for one sign-in, valid only inside ``RateLimiter.attempt``."""

    def __init__(self, limiter: RateLimiter, email: str) -> None:
        self._limiter = limiter
        self._email = email

    async def record_failure(self) -> None:
        await self._limiter._record(self._email)

    async def succeed(self) -> None:
        await self._limiter._clear(self._email)


class RateLimiter:
    """Count failed sign-in attempts per normalized email."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._max_attempts = max_attempts
        self._window_ms = window_ms
        self._locks = locks or KeyedLock()

    @staticmethod
    def _key(email: str) -> str:
        return f"{RATE_LIMIT_KEY}:{email}"

    @asynccontextmanager
    async def attempt(self, email: str) -> AsyncIterator[SignInAttempt]:
        """Check the limit and hold the email's lock until the attempt is settled.

        Concurrent sign-ins for one email queue here, so each one sees the
        failures recorded by those before it. Raises RateLimitError on entry.
        """
        async with self._locks(self._key(email)):
            await self._check(email)
            yield SignInAttempt(self, email)

    async def check_rate_limit(self, email: str) -> None:
        """Raise RateLimitError when ``email`` has used up its attempts in the current window."""
        async with self._locks(self._key(email)):
            await self._check(email)

    async def record_failed_attempt(self, email: str) -> None:
        async with self._locks(self._key(email)):
            await self._record(email)

    async def clear_rate_limit(self, email: str) -> None:
        async with self._locks(self._key(email)):
            await self._clear(email)

    # -- private helpers, caller holds the email's lock --

    async def _check(self, email: str) -> None:
        key = self._key(email)
        try:
            record = await self._load(key)
            if record is None:
                return
            now = _now_ms()
            if now > record.reset_at:
                await self._store.remove_item(key)
                return
        except StorageError as exc:
            logger.warning("failed to check rate limit", email=email, error_code=exc.code)
            return

        if record.attempts >= self._max_attempts:
            logger.warning("sign in rate limited", email=email, attempts=record.attempts)
            raise RateLimitError(
                message_for(ErrorCode.RATE_LIMIT_EXCEEDED),
                retry_after_ms=record.reset_at - now,
                context={"email": email, "attempts": record.attempts},
            )

    async def _record(self, email: str) -> None:
        key = self._key(email)
        try:
            try:
                record = await self._load(key)
            except StorageError as exc:
                if exc.code != ErrorCode.STORAGE_CORRUPTED:
                    raise
                record = None  # overwritten below
            now = _now_ms()
            if record is None or now > record.reset_at:
                record = RateLimitRecord(attempts=0, reset_at=now + self._window_ms)
            updated = record.model_copy(update={"attempts": record.attempts + 1})
            await self._store.set_item(key, updated.model_dump())
            logger.debug("recorded failed sign in attempt", email=email, attempts=updated.attempts)
        except StorageError as exc:
            logger.warning("failed to record failed attempt", email=email, error_code=exc.code)

    async def _clear(self, email: str) -> None:
        try:
            await self._store.remove_item(self._key(email))
        except StorageError as exc:
            logger.warning("failed to clear rate limit", email=email, error_code=exc.code)

    async def _load(self, key: str) -> RateLimitRecord | None:
        data = await self._store.get_item(key)
        if data is None:
            return None
        try:
            return RateLimitRecord.model_validate(data)
        except ValueError as exc:
            raise storage_error(ErrorCode.STORAGE_CORRUPTED, key, exc) from exc
