"""Per-key mutual exclusion for read-modify-write cycles on the store."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class KeyedLock:
    """Hand out one asyncio.Lock per logical storage key.

    Usage::

        async with locks("users"):
            users = await store.get_item("users")
            ...
            await store.set_item("users", users)

    A key's lock lives while any task holds or waits for it and is dropped
    when the last one leaves, so per-email keys do not accumulate.

    Locks are not re-entrant; never acquire the same key twice in one task.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}  # holders plus waiters per key

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def __call__(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
