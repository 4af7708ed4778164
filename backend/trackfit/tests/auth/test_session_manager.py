"""Tests for the single-session manager."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from trackfit.auth.models import SessionRecord, StoredUser, User
from trackfit.auth.session_manager import DEFAULT_SESSION_TIMEOUT_MS, SESSION_KEY, SessionManager
from trackfit.errors import ErrorCode, StorageError


def _make_user(**overrides) -> User:
    fields = {
        "id": "user-1",
        "name": "Ana Silva",
        "username": "ana_silva",
        "email": "ana@example.com",
        "created_at": datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        "active_days": 3,
        "last_access_date": "2024-03-01T12:00:00.000Z",
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def sessions(store):
    return SessionManager(store)


class TestSaveAndLoad:
    async def test_save_then_load_returns_user(self, sessions):
        user = _make_user()
        await sessions.save_session(user)

        assert await sessions.load_session() == user

    async def test_load_without_session_returns_none(self, sessions):
        assert await sessions.load_session() is None

    async def test_save_sets_expiry_from_timeout(self, store):
        sessions = SessionManager(store, timeout_ms=60_000)
        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            record = await sessions.save_session(_make_user())

        assert record.expires_at == 1_060_000
        assert (await store.get_item(SESSION_KEY))["expires_at"] == 1_060_000

    async def test_default_timeout_is_seven_days(self):
        assert DEFAULT_SESSION_TIMEOUT_MS == 604_800_000

    async def test_save_replaces_previous_session(self, sessions):
        await sessions.save_session(_make_user())
        await sessions.save_session(_make_user(id="user-2", email="bia@example.com"))

        loaded = await sessions.load_session()
        assert loaded.id == "user-2"

    async def test_password_hash_is_never_persisted(self, sessions, store):
        stored = StoredUser(**_make_user().model_dump(), password_hash="00ff:abcd")
        await sessions.save_session(stored)

        raw = await store.get_item(SESSION_KEY)
        assert "password_hash" not in raw["user"]
        loaded = await sessions.load_session()
        assert type(loaded) is User


class TestExpiry:
    async def test_expired_session_is_deleted(self, sessions, store):
        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            await sessions.save_session(_make_user())

            mock_time.time.return_value = 1000.0 + DEFAULT_SESSION_TIMEOUT_MS / 1000 + 1
            assert await sessions.load_session() is None

        assert await store.get_item(SESSION_KEY) is None

    async def test_session_one_millisecond_past_expiry_is_deleted(self, sessions, store):
        record = SessionRecord(user=_make_user(), expires_at=999_999)
        await store.set_item(SESSION_KEY, record.model_dump(mode="json"))

        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert await sessions.load_session() is None

        assert await store.get_item(SESSION_KEY) is None

    async def test_session_at_expiry_instant_is_still_valid(self, sessions, store):
        record = SessionRecord(user=_make_user(), expires_at=1_000_000)
        await store.set_item(SESSION_KEY, record.model_dump(mode="json"))

        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert await sessions.load_session() is not None

    async def test_refresh_extends_expiry(self, sessions, store):
        user = _make_user()
        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            first = await sessions.save_session(user)
            mock_time.time.return_value = 5000.0
            refreshed = await sessions.refresh_session(user)

        assert refreshed.expires_at == first.expires_at + 4_000_000
        assert (await store.get_item(SESSION_KEY))["expires_at"] == refreshed.expires_at


class TestUpdateUser:
    async def test_replaces_user_and_keeps_expiry(self, sessions, store):
        with patch("trackfit.auth.session_manager.time") as mock_time:
            mock_time.time.return_value = 1000.0
            first = await sessions.save_session(_make_user())
            mock_time.time.return_value = 5000.0
            await sessions.update_user(_make_user(active_days=4))
            loaded = await sessions.load_session()

        assert loaded.active_days == 4
        assert (await store.get_item(SESSION_KEY))["expires_at"] == first.expires_at

    async def test_without_session_is_noop(self, sessions, store):
        await sessions.update_user(_make_user())

        assert await store.get_item(SESSION_KEY) is None

    async def test_strips_password_hash(self, sessions, store):
        await sessions.save_session(_make_user())
        await sessions.update_user(StoredUser(**_make_user().model_dump(), password_hash="00ff:abcd"))

        raw = await store.get_item(SESSION_KEY)
        assert "password_hash" not in raw["user"]


class TestClearAndValidity:
    async def test_clear_removes_session(self, sessions):
        await sessions.save_session(_make_user())
        await sessions.clear_session()

        assert await sessions.load_session() is None

    async def test_clear_is_idempotent(self, sessions):
        await sessions.clear_session()
        await sessions.clear_session()

    async def test_is_session_valid(self, sessions):
        assert await sessions.is_session_valid() is False
        await sessions.save_session(_make_user())
        assert await sessions.is_session_valid() is True


class TestStorageFailures:
    async def test_corrupted_session_raises(self, sessions, store):
        await store.set_item(SESSION_KEY, {"user": {"id": "x"}})

        with pytest.raises(StorageError) as exc_info:
            await sessions.load_session()

        assert exc_info.value.code == ErrorCode.STORAGE_CORRUPTED
        assert exc_info.value.key == SESSION_KEY

    async def test_save_error_propagates(self, sessions, store):
        error = StorageError("boom", ErrorCode.STORAGE_SAVE_ERROR, key=SESSION_KEY)
        with (
            patch.object(store, "set_item", new_callable=AsyncMock, side_effect=error),
            pytest.raises(StorageError) as exc_info,
        ):
            await sessions.save_session(_make_user())

        assert exc_info.value.code == ErrorCode.STORAGE_SAVE_ERROR

    async def test_load_error_propagates(self, sessions, store):
        error = StorageError("boom", ErrorCode.STORAGE_LOAD_ERROR, key=SESSION_KEY)
        with (
            patch.object(store, "get_item", new_callable=AsyncMock, side_effect=error),
            pytest.raises(StorageError),
        ):
            await sessions.load_session()
