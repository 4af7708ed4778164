"""Tests for the failed sign-in rate limiter."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from trackfit.auth.rate_limiter import RateLimiter
from trackfit.errors import ErrorCode, RateLimitError, StorageError

EMAIL = "ana@example.com"
KEY = f"auth_rate_limit:{EMAIL}"
WINDOW_MS = 15 * 60 * 1000


@pytest.fixture
def limiter(store):
    return RateLimiter(store)


class TestCheckRateLimit:
    async def test_allows_without_record(self, limiter):
        await limiter.check_rate_limit(EMAIL)

    async def test_allows_below_limit(self, limiter):
        await limiter.record_failed_attempt(EMAIL)
        await limiter.record_failed_attempt(EMAIL)

        await limiter.check_rate_limit(EMAIL)

    async def test_blocks_after_max_attempts(self, limiter):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            for _ in range(3):
                await limiter.record_failed_attempt(EMAIL)

            with pytest.raises(RateLimitError) as exc_info:
                await limiter.check_rate_limit(EMAIL)

        assert exc_info.value.code == ErrorCode.RATE_LIMIT_EXCEEDED
        assert exc_info.value.retry_after_ms == WINDOW_MS
        assert exc_info.value.context["attempts"] == 3

    async def test_retry_after_shrinks_as_window_passes(self, limiter):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            for _ in range(3):
                await limiter.record_failed_attempt(EMAIL)

            mock_time.time.return_value = 1000.0 + 600
            with pytest.raises(RateLimitError) as exc_info:
                await limiter.check_rate_limit(EMAIL)

        assert exc_info.value.retry_after_ms == WINDOW_MS - 600_000

    async def test_expired_window_allows_and_deletes_record(self, limiter, store):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            for _ in range(3):
                await limiter.record_failed_attempt(EMAIL)

            mock_time.time.return_value = 1000.0 + WINDOW_MS / 1000 + 1
            await limiter.check_rate_limit(EMAIL)

        assert await store.get_item(KEY) is None

    async def test_limit_is_per_email(self, limiter):
        for _ in range(3):
            await limiter.record_failed_attempt(EMAIL)

        await limiter.check_rate_limit("other@example.com")

    async def test_custom_max_attempts(self, store):
        limiter = RateLimiter(store, max_attempts=1)
        await limiter.record_failed_attempt(EMAIL)

        with pytest.raises(RateLimitError):
            await limiter.check_rate_limit(EMAIL)


class TestRecordFailedAttempt:
    async def test_first_failure_opens_window(self, limiter, store):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            await limiter.record_failed_attempt(EMAIL)

        assert await store.get_item(KEY) == {"attempts": 1, "reset_at": 1_000_000 + WINDOW_MS}

    async def test_later_failures_keep_window_start(self, limiter, store):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            await limiter.record_failed_attempt(EMAIL)
            mock_time.time.return_value = 1060.0
            await limiter.record_failed_attempt(EMAIL)

        record = await store.get_item(KEY)
        assert record["attempts"] == 2
        assert record["reset_at"] == 1_000_000 + WINDOW_MS

    async def test_failure_after_expiry_restarts_count(self, limiter, store):
        with patch("trackfit.auth.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            await limiter.record_failed_attempt(EMAIL)
            await limiter.record_failed_attempt(EMAIL)

            mock_time.time.return_value = 1000.0 + WINDOW_MS / 1000 + 1
            await limiter.record_failed_attempt(EMAIL)

        record = await store.get_item(KEY)
        assert record["attempts"] == 1
        assert record["reset_at"] == 1_000_000 + WINDOW_MS + 1000 + WINDOW_MS

    async def test_corrupted_record_is_overwritten(self, limiter, store):
        store._items[f"@TrackFit:{KEY}"] = "{not json"

        await limiter.record_failed_attempt(EMAIL)

        record = await store.get_item(KEY)
        assert record["attempts"] == 1

    async def test_invalid_record_shape_is_overwritten(self, limiter, store):
        await store.set_item(KEY, {"attempts": -4})

        await limiter.record_failed_attempt(EMAIL)

        assert (await store.get_item(KEY))["attempts"] == 1


class TestClearRateLimit:
    async def test_removes_record(self, limiter, store):
        for _ in range(3):
            await limiter.record_failed_attempt(EMAIL)

        await limiter.clear_rate_limit(EMAIL)

        assert await store.get_item(KEY) is None
        await limiter.check_rate_limit(EMAIL)

    async def test_clear_without_record_is_noop(self, limiter):
        await limiter.clear_rate_limit(EMAIL)


class TestAttempt:
    async def test_failure_is_recorded(self, limiter, store):
        async with limiter.attempt(EMAIL) as attempt:
            await attempt.record_failure()

        assert (await store.get_item(KEY))["attempts"] == 1

    async def test_success_clears_record(self, limiter, store):
        await limiter.record_failed_attempt(EMAIL)

        async with limiter.attempt(EMAIL) as attempt:
            await attempt.succeed()

        assert await store.get_item(KEY) is None

    async def test_raises_on_entry_when_limited(self, limiter):
        for _ in range(3):
            await limiter.record_failed_attempt(EMAIL)

        with pytest.raises(RateLimitError):
            async with limiter.attempt(EMAIL):
                pytest.fail("attempt body must not run")

    async def test_concurrent_attempts_see_earlier_failures(self, limiter):
        entered = 0

        async def fail_once():
            nonlocal entered
            async with limiter.attempt(EMAIL) as attempt:
                entered += 1
                await asyncio.sleep(0)
                await attempt.record_failure()

        results = await asyncio.gather(*(fail_once() for _ in range(10)), return_exceptions=True)

        assert entered == 3
        assert sum(isinstance(r, RateLimitError) for r in results) == 7


class TestStorageFailures:
    """Storage errors never block sign-in; the limiter fails open."""

    async def test_check_fails_open_on_read_error(self, limiter, store):
        error = StorageError("boom", ErrorCode.STORAGE_LOAD_ERROR, key=KEY)
        with patch.object(store, "get_item", new_callable=AsyncMock, side_effect=error):
            await limiter.check_rate_limit(EMAIL)

    async def test_check_fails_open_on_corrupted_record(self, limiter, store):
        store._items[f"@TrackFit:{KEY}"] = "{not json"

        await limiter.check_rate_limit(EMAIL)

    async def test_record_swallows_write_error(self, limiter, store):
        error = StorageError("boom", ErrorCode.STORAGE_SAVE_ERROR, key=KEY)
        with patch.object(store, "set_item", new_callable=AsyncMock, side_effect=error):
            await limiter.record_failed_attempt(EMAIL)

    async def test_clear_swallows_delete_error(self, limiter, store):
        error = StorageError("boom", ErrorCode.STORAGE_DELETE_ERROR, key=KEY)
        with patch.object(store, "remove_item", new_callable=AsyncMock, side_effect=error):
            await limiter.clear_rate_limit(EMAIL)
