"""Auth service coordinating sign-up, sign-in and the device session."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from trackfit.auth.models import AuthProvider, StoredUser, User
from trackfit.auth.streak import record_access, to_iso_timestamp
from trackfit.errors import AuthenticationError, ErrorCode, StorageError
from trackfit.messages import message_for
from trackfit.storage.codec import storage_error
from trackfit.storage.locks import KeyedLock
from trackfit.validation import (
    validate_email_or_raise,
    validate_name_or_raise,
    validate_password_confirmation,
    validate_password_format,
    validate_password_or_raise,
    validate_username_or_raise,
)

if TYPE_CHECKING:
    from trackfit.auth.password import PasswordHasher
    from trackfit.auth.rate_limiter import RateLimiter
    from trackfit.auth.session_manager import SessionManager
    from trackfit.storage.base import KeyValueStore
    from trackfit.validation.rules import PasswordPolicy

USERS_KEY = "users"

# Verified against when the email is unknown, so both rejection paths cost one derivation.
_DUMMY_HASH = "00" * 16 + ":" + "0" * 64

_PROVIDER_DISPLAY_NAMES = {
    AuthProvider.APPLE: "Apple User",
    AuthProvider.GOOGLE: "Google User",
}

logger = structlog.get_logger()


class AuthService:
    """Coordinate account creation, credential checks and the device session.

    Owns the user set stored under ``USERS_KEY``. Every read-modify-write of
    that set runs under the ``USERS_KEY`` lock.
    """

    def __init__(
        self,
        store: KeyValueStore,
        session_manager: SessionManager,
        rate_limiter: RateLimiter,
        *,
        password_hasher: PasswordHasher,
        password_policy: PasswordPolicy | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._sessions = session_manager
        self._rate_limiter = rate_limiter
        self._hasher = password_hasher
        self._policy = password_policy
        self._locks = locks or KeyedLock()

    async def sign_in(self, email: str, password: str) -> User:
        """Check credentials and start a session.

        Unknown email and wrong password raise the same INVALID_CREDENTIALS
        error and both count toward the rate limit. Attempts for one email are
        settled one at a time, so a burst cannot verify more guesses than the
        limit allows.
        """
        normalized_email = validate_email_or_raise(email)
        validate_password_format(password, self._policy).raise_for("password")

        async with self._rate_limiter.attempt(normalized_email) as attempt:
            users = await self._load_users()
            stored = next((u for u in users if u.email == normalized_email), None)
            password_ok = await self._hasher.verify(password, stored.password_hash if stored else _DUMMY_HASH)

            if stored is None or not password_ok:
                await attempt.record_failure()
                logger.info("sign in rejected", email=normalized_email)
                raise AuthenticationError(
                    message_for(ErrorCode.INVALID_CREDENTIALS),
                    ErrorCode.INVALID_CREDENTIALS,
                )

            await attempt.succeed()

        user = await self._touch_user(stored.id) or stored.to_public()
        await self._sessions.save_session(user)

        logger.info("user signed in", user_id=user.id, email=normalized_email)
        return user

    async def sign_up(
        self,
        name: str,
        username: str,
        email: str,
        password: str,
        *,
        confirm_password: str | None = None,
    ) -> User:
        """Create an account and start a session for it.

        When ``confirm_password`` is given it must equal ``password``.
        """
        trimmed_name = validate_name_or_raise(name)
        normalized_email = validate_email_or_raise(email)
        normalized_username = validate_username_or_raise(username)
        validate_password_or_raise(
            password,
            email=normalized_email,
            username=normalized_username,
            name=trimmed_name,
            policy=self._policy,
        )
        if confirm_password is not None:
            validate_password_confirmation(password, confirm_password).raise_for("confirm_password")

        async with self._locks(USERS_KEY):
            users = await self._load_users()
            self._ensure_available(users, normalized_email, normalized_username)

            now = datetime.now(tz=UTC)
            new_user = StoredUser(
                id=str(uuid4()),
                name=trimmed_name,
                username=normalized_username,
                email=normalized_email,
                password_hash=await self._hasher.hash(password),
                created_at=now,
                active_days=1,
                last_access_date=to_iso_timestamp(now),
            )
            await self._save_users([*users, new_user])

        user = new_user.to_public()
        try:
            await self._sessions.save_session(user)
        except StorageError:
            await self._rollback_sign_up(user.id)
            raise

        logger.info("user signed up", user_id=user.id, email=normalized_email)
        return user

    async def sign_out(self) -> None:
        """End the device session. Storage errors propagate."""
        await self._sessions.clear_session()
        logger.info("user signed out")

    async def sign_in_with_provider(self, provider: AuthProvider | str) -> User:
        """Start a session for a synthetic identity-provider user.

        Stands in for the Apple/Google sign-in flow, which lives outside
        this library. Any failure surfaces as PROVIDER_SIGN_IN_ERROR.
        """
        try:
            resolved = AuthProvider(provider)
            now = datetime.now(tz=UTC)
            stamp = int(time.time() * 1000)
            user = User(
                id=f"{resolved}_{stamp}",
                name=_PROVIDER_DISPLAY_NAMES[resolved],
                username=f"{resolved}_user_{stamp}",
                email=f"user@{resolved}.com",
                created_at=now,
                active_days=1,
                last_access_date=to_iso_timestamp(now),
            )
            await self._sessions.save_session(user)
        except Exception as exc:  # noqa: BLE001
            logger.error("provider sign in failed", provider=str(provider), error_type=type(exc).__name__)
            raise AuthenticationError(
                f"Erro ao fazer login com {provider}",
                ErrorCode.PROVIDER_SIGN_IN_ERROR,
                context={"provider": str(provider)},
            ) from exc

        logger.info("user signed in with provider", user_id=user.id, provider=resolved)
        return user

    async def load_session(self) -> User | None:
        """Restore the session user, counting the app start toward the access streak.

        The stored user and the session record are updated when the day
        changed; the session keeps its expiry. Provider users are not stored
        and come back as saved.
        """
        user = await self._sessions.load_session()
        if user is None:
            return None
        touched = await self._touch_user(user.id)
        if touched is None:
            return user
        if touched != user:
            await self._sessions.update_user(touched)
        return touched

    async def refresh_session(self, user: User) -> None:
        await self._sessions.refresh_session(user)

    async def is_authenticated(self) -> bool:
        return await self._sessions.is_session_valid()

    # -- private helpers --

    async def _load_users(self) -> list[StoredUser]:
        data = await self._store.get_item(USERS_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error("stored user set is not a list")
            raise storage_error(ErrorCode.STORAGE_CORRUPTED, USERS_KEY)
        try:
            return [StoredUser.model_validate(item) for item in data]
        except ValueError as exc:
            logger.error("stored user set is corrupted")
            raise storage_error(ErrorCode.STORAGE_CORRUPTED, USERS_KEY, exc) from exc

    async def _save_users(self, users: list[StoredUser]) -> None:
        await self._store.set_item(USERS_KEY, [u.model_dump(mode="json") for u in users])

    @staticmethod
    def _ensure_available(users: list[StoredUser], email: str, username: str) -> None:
        """Raise EMAIL_EXISTS or USERNAME_EXISTS, in that order."""
        if any(u.email == email for u in users):
            raise AuthenticationError(message_for(ErrorCode.EMAIL_EXISTS), ErrorCode.EMAIL_EXISTS)
        lowered = username.lower()
        if any(u.username.lower() == lowered for u in users):
            raise AuthenticationError(message_for(ErrorCode.USERNAME_EXISTS), ErrorCode.USERNAME_EXISTS)

    async def _touch_user(self, user_id: str) -> User | None:
        """Apply the access streak to the stored user and return its public view."""
        async with self._locks(USERS_KEY):
            users = await self._load_users()
            for index, existing in enumerate(users):
                if existing.id != user_id:
                    continue
                updated = record_access(existing, datetime.now(tz=UTC))
                if updated is not existing:
                    users[index] = updated
                    await self._save_users(users)
                return updated.to_public()
        return None

    async def _rollback_sign_up(self, user_id: str) -> None:
        """Remove a just-created user whose session could not be saved."""
        try:
            async with self._locks(USERS_KEY):
                users = await self._load_users()
                await self._save_users([u for u in users if u.id != user_id])
        except StorageError as exc:
            logger.error("failed to roll back sign up", user_id=user_id, error_code=exc.code)
        else:
            logger.warning("rolled back sign up after session save failure", user_id=user_id)
