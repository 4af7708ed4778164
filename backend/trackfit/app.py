"""Composition root: build the stores and auth services once, then pass them around."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from trackfit.auth.password import get_hasher
from trackfit.auth.rate_limiter import RateLimiter
from trackfit.auth.service import AuthService
from trackfit.auth.session_manager import SessionManager
from trackfit.auth.settings import AuthSettings
from trackfit.logging import setup_logging
from trackfit.storage.file_store import FileKeyValueStore
from trackfit.storage.locks import KeyedLock
from trackfit.storage.settings import StorageSettings

if TYPE_CHECKING:
    from pathlib import Path

    from trackfit.storage.base import KeyValueStore
    from trackfit.validation.rules import PasswordPolicy

logger = structlog.get_logger()


@dataclass(frozen=True)
class Stores:
    plain: KeyValueStore
    secure: KeyValueStore  # users, session, rate-limit records


def open_stores(settings: StorageSettings | None = None) -> Stores:
    settings = settings or StorageSettings()
    return Stores(
        plain=FileKeyValueStore(settings.plain_path, settings.key_prefix),
        secure=FileKeyValueStore.secure(settings.secure_path, settings.key_prefix),
    )


def create_auth_service(
    store: KeyValueStore,
    auth_settings: AuthSettings | None = None,
    password_policy: PasswordPolicy | None = None,
) -> AuthService:
    """Wire the hasher, session manager and rate limiter around ``store``."""
    auth_settings = auth_settings or AuthSettings()
    locks = KeyedLock()
    hasher = get_hasher(
        auth_settings.password_hasher,
        iterations=auth_settings.hash_iterations,
        salt_length=auth_settings.salt_length,
        hash_length=auth_settings.hash_length,
    )
    return AuthService(
        store,
        SessionManager(store, timeout_ms=auth_settings.session_timeout_ms),
        RateLimiter(
            store,
            max_attempts=auth_settings.max_login_attempts,
            window_ms=auth_settings.rate_limit_window_ms,
            locks=locks,
        ),
        password_hasher=hasher,
        password_policy=password_policy,
        locks=locks,
    )


def bootstrap(
    log_dir: Path | str | None = None,
    storage_settings: StorageSettings | None = None,
    auth_settings: AuthSettings | None = None,
) -> tuple[Stores, AuthService]:
    """Configure logging, open the stores and build the auth service for a host app."""
    setup_logging(log_dir=log_dir)
    auth_settings = auth_settings or AuthSettings()
    stores = open_stores(storage_settings)
    auth_service = create_auth_service(stores.secure, auth_settings)
    logger.info("auth services ready", hasher=auth_settings.password_hasher)
    return stores, auth_service
