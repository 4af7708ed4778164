"""Error taxonomy shared by the validation, storage and auth layers.

Every error carries a machine-readable ``code`` (the stable contract) and a
user-facing ``message``. ``context`` holds structured, non-sensitive details
for logging; raw passwords never go into it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    # authentication
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    USERNAME_EXISTS = "USERNAME_EXISTS"
    PROVIDER_SIGN_IN_ERROR = "PROVIDER_SIGN_IN_ERROR"
    HASH_ERROR = "HASH_ERROR"
    VERIFY_ERROR = "VERIFY_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REQUIRED = "REQUIRED"
    INVALID_EMAIL = "INVALID_EMAIL"
    USERNAME_TOO_SHORT = "USERNAME_TOO_SHORT"
    USERNAME_TOO_LONG = "USERNAME_TOO_LONG"
    INVALID_USERNAME = "INVALID_USERNAME"
    USERNAME_CONSECUTIVE_SPECIAL = "USERNAME_CONSECUTIVE_SPECIAL"
    USERNAME_LEADING_SPECIAL = "USERNAME_LEADING_SPECIAL"
    USERNAME_TRAILING_SPECIAL = "USERNAME_TRAILING_SPECIAL"
    USERNAME_RESERVED = "USERNAME_RESERVED"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    PASSWORD_TOO_LONG = "PASSWORD_TOO_LONG"
    PASSWORD_COMMON = "PASSWORD_COMMON"
    PASSWORD_MISSING_UPPERCASE = "PASSWORD_MISSING_UPPERCASE"
    PASSWORD_MISSING_LOWERCASE = "PASSWORD_MISSING_LOWERCASE"
    PASSWORD_MISSING_NUMBER = "PASSWORD_MISSING_NUMBER"
    PASSWORD_MISSING_SPECIAL = "PASSWORD_MISSING_SPECIAL"
    PASSWORD_PERSONAL_INFO = "PASSWORD_PERSONAL_INFO"
    PASSWORD_TOO_WEAK = "PASSWORD_TOO_WEAK"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"
    NAME_TOO_SHORT = "NAME_TOO_SHORT"
    NAME_TOO_LONG = "NAME_TOO_LONG"

    # storage
    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_SAVE_ERROR = "STORAGE_SAVE_ERROR"
    STORAGE_LOAD_ERROR = "STORAGE_LOAD_ERROR"
    STORAGE_DELETE_ERROR = "STORAGE_DELETE_ERROR"
    STORAGE_CORRUPTED = "STORAGE_CORRUPTED"


class AppError(Exception):
    """Base class for every error raised by trackfit."""

    default_code = ErrorCode.AUTH_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context or {}


class AuthenticationError(AppError):
    """Credential or identity failure."""


class HashError(AuthenticationError):
    default_code = ErrorCode.HASH_ERROR


class VerifyError(AuthenticationError):
    default_code = ErrorCode.VERIFY_ERROR


class ValidationError(AppError):
    """Untrusted input failed a shape check. ``field`` names the offending input."""

    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: str,
        code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, context)
        self.field = field


class StorageError(AppError):
    """Persistence failure for a single storage key."""

    default_code = ErrorCode.STORAGE_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, {"key": key, **(context or {})})
        self.key = key


class RateLimitError(AppError):
    """Too many failed sign-in attempts inside the current window."""

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str, retry_after_ms: int, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorCode.RATE_LIMIT_EXCEEDED, context)
        self.retry_after_ms = retry_after_ms
