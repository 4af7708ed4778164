"""Username validation. Case is preserved; only surrounding whitespace is removed."""

from __future__ import annotations

from trackfit.errors import ErrorCode
from trackfit.validation.result import ValidationResult
from trackfit.validation.rules import (
    RESERVED_USERNAMES,
    USERNAME_CONSECUTIVE_SPECIAL,
    USERNAME_EDGE_CHARACTERS,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_PATTERN,
)


def normalize_username(username: str) -> str:
    return username.strip()


def validate_username(username: str | None) -> ValidationResult:
    if not username or not username.strip():
        return ValidationResult.fail(ErrorCode.REQUIRED)

    trimmed = normalize_username(username)

    if len(trimmed) < USERNAME_MIN_LENGTH:
        return ValidationResult.fail(ErrorCode.USERNAME_TOO_SHORT)
    if len(trimmed) > USERNAME_MAX_LENGTH:
        return ValidationResult.fail(ErrorCode.USERNAME_TOO_LONG)
    if not USERNAME_PATTERN.match(trimmed):
        return ValidationResult.fail(ErrorCode.INVALID_USERNAME)
    if USERNAME_CONSECUTIVE_SPECIAL.search(trimmed):
        return ValidationResult.fail(ErrorCode.USERNAME_CONSECUTIVE_SPECIAL)
    if trimmed.startswith(USERNAME_EDGE_CHARACTERS):
        return ValidationResult.fail(ErrorCode.USERNAME_LEADING_SPECIAL)
    if trimmed.endswith(USERNAME_EDGE_CHARACTERS):
        return ValidationResult.fail(ErrorCode.USERNAME_TRAILING_SPECIAL)
    if trimmed.lower() in RESERVED_USERNAMES:
        return ValidationResult.fail(ErrorCode.USERNAME_RESERVED)

    return ValidationResult.ok()


def validate_username_or_raise(username: str | None) -> str:
    validate_username(username).raise_for("username")
    return normalize_username(username or "")
