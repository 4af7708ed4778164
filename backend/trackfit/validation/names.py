"""Display-name validation."""

from __future__ import annotations

from trackfit.errors import ErrorCode
from trackfit.validation.result import ValidationResult
from trackfit.validation.rules import NAME_MAX_LENGTH, NAME_MIN_LENGTH


def validate_name(name: str | None) -> ValidationResult:
    trimmed = (name or "").strip()
    if not trimmed:
        return ValidationResult.fail(ErrorCode.REQUIRED)
    if len(trimmed) < NAME_MIN_LENGTH:
        return ValidationResult.fail(ErrorCode.NAME_TOO_SHORT)
    if len(trimmed) > NAME_MAX_LENGTH:
        return ValidationResult.fail(ErrorCode.NAME_TOO_LONG)
    return ValidationResult.ok()


def validate_name_or_raise(name: str | None) -> str:
    validate_name(name).raise_for("name")
    return (name or "").strip()
