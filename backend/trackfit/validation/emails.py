"""Email validation and normalization."""

from __future__ import annotations

from pydantic import EmailStr, TypeAdapter

from trackfit.errors import ErrorCode
from trackfit.validation.result import ValidationResult
from trackfit.validation.rules import EMAIL_MAX_LENGTH, EMAIL_MIN_LENGTH, EMAIL_PATTERN

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _has_email_shape(email: str) -> bool:
    try:
        _EMAIL_ADAPTER.validate_python(email)
    except ValueError:
        return False
    return True


def validate_email(email: str | None) -> ValidationResult:
    """Check an email address.

    The general shape check (email-validator via pydantic) and the stricter
    ASCII pattern must both pass.
    """
    if not email or not email.strip():
        return ValidationResult.fail(ErrorCode.REQUIRED)

    normalized = normalize_email(email)

    if len(normalized) < EMAIL_MIN_LENGTH or len(normalized) > EMAIL_MAX_LENGTH:
        return ValidationResult.fail(ErrorCode.INVALID_EMAIL)
    if not _has_email_shape(normalized):
        return ValidationResult.fail(ErrorCode.INVALID_EMAIL)
    if not EMAIL_PATTERN.match(normalized):
        return ValidationResult.fail(ErrorCode.INVALID_EMAIL)

    return ValidationResult.ok()


def validate_email_or_raise(email: str | None) -> str:
    """Validate and return the normalized email, or raise ValidationError(field="email")."""
    validate_email(email).raise_for("email")
    return normalize_email(email or "")
