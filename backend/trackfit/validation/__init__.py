"""Pure validators for untrusted credential input."""

from trackfit.validation.emails import normalize_email, validate_email, validate_email_or_raise
from trackfit.validation.names import validate_name, validate_name_or_raise
from trackfit.validation.passwords import (
    PasswordStrength,
    PasswordValidationResult,
    calculate_entropy,
    validate_password,
    validate_password_confirmation,
    validate_password_format,
    validate_password_or_raise,
)
from trackfit.validation.result import ValidationResult
from trackfit.validation.rules import PasswordPolicy
from trackfit.validation.usernames import normalize_username, validate_username, validate_username_or_raise

__all__ = [
    "PasswordPolicy",
    "PasswordStrength",
    "PasswordValidationResult",
    "ValidationResult",
    "calculate_entropy",
    "normalize_email",
    "normalize_username",
    "validate_email",
    "validate_email_or_raise",
    "validate_name",
    "validate_name_or_raise",
    "validate_password",
    "validate_password_confirmation",
    "validate_password_format",
    "validate_password_or_raise",
    "validate_username",
    "validate_username_or_raise",
]
