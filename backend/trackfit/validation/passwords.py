"""Password strength validation.

Checks run in a fixed order and stop at the first failure:
empty -> length -> denylist -> character classes -> personal info -> entropy.

Entropy is estimated as ``len(password) * log2(charset)``, where the charset
adds 26/26/10/32 for each character class present. Strength tier and score
are reported for UX feedback only; the entropy floor is the only numeric
accept/reject rule.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from trackfit.errors import ErrorCode
from trackfit.validation.result import ValidationResult
from trackfit.validation.rules import COMMON_PASSWORDS, SPECIAL_CHARACTERS, default_password_policy

if TYPE_CHECKING:
    from trackfit.validation.rules import PasswordPolicy

_SPECIAL_SET = frozenset(SPECIAL_CHARACTERS)


class PasswordStrength(StrEnum):
    WEAK = "weak"
    FAIR = "fair"
    GOOD = "good"
    STRONG = "strong"


@dataclass(frozen=True)
class PasswordValidationResult(ValidationResult):
    strength: PasswordStrength | None = None
    score: int | None = None


def _has_upper(password: str) -> bool:
    return any("A" <= c <= "Z" for c in password)


def _has_lower(password: str) -> bool:
    return any("a" <= c <= "z" for c in password)


def _has_digit(password: str) -> bool:
    return any("0" <= c <= "9" for c in password)


def _has_special(password: str) -> bool:
    return any(c in _SPECIAL_SET for c in password)


def calculate_entropy(password: str) -> float:
    charset_size = 0
    if _has_lower(password):
        charset_size += 26
    if _has_upper(password):
        charset_size += 26
    if _has_digit(password):
        charset_size += 10
    if _has_special(password):
        charset_size += 32
    if charset_size == 0:
        return 0.0
    return len(password) * math.log2(charset_size)


def calculate_strength(entropy: float) -> PasswordStrength:
    if entropy < 40:
        return PasswordStrength.WEAK
    if entropy < 60:
        return PasswordStrength.FAIR
    if entropy < 80:
        return PasswordStrength.GOOD
    return PasswordStrength.STRONG


def calculate_score(password: str, entropy: float) -> int:
    """Blend length, class bonuses, entropy and character variety into 0-100."""
    score = min(len(password) * 4, 40)
    if _has_upper(password):
        score += 10
    if _has_lower(password):
        score += 10
    if _has_digit(password):
        score += 10
    if _has_special(password):
        score += 15
    score += min(entropy / 2, 25)
    score += min(len(set(password)) * 2, 20)
    return round(min(score, 100))


def _contains_personal_info(
    password: str,
    email: str | None,
    username: str | None,
    name: str | None,
) -> bool:
    lowered = password.lower()
    fragments = [
        email.split("@")[0] if email else "",
        username or "",
        name or "",
    ]
    return any(fragment and fragment.lower() in lowered for fragment in fragments)


def validate_password(
    password: str | None,
    *,
    email: str | None = None,
    username: str | None = None,
    name: str | None = None,
    policy: PasswordPolicy | None = None,
) -> PasswordValidationResult:
    """Validate password strength, using email/username/name as personal-info context."""
    policy = policy or default_password_policy()

    if not password:
        return PasswordValidationResult.fail(ErrorCode.REQUIRED)
    if len(password) < policy.min_length:
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_TOO_SHORT)
    if len(password) > policy.max_length:
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_TOO_LONG)
    if password.lower() in COMMON_PASSWORDS:
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_COMMON)
    if policy.require_uppercase and not _has_upper(password):
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_MISSING_UPPERCASE)
    if policy.require_lowercase and not _has_lower(password):
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_MISSING_LOWERCASE)
    if policy.require_number and not _has_digit(password):
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_MISSING_NUMBER)
    if policy.require_special_char and not _has_special(password):
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_MISSING_SPECIAL)
    if _contains_personal_info(password, email, username, name):
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_PERSONAL_INFO)

    entropy = calculate_entropy(password)
    if entropy < policy.min_entropy:
        return PasswordValidationResult.fail(ErrorCode.PASSWORD_TOO_WEAK)

    return PasswordValidationResult(
        is_valid=True,
        strength=calculate_strength(entropy),
        score=calculate_score(password, entropy),
    )


def validate_password_or_raise(
    password: str | None,
    *,
    email: str | None = None,
    username: str | None = None,
    name: str | None = None,
    policy: PasswordPolicy | None = None,
) -> PasswordValidationResult:
    result = validate_password(password, email=email, username=username, name=name, policy=policy)
    result.raise_for("password")
    return result


def validate_password_format(password: str | None, policy: PasswordPolicy | None = None) -> ValidationResult:
    """Shape check used at sign-in: present and not over the length cap. No strength rules."""
    policy = policy or default_password_policy()
    if not password:
        return ValidationResult.fail(ErrorCode.REQUIRED)
    if len(password) > policy.max_length:
        return ValidationResult.fail(ErrorCode.PASSWORD_TOO_LONG)
    return ValidationResult.ok()


def validate_password_confirmation(password: str, confirm_password: str) -> ValidationResult:
    if password != confirm_password:
        return ValidationResult.fail(ErrorCode.PASSWORD_MISMATCH)
    return ValidationResult.ok()
