"""Validation outcomes returned by every validator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from trackfit.errors import ErrorCode, ValidationError
from trackfit.messages import message_for


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def ok(cls) -> Self:
        return cls(is_valid=True)

    @classmethod
    def fail(cls, code: ErrorCode) -> Self:
        return cls(is_valid=False, error=message_for(code), code=code)

    def raise_for(self, field: str) -> None:
        """Raise ValidationError tagged with ``field`` when the result is a failure."""
        if not self.is_valid:
            raise ValidationError(self.error or message_for(ErrorCode.VALIDATION_ERROR), field=field, code=self.code)
