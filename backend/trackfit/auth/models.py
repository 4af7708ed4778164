"""User, session and rate-limit records."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class AuthProvider(StrEnum):
    APPLE = "apple"
    GOOGLE = "google"


class User(BaseModel, frozen=True):
    """Public user record. Never carries the password hash."""

    id: str
    name: str
    username: str
    email: str
    created_at: datetime
    active_days: int = Field(default=1, ge=1)  # consecutive-day access streak
    last_access_date: str  # ISO-8601 date-time


class StoredUser(User, frozen=True):
    """User record as persisted in the user set."""

    password_hash: str = Field(min_length=1)  # "<hex-salt>:<hex-digest>"

    def to_public(self) -> User:
        return public_user(self)


def public_user(user: User) -> User:
    """Project any user record onto the public fields, dropping the hash if present."""
    return User.model_validate(user.model_dump(include=set(User.model_fields)))


class SessionRecord(BaseModel):
    """The single current-user session on this device."""

    user: User
    expires_at: int  # epoch milliseconds


class RateLimitRecord(BaseModel):
    """Failed sign-in attempts for one email inside the current window."""

    attempts: int = Field(default=0, ge=0)
    reset_at: int  # epoch milliseconds
