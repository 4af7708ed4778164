"""Auth settings: rate limiting, session lifetime and password hashing."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # Failed sign-ins allowed per email before the window locks
    max_login_attempts: int = Field(default=3, ge=1)

    rate_limit_window_ms: int = Field(default=15 * 60 * 1000, gt=0)

    session_timeout_ms: int = Field(default=7 * 24 * 60 * 60 * 1000, gt=0)

    # "sha512" keeps stored-hash compatibility; "pbkdf2" is opt-in and not
    # able to verify hashes written by "sha512" (or vice versa)
    password_hasher: Literal["sha512", "pbkdf2"] = "sha512"

    hash_iterations: int = Field(default=10_000, ge=1)

    # Salt length in bytes
    salt_length: int = Field(default=16, ge=1)

    # Digest length in hex characters
    hash_length: int = Field(default=64, ge=2, le=128)
