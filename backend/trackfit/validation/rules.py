"""Validation limits, patterns and reference sets."""

import re
from functools import cache

from pydantic_settings import BaseSettings

EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
USERNAME_CONSECUTIVE_SPECIAL = re.compile(r"[_-]{2,}")
USERNAME_EDGE_CHARACTERS = ("_", "-")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50

# Symbols counted toward the special-character class (32 in the entropy charset).
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

RESERVED_USERNAMES = frozenset(
    {
        "admin",
        "administrator",
        "api",
        "guest",
        "help",
        "mod",
        "moderator",
        "null",
        "root",
        "staff",
        "support",
        "system",
        "test",
        "trackfit",
        "undefined",
        "user",
    }
)

COMMON_PASSWORDS = frozenset(
    {
        "123456",
        "12345678",
        "123456789",
        "1234567890",
        "abc123",
        "admin123",
        "changeme",
        "football",
        "iloveyou",
        "letmein",
        "monkey",
        "passw0rd",
        "password",
        "password1",
        "password123",
        "password!",
        "p@ssw0rd",
        "p@ssword1",
        "qwerty",
        "qwerty123",
        "qwertyuiop",
        "senha123",
        "senha@123",
        "sunshine",
        "trustno1",
        "welcome",
        "welcome1",
        "welcome@123",
    }
)


class PasswordPolicy(BaseSettings):
    model_config = {"env_prefix": "PASSWORD_"}

    min_length: int = 8
    max_length: int = 128
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_number: bool = True
    require_special_char: bool = True
    min_entropy: float = 40


@cache
def default_password_policy() -> PasswordPolicy:
    return PasswordPolicy()
