"""Local authentication: hashing, rate limiting, sessions and the auth service."""

from trackfit.auth.models import AuthProvider, RateLimitRecord, SessionRecord, StoredUser, User
from trackfit.auth.password import IteratedSha512Hasher, PasswordHasher, Pbkdf2Hasher, get_hasher
from trackfit.auth.rate_limiter import RateLimiter
from trackfit.auth.service import AuthService
from trackfit.auth.session_manager import SessionManager
from trackfit.auth.settings import AuthSettings

__all__ = [
    "AuthProvider",
    "AuthService",
    "AuthSettings",
    "IteratedSha512Hasher",
    "PasswordHasher",
    "Pbkdf2Hasher",
    "RateLimitRecord",
    "RateLimiter",
    "SessionManager",
    "SessionRecord",
    "StoredUser",
    "User",
    "get_hasher",
]
