"""Password hashing: protocol, iterated SHA-512 (default) and PBKDF2 (opt-in).

Stored hashes have the shape ``"<hex-salt>:<hex-digest>"``.

IteratedSha512Hasher derives the key by hex-encoding ``utf8(password) + salt``
and re-hashing the hex text with SHA-512 ``iterations`` times, keeping the
first ``hash_length`` hex characters. The truncated digest is weaker than a
standard KDF and is kept for compatibility with hashes already stored on
devices. Those hashes were built from the low byte of each UTF-16 code
unit, which equals UTF-8 only for ASCII: a stored hash of a non-ASCII
password will not verify here.

Pbkdf2Hasher (PBKDF2-HMAC-SHA512) keeps the same shape and iteration knob
but cannot verify hashes written by the SHA-512 scheme.

Both are CPU-bound and run off the event loop using anyio.to_thread.run_sync().
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import structlog
from anyio import to_thread

from trackfit.errors import ErrorCode, HashError, VerifyError
from trackfit.messages import message_for

logger = structlog.get_logger()

DEFAULT_ITERATIONS = 10_000
DEFAULT_SALT_LENGTH = 16  # bytes
DEFAULT_HASH_LENGTH = 64  # hex characters

_SEPARATOR = ":"


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


def generate_salt(length: int = DEFAULT_SALT_LENGTH) -> str:
    """Return ``length`` cryptographically random bytes as hex."""
    return secrets.token_hex(length)


def derive_key(
    password: str,
    salt: str,
    iterations: int = DEFAULT_ITERATIONS,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> str:
    digest = (password.encode("utf-8") + bytes.fromhex(salt)).hex()
    for _ in range(iterations):
        digest = hashlib.sha512(digest.encode("ascii")).hexdigest()
    return digest[:hash_length]


def _split_hash(hashed: str) -> tuple[str, str] | None:
    """Return (salt, digest) or None when the stored value is malformed."""
    salt, separator, digest = hashed.partition(_SEPARATOR)
    if not separator or not salt or not digest:
        return None
    try:
        bytes.fromhex(salt)
    except ValueError:
        return None
    return salt, digest


class _SaltedHasher(ABC):
    def __init__(
        self,
        iterations: int = DEFAULT_ITERATIONS,
        salt_length: int = DEFAULT_SALT_LENGTH,
        hash_length: int = DEFAULT_HASH_LENGTH,
    ) -> None:
        self._iterations = iterations
        self._salt_length = salt_length
        self._hash_length = hash_length

    @abstractmethod
    def _derive(self, plain: str, salt: str) -> str: ...

    async def hash(self, plain: str) -> str:
        # Chained exceptions are dropped: a UnicodeEncodeError would carry the password.
        try:
            salt = generate_salt(self._salt_length)
            digest = await to_thread.run_sync(self._derive, plain, salt)
        except (OSError, ValueError) as exc:
            logger.error("failed to hash password", error_type=type(exc).__name__)
            raise HashError(message_for(ErrorCode.HASH_ERROR)) from None
        return f"{salt}{_SEPARATOR}{digest}"

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False for malformed hashes rather than raising."""
        parts = _split_hash(hashed)
        if parts is None:
            return False
        salt, stored_digest = parts
        try:
            digest = await to_thread.run_sync(self._derive, plain, salt)
        except (OSError, ValueError) as exc:
            logger.error("failed to verify password", error_type=type(exc).__name__)
            raise VerifyError(message_for(ErrorCode.VERIFY_ERROR)) from None
        return hmac.compare_digest(digest.encode("utf-8"), stored_digest.encode("utf-8"))


class IteratedSha512Hasher(_SaltedHasher):
    """Default hasher: iterated SHA-512 over hex text, truncated digest."""

    def _derive(self, plain: str, salt: str) -> str:
        return derive_key(plain, salt, self._iterations, self._hash_length)


class Pbkdf2Hasher(_SaltedHasher):
    """PBKDF2-HMAC-SHA512 with the same ``salt:hash`` shape."""

    def _derive(self, plain: str, salt: str) -> str:
        key = hashlib.pbkdf2_hmac(
            "sha512",
            plain.encode("utf-8"),
            bytes.fromhex(salt),
            self._iterations,
            dklen=(self._hash_length + 1) // 2,
        )
        return key.hex()[: self._hash_length]


def get_hasher(
    name: str = "sha512",
    *,
    iterations: int = DEFAULT_ITERATIONS,
    salt_length: int = DEFAULT_SALT_LENGTH,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> PasswordHasher:
    """Return a PasswordHasher by name ("sha512" or "pbkdf2")."""
    if name == "sha512":
        return IteratedSha512Hasher(iterations, salt_length, hash_length)
    if name == "pbkdf2":
        return Pbkdf2Hasher(iterations, salt_length, hash_length)
    raise ValueError(f"Unknown password hasher: {name!r}")
