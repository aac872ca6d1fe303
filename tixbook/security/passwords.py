"""Password hashing: protocol and the bcrypt implementation.

bcrypt is CPU-bound, so both operations run off the event loop through
``anyio.to_thread.run_sync`` and concurrent requests are not blocked.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

BCRYPT_MAX_PASSWORD_BYTES = 72


class InvalidPasswordError(ValueError):
    """Raised when a plaintext password cannot be hashed."""


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    """Adaptive bcrypt hasher with a configurable cost factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    async def hash(self, plain: str) -> str:
        encoded = _encode_plaintext(plain)
        salt = bcrypt.gensalt(rounds=self._rounds)
        return await to_thread.run_sync(lambda: bcrypt.hashpw(encoded, salt).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False for malformed hashes rather than propagating a ValueError."""
        if not hashed:
            return False
        encoded_plain = plain.encode("utf-8")
        encoded_hash = hashed.encode("utf-8")
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
        except ValueError:
            return False


def _encode_plaintext(plain: str) -> bytes:
    if not plain:
        raise InvalidPasswordError("Password must not be empty")
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise InvalidPasswordError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return encoded
