"""Security utilities for the Tixbook application."""

from .passwords import BcryptHasher, InvalidPasswordError, PasswordHasher
from .tokens import (
    BadSignatureError,
    SubjectMismatchError,
    TokenClaims,
    TokenError,
    TokenExpiredError,
    TokenService,
)

__all__ = [
    "BadSignatureError",
    "BcryptHasher",
    "InvalidPasswordError",
    "PasswordHasher",
    "SubjectMismatchError",
    "TokenClaims",
    "TokenError",
    "TokenExpiredError",
    "TokenService",
]
