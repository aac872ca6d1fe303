"""Stateless, signed session tokens.

Tokens are compact JWS strings (``header.payload.signature``) carrying the
``sub``, ``iat`` and ``exp`` claims. Nothing is stored server side, so
rotating the signing secret is the only way to invalidate outstanding tokens.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from tixbook.core.config import Settings

DEFAULT_TOKEN_TTL = timedelta(hours=10)


class TokenError(RuntimeError):
    """Base error for session token failures."""


class BadSignatureError(TokenError):
    """Raised when a token is malformed or was not signed with our secret."""


class TokenExpiredError(TokenError):
    """Raised when a token is presented at or after its expiration time."""


class SubjectMismatchError(TokenError):
    """Raised when a valid token belongs to a different user."""


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified claims extracted from a session token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


def _as_utc(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


class TokenService:
    """Issue and validate HMAC signed session tokens."""

    def __init__(self, secret_key: str, *, ttl: timedelta = DEFAULT_TOKEN_TTL, algorithm: str = "HS256") -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._ttl = ttl
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.jwt_secret_key.get_secret_value(),
            ttl=timedelta(minutes=settings.access_token_expire_minutes),
            algorithm=settings.jwt_algorithm,
        )

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, username: str, now: datetime | None = None) -> str:
        issued_at = _as_utc(now).timestamp()
        # NumericDates are whole seconds; exp rounds up so the window is never short.
        claims = {
            "sub": username,
            "iat": int(issued_at),
            "exp": math.ceil(issued_at + self._ttl.total_seconds()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str, now: datetime | None = None) -> TokenClaims:
        """Verify the signature, then the expiry, and return the claims.

        Claims are never inspected before the signature check succeeds.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise BadSignatureError("Token signature verification failed") from exc

        claims = _parse_claims(payload)
        if _as_utc(now) >= claims.expires_at:
            raise TokenExpiredError(f"Token expired at {claims.expires_at.isoformat()}")
        return claims

    def validate(self, token: str, expected_username: str, now: datetime | None = None) -> TokenClaims:
        claims = self.decode(token, now)
        if claims.subject != expected_username:
            raise SubjectMismatchError("Token subject does not match the requested user")
        return claims


def _parse_claims(payload: dict[str, Any]) -> TokenClaims:
    subject = payload.get("sub")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(subject, str) or not subject:
        raise BadSignatureError("Token is missing a subject")
    for value in (issued_at, expires_at):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise BadSignatureError("Token timestamps are malformed")
    return TokenClaims(
        subject=subject,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
    )
