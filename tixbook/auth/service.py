"""Auth service coordinating registration, login and token checks."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable
from datetime import datetime, timezone

from opentelemetry import trace
from opentelemetry.trace import Tracer

from tixbook.db.engine import DuplicateKeyError
from tixbook.security.passwords import InvalidPasswordError, PasswordHasher
from tixbook.security.tokens import TokenClaims, TokenService

from .models import Principal, Role, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base error for authentication failures."""


class DuplicateUsernameError(AuthError):
    """Raised when registering a username that is already taken."""


class UserNotFoundError(AuthError):
    """Raised when no account exists for the given username."""


class InvalidCredentialsError(AuthError):
    """Raised when the password does not match the stored hash."""


class InvalidRegistrationError(AuthError):
    """Raised when registration input is blank or cannot be hashed."""


def normalize_username(username: str) -> str:
    """Usernames are stored and looked up without surrounding whitespace."""

    return username.strip()


class AuthService:
    """Register accounts, verify credentials and issue session tokens."""

    def __init__(
        self,
        repository: UserRepository,
        *,
        password_hasher: PasswordHasher,
        token_service: TokenService,
        default_roles: Iterable[Role | str] = (Role.CUSTOMER,),
        operator_usernames: Iterable[str] = (),
        tracer: Tracer | None = None,
    ) -> None:
        self._repository = repository
        self._hasher = password_hasher
        self._tokens = token_service
        self._default_roles = tuple(Role(role) for role in default_roles)
        self._operator_usernames = frozenset(operator_usernames)
        self._dummy_hash: str | None = None
        self._tracer = tracer or trace.get_tracer(__name__)

    async def register(self, *, username: str, email: str, password: str) -> User:
        username = normalize_username(username)
        email = email.strip()
        with self._tracer.start_as_current_span("auth.register") as span:
            span.set_attribute("tixbook.username", username)
            if not username:
                raise InvalidRegistrationError("Username must not be empty")
            if not email:
                raise InvalidRegistrationError("Email must not be empty")

            if await self._repository.find_by_username(username) is not None:
                raise DuplicateUsernameError(f"Username '{username}' is already taken")

            try:
                hashed = await self._hasher.hash(password)
            except InvalidPasswordError as exc:
                raise InvalidRegistrationError(str(exc)) from exc

            user = User(
                username=username,
                email=email,
                hashed_password=hashed,
                roles=self._roles_for(username),
                created_at=datetime.now(timezone.utc),
            )
            try:
                # A concurrent registration may have passed the lookup above.
                await self._repository.insert_unique(user)
            except DuplicateKeyError as exc:
                raise DuplicateUsernameError(f"Username '{username}' is already taken") from exc

        logger.info("Registered user %s", username)
        return user

    async def login(self, *, username: str, password: str, now: datetime | None = None) -> str:
        """Verify credentials and return a signed session token."""
        username = normalize_username(username)
        with self._tracer.start_as_current_span("auth.login") as span:
            span.set_attribute("tixbook.username", username)
            user = await self._repository.find_by_username(username)
            if user is None:
                await self._hasher.verify(password, await self._get_dummy_hash())
                logger.info("Login failed for %s: user not found", username)
                raise UserNotFoundError(f"User '{username}' not found")

            if not await self._hasher.verify(password, user.hashed_password):
                logger.info("Login failed for %s: invalid credentials", username)
                raise InvalidCredentialsError("Invalid credentials")

            token = self._tokens.issue(user.username, now)

        logger.info("User %s logged in", username)
        return token

    def validate_token(self, token: str, username: str, now: datetime | None = None) -> TokenClaims:
        return self._tokens.validate(token, normalize_username(username), now)

    async def resolve_principal(self, token: str, now: datetime | None = None) -> Principal:
        """Return the principal a bearer token speaks for."""
        claims = self._tokens.decode(token, now)
        user = await self._repository.find_by_username(claims.subject)
        if user is None:
            raise UserNotFoundError(f"User '{claims.subject}' not found")
        return Principal(username=user.username, roles=user.roles)

    def _roles_for(self, username: str) -> tuple[Role, ...]:
        roles = list(self._default_roles)
        if username in self._operator_usernames and Role.OPERATOR not in roles:
            roles.append(Role.OPERATOR)
        return tuple(roles)

    async def _get_dummy_hash(self) -> str:
        # Hash of a random value so unknown users cost one bcrypt verify too.
        if self._dummy_hash is None:
            self._dummy_hash = await self._hasher.hash(secrets.token_urlsafe(16))
        return self._dummy_hash
