"""Account registration, login and principal resolution."""

from .models import Principal, Role, User
from .repository import UserRepository
from .service import (
    AuthError,
    AuthService,
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidRegistrationError,
    UserNotFoundError,
)

__all__ = [
    "AuthError",
    "AuthService",
    "DuplicateUsernameError",
    "InvalidCredentialsError",
    "InvalidRegistrationError",
    "Principal",
    "Role",
    "User",
    "UserNotFoundError",
    "UserRepository",
]
