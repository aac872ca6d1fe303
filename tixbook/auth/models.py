from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Supported roles."""

    CUSTOMER = "customer"
    OPERATOR = "operator"


@dataclass(frozen=True, slots=True)
class User:
    """Registered account. ``hashed_password`` is a bcrypt string, never plaintext."""

    username: str
    email: str
    hashed_password: str
    roles: tuple[Role, ...]
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity an authenticated request acts as."""

    username: str
    roles: tuple[Role, ...] = (Role.CUSTOMER,)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_operator(self) -> bool:
        return self.has_role(Role.OPERATOR)

    def can_act_for(self, username: str) -> bool:
        return self.username == username or self.is_operator
