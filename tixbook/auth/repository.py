from __future__ import annotations

from datetime import timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from tixbook.db.engine import DuplicateKeyError, unavailable_on_failure
from tixbook.db.models import UserTable

from .models import Role, User


class UserRepository:
    """Credential store backed by the ``users`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_username(self, username: str) -> User | None:
        with unavailable_on_failure("user lookup"):
            async with self._session_factory() as session:
                result = await session.execute(select(UserTable).where(UserTable.username == username))
                row = result.scalars().first()
        if row is None:
            return None
        return self._table_to_user(row)

    async def insert_unique(self, user: User) -> User:
        """Insert ``user``, relying on the unique constraint to reject duplicates."""

        row = UserTable(
            username=user.username,
            email=user.email,
            hashed_password=user.hashed_password,
            roles=[role.value for role in user.roles],
            created_at=user.created_at,
        )
        try:
            with unavailable_on_failure("user insert"):
                async with self._session_factory() as session:
                    async with session.begin():
                        session.add(row)
        except IntegrityError as exc:
            raise DuplicateKeyError(f"User {user.username!r} already exists") from exc
        return user

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return User(
            username=row.username,
            email=row.email,
            hashed_password=row.hashed_password,
            roles=tuple(Role(value) for value in row.roles or ()),
            created_at=created_at,
        )
