from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel


class StoreError(RuntimeError):
    """Base error for persistence failures."""


class DuplicateKeyError(StoreError):
    """Raised when an insert violates a unique-key constraint."""


class StoreUnavailableError(StoreError):
    """Raised when the database cannot be reached or fails mid-operation."""


def to_async_dsn(dsn: str) -> str:
    """Ensure a PostgreSQL DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


def create_engine(dsn: str) -> AsyncEngine:
    return create_async_engine(to_async_dsn(dsn), future=True)


@contextmanager
def unavailable_on_failure(operation: str) -> Iterator[None]:
    """Re-raise connectivity failures from the driver as ``StoreUnavailableError``."""

    try:
        yield
    except (OperationalError, InterfaceError, OSError) as exc:
        raise StoreUnavailableError(f"Store unavailable during {operation}") from exc


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create every table registered on ``SQLModel.metadata`` that is missing."""

    with unavailable_on_failure("schema creation"):
        async with engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)
