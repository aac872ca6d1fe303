"""SQLModel table definitions for the Tixbook data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, JSON, Numeric, String
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class UserTable(SQLModel, table=True):
    """Registered accounts. ``username`` carries the unique-key constraint."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    username: str = Field(sa_column=Column(String(150), nullable=False, unique=True, index=True))
    email: str = Field(sa_column=Column(String(255), nullable=False))
    hashed_password: str = Field(sa_column=Column(String(255), nullable=False))
    roles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Train ticket reservations."""

    __tablename__ = "tickets"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    username: str = Field(sa_column=Column(String(150), nullable=False, index=True))
    train_name: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    source: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    destination: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    seat: str | None = Field(default=None, sa_column=Column(String(50), nullable=True))
    price: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(10, 2), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
