from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from tixbook.db.engine import unavailable_on_failure
from tixbook.db.models import TicketTable

from .models import Ticket, TicketDraft


class TicketRepository:
    """Persistence helper wrapping the ``tickets`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, draft: TicketDraft) -> Ticket:
        now = datetime.now(timezone.utc)
        row = TicketTable(
            username=draft.username,
            train_name=draft.train_name,
            source=draft.source,
            destination=draft.destination,
            seat=draft.seat,
            price=draft.price,
            created_at=now,
            updated_at=now,
        )
        with unavailable_on_failure("ticket insert"):
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        return self._table_to_ticket(row)

    async def find_by_id(self, ticket_id: str) -> Ticket | None:
        with unavailable_on_failure("ticket lookup"):
            async with self._session_factory() as session:
                row = await session.get(TicketTable, ticket_id)
        if row is None:
            return None
        return self._table_to_ticket(row)

    async def exists_by_id(self, ticket_id: str) -> bool:
        return await self.find_by_id(ticket_id) is not None

    async def find_by_username(self, username: str) -> Sequence[Ticket]:
        with unavailable_on_failure("ticket listing"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(TicketTable)
                    .where(TicketTable.username == username)
                    .order_by(TicketTable.created_at.asc())
                )
                rows = result.scalars().all()
        return [self._table_to_ticket(row) for row in rows]

    async def find_all(self) -> Sequence[Ticket]:
        with unavailable_on_failure("ticket listing"):
            async with self._session_factory() as session:
                result = await session.execute(select(TicketTable).order_by(TicketTable.created_at.asc()))
                rows = result.scalars().all()
        return [self._table_to_ticket(row) for row in rows]

    async def replace(self, ticket: Ticket) -> Ticket | None:
        """Overwrite the stored row with ``ticket``. The owner is never rewritten."""

        with unavailable_on_failure("ticket update"):
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.get(TicketTable, ticket.id, with_for_update=True)
                    if row is None:
                        return None
                    row.train_name = ticket.train_name
                    row.source = ticket.source
                    row.destination = ticket.destination
                    row.seat = ticket.seat
                    row.price = ticket.price
                    row.updated_at = ticket.updated_at
                return self._table_to_ticket(row)

    async def delete_by_id(self, ticket_id: str) -> bool:
        with unavailable_on_failure("ticket delete"):
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.get(TicketTable, ticket_id)
                    if row is None:
                        return False
                    await session.delete(row)
        return True

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            username=row.username,
            train_name=row.train_name,
            source=row.source,
            destination=row.destination,
            seat=row.seat,
            price=Decimal(str(row.price)),
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
