from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class TicketDraft:
    """Ticket content before the store assigns an identifier."""

    username: str
    train_name: str | None = None
    source: str | None = None
    destination: str | None = None
    seat: str | None = None
    price: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class Ticket:
    """Stored ticket snapshot. Changes are made by replacing the whole value."""

    id: str
    username: str
    train_name: str | None
    source: str | None
    destination: str | None
    seat: str | None
    price: Decimal
    created_at: datetime
    updated_at: datetime

    @property
    def is_booked(self) -> bool:
        return self.seat is not None


@dataclass(frozen=True, slots=True)
class SeatRequest:
    """Input to a booking: the seat wanted and, optionally, the route."""

    seat: str
    train_name: str | None = None
    source: str | None = None
    destination: str | None = None
