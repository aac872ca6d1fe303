from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from opentelemetry import trace
from opentelemetry.trace import Tracer

from tixbook.auth.models import Principal

from .fares import FareStrategy, FixedFare
from .models import SeatRequest, Ticket, TicketDraft
from .repository import TicketRepository

logger = logging.getLogger(__name__)


class BookingError(RuntimeError):
    """Base error for booking issues."""


class TicketNotFoundError(BookingError):
    """Raised when a ticket could not be located."""


class InvalidBookingRequestError(BookingError):
    """Raised when a booking request is missing required fields."""


class TicketAccessDeniedError(BookingError):
    """Raised when the actor neither owns the ticket nor holds the operator role."""


class BookingService:
    """Ticket lifecycle: create, book, update, cancel and list.

    Every operation takes the acting principal. Owners may act on their own
    tickets; operators may act on any ticket and are the only ones allowed
    to list every ticket.
    """

    def __init__(
        self,
        repository: TicketRepository,
        *,
        fare_strategy: FareStrategy | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._repository = repository
        self._fares = fare_strategy or FixedFare()
        self._tracer = tracer or trace.get_tracer(__name__)

    async def create_ticket(
        self,
        *,
        username: str,
        train_name: str,
        source: str,
        destination: str,
        actor: Principal,
    ) -> Ticket:
        _ensure_can_act_for(actor, username)
        ticket = await self._repository.insert(
            TicketDraft(
                username=username,
                train_name=train_name,
                source=source,
                destination=destination,
                seat=None,
                price=Decimal("0"),
            )
        )
        logger.info("Ticket %s created for %s", ticket.id, username)
        return ticket

    async def book_ticket(self, *, username: str, request: SeatRequest, actor: Principal) -> Ticket:
        with self._tracer.start_as_current_span("booking.book") as span:
            span.set_attribute("tixbook.username", username)
            span.set_attribute("tixbook.actor", actor.username)
            if not username or not username.strip():
                raise InvalidBookingRequestError("Username is required to book a ticket")
            if not request.seat or not request.seat.strip():
                raise InvalidBookingRequestError("Seat is required to book a ticket")
            _ensure_can_act_for(actor, username)

            price = self._fares.quote(username, request)
            if price < 0:
                raise InvalidBookingRequestError("Fare must not be negative")

            ticket = await self._repository.insert(
                TicketDraft(
                    username=username,
                    train_name=request.train_name,
                    source=request.source,
                    destination=request.destination,
                    seat=request.seat.strip(),
                    price=price,
                )
            )
            span.set_attribute("tixbook.ticket_id", ticket.id)
        logger.info("Ticket %s booked for %s at %s", ticket.id, username, price)
        return ticket

    async def get_ticket(self, ticket_id: str, *, actor: Principal) -> Ticket:
        ticket = await self._repository.find_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        _ensure_can_act_for(actor, ticket.username)
        return ticket

    async def update_ticket(
        self,
        ticket_id: str,
        *,
        actor: Principal,
        train_name: str | None = None,
        source: str | None = None,
        destination: str | None = None,
    ) -> Ticket:
        """Change route fields only; owner, seat and price are left as booked."""
        current = await self.get_ticket(ticket_id, actor=actor)

        candidate = replace(
            current,
            train_name=train_name if train_name is not None else current.train_name,
            source=source if source is not None else current.source,
            destination=destination if destination is not None else current.destination,
            updated_at=datetime.now(timezone.utc),
        )
        updated = await self._repository.replace(candidate)
        if updated is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        logger.info("Ticket %s updated by %s", ticket_id, actor.username)
        return updated

    async def delete_ticket(self, ticket_id: str, *, actor: Principal) -> None:
        await self.get_ticket(ticket_id, actor=actor)
        deleted = await self._repository.delete_by_id(ticket_id)
        if not deleted:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        logger.info("Ticket %s cancelled by %s", ticket_id, actor.username)

    async def list_tickets_for_user(self, username: str, *, actor: Principal) -> list[Ticket]:
        _ensure_can_act_for(actor, username)
        return list(await self._repository.find_by_username(username))

    async def list_all_tickets(self, *, actor: Principal) -> list[Ticket]:
        if not actor.is_operator:
            raise TicketAccessDeniedError("Listing all tickets requires the operator role")
        return list(await self._repository.find_all())


def _ensure_can_act_for(actor: Principal, username: str) -> None:
    if not actor.can_act_for(username):
        raise TicketAccessDeniedError(f"{actor.username} may not act on tickets owned by {username}")
