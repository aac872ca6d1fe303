from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from tixbook.auth.models import Principal, Role
from tixbook.auth.service import AuthService
from tixbook.tickets.fares import FixedFare
from tixbook.tickets.models import SeatRequest, Ticket
from tixbook.tickets.repository import TicketRepository
from tixbook.tickets.service import (
    BookingService,
    InvalidBookingRequestError,
    TicketAccessDeniedError,
    TicketNotFoundError,
)

ALICE = Principal("alice", (Role.CUSTOMER,))
BOB = Principal("bob", (Role.CUSTOMER,))
OPS = Principal("ops", (Role.CUSTOMER, Role.OPERATOR))


def _make_ticket(*, username: str = "alice", seat: str | None = "7C", price: Decimal = Decimal("200.00")) -> Ticket:
    now = datetime.now(timezone.utc)
    return Ticket(
        id="t-1",
        username=username,
        train_name="Express1",
        source="A",
        destination="B",
        seat=seat,
        price=price,
        created_at=now,
        updated_at=now,
    )


class DummyRepository:
    def __init__(self):
        self.insert = AsyncMock()
        self.find_by_id = AsyncMock(return_value=None)
        self.find_by_username = AsyncMock(return_value=[])
        self.find_all = AsyncMock(return_value=[])
        self.replace = AsyncMock()
        self.delete_by_id = AsyncMock(return_value=True)
        self.exists_by_id = AsyncMock(return_value=False)


@pytest.mark.asyncio
async def test_create_ticket_starts_unbooked(booking_service: BookingService):
    ticket = await booking_service.create_ticket(
        username="alice", train_name="Express1", source="A", destination="B", actor=ALICE
    )

    assert ticket.id
    assert ticket.seat is None
    assert ticket.price == Decimal("0")
    assert not ticket.is_booked


@pytest.mark.asyncio
async def test_create_ticket_for_someone_else_is_denied(booking_service: BookingService):
    with pytest.raises(TicketAccessDeniedError):
        await booking_service.create_ticket(
            username="alice", train_name="Express1", source="A", destination="B", actor=BOB
        )


@pytest.mark.asyncio
async def test_book_ticket_assigns_seat_and_fixed_fare(booking_service: BookingService):
    ticket = await booking_service.book_ticket(username="alice", request=SeatRequest(seat="12A"), actor=ALICE)

    assert ticket.seat == "12A"
    assert ticket.price == Decimal("200.0")
    assert ticket.is_booked


@pytest.mark.asyncio
async def test_book_ticket_uses_fare_strategy():
    repository = DummyRepository()
    repository.insert = AsyncMock(side_effect=lambda draft: _make_ticket(seat=draft.seat, price=draft.price))
    service = BookingService(repository, fare_strategy=FixedFare(Decimal("42.50")))

    ticket = await service.book_ticket(username="alice", request=SeatRequest(seat="1A"), actor=ALICE)

    assert ticket.price == Decimal("42.50")
    draft = repository.insert.await_args.args[0]
    assert draft.username == "alice"
    assert draft.price == Decimal("42.50")


@pytest.mark.asyncio
@pytest.mark.parametrize(("username", "seat"), [("", "1A"), ("  ", "1A"), ("alice", ""), ("alice", "   ")])
async def test_book_ticket_rejects_invalid_request(username: str, seat: str):
    repository = DummyRepository()
    service = BookingService(repository)

    with pytest.raises(InvalidBookingRequestError):
        await service.book_ticket(username=username, request=SeatRequest(seat=seat), actor=OPS)

    repository.insert.assert_not_awaited()


def test_fixed_fare_rejects_negative_amount():
    with pytest.raises(ValueError):
        FixedFare(Decimal("-1"))


@pytest.mark.asyncio
async def test_update_only_touches_route_fields(booking_service: BookingService):
    booked = await booking_service.book_ticket(
        username="alice",
        request=SeatRequest(seat="12A", train_name="Express1", source="A", destination="B"),
        actor=ALICE,
    )

    updated = await booking_service.update_ticket(
        booked.id, actor=ALICE, train_name="Express2", source="C", destination="D"
    )

    assert (updated.train_name, updated.source, updated.destination) == ("Express2", "C", "D")
    assert updated.username == booked.username
    assert updated.seat == booked.seat
    assert updated.price == booked.price


@pytest.mark.asyncio
async def test_update_keeps_unspecified_route_fields(booking_service: BookingService):
    ticket = await booking_service.create_ticket(
        username="alice", train_name="Express1", source="A", destination="B", actor=ALICE
    )

    updated = await booking_service.update_ticket(ticket.id, actor=ALICE, destination="Z")

    assert (updated.train_name, updated.source, updated.destination) == ("Express1", "A", "Z")


def test_update_signature_has_no_owner_seat_or_price():
    service = BookingService(DummyRepository())
    with pytest.raises(TypeError):
        service.update_ticket("t-1", actor=ALICE, price=Decimal("1"))  # type: ignore[call-arg]
    with pytest.raises(TypeError):
        service.update_ticket("t-1", actor=ALICE, seat="1A")  # type: ignore[call-arg]
    with pytest.raises(TypeError):
        service.update_ticket("t-1", actor=ALICE, username="bob")  # type: ignore[call-arg]


@pytest.mark.asyncio
async def test_update_missing_ticket(booking_service: BookingService):
    with pytest.raises(TicketNotFoundError):
        await booking_service.update_ticket("missing", actor=ALICE, train_name="Express2")


@pytest.mark.asyncio
async def test_update_when_ticket_vanishes_mid_operation():
    repository = DummyRepository()
    repository.find_by_id = AsyncMock(return_value=_make_ticket())
    repository.replace = AsyncMock(return_value=None)
    service = BookingService(repository)

    with pytest.raises(TicketNotFoundError):
        await service.update_ticket("t-1", actor=ALICE, train_name="Express2")


@pytest.mark.asyncio
async def test_non_owner_cannot_update_delete_or_read(booking_service: BookingService):
    ticket = await booking_service.book_ticket(username="alice", request=SeatRequest(seat="3B"), actor=ALICE)

    with pytest.raises(TicketAccessDeniedError):
        await booking_service.update_ticket(ticket.id, actor=BOB, train_name="Hijack")
    with pytest.raises(TicketAccessDeniedError):
        await booking_service.delete_ticket(ticket.id, actor=BOB)
    with pytest.raises(TicketAccessDeniedError):
        await booking_service.get_ticket(ticket.id, actor=BOB)
    with pytest.raises(TicketAccessDeniedError):
        await booking_service.list_tickets_for_user("alice", actor=BOB)

    assert (await booking_service.get_ticket(ticket.id, actor=ALICE)).seat == "3B"


@pytest.mark.asyncio
async def test_operator_may_manage_any_ticket(booking_service: BookingService):
    ticket = await booking_service.book_ticket(username="alice", request=SeatRequest(seat="3B"), actor=ALICE)

    updated = await booking_service.update_ticket(ticket.id, actor=OPS, train_name="Express5")
    await booking_service.delete_ticket(ticket.id, actor=OPS)

    assert updated.train_name == "Express5"
    with pytest.raises(TicketNotFoundError):
        await booking_service.get_ticket(ticket.id, actor=OPS)


@pytest.mark.asyncio
async def test_delete_missing_ticket(booking_service: BookingService):
    with pytest.raises(TicketNotFoundError):
        await booking_service.delete_ticket("missing", actor=ALICE)


@pytest.mark.asyncio
async def test_list_all_requires_operator(booking_service: BookingService):
    await booking_service.book_ticket(username="alice", request=SeatRequest(seat="1A"), actor=ALICE)
    await booking_service.book_ticket(username="bob", request=SeatRequest(seat="1B"), actor=BOB)

    with pytest.raises(TicketAccessDeniedError):
        await booking_service.list_all_tickets(actor=ALICE)
    assert len(await booking_service.list_all_tickets(actor=OPS)) == 2


@pytest.mark.asyncio
async def test_booking_scenario_end_to_end(
    auth_service: AuthService,
    booking_service: BookingService,
    ticket_repository: TicketRepository,
):
    await auth_service.register(username="alice", email="a@x.com", password="pw1")
    token = await auth_service.login(username="alice", password="pw1")
    principal = await auth_service.resolve_principal(token)
    assert principal.username == "alice"

    created = await booking_service.create_ticket(
        username="alice", train_name="Express1", source="A", destination="B", actor=principal
    )
    booked = await booking_service.book_ticket(username="alice", request=SeatRequest(seat="12A"), actor=principal)
    assert booked.seat == "12A"
    assert booked.price == Decimal("200.0")

    await booking_service.delete_ticket(created.id, actor=principal)

    assert not await ticket_repository.exists_by_id(created.id)
    remaining = await booking_service.list_tickets_for_user("alice", actor=principal)
    assert [ticket.id for ticket in remaining] == [booked.id]
