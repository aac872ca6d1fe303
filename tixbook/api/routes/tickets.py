from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from tixbook.dependencies.auth import CurrentPrincipal, OperatorPrincipal
from tixbook.dependencies.tickets import BookingServiceDep
from tixbook.tickets.models import SeatRequest, Ticket
from tixbook.tickets.service import (
    InvalidBookingRequestError,
    TicketAccessDeniedError,
    TicketNotFoundError,
)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


class TicketCreateRequest(BaseModel):
    train_name: str = Field(..., min_length=1, max_length=255)
    source: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    username: str | None = Field(default=None, min_length=1, max_length=150)


class TicketBookRequest(BaseModel):
    seat: str = Field(..., min_length=1, max_length=50)
    username: str | None = Field(default=None, min_length=1, max_length=150)
    train_name: str | None = Field(default=None, min_length=1, max_length=255)
    source: str | None = Field(default=None, min_length=1, max_length=255)
    destination: str | None = Field(default=None, min_length=1, max_length=255)


class TicketUpdateRequest(BaseModel):
    # Owner, seat and price are not part of this contract; sending them is a 422.
    model_config = ConfigDict(extra="forbid")

    train_name: str | None = Field(default=None, min_length=1, max_length=255)
    source: str | None = Field(default=None, min_length=1, max_length=255)
    destination: str | None = Field(default=None, min_length=1, max_length=255)

    def ensure_payload(self) -> None:
        if self.train_name is None and self.source is None and self.destination is None:
            raise HTTPException(status_code=400, detail="No fields provided for update")


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    train_name: str | None
    source: str | None
    destination: str | None
    seat: str | None
    price: Decimal
    created_at: datetime
    updated_at: datetime


def _to_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: BookingServiceDep,
    principal: CurrentPrincipal,
) -> TicketResponse:
    try:
        ticket = await service.create_ticket(
            username=payload.username or principal.username,
            train_name=payload.train_name,
            source=payload.source,
            destination=payload.destination,
            actor=principal,
        )
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return _to_response(ticket)


@router.post("/book", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def book_ticket(
    payload: TicketBookRequest,
    service: BookingServiceDep,
    principal: CurrentPrincipal,
) -> TicketResponse:
    request = SeatRequest(
        seat=payload.seat,
        train_name=payload.train_name,
        source=payload.source,
        destination=payload.destination,
    )
    try:
        ticket = await service.book_ticket(
            username=payload.username or principal.username,
            request=request,
            actor=principal,
        )
    except InvalidBookingRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return _to_response(ticket)


@router.get("", response_model=list[TicketResponse])
async def list_all_tickets(service: BookingServiceDep, principal: OperatorPrincipal) -> list[TicketResponse]:
    tickets = await service.list_all_tickets(actor=principal)
    return [_to_response(ticket) for ticket in tickets]


@router.get("/user/{username}", response_model=list[TicketResponse])
async def list_user_tickets(
    username: str,
    service: BookingServiceDep,
    principal: CurrentPrincipal,
) -> list[TicketResponse]:
    try:
        tickets = await service.list_tickets_for_user(username, actor=principal)
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return [_to_response(ticket) for ticket in tickets]


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: str, service: BookingServiceDep, principal: CurrentPrincipal) -> TicketResponse:
    try:
        ticket = await service.get_ticket(ticket_id, actor=principal)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return _to_response(ticket)


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: BookingServiceDep,
    principal: CurrentPrincipal,
) -> TicketResponse:
    payload.ensure_payload()
    try:
        ticket = await service.update_ticket(
            ticket_id,
            actor=principal,
            train_name=payload.train_name,
            source=payload.source,
            destination=payload.destination,
        )
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return _to_response(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: str, service: BookingServiceDep, principal: CurrentPrincipal) -> None:
    try:
        await service.delete_ticket(ticket_id, actor=principal)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except TicketAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
