"""Ticket booking domain models and services."""

from .fares import FareStrategy, FixedFare
from .models import SeatRequest, Ticket, TicketDraft
from .repository import TicketRepository
from .service import (
    BookingError,
    BookingService,
    InvalidBookingRequestError,
    TicketAccessDeniedError,
    TicketNotFoundError,
)

__all__ = [
    "BookingError",
    "BookingService",
    "FareStrategy",
    "FixedFare",
    "InvalidBookingRequestError",
    "SeatRequest",
    "Ticket",
    "TicketAccessDeniedError",
    "TicketDraft",
    "TicketNotFoundError",
    "TicketRepository",
]
