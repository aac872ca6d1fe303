from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from .models import SeatRequest


class FareStrategy(Protocol):
    def quote(self, username: str, request: SeatRequest) -> Decimal:
        ...


class FixedFare:
    """Charge the same fare for every booking."""

    def __init__(self, amount: Decimal = Decimal("200.00")) -> None:
        if amount < 0:
            raise ValueError("Fare must not be negative")
        self._amount = amount

    def quote(self, username: str, request: SeatRequest) -> Decimal:
        return self._amount
