from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from tixbook.tickets.service import BookingService


async def get_booking_service(request: Request) -> BookingService:
    service = getattr(request.app.state, "booking_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Booking service is not configured")
    return service


BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
