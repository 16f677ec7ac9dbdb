"""Bookings API router.

Every booking is created through ``ReservationService.create_booking``, which
re-checks availability and redeems vouchers in one all-or-nothing step.
Domain errors raised here are turned into 404/409/422 responses by the
handlers registered in ``staybook.main``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from staybook.api.deps import get_reservation_service
from staybook.models.booking import Booking
from staybook.schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingQuoteRequest,
    BookingQuoteResponse,
    BookingResponse,
)
from staybook.services.reservations import BookingRequest, ReservationService

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a stay",
)
async def create_booking(
    body: BookingCreate,
    service: ReservationService = Depends(get_reservation_service),
) -> Booking:
    """Create a confirmed, paid booking.

    Fails with:
    - 404 when the property does not exist.
    - 422 when dates, guest count, or the property's listing state are invalid.
    - 409 when the dates overlap a confirmed booking or the voucher is unusable.
    """
    return await service.create_booking(BookingRequest(**body.model_dump()))


@router.post(
    "/quote",
    response_model=BookingQuoteResponse,
    summary="Price a stay without booking it",
)
async def quote_booking(
    body: BookingQuoteRequest,
    service: ReservationService = Depends(get_reservation_service),
) -> BookingQuoteResponse:
    quote = await service.quote(
        body.property_id,
        body.check_in,
        body.check_out,
        guests=body.guests,
        voucher_code=body.voucher_code,
    )
    return BookingQuoteResponse(
        property_id=quote.property_id,
        check_in=quote.check_in,
        check_out=quote.check_out,
        nights=quote.breakdown.nights,
        rate_per_night=quote.rate.amount,
        rate_source=quote.rate.source,
        subtotal=quote.breakdown.subtotal,
        service_fee=quote.breakdown.service_fee,
        taxes=quote.breakdown.taxes,
        discount_amount=quote.discount_amount,
        total=quote.total,
    )


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings by customer, owner, property, or status",
)
async def list_bookings(
    customer_id: uuid.UUID | None = Query(None, description="Filter by customer"),
    owner_id: uuid.UUID | None = Query(None, description="Filter by the owner of the booked property"),
    property_id: uuid.UUID | None = Query(None, description="Filter by property"),
    status_filter: str | None = Query(None, alias="status", description="Filter by booking status"),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    items = await service.list_bookings(
        customer_id=customer_id, property_id=property_id, status=status_filter, owner_id=owner_id
    )
    return {"items": items, "total": len(items)}


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
async def get_booking(
    booking_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
) -> Booking:
    return await service.get_booking(booking_id)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a confirmed booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    body: BookingCancel,
    service: ReservationService = Depends(get_reservation_service),
) -> Booking:
    return await service.cancel_booking(booking_id, cancelled_by=body.cancelled_by)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingResponse,
    summary="Mark a confirmed booking as completed",
)
async def complete_booking(
    booking_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
) -> Booking:
    return await service.complete_booking(booking_id)
