"""Rate calculator API — stateless pricing helpers for forms and checkout."""

from fastapi import APIRouter

from staybook.schemas.rates import (
    BookingTotalRequest,
    BookingTotalResponse,
    FinalRateRequest,
    FinalRateResponse,
)
from staybook.services.rates import calculate_booking_total, calculate_final_rate

router = APIRouter(prefix="/api/v1/rates", tags=["rates"])


@router.post(
    "/final-rate",
    response_model=FinalRateResponse,
    summary="Add platform commission to a base rate",
)
async def final_rate(body: FinalRateRequest) -> FinalRateResponse:
    calculation = calculate_final_rate(body.base_rate, body.commission_percentage)
    return FinalRateResponse.model_validate(calculation)


@router.post(
    "/booking-total",
    response_model=BookingTotalResponse,
    summary="Charge breakdown for a nightly rate and night count",
)
async def booking_total(body: BookingTotalRequest) -> BookingTotalResponse:
    calculation = calculate_booking_total(body.rate_per_night, body.nights)
    return BookingTotalResponse.model_validate(calculation)
