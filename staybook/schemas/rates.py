"""Pydantic v2 schemas for the rate calculator endpoints."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FinalRateRequest(BaseModel):
    base_rate: Decimal = Field(..., ge=0)
    commission_percentage: Decimal | None = Field(None, ge=0, le=100)


class FinalRateResponse(BaseModel):
    base_rate: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal
    final_rate: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingTotalRequest(BaseModel):
    rate_per_night: Decimal = Field(..., gt=0)
    nights: int = Field(..., ge=1)


class BookingTotalResponse(BaseModel):
    subtotal: Decimal
    service_fee: Decimal
    taxes: Decimal
    total: Decimal
    nights: int
    rate_per_night: Decimal

    model_config = ConfigDict(from_attributes=True)
