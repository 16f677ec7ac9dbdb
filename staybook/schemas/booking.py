"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for a guest booking a stay.

    Date order, stay length, and guest capacity are checked by the
    reservation service so every policy failure is reported together.
    """

    property_id: uuid.UUID
    customer_id: uuid.UUID
    check_in: date
    check_out: date
    guests: int = Field(1, ge=1)
    customer_name: str | None = Field(None, max_length=255)
    customer_email: EmailStr | None = None
    voucher_code: str | None = Field(None, max_length=64)


class BookingQuoteRequest(BaseModel):
    """Schema for pricing a stay at checkout without booking it."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    guests: int = Field(1, ge=1)
    voucher_code: str | None = Field(None, max_length=64)


class BookingCancel(BaseModel):
    cancelled_by: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """A booking with the charge breakdown frozen at booking time."""

    id: uuid.UUID
    property_id: uuid.UUID
    customer_id: uuid.UUID
    customer_name: str | None = None
    customer_email: str | None = None
    check_in: date
    check_out: date
    guests: int
    nights: int
    nightly_rate: Decimal
    rate_source: str
    subtotal: Decimal
    service_fee: Decimal
    taxes: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    voucher_id: uuid.UUID | None = None
    status: str
    payment_status: str
    booked_at: datetime
    cancelled_at: datetime | None = None
    cancelled_by: uuid.UUID | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    """List of bookings."""

    items: list[BookingResponse]
    total: int


class BookingQuoteResponse(BaseModel):
    """Checkout breakdown: fees and taxes on the full subtotal, discount off the total."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    nights: int
    rate_per_night: Decimal
    rate_source: str
    subtotal: Decimal
    service_fee: Decimal
    taxes: Decimal
    discount_amount: Decimal
    total: Decimal
