"""Pydantic v2 request/response schemas for voucher endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class VoucherCreate(BaseModel):
    """Schema for an owner issuing a voucher. Policy bounds are checked by the service."""

    owner_id: uuid.UUID
    property_id: uuid.UUID
    code: str | None = Field(None, min_length=1, max_length=64)
    discount_type: str = Field(..., pattern="^(percentage|fixed)$")
    discount_value: Decimal
    expiration_date: date
    usage_limit: int | None = None


class VoucherValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    property_id: uuid.UUID
    subtotal: Decimal = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class VoucherResponse(BaseModel):
    id: uuid.UUID
    code: str
    owner_id: uuid.UUID
    property_id: uuid.UUID
    discount_type: str
    discount_value: Decimal
    expiration_date: date
    usage_limit: int
    used_count: int
    is_active: bool
    state: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoucherListResponse(BaseModel):
    items: list[VoucherResponse]
    total: int


class VoucherValidationResponse(BaseModel):
    """Tagged result: ``ok`` with a discount, or a ``reason`` and message."""

    ok: bool
    discount_amount: Decimal = Decimal("0")
    reason: str | None = None
    message: str | None = None
    voucher_id: uuid.UUID | None = None


class VoucherUsageResponse(BaseModel):
    id: uuid.UUID
    voucher_id: uuid.UUID
    booking_id: uuid.UUID
    customer_id: uuid.UUID
    property_id: uuid.UUID
    discount_amount: Decimal
    used_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoucherUsageListResponse(BaseModel):
    items: list[VoucherUsageResponse]
    total: int


class VoucherStatsResponse(BaseModel):
    owner_id: uuid.UUID
    total_vouchers: int
    active_vouchers: int
    total_usage: int
    total_discount_given: Decimal


class TopVoucher(BaseModel):
    voucher_id: uuid.UUID
    code: str
    property_id: uuid.UUID
    property_title: str
    used_count: int
    discount_given: Decimal


class PlatformVoucherStatsResponse(BaseModel):
    total_vouchers: int
    active_vouchers: int
    total_usage: int
    total_discount_given: Decimal
    top_vouchers: list[TopVoucher]
