"""Pydantic v2 request/response schemas for property endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for an owner submitting a new property for review."""

    owner_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, max_length=255)
    proposed_rate: Decimal = Field(..., gt=0)
    max_guests: int = Field(..., ge=1)
    max_stay_days: int | None = Field(None, ge=1)
    rental_type: str | None = Field(None, pattern="^(short-term|long-term)$")


class PropertyApprove(BaseModel):
    """Schema for a manager approving a property and setting its commission."""

    base_rate: Decimal | None = Field(None, gt=0)
    commission_percentage: Decimal | None = Field(None, ge=0, le=100)


class PropertyReject(BaseModel):
    reason: str = Field(..., min_length=1)


class CommissionUpdate(BaseModel):
    commission_percentage: Decimal = Field(..., ge=0, le=100)


class ProposedRateUpdate(BaseModel):
    proposed_rate: Decimal = Field(..., gt=0)


class PropertyAppeal(BaseModel):
    """Changes an owner makes when resubmitting a rejected property. Omitted fields stay as they are."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, max_length=255)
    proposed_rate: Decimal | None = Field(None, gt=0)
    max_guests: int | None = Field(None, ge=1)
    max_stay_days: int | None = Field(None, ge=1)
    rental_type: str | None = Field(None, pattern="^(short-term|long-term)$")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PropertyResponse(BaseModel):
    """Property with its full rate breakdown and derived listing state."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str | None = None
    address: str | None = None
    max_guests: int
    max_stay_days: int | None = None
    rental_type: str | None = None
    proposed_rate: Decimal
    base_rate: Decimal | None = None
    commission_percentage: Decimal | None = None
    commission_amount: Decimal | None = None
    final_rate: Decimal | None = None
    status: str
    contract_approved: bool
    rejection_reason: str | None = None
    appeal_count: int = 0
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    is_live: bool = False
    unit_type: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """List of properties."""

    items: list[PropertyResponse]
    total: int


class AvailabilityResponse(BaseModel):
    property_id: uuid.UUID
    check_in: date
    check_out: date
    available: bool


class BookedDatesResponse(BaseModel):
    property_id: uuid.UUID
    dates: list[str]
