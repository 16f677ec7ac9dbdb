"""Vouchers API router — issuing, validating, and auditing discount codes."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.api.deps import get_clock, get_db
from staybook.clock import Clock
from staybook.models.voucher import Voucher
from staybook.schemas.voucher import (
    PlatformVoucherStatsResponse,
    VoucherCreate,
    VoucherListResponse,
    VoucherResponse,
    VoucherStatsResponse,
    VoucherUsageListResponse,
    VoucherValidateRequest,
    VoucherValidationResponse,
)
from staybook.services import vouchers as voucher_service

router = APIRouter(prefix="/api/v1/vouchers", tags=["vouchers"])


def _to_response(voucher: Voucher, clock: Clock) -> VoucherResponse:
    response = VoucherResponse.model_validate(voucher)
    response.state = voucher_service.voucher_state(voucher, clock.today())
    return response


@router.post(
    "",
    response_model=VoucherResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a voucher for a property",
)
async def create_voucher(
    body: VoucherCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VoucherResponse:
    voucher = await voucher_service.create_voucher(db, today=clock.today(), **body.model_dump())
    return _to_response(voucher, clock)


@router.post(
    "/validate",
    response_model=VoucherValidationResponse,
    summary="Check a voucher code against a property and subtotal",
)
async def validate_voucher(
    body: VoucherValidateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VoucherValidationResponse:
    """Always 200: an unusable code is reported through ``ok``/``reason``."""
    outcome = await voucher_service.validate_voucher(db, body.code, body.property_id, body.subtotal, clock.today())
    return VoucherValidationResponse(
        ok=outcome.ok,
        discount_amount=outcome.discount_amount,
        reason=outcome.reason,
        message=outcome.message,
        voucher_id=outcome.voucher.id if outcome.ok else None,
    )


@router.get(
    "",
    response_model=VoucherListResponse,
    summary="List vouchers by owner or property",
)
async def list_vouchers(
    owner_id: uuid.UUID | None = Query(None),
    property_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VoucherListResponse:
    items = await voucher_service.list_vouchers(db, owner_id=owner_id, property_id=property_id)
    return VoucherListResponse(items=[_to_response(v, clock) for v in items], total=len(items))


@router.get(
    "/stats/platform",
    response_model=PlatformVoucherStatsResponse,
    summary="Voucher totals across the platform with the most-used codes",
)
async def platform_voucher_stats(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PlatformVoucherStatsResponse:
    stats = await voucher_service.get_platform_voucher_stats(db, clock.today())
    return PlatformVoucherStatsResponse(**stats)


@router.get(
    "/stats/{owner_id}",
    response_model=VoucherStatsResponse,
    summary="Voucher totals for an owner",
)
async def owner_voucher_stats(
    owner_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VoucherStatsResponse:
    stats = await voucher_service.get_owner_voucher_stats(db, owner_id, clock.today())
    return VoucherStatsResponse(owner_id=owner_id, **stats)


@router.post(
    "/{voucher_id}/deactivate",
    response_model=VoucherResponse,
    summary="Stop a voucher from being redeemed",
)
async def deactivate_voucher(
    voucher_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VoucherResponse:
    voucher = await voucher_service.deactivate_voucher(db, voucher_id)
    return _to_response(voucher, clock)


@router.get(
    "/{voucher_id}/usage",
    response_model=VoucherUsageListResponse,
    summary="Redemption history of a voucher",
)
async def voucher_usage(
    voucher_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await voucher_service.get_voucher(db, voucher_id)
    items = await voucher_service.get_voucher_usage_history(db, voucher_id)
    return {"items": items, "total": len(items)}
