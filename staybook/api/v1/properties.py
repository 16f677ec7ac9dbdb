"""Properties API routes — submission, approval lifecycle, and calendars."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.api.deps import get_clock, get_db, get_reservation_service
from staybook.clock import Clock
from staybook.models.property import Property
from staybook.schemas.property import (
    AvailabilityResponse,
    BookedDatesResponse,
    CommissionUpdate,
    PropertyAppeal,
    PropertyApprove,
    PropertyCreate,
    PropertyListResponse,
    PropertyReject,
    PropertyResponse,
    ProposedRateUpdate,
)
from staybook.services import properties as property_service
from staybook.services.rates import classify_unit_type, is_property_live
from staybook.services.reservations import ReservationService

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


def _to_response(prop: Property) -> PropertyResponse:
    response = PropertyResponse.model_validate(prop)
    response.is_live = is_property_live(prop)
    response.unit_type = classify_unit_type(prop)
    return response


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a property for review",
)
async def submit_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PropertyResponse:
    prop = await property_service.submit_property(db, submitted_at=clock.now(), **body.model_dump())
    return _to_response(prop)


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List bookable properties, or filter by owner and status",
)
async def list_properties(
    owner_id: uuid.UUID | None = Query(None, description="Filter by owner"),
    status_filter: str | None = Query(None, alias="status", description="Filter by review status"),
    db: AsyncSession = Depends(get_db),
) -> PropertyListResponse:
    """Without filters only live properties are returned."""
    if owner_id is None and status_filter is None:
        items = await property_service.list_live_properties(db)
    else:
        items = await property_service.list_properties(db, owner_id=owner_id, status=status_filter)
    return PropertyListResponse(items=[_to_response(p) for p in items], total=len(items))


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
)
async def get_property(property_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> PropertyResponse:
    prop = await property_service.get_property(db, property_id)
    return _to_response(prop)


@router.post(
    "/{property_id}/approve",
    response_model=PropertyResponse,
    summary="Approve a property and send its contract",
)
async def approve_property(
    property_id: uuid.UUID,
    body: PropertyApprove,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PropertyResponse:
    prop = await property_service.approve_property(
        db,
        property_id,
        base_rate=body.base_rate,
        commission_percentage=body.commission_percentage,
        approved_at=clock.now(),
    )
    return _to_response(prop)


@router.post(
    "/{property_id}/accept-contract",
    response_model=PropertyResponse,
    summary="Owner accepts the contract; the property goes live",
)
async def accept_contract(property_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> PropertyResponse:
    prop = await property_service.accept_contract(db, property_id)
    return _to_response(prop)


@router.post(
    "/{property_id}/reject",
    response_model=PropertyResponse,
    summary="Reject a property",
)
async def reject_property(
    property_id: uuid.UUID,
    body: PropertyReject,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    prop = await property_service.reject_property(db, property_id, body.reason)
    return _to_response(prop)


@router.post(
    "/{property_id}/appeal",
    response_model=PropertyResponse,
    summary="Resubmit a rejected property with changes",
)
async def appeal_property(
    property_id: uuid.UUID,
    body: PropertyAppeal,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PropertyResponse:
    prop = await property_service.appeal_property(
        db, property_id, submitted_at=clock.now(), **body.model_dump(exclude_none=True)
    )
    return _to_response(prop)


@router.put(
    "/{property_id}/commission",
    response_model=PropertyResponse,
    summary="Change the platform commission and recompute the final rate",
)
async def update_commission(
    property_id: uuid.UUID,
    body: CommissionUpdate,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    prop = await property_service.update_commission(db, property_id, body.commission_percentage)
    return _to_response(prop)


@router.put(
    "/{property_id}/proposed-rate",
    response_model=PropertyResponse,
    summary="Owner proposes a new nightly rate",
)
async def update_proposed_rate(
    property_id: uuid.UUID,
    body: ProposedRateUpdate,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    prop = await property_service.update_proposed_rate(db, property_id, body.proposed_rate)
    return _to_response(prop)


@router.get(
    "/{property_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check whether a date range is free",
)
async def check_availability(
    property_id: uuid.UUID,
    check_in: date = Query(..., description="First night of the stay"),
    check_out: date = Query(..., description="Departure day (not occupied)"),
    service: ReservationService = Depends(get_reservation_service),
) -> AvailabilityResponse:
    available = await service.check_availability(property_id, check_in, check_out)
    return AvailabilityResponse(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        available=available,
    )


@router.get(
    "/{property_id}/booked-dates",
    response_model=BookedDatesResponse,
    summary="Nights occupied by confirmed bookings",
)
async def get_booked_dates(
    property_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
) -> BookedDatesResponse:
    dates = await service.get_booked_dates(property_id)
    return BookedDatesResponse(property_id=property_id, dates=dates)
