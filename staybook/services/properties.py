"""Property lifecycle — submission, approval, contract acceptance, rate changes.

Flow::

    submit -> pending_review -> approve -> pending_contract -> accept_contract -> approved
                             \\-> reject -> rejected -> appeal -> pending_review

Every change to ``base_rate`` or ``commission_percentage`` goes through
:func:`staybook.services.rates.apply_commission`, so ``final_rate`` never
drifts from its inputs.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.config import settings
from staybook.errors import ConflictError, NotFoundError, ValidationError
from staybook.models.property import PROPERTY_STATUSES, RENTAL_TYPES, Property
from staybook.services.rates import apply_commission, to_decimal

logger = logging.getLogger(__name__)


def _check_rate(rate: Decimal) -> Decimal:
    low, high = settings.min_property_rate, settings.max_property_rate
    if not low <= rate <= high:
        raise ValidationError(f"Nightly rate must be between ${low} and ${high}", rate=str(rate))
    return rate


def _check_commission(pct: Decimal) -> Decimal:
    low, high = settings.min_commission_percentage, settings.max_commission_percentage
    if not low <= pct <= high:
        raise ValidationError(
            f"Commission must be between {low}% and {high}%",
            commission_percentage=str(pct),
        )
    return pct


def _check_details(max_guests: int, rental_type: str | None) -> None:
    if max_guests < 1 or max_guests > settings.max_guests_per_booking:
        raise ValidationError(
            f"Maximum guests must be between 1 and {settings.max_guests_per_booking}",
            max_guests=max_guests,
        )
    if rental_type is not None and rental_type not in RENTAL_TYPES:
        raise ValidationError(f"Rental type must be one of: {', '.join(RENTAL_TYPES)}")


async def get_property(db: AsyncSession, property_id: uuid.UUID, *, for_update: bool = False) -> Property:
    """Load a property or raise NotFoundError.

    With ``for_update`` the row is locked until the transaction ends on
    databases that support ``SELECT ... FOR UPDATE``.
    """
    query = select(Property).where(Property.id == property_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Property not found", property_id=str(property_id))
    return prop


async def submit_property(
    db: AsyncSession,
    *,
    owner_id: uuid.UUID,
    title: str,
    proposed_rate: Decimal | int | str,
    max_guests: int,
    description: str | None = None,
    address: str | None = None,
    max_stay_days: int | None = None,
    rental_type: str | None = None,
    submitted_at: datetime | None = None,
) -> Property:
    """Store a new property awaiting review.

    Only the proposed rate is known at this point; base and final rates are
    set when the property is approved.
    """
    rate = _check_rate(to_decimal(proposed_rate, "proposed_rate"))
    _check_details(max_guests, rental_type)

    prop = Property(
        owner_id=owner_id,
        title=title,
        description=description,
        address=address,
        proposed_rate=rate,
        max_guests=max_guests,
        max_stay_days=max_stay_days,
        rental_type=rental_type,
        status="pending_review",
        contract_approved=False,
        submitted_at=submitted_at,
    )
    db.add(prop)
    await db.flush()
    logger.info("Property %s submitted by owner %s at %s/night", prop.id, owner_id, rate)
    return prop


async def approve_property(
    db: AsyncSession,
    property_id: uuid.UUID,
    *,
    base_rate: Decimal | int | str | None = None,
    commission_percentage: Decimal | int | str | None = None,
    approved_at: datetime | None = None,
) -> Property:
    """Snapshot the base rate, apply commission, and send the contract."""
    prop = await get_property(db, property_id)
    if prop.status not in ("pending_review", "rejected"):
        raise ConflictError(f"Property cannot be approved from status '{prop.status}'", status=prop.status)

    base = _check_rate(to_decimal(prop.proposed_rate if base_rate is None else base_rate, "base_rate"))
    pct = _check_commission(
        to_decimal(
            settings.default_commission_percentage if commission_percentage is None else commission_percentage,
            "commission_percentage",
        )
    )
    calculation = apply_commission(prop, base_rate=base, commission_percentage=pct)
    prop.status = "pending_contract"
    prop.contract_approved = False
    prop.rejection_reason = None
    prop.approved_at = approved_at
    await db.flush()
    logger.info(
        "Property %s approved: base %s + %s%% commission = %s/night",
        prop.id,
        calculation.base_rate,
        calculation.commission_percentage,
        calculation.final_rate,
    )
    return prop


async def accept_contract(db: AsyncSession, property_id: uuid.UUID) -> Property:
    """Owner accepts the contract; the property goes live."""
    prop = await get_property(db, property_id)
    if prop.status != "pending_contract":
        raise ConflictError("Property has no contract awaiting acceptance", status=prop.status)
    prop.status = "approved"
    prop.contract_approved = True
    await db.flush()
    logger.info("Contract accepted for property %s", prop.id)
    return prop


async def reject_property(db: AsyncSession, property_id: uuid.UUID, reason: str) -> Property:
    prop = await get_property(db, property_id)
    if prop.status == "approved":
        raise ConflictError("Approved properties cannot be rejected", status=prop.status)
    prop.status = "rejected"
    prop.contract_approved = False
    prop.rejection_reason = reason
    await db.flush()
    logger.info("Property %s rejected: %s", prop.id, reason)
    return prop


async def update_commission(
    db: AsyncSession,
    property_id: uuid.UUID,
    commission_percentage: Decimal | int | str,
) -> Property:
    """Change the commission and recompute the final rate."""
    prop = await get_property(db, property_id)
    if prop.base_rate is None:
        raise ConflictError("Commission can only be changed after approval", status=prop.status)
    pct = _check_commission(to_decimal(commission_percentage, "commission_percentage"))
    apply_commission(prop, commission_percentage=pct)
    await db.flush()
    logger.info("Property %s commission set to %s%%, final rate %s", prop.id, pct, prop.final_rate)
    return prop


async def update_proposed_rate(
    db: AsyncSession,
    property_id: uuid.UUID,
    proposed_rate: Decimal | int | str,
) -> Property:
    """Record a new owner rate.

    A property that is not live goes back to review and loses its pending
    rates. Once approved, the contracted base rate stays in force.
    """
    prop = await get_property(db, property_id)
    rate = _check_rate(to_decimal(proposed_rate, "proposed_rate"))
    prop.proposed_rate = rate
    if prop.status != "approved":
        _clear_rates(prop)
        prop.status = "pending_review"
        prop.contract_approved = False
    await db.flush()
    logger.info("Property %s proposed rate changed to %s (status %s)", prop.id, rate, prop.status)
    return prop


def _clear_rates(prop: Property) -> None:
    prop.base_rate = None
    prop.commission_percentage = None
    prop.commission_amount = None
    prop.final_rate = None


async def list_live_properties(db: AsyncSession) -> list[Property]:
    """Properties guests can see and book."""
    result = await db.execute(
        select(Property)
        .where(
            Property.status == "approved",
            Property.contract_approved.is_(True),
            Property.final_rate.is_not(None),
            Property.final_rate > 0,
        )
        .order_by(Property.created_at.desc())
    )
    return list(result.scalars().all())


async def list_properties(
    db: AsyncSession,
    owner_id: uuid.UUID | None = None,
    status: str | None = None,
) -> list[Property]:
    """All properties, optionally narrowed to one owner and/or one status."""
    query = select(Property)
    if owner_id is not None:
        query = query.where(Property.owner_id == owner_id)
    if status is not None:
        if status not in PROPERTY_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(PROPERTY_STATUSES)}", status=status)
        query = query.where(Property.status == status)
    result = await db.execute(query.order_by(Property.created_at.desc()))
    return list(result.scalars().all())


async def appeal_property(
    db: AsyncSession,
    property_id: uuid.UUID,
    *,
    title: str | None = None,
    proposed_rate: Decimal | int | str | None = None,
    max_guests: int | None = None,
    description: str | None = None,
    address: str | None = None,
    max_stay_days: int | None = None,
    rental_type: str | None = None,
    submitted_at: datetime | None = None,
) -> Property:
    """Resubmit a rejected property with changes.

    Fields left as ``None`` keep their current value. The property returns
    to review without any approved rates, and its appeal counter goes up.
    """
    prop = await get_property(db, property_id)
    if prop.status != "rejected":
        raise ConflictError("Only rejected properties can be appealed", status=prop.status)

    rate = prop.proposed_rate if proposed_rate is None else _check_rate(to_decimal(proposed_rate, "proposed_rate"))
    guests = prop.max_guests if max_guests is None else max_guests
    kind = prop.rental_type if rental_type is None else rental_type
    _check_details(guests, kind)

    if title is not None:
        prop.title = title
    if description is not None:
        prop.description = description
    if address is not None:
        prop.address = address
    if max_stay_days is not None:
        prop.max_stay_days = max_stay_days
    prop.proposed_rate = rate
    prop.max_guests = guests
    prop.rental_type = kind

    _clear_rates(prop)
    prop.status = "pending_review"
    prop.contract_approved = False
    prop.rejection_reason = None
    prop.appeal_count = (prop.appeal_count or 0) + 1
    prop.submitted_at = submitted_at
    await db.flush()
    logger.info("Property %s appealed (appeal #%d) at %s/night", prop.id, prop.appeal_count, rate)
    return prop
