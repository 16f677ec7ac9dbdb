"""Voucher service — creation, validation, discounting, and redemption.

Lifecycle: a voucher starts ``active`` and can become ``expired`` (clock),
``limit_reached`` (usage counter) or ``deactivated`` (owner action). None of
these delete the voucher or its usage history.
"""

import logging
import secrets
import string
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.config import settings
from staybook.errors import ConflictError, NotFoundError, ValidationError
from staybook.models.property import Property
from staybook.models.voucher import DISCOUNT_TYPES, Voucher, VoucherUsage
from staybook.services.rates import percent_of, to_decimal

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits

REJECTION_MESSAGES = {
    "not_found": "Invalid voucher code for this property",
    "inactive": "This voucher is no longer active",
    "expired": "This voucher has expired",
    "limit_reached": "This voucher has reached its usage limit",
}


@dataclass
class VoucherValidation:
    """Outcome of checking a code against a property and subtotal.

    A rejected voucher is an expected outcome, so it is reported here rather
    than raised.
    """

    ok: bool
    discount_amount: Decimal = Decimal("0")
    reason: str | None = None
    voucher: Voucher | None = field(default=None, repr=False)

    @property
    def message(self) -> str | None:
        return REJECTION_MESSAGES.get(self.reason) if self.reason else None

    @classmethod
    def rejected(cls, reason: str, voucher: Voucher | None = None) -> "VoucherValidation":
        return cls(ok=False, reason=reason, voucher=voucher)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_voucher_code(length: int | None = None) -> str:
    """Random code of uppercase letters and digits."""
    size = length or settings.voucher_code_length
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(size))


def is_expired(voucher: Voucher, today: date) -> bool:
    """A voucher stays valid through its expiration date."""
    return voucher.expiration_date < today


def voucher_state(voucher: Voucher, today: date) -> str:
    """One of ``active``, ``deactivated``, ``expired``, ``limit_reached``."""
    if not voucher.is_active:
        return "deactivated"
    if is_expired(voucher, today):
        return "expired"
    if voucher.used_count >= voucher.usage_limit:
        return "limit_reached"
    return "active"


def compute_discount(voucher: Voucher, subtotal: Decimal) -> Decimal:
    """Discount for a subtotal; never more than the subtotal itself."""
    amount = to_decimal(subtotal, "subtotal")
    value = to_decimal(voucher.discount_value, "discount_value")
    if voucher.discount_type == "percentage":
        discount = percent_of(amount, value)
    else:
        discount = value
    return max(Decimal("0"), min(discount, amount))


def evaluate_voucher(voucher: Voucher | None, subtotal: Decimal, today: date) -> VoucherValidation:
    """Run the redemption checks in order, stopping at the first failure."""
    if voucher is None:
        return VoucherValidation.rejected("not_found")
    if not voucher.is_active:
        return VoucherValidation.rejected("inactive", voucher)
    if is_expired(voucher, today):
        return VoucherValidation.rejected("expired", voucher)
    if voucher.used_count >= voucher.usage_limit:
        return VoucherValidation.rejected("limit_reached", voucher)
    return VoucherValidation(ok=True, discount_amount=compute_discount(voucher, subtotal), voucher=voucher)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_voucher(db: AsyncSession, voucher_id: uuid.UUID) -> Voucher:
    voucher = await db.get(Voucher, voucher_id)
    if voucher is None:
        raise NotFoundError("Voucher not found", voucher_id=str(voucher_id))
    return voucher


async def find_voucher(db: AsyncSession, code: str, property_id: uuid.UUID) -> Voucher | None:
    """Case-insensitive code lookup scoped to one property."""
    result = await db.execute(
        select(Voucher).where(
            func.upper(Voucher.code) == normalize_code(code),
            Voucher.property_id == property_id,
        )
    )
    return result.scalar_one_or_none()


async def validate_voucher(
    db: AsyncSession,
    code: str,
    property_id: uuid.UUID,
    subtotal: Decimal | int | str,
    today: date,
) -> VoucherValidation:
    """Check whether ``code`` can discount ``subtotal`` on ``property_id`` today."""
    voucher = await find_voucher(db, code, property_id) if code and code.strip() else None
    outcome = evaluate_voucher(voucher, to_decimal(subtotal, "subtotal"), today)
    if not outcome.ok:
        logger.info("Voucher %r rejected for property %s: %s", code, property_id, outcome.reason)
    return outcome


async def list_vouchers(
    db: AsyncSession,
    owner_id: uuid.UUID | None = None,
    property_id: uuid.UUID | None = None,
) -> list[Voucher]:
    query = select(Voucher)
    if owner_id is not None:
        query = query.where(Voucher.owner_id == owner_id)
    if property_id is not None:
        query = query.where(Voucher.property_id == property_id)
    result = await db.execute(query.order_by(Voucher.created_at.desc()))
    return list(result.scalars().all())


async def get_voucher_usage_history(db: AsyncSession, voucher_id: uuid.UUID) -> list[VoucherUsage]:
    result = await db.execute(
        select(VoucherUsage).where(VoucherUsage.voucher_id == voucher_id).order_by(VoucherUsage.used_at)
    )
    return list(result.scalars().all())


async def get_owner_voucher_stats(db: AsyncSession, owner_id: uuid.UUID, today: date) -> dict[str, Any]:
    """Totals across every voucher an owner has issued."""
    vouchers = await list_vouchers(db, owner_id=owner_id)
    usage_result = await db.execute(
        select(func.count(VoucherUsage.id), func.coalesce(func.sum(VoucherUsage.discount_amount), 0))
        .join(Voucher, VoucherUsage.voucher_id == Voucher.id)
        .where(Voucher.owner_id == owner_id)
    )
    total_usage, total_discount = usage_result.one()
    return {
        "total_vouchers": len(vouchers),
        "active_vouchers": sum(1 for v in vouchers if v.is_active and not is_expired(v, today)),
        "total_usage": int(total_usage),
        "total_discount_given": to_decimal(total_discount),
    }


async def get_platform_voucher_stats(db: AsyncSession, today: date, top: int = 5) -> dict[str, Any]:
    """Totals across every voucher on the platform plus the most-used codes."""
    vouchers = await list_vouchers(db)
    usage_result = await db.execute(
        select(func.count(VoucherUsage.id), func.coalesce(func.sum(VoucherUsage.discount_amount), 0))
    )
    total_usage, total_discount = usage_result.one()

    given = (
        select(VoucherUsage.voucher_id, func.sum(VoucherUsage.discount_amount).label("discount_given"))
        .group_by(VoucherUsage.voucher_id)
        .subquery()
    )
    top_result = await db.execute(
        select(
            Voucher.id,
            Voucher.code,
            Voucher.property_id,
            Property.title,
            Voucher.used_count,
            func.coalesce(given.c.discount_given, 0),
        )
        .join(Property, Voucher.property_id == Property.id)
        .outerjoin(given, given.c.voucher_id == Voucher.id)
        .order_by(Voucher.used_count.desc(), Voucher.code)
        .limit(top)
    )
    top_vouchers = [
        {
            "voucher_id": voucher_id,
            "code": code,
            "property_id": property_id,
            "property_title": title,
            "used_count": used_count,
            "discount_given": to_decimal(discount_given),
        }
        for voucher_id, code, property_id, title, used_count, discount_given in top_result.all()
    ]
    return {
        "total_vouchers": len(vouchers),
        "active_vouchers": sum(1 for v in vouchers if v.is_active and not is_expired(v, today)),
        "total_usage": int(total_usage),
        "total_discount_given": to_decimal(total_discount),
        "top_vouchers": top_vouchers,
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _policy_errors(discount_type: str, discount_value: Decimal, expiration_date: date, usage_limit: int, today: date) -> list[str]:
    errors: list[str] = []
    if discount_type == "percentage":
        low, high = settings.voucher_min_percentage, settings.voucher_max_percentage
        if not low <= discount_value <= high:
            errors.append(f"Percentage discount must be between {low}% and {high}%")
    elif discount_type == "fixed":
        low, high = settings.voucher_min_fixed, settings.voucher_max_fixed
        if not low <= discount_value <= high:
            errors.append(f"Fixed discount must be between ${low} and ${high}")
    else:
        errors.append(f"Discount type must be one of: {', '.join(DISCOUNT_TYPES)}")

    if expiration_date is None:
        errors.append("Expiration date is required")
    elif expiration_date <= today:
        errors.append("Expiration date must be in the future")

    if usage_limit is None or usage_limit < 1:
        errors.append("Usage limit must be at least 1")
    return errors


async def create_voucher(
    db: AsyncSession,
    *,
    owner_id: uuid.UUID,
    property_id: uuid.UUID,
    discount_type: str,
    discount_value: Decimal | int | str,
    expiration_date: date,
    usage_limit: int | None = None,
    code: str | None = None,
    today: date,
) -> Voucher:
    """Validate policy bounds and code uniqueness, then store a new voucher."""
    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found", property_id=str(property_id))

    value = to_decimal(discount_value, "discount_value")
    limit = settings.default_voucher_usage_limit if usage_limit is None else usage_limit
    errors = _policy_errors(discount_type, value, expiration_date, limit, today)
    if errors:
        raise ValidationError(", ".join(errors), errors=errors)

    normalized = normalize_code(code) if code and code.strip() else await _unused_code(db)
    existing = await db.execute(select(Voucher.id).where(func.upper(Voucher.code) == normalized))
    if existing.first() is not None:
        raise ValidationError("Voucher code already exists. Please choose a different code.", code=normalized)

    voucher = Voucher(
        code=normalized,
        owner_id=owner_id,
        property_id=property_id,
        discount_type=discount_type,
        discount_value=value,
        expiration_date=expiration_date,
        usage_limit=limit,
        used_count=0,
        is_active=True,
    )
    db.add(voucher)
    try:
        await db.flush()
    except IntegrityError:
        # Another session stored the same code between the check and the insert
        await db.rollback()
        logger.warning("Voucher code %s taken by a concurrent create", normalized)
        raise ValidationError("Voucher code already exists. Please choose a different code.", code=normalized) from None
    logger.info("Created voucher %s (%s %s) for property %s", normalized, discount_type, value, property_id)
    return voucher


async def _unused_code(db: AsyncSession, attempts: int = 10) -> str:
    for _ in range(attempts):
        candidate = generate_voucher_code()
        taken = await db.execute(select(Voucher.id).where(Voucher.code == candidate))
        if taken.first() is None:
            return candidate
    raise ConflictError("Could not generate a unique voucher code")


async def deactivate_voucher(db: AsyncSession, voucher_id: uuid.UUID) -> Voucher:
    """Owner action: the voucher stops being redeemable but keeps its history."""
    voucher = await get_voucher(db, voucher_id)
    voucher.is_active = False
    await db.flush()
    logger.info("Deactivated voucher %s", voucher.code)
    return voucher


async def redeem_voucher(
    db: AsyncSession,
    *,
    voucher_id: uuid.UUID,
    booking_id: uuid.UUID,
    customer_id: uuid.UUID,
    property_id: uuid.UUID,
    discount_amount: Decimal,
    now: datetime,
) -> VoucherUsage:
    """Consume one use of a voucher and append its usage record.

    The counter moves in a single conditional UPDATE, so concurrent
    redemptions can never push ``used_count`` past ``usage_limit``. Raises
    ``ConflictError`` when the voucher was exhausted or deactivated meanwhile.
    The caller owns the transaction.
    """
    result = await db.execute(
        update(Voucher)
        .where(
            Voucher.id == voucher_id,
            Voucher.is_active.is_(True),
            Voucher.used_count < Voucher.usage_limit,
        )
        .values(used_count=Voucher.used_count + 1, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Voucher %s could not be redeemed for booking %s", voucher_id, booking_id)
        raise ConflictError("This voucher has reached its usage limit", reason="limit_reached")

    usage = VoucherUsage(
        voucher_id=voucher_id,
        booking_id=booking_id,
        customer_id=customer_id,
        property_id=property_id,
        discount_amount=discount_amount,
        used_at=now,
    )
    db.add(usage)
    await db.flush()

    voucher = await db.get(Voucher, voucher_id)
    if voucher is not None:
        await db.refresh(voucher, attribute_names=["used_count", "updated_at"])
    logger.info("Redeemed voucher %s for booking %s (discount %s)", voucher_id, booking_id, discount_amount)
    return usage
