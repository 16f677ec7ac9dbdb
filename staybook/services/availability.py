"""Availability checker — half-open date range overlap over confirmed bookings.

A stay occupies the nights of ``[check_in, check_out)``: the checkout day is
free for the next guest, so back-to-back bookings never conflict.
"""

import uuid
from collections.abc import Iterable
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.errors import ValidationError
from staybook.models.booking import Booking

BLOCKING_STATUS = "confirmed"


def parse_date(value: date | str, field: str = "date") -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a date in YYYY-MM-DD format", **{field: value}) from exc
    raise ValidationError(f"{field} is required")


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """True when [start_a, end_a) and [start_b, end_b) share at least one night."""
    return start_a < end_b and start_b < end_a


def find_conflicts(
    property_id: uuid.UUID,
    check_in: date | str,
    check_out: date | str,
    bookings: Iterable[Booking],
) -> list[Booking]:
    """Return the confirmed bookings of ``property_id`` that overlap the range."""
    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")
    return [
        b
        for b in bookings
        if b.property_id == property_id
        and b.status == BLOCKING_STATUS
        and ranges_overlap(start, end, b.check_in, b.check_out)
    ]


def is_available(
    property_id: uuid.UUID,
    check_in: date | str,
    check_out: date | str,
    confirmed_bookings: Iterable[Booking],
) -> bool:
    """Whether no confirmed booking of the property overlaps the range."""
    return not find_conflicts(property_id, check_in, check_out, confirmed_bookings)


def expand_to_days(check_in: date | str, check_out: date | str) -> list[str]:
    """ISO dates of every night occupied by a stay, checkout day excluded."""
    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")
    return [(start + timedelta(days=offset)).isoformat() for offset in range((end - start).days)]


# ---------------------------------------------------------------------------
# Store-backed queries
# ---------------------------------------------------------------------------


async def get_confirmed_bookings(
    db: AsyncSession,
    property_id: uuid.UUID,
    check_in: date | None = None,
    check_out: date | None = None,
) -> list[Booking]:
    """Confirmed bookings of a property, optionally only those touching a range."""
    query = select(Booking).where(
        Booking.property_id == property_id,
        Booking.status == BLOCKING_STATUS,
    )
    if check_in is not None and check_out is not None:
        query = query.where(Booking.check_in < check_out, Booking.check_out > check_in)
    result = await db.execute(query.order_by(Booking.check_in))
    return list(result.scalars().all())


async def check_availability(
    db: AsyncSession,
    property_id: uuid.UUID,
    check_in: date | str,
    check_out: date | str,
) -> bool:
    """Whether the property can take a new stay for the given range."""
    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")
    if start >= end:
        raise ValidationError("check_out must be after check_in")
    bookings = await get_confirmed_bookings(db, property_id, start, end)
    return is_available(property_id, start, end, bookings)


async def get_booked_dates(db: AsyncSession, property_id: uuid.UUID) -> list[str]:
    """Sorted ISO dates occupied by confirmed bookings, for calendar rendering."""
    bookings = await get_confirmed_bookings(db, property_id)
    days: set[str] = set()
    for booking in bookings:
        days.update(expand_to_days(booking.check_in, booking.check_out))
    return sorted(days)
