"""Reservation orchestrator — the all-or-nothing booking flow.

``ReservationService.create_booking`` runs, for one request:

1. shape validation (dates, guests, stay length, property bookability),
2. an availability re-check against the committed calendar,
3. nightly rate resolution and the charge breakdown,
4. optional voucher validation and redemption,
5. the Booking insert and commit.

Steps 2-5 run while holding the property's lock, so two overlapping requests
for the same property can never both commit. Any failure rolls the session
back: no Booking and no VoucherUsage survives a rejected attempt.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.clock import Clock, system_clock
from staybook.config import Settings, settings as default_settings
from staybook.errors import ConflictError, NotFoundError, ValidationError
from staybook.models.booking import Booking
from staybook.models.property import Property
from staybook.services import availability, vouchers
from staybook.services.properties import get_property
from staybook.services.rates import (
    BookingCalculation,
    NightlyRate,
    calculate_booking_total,
    calculate_nights,
    is_property_live,
    resolve_nightly_rate,
)

logger = logging.getLogger(__name__)


class PropertyLocks:
    """Per-property asyncio locks shared by every service in the process.

    An entry lives only while some task holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        self._users: dict[uuid.UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, property_id: uuid.UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(property_id, asyncio.Lock())
        self._users[property_id] = self._users.get(property_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[property_id] -= 1
            if not self._users[property_id]:
                del self._users[property_id]
                del self._locks[property_id]


property_locks = PropertyLocks()


@dataclass
class BookingRequest:
    """What a guest asks for at checkout."""

    property_id: uuid.UUID
    customer_id: uuid.UUID
    check_in: date | str
    check_out: date | str
    guests: int = 1
    customer_name: str | None = None
    customer_email: str | None = None
    voucher_code: str | None = None


@dataclass(frozen=True)
class BookingQuote:
    """Charges for a prospective stay, voucher applied to the total only."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    rate: NightlyRate
    breakdown: BookingCalculation
    discount_amount: Decimal
    total: Decimal
    voucher_id: uuid.UUID | None = None


class ReservationService:
    """Coordinates availability, pricing, and vouchers for one database session."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = system_clock,
        settings: Settings = default_settings,
        locks: PropertyLocks = property_locks,
    ) -> None:
        self.db = db
        self.clock = clock
        self.settings = settings
        self.locks = locks

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def check_availability(self, property_id: uuid.UUID, check_in: date | str, check_out: date | str) -> bool:
        await get_property(self.db, property_id)
        return await availability.check_availability(self.db, property_id, check_in, check_out)

    async def get_booked_dates(self, property_id: uuid.UUID) -> list[str]:
        await get_property(self.db, property_id)
        return await availability.get_booked_dates(self.db, property_id)

    async def get_booking(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", booking_id=str(booking_id))
        return booking

    async def list_bookings(
        self,
        customer_id: uuid.UUID | None = None,
        property_id: uuid.UUID | None = None,
        status: str | None = None,
        owner_id: uuid.UUID | None = None,
    ) -> list[Booking]:
        query = select(Booking)
        if owner_id is not None:
            query = query.join(Property, Booking.property_id == Property.id).where(Property.owner_id == owner_id)
        if customer_id is not None:
            query = query.where(Booking.customer_id == customer_id)
        if property_id is not None:
            query = query.where(Booking.property_id == property_id)
        if status is not None:
            query = query.where(Booking.status == status)
        result = await self.db.execute(query.order_by(Booking.check_in))
        return list(result.scalars().all())

    async def quote(
        self,
        property_id: uuid.UUID,
        check_in: date | str,
        check_out: date | str,
        guests: int = 1,
        voucher_code: str | None = None,
    ) -> BookingQuote:
        """Price a stay without booking it. Voucher problems raise ConflictError."""
        prop = await get_property(self.db, property_id)
        start, end = self._parse_range(check_in, check_out)
        nights = self._validate_shape(prop, start, end, guests)
        return await self._price(prop, start, end, nights, voucher_code)

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    async def create_booking(self, request: BookingRequest) -> Booking:
        """Validate, price, and commit a booking, or leave no trace at all."""
        start, end = self._parse_range(request.check_in, request.check_out)
        try:
            async with self.locks.hold(request.property_id):
                prop = await get_property(self.db, request.property_id, for_update=True)
                nights = self._validate_shape(prop, start, end, request.guests)
                await self._ensure_available(prop.id, start, end)
                quote = await self._price(prop, start, end, nights, request.voucher_code)

                booking = Booking(
                    id=uuid.uuid4(),
                    property_id=prop.id,
                    customer_id=request.customer_id,
                    customer_name=request.customer_name,
                    customer_email=request.customer_email,
                    check_in=start,
                    check_out=end,
                    guests=request.guests,
                    nightly_rate=quote.rate.amount,
                    rate_source=quote.rate.source,
                    subtotal=quote.breakdown.subtotal,
                    service_fee=quote.breakdown.service_fee,
                    taxes=quote.breakdown.taxes,
                    discount_amount=quote.discount_amount,
                    total_amount=quote.total,
                    voucher_id=quote.voucher_id,
                    status="confirmed",
                    payment_status="paid",
                    booked_at=self.clock.now(),
                )
                self.db.add(booking)
                await self.db.flush()

                if quote.voucher_id is not None:
                    await vouchers.redeem_voucher(
                        self.db,
                        voucher_id=quote.voucher_id,
                        booking_id=booking.id,
                        customer_id=request.customer_id,
                        property_id=prop.id,
                        discount_amount=quote.discount_amount,
                        now=self.clock.now(),
                    )

                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Booking %s confirmed: property %s, %s to %s, total %s",
            booking.id,
            booking.property_id,
            booking.check_in,
            booking.check_out,
            booking.total_amount,
        )
        return booking

    async def cancel_booking(self, booking_id: uuid.UUID, cancelled_by: uuid.UUID | None = None) -> Booking:
        """Free the booking's dates. Voucher uses already consumed stay consumed."""
        booking = await self._confirmed_booking(booking_id)
        booking.status = "cancelled"
        booking.cancelled_at = self.clock.now()
        booking.cancelled_by = cancelled_by
        await self.db.flush()
        logger.info("Booking %s cancelled by %s", booking.id, cancelled_by)
        return booking

    async def complete_booking(self, booking_id: uuid.UUID) -> Booking:
        booking = await self._confirmed_booking(booking_id)
        booking.status = "completed"
        booking.completed_at = self.clock.now()
        await self.db.flush()
        logger.info("Booking %s completed", booking.id)
        return booking

    # -----------------------------------------------------------------------
    # Steps
    # -----------------------------------------------------------------------

    @staticmethod
    def _parse_range(check_in: date | str, check_out: date | str) -> tuple[date, date]:
        if check_in is None or check_out is None:
            raise ValidationError("Check-in and check-out dates are required")
        return (
            availability.parse_date(check_in, "check_in"),
            availability.parse_date(check_out, "check_out"),
        )

    def _validate_shape(self, prop: Property, check_in: date, check_out: date, guests: int) -> int:
        """Collect every policy violation of a request; returns the night count."""
        errors: list[str] = []
        nights = calculate_nights(check_in, check_out)

        if check_in >= check_out:
            errors.append("Check-out date must be after check-in date")
        elif nights < self.settings.min_nights:
            errors.append(f"Minimum stay is {self.settings.min_nights} night(s)")
        elif prop.max_stay_days is not None and nights > prop.max_stay_days:
            errors.append(f"Maximum stay for this property is {prop.max_stay_days} night(s)")
        if check_in < self.clock.today():
            errors.append("Check-in date cannot be in the past")

        if guests is None or guests < 1:
            errors.append("At least 1 guest is required")
        elif guests > prop.max_guests:
            errors.append(f"Maximum {prop.max_guests} guests allowed for this property")
        elif guests > self.settings.max_guests_per_booking:
            errors.append(f"Maximum {self.settings.max_guests_per_booking} guests allowed per booking")

        if prop.status == "rejected" or not (is_property_live(prop) or self.settings.allow_unlisted_bookings):
            errors.append("This property is not accepting bookings")

        if errors:
            raise ValidationError(f"Validation failed: {', '.join(errors)}", errors=errors)
        return nights

    async def _ensure_available(self, property_id: uuid.UUID, check_in: date, check_out: date) -> None:
        bookings = await availability.get_confirmed_bookings(self.db, property_id, check_in, check_out)
        conflicts = availability.find_conflicts(property_id, check_in, check_out, bookings)
        if conflicts:
            ids = [str(b.id) for b in conflicts]
            logger.info("Rejected %s to %s on property %s: overlaps %s", check_in, check_out, property_id, ids)
            raise ConflictError(
                "Property is not available for the selected dates",
                conflicting_booking_ids=ids,
            )

    async def _price(
        self,
        prop: Property,
        check_in: date,
        check_out: date,
        nights: int,
        voucher_code: str | None,
    ) -> BookingQuote:
        rate = resolve_nightly_rate(prop)
        if rate.is_fallback:
            logger.warning("Property %s has no final rate; charging proposed rate %s", prop.id, rate.amount)
        breakdown = calculate_booking_total(rate.amount, nights)

        discount = Decimal("0")
        voucher_id = None
        if voucher_code and voucher_code.strip():
            outcome = await vouchers.validate_voucher(
                self.db, voucher_code, prop.id, breakdown.subtotal, self.clock.today()
            )
            if not outcome.ok:
                raise ConflictError(outcome.message, reason=outcome.reason)
            discount = outcome.discount_amount
            voucher_id = outcome.voucher.id

        return BookingQuote(
            property_id=prop.id,
            check_in=check_in,
            check_out=check_out,
            rate=rate,
            breakdown=breakdown,
            discount_amount=discount,
            total=max(Decimal("0"), breakdown.total - discount),
            voucher_id=voucher_id,
        )

    async def _confirmed_booking(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.get_booking(booking_id)
        if booking.status != "confirmed":
            raise ConflictError(f"Booking is already {booking.status}", status=booking.status)
        return booking
