"""Seed the database with sample listings, vouchers, and bookings.

Every row goes through the same services the API uses, so the seeded data
obeys the commission, availability, and voucher rules:
- 3 live properties (submitted, approved with commission, contract accepted)
- 1 property still awaiting review
- 2 vouchers on the first property
- a handful of confirmed bookings, one of them with a voucher

Run:
    python -m scripts.seed_data
"""

import asyncio
import uuid
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import delete, select

from staybook.clock import system_clock
from staybook.database import Base, async_session_factory, engine
from staybook.models.booking import Booking
from staybook.models.property import Property
from staybook.models.voucher import Voucher, VoucherUsage
from staybook.services import properties as property_service
from staybook.services import vouchers as voucher_service
from staybook.services.reservations import BookingRequest, ReservationService

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_OWNER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
DEMO_CUSTOMER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")

PROPERTIES = [
    {
        "title": "Harbour View Loft",
        "description": "Bright one-bedroom loft above the fishing harbour, walking distance to the old town.",
        "address": "4 Quay Street",
        "proposed_rate": Decimal("95"),
        "max_guests": 2,
        "max_stay_days": 14,
        "commission_percentage": Decimal("15"),
    },
    {
        "title": "Pine Ridge Cabin",
        "description": "Timber cabin with a wood stove and a deck over the valley. Sleeps a family of five.",
        "address": "Ridge Road 118",
        "proposed_rate": Decimal("180"),
        "max_guests": 5,
        "max_stay_days": 30,
        "commission_percentage": Decimal("12"),
    },
    {
        "title": "Garden Studio",
        "description": "Quiet studio opening onto a private garden; monthly stays welcome.",
        "address": "27 Orchard Lane",
        "proposed_rate": Decimal("70"),
        "max_guests": 2,
        "rental_type": "long-term",
        "commission_percentage": Decimal("10"),
    },
]

PENDING_PROPERTY = {
    "title": "Lakeside Boathouse",
    "description": "Converted boathouse on the north shore. Awaiting review.",
    "address": "North Shore 3",
    "proposed_rate": Decimal("140"),
    "max_guests": 3,
}

VOUCHERS = [
    {"code": "WELCOME10", "discount_type": "percentage", "discount_value": Decimal("10"), "usage_limit": 50},
    {"code": "LOFT25", "discount_type": "fixed", "discount_value": Decimal("25"), "usage_limit": 5},
]

# (property index, days from today until check-in, nights, voucher code)
BOOKINGS = [
    (0, 7, 3, "WELCOME10"),
    (0, 14, 2, None),
    (1, 10, 5, None),
    (1, 21, 4, None),
    (2, 30, 28, None),
]


# ---------------------------------------------------------------------------
# Seeding logic
# ---------------------------------------------------------------------------


async def seed() -> None:
    """Create tables, clear earlier demo data, and insert the sample set."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    today = system_clock.today()

    async with async_session_factory() as db:
        # Remove earlier demo data so the script can be re-run
        existing = await db.execute(select(Property.id).where(Property.owner_id == DEMO_OWNER_ID))
        property_ids = list(existing.scalars().all())
        if property_ids:
            print(f"⚠️  Found {len(property_ids)} demo properties. Deleting and re-seeding...")
            await db.execute(delete(VoucherUsage).where(VoucherUsage.property_id.in_(property_ids)))
            await db.execute(delete(Booking).where(Booking.property_id.in_(property_ids)))
            await db.execute(delete(Voucher).where(Voucher.property_id.in_(property_ids)))
            await db.execute(delete(Property).where(Property.id.in_(property_ids)))
            await db.commit()

        live: list[Property] = []
        for data in PROPERTIES:
            fields = dict(data)
            commission = fields.pop("commission_percentage")
            prop = await property_service.submit_property(
                db, owner_id=DEMO_OWNER_ID, submitted_at=system_clock.now(), **fields
            )
            await property_service.approve_property(
                db, prop.id, commission_percentage=commission, approved_at=system_clock.now()
            )
            await property_service.accept_contract(db, prop.id)
            live.append(prop)
            print(f"   🏠 {prop.title} — {prop.base_rate} + {commission}% = ${prop.final_rate}/night")

        await property_service.submit_property(
            db, owner_id=DEMO_OWNER_ID, submitted_at=system_clock.now(), **PENDING_PROPERTY
        )
        await db.commit()
        print(f"✅ Created {len(live)} live properties and 1 awaiting review")

        for data in VOUCHERS:
            await voucher_service.create_voucher(
                db,
                owner_id=DEMO_OWNER_ID,
                property_id=live[0].id,
                expiration_date=today + timedelta(days=90),
                today=today,
                **data,
            )
        await db.commit()
        print(f"✅ Created {len(VOUCHERS)} vouchers for {live[0].title}")

        service = ReservationService(db)
        total = Decimal("0")
        for index, offset, nights, code in BOOKINGS:
            check_in = today + timedelta(days=offset)
            booking = await service.create_booking(
                BookingRequest(
                    property_id=live[index].id,
                    customer_id=DEMO_CUSTOMER_ID,
                    check_in=check_in,
                    check_out=check_in + timedelta(days=nights),
                    guests=2,
                    customer_name="Demo Guest",
                    customer_email="guest@example.com",
                    voucher_code=code,
                )
            )
            total += booking.total_amount
        print(f"✅ Created {len(BOOKINGS)} bookings")

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Owner:         {DEMO_OWNER_ID}")
        print(f"   Customer:      {DEMO_CUSTOMER_ID}")
        print(f"   Properties:    {len(live) + 1} ({len(live)} live)")
        print(f"   Vouchers:      {len(VOUCHERS)}")
        print(f"   Bookings:      {len(BOOKINGS)} (total ${total})")
        print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
