"""Booking model — confirmed stays and their charge breakdown."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staybook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

BOOKING_STATUSES = ("confirmed", "cancelled", "completed")
PAYMENT_STATUSES = ("paid", "pending", "failed")


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A reservation of a property for the half-open range [check_in, check_out)."""

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), default=None)
    customer_email: Mapped[str | None] = mapped_column(String(255), default=None)
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, default=1)

    # Charge breakdown, frozen at booking time
    nightly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate_source: Mapped[str] = mapped_column(String(20), default="final")  # final, proposed
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    taxes: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    voucher_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("vouchers.id", ondelete="SET NULL"),
        default=None,
    )

    status: Mapped[str] = mapped_column(String(50), default="confirmed", index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default="paid")
    booked_at: Mapped[datetime] = mapped_column(nullable=False)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)
    cancelled_by: Mapped[uuid.UUID | None] = mapped_column(default=None)
    completed_at: Mapped[datetime | None] = mapped_column(default=None)

    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_bookings_date_order"),
        Index("ix_bookings_property_dates", "property_id", "check_in", "check_out"),
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, "
            f"check_in={self.check_in}, check_out={self.check_out}, status={self.status})>"
        )
