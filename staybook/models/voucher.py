"""Voucher models — discount codes and their append-only usage log."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staybook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

DISCOUNT_TYPES = ("percentage", "fixed")


class Voucher(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A discount code scoped to exactly one property."""

    __tablename__ = "vouchers"

    # Stored upper-cased so the unique index is case-insensitive.
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)  # percentage, fixed
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    usage_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_vouchers_used_count_nonnegative"),
        CheckConstraint("used_count <= usage_limit", name="ck_vouchers_used_count_within_limit"),
        CheckConstraint("usage_limit >= 1", name="ck_vouchers_usage_limit_positive"),
    )

    def __repr__(self) -> str:
        return f"<Voucher(id={self.id}, code={self.code!r}, used={self.used_count}/{self.usage_limit})>"


class VoucherUsage(UUIDPrimaryKeyMixin, Base):
    """One redemption of a voucher against a booking. Never updated or deleted."""

    __tablename__ = "voucher_usage"

    voucher_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    property_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    used_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<VoucherUsage(voucher_id={self.voucher_id}, booking_id={self.booking_id})>"
