"""Property model — rental units submitted by owners."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staybook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

PROPERTY_STATUSES = ("pending_review", "pending_contract", "approved", "rejected")
RENTAL_TYPES = ("short-term", "long-term")


class Property(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A rental unit, priced by its owner and commissioned by the platform."""

    __tablename__ = "properties"

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    address: Mapped[str | None] = mapped_column(String(255), default=None)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    max_stay_days: Mapped[int | None] = mapped_column(Integer, default=None)
    rental_type: Mapped[str | None] = mapped_column(String(20), default=None)  # short-term, long-term

    # Rates: proposed by the owner, snapshotted as base_rate on approval,
    # final_rate always derived by staybook.services.rates.
    proposed_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    base_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    commission_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), default=None)
    commission_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    final_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)

    status: Mapped[str] = mapped_column(String(50), default="pending_review", index=True)
    contract_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text, default=None)
    appeal_count: Mapped[int] = mapped_column(Integer, default=0)
    submitted_at: Mapped[datetime | None] = mapped_column(default=None)
    approved_at: Mapped[datetime | None] = mapped_column(default=None)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title!r}, status={self.status!r})>"
