"""Shared API dependencies — single import point for all routers.

Re-exports the database session and builds the clock and reservation
service so that router modules can import everything from one place::

    from staybook.api.deps import get_db, get_reservation_service
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.clock import Clock, system_clock
from staybook.database import get_db
from staybook.services.reservations import ReservationService


def get_clock() -> Clock:
    """Clock dependency; tests override it with a frozen clock."""
    return system_clock


async def get_reservation_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ReservationService:
    return ReservationService(db, clock=clock)


__all__ = [
    "get_clock",
    "get_db",
    "get_reservation_service",
]
