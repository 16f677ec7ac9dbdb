"""Clock port — the only source of "now" for the reservation core."""

from datetime import date, datetime

from staybook.database import utcnow


class Clock:
    """Wall clock in naive UTC. Tests substitute a frozen subclass."""

    def now(self) -> datetime:
        return utcnow()

    def today(self) -> date:
        return self.now().date()


system_clock = Clock()
