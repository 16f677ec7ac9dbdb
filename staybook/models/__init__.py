"""SQLAlchemy models for StayBook.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from staybook.models.booking import Booking
from staybook.models.property import Property
from staybook.models.voucher import Voucher, VoucherUsage

__all__ = [
    "Booking",
    "Property",
    "Voucher",
    "VoucherUsage",
]
