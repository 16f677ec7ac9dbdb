"""Rate calculator — commissioned nightly rates and booking charge breakdowns.

Everything here is pure: no I/O, no clock, no shared state. Money is handled
as ``Decimal`` and every rounded figure uses ROUND_HALF_UP to whole currency
units, so identical inputs always give identical outputs.

Data flow::

    proposed_rate --(approval)--> base_rate --(+ commission)--> final_rate
    final_rate x nights = subtotal; + service fee + taxes = total
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from staybook.config import settings
from staybook.errors import InvalidInput

_WHOLE_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class RateCalculation:
    """Base rate plus platform commission."""

    base_rate: Decimal
    commission_percentage: Decimal
    final_rate: Decimal
    commission_amount: Decimal


@dataclass(frozen=True)
class BookingCalculation:
    """Charge breakdown for a stay, before any voucher discount."""

    subtotal: Decimal
    service_fee: Decimal
    taxes: Decimal
    total: Decimal
    nights: int
    rate_per_night: Decimal


@dataclass(frozen=True)
class NightlyRate:
    """The rate a booking is charged at and where it came from.

    ``source`` is ``"final"`` for the contracted, commissioned rate and
    ``"proposed"`` when the owner's unapproved proposal had to stand in.
    """

    amount: Decimal
    source: str

    @property
    def is_fallback(self) -> bool:
        return self.source != "final"


def to_decimal(value: Decimal | int | float | str, field: str = "value") -> Decimal:
    """Coerce a number to Decimal via its string form (no binary float drift)."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInput(f"{field} must be a number") from exc
    if not result.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero."""
    return amount.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    return round_money(amount * percentage / _HUNDRED)


def calculate_final_rate(
    base_rate: Decimal | int | float | str,
    commission_percentage: Decimal | int | float | str | None = None,
) -> RateCalculation:
    """Add the platform commission on top of the owner's base rate.

    ``commission_amount = round(base_rate * pct / 100)`` and
    ``final_rate = base_rate + commission_amount``.
    """
    base = to_decimal(base_rate, "base_rate")
    pct = to_decimal(
        settings.default_commission_percentage if commission_percentage is None else commission_percentage,
        "commission_percentage",
    )
    if base < 0:
        raise InvalidInput("base_rate must not be negative", base_rate=str(base))
    if pct < 0 or pct > _HUNDRED:
        raise InvalidInput("commission_percentage must be between 0 and 100", commission_percentage=str(pct))

    commission_amount = percent_of(base, pct)
    return RateCalculation(
        base_rate=base,
        commission_percentage=pct,
        final_rate=base + commission_amount,
        commission_amount=commission_amount,
    )


def calculate_booking_total(
    rate_per_night: Decimal | int | float | str,
    nights: int,
) -> BookingCalculation:
    """Compute subtotal, service fee, taxes, and total for a stay.

    Fees and taxes are always computed on the undiscounted subtotal.
    """
    rate = to_decimal(rate_per_night, "rate_per_night")
    if rate <= 0:
        raise InvalidInput("rate_per_night must be greater than 0", rate_per_night=str(rate))
    if isinstance(nights, bool) or not isinstance(nights, int) or nights <= 0:
        raise InvalidInput("nights must be a positive integer", nights=nights)

    subtotal = rate * nights
    service_fee = percent_of(subtotal, settings.service_fee_percentage)
    taxes = percent_of(subtotal, settings.tax_percentage)
    return BookingCalculation(
        subtotal=subtotal,
        service_fee=service_fee,
        taxes=taxes,
        total=subtotal + service_fee + taxes,
        nights=nights,
        rate_per_night=rate,
    )


def calculate_nights(check_in: date, check_out: date) -> int:
    """Number of nights in [check_in, check_out)."""
    return (check_out - check_in).days


def resolve_nightly_rate(prop) -> NightlyRate:
    """Pick the rate a property is charged at.

    The commissioned ``final_rate`` wins. Without one the owner's
    ``proposed_rate`` is returned, tagged ``source="proposed"`` so callers
    can flag it instead of treating it as the contracted rate.
    """
    if prop.final_rate is not None and prop.final_rate > 0:
        return NightlyRate(amount=to_decimal(prop.final_rate), source="final")
    if prop.proposed_rate is not None and prop.proposed_rate > 0:
        return NightlyRate(amount=to_decimal(prop.proposed_rate), source="proposed")
    raise InvalidInput("Property has no usable nightly rate", property_id=str(prop.id))


def is_property_live(prop) -> bool:
    """Whether guests may see and book the property."""
    return (
        prop.status == "approved"
        and prop.contract_approved is True
        and prop.final_rate is not None
        and prop.final_rate > 0
    )


def classify_unit_type(prop, threshold: Decimal | None = None) -> str:
    """Classify a property as ``short-term`` or ``long-term``.

    The owner's explicit ``rental_type`` wins; otherwise nightly rates under
    the threshold count as short-term.
    """
    if prop.rental_type:
        return prop.rental_type
    limit = settings.short_term_rate_threshold if threshold is None else to_decimal(threshold, "threshold")
    rate = prop.final_rate or prop.proposed_rate or Decimal("0")
    return "short-term" if rate < limit else "long-term"


def apply_commission(prop, base_rate=None, commission_percentage=None) -> RateCalculation:
    """Recompute and store a property's rate fields through calculate_final_rate."""
    base = prop.base_rate if base_rate is None else base_rate
    if base is None:
        base = prop.proposed_rate
    pct = prop.commission_percentage if commission_percentage is None else commission_percentage
    calculation = calculate_final_rate(base, pct)
    prop.base_rate = calculation.base_rate
    prop.commission_percentage = calculation.commission_percentage
    prop.commission_amount = calculation.commission_amount
    prop.final_rate = calculation.final_rate
    return calculation
