"""Tests for the rate calculator — commission, charge breakdowns, unit types."""

import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from staybook.errors import InvalidInput, ValidationError
from staybook.services.rates import (
    apply_commission,
    calculate_booking_total,
    calculate_final_rate,
    calculate_nights,
    classify_unit_type,
    is_property_live,
    resolve_nightly_rate,
    round_money,
    to_decimal,
)


def _prop(**overrides) -> SimpleNamespace:
    data = {
        "id": uuid.uuid4(),
        "status": "approved",
        "contract_approved": True,
        "proposed_rate": Decimal("100"),
        "base_rate": Decimal("100"),
        "commission_percentage": Decimal("15"),
        "commission_amount": Decimal("15"),
        "final_rate": Decimal("115"),
        "rental_type": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


# ---------------------------------------------------------------------------
# calculate_final_rate
# ---------------------------------------------------------------------------


class TestCalculateFinalRate:
    def test_adds_commission_on_top(self):
        calc = calculate_final_rate(100, 15)
        assert calc.base_rate == Decimal("100")
        assert calc.commission_percentage == Decimal("15")
        assert calc.commission_amount == Decimal("15")
        assert calc.final_rate == Decimal("115")

    def test_default_commission_is_fifteen_percent(self):
        assert calculate_final_rate(200).final_rate == Decimal("230")

    def test_half_rounds_up(self):
        # 50 * 15% = 7.5
        calc = calculate_final_rate(50, 15)
        assert calc.commission_amount == Decimal("8")
        assert calc.final_rate == Decimal("58")

    def test_accepts_float_and_string_without_drift(self):
        assert calculate_final_rate(0.1 + 0.2, 0).final_rate == calculate_final_rate("0.30000000000000004", 0).final_rate

    def test_zero_commission(self):
        calc = calculate_final_rate(120, 0)
        assert calc.commission_amount == Decimal("0")
        assert calc.final_rate == Decimal("120")

    def test_same_inputs_same_outputs(self):
        assert calculate_final_rate("137", "12.5") == calculate_final_rate(Decimal("137"), Decimal("12.5"))

    def test_final_rate_equals_base_plus_rounded_commission(self):
        for base in (50, 75, 99, 133, 1999):
            for pct in (10, 12.5, 15, 25):
                calc = calculate_final_rate(base, pct)
                assert calc.final_rate == calc.base_rate + round_money(calc.base_rate * calc.commission_percentage / 100)
                assert calc.final_rate >= calc.base_rate

    @pytest.mark.parametrize(
        "base, pct",
        [(-1, 15), (100, -5), (100, 101), ("abc", 15), (100, float("nan")), (True, 15)],
    )
    def test_invalid_input(self, base, pct):
        with pytest.raises(InvalidInput):
            calculate_final_rate(base, pct)

    def test_invalid_input_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            calculate_final_rate(-10)


# ---------------------------------------------------------------------------
# calculate_booking_total
# ---------------------------------------------------------------------------


class TestCalculateBookingTotal:
    def test_three_nights_breakdown(self):
        calc = calculate_booking_total(115, 3)
        assert calc.subtotal == Decimal("345")
        assert calc.service_fee == Decimal("41")  # 41.4
        assert calc.taxes == Decimal("28")  # 27.6
        assert calc.total == Decimal("414")
        assert calc.nights == 3
        assert calc.rate_per_night == Decimal("115")

    def test_total_is_sum_of_parts(self):
        for rate, nights in [(58, 1), (99, 7), (1234, 2), ("149.50", 4)]:
            calc = calculate_booking_total(rate, nights)
            assert calc.total == calc.subtotal + calc.service_fee + calc.taxes
            assert calc.subtotal == to_decimal(rate) * nights

    def test_same_inputs_same_outputs(self):
        first = calculate_booking_total("149.50", 4)
        assert calculate_booking_total("149.50", 4) == first
        assert calculate_booking_total(Decimal("149.50"), 4) == first
        assert calculate_booking_total(149.5, 4) == first
        assert first.subtotal == Decimal("598")
        assert first.service_fee == Decimal("72")  # 71.76
        assert first.taxes == Decimal("48")  # 47.84
        assert first.total == Decimal("718")

    def test_fees_scale_with_subtotal(self):
        one = calculate_booking_total(100, 1)
        assert one.service_fee == Decimal("12")
        assert one.taxes == Decimal("8")
        assert one.total == Decimal("120")

    @pytest.mark.parametrize(
        "rate, nights",
        [(0, 3), (-5, 3), (100, 0), (100, -1), (100, 2.5), (100, True)],
    )
    def test_invalid_input(self, rate, nights):
        with pytest.raises(InvalidInput):
            calculate_booking_total(rate, nights)


# ---------------------------------------------------------------------------
# Property helpers
# ---------------------------------------------------------------------------


class TestPropertyRateHelpers:
    def test_nights(self):
        assert calculate_nights(date(2024, 6, 10), date(2024, 6, 13)) == 3

    def test_final_rate_preferred(self):
        rate = resolve_nightly_rate(_prop())
        assert rate.amount == Decimal("115")
        assert rate.source == "final"
        assert rate.is_fallback is False

    def test_falls_back_to_proposed_rate(self):
        rate = resolve_nightly_rate(_prop(final_rate=None, proposed_rate=Decimal("90")))
        assert rate.amount == Decimal("90")
        assert rate.source == "proposed"
        assert rate.is_fallback is True

    def test_no_usable_rate(self):
        with pytest.raises(InvalidInput):
            resolve_nightly_rate(_prop(final_rate=None, proposed_rate=None))

    def test_live_requires_approval_contract_and_rate(self):
        assert is_property_live(_prop())
        assert not is_property_live(_prop(status="pending_contract"))
        assert not is_property_live(_prop(contract_approved=False))
        assert not is_property_live(_prop(final_rate=None))
        assert not is_property_live(_prop(final_rate=Decimal("0")))

    def test_unit_type_by_rate(self):
        assert classify_unit_type(_prop(final_rate=Decimal("149"))) == "short-term"
        assert classify_unit_type(_prop(final_rate=Decimal("150"))) == "long-term"
        assert classify_unit_type(_prop(final_rate=Decimal("500")), threshold=600) == "short-term"

    def test_unit_type_explicit_rental_type_wins(self):
        assert classify_unit_type(_prop(final_rate=Decimal("80"), rental_type="long-term")) == "long-term"

    def test_apply_commission_updates_rate_fields(self):
        prop = _prop(base_rate=Decimal("200"), final_rate=None, commission_amount=None)
        apply_commission(prop, commission_percentage=20)
        assert prop.commission_percentage == Decimal("20")
        assert prop.commission_amount == Decimal("40")
        assert prop.final_rate == Decimal("240")

    def test_apply_commission_uses_proposed_rate_without_base(self):
        prop = _prop(base_rate=None, proposed_rate=Decimal("80"), final_rate=None)
        apply_commission(prop, commission_percentage=10)
        assert prop.base_rate == Decimal("80")
        assert prop.final_rate == Decimal("88")
