"""Tests for rounding utilities."""

from decimal import Decimal

import pytest

from flight_billing.calculators.rounding import meter_delta, round_currency, round_hours


class TestRounding:
    """Test half-up rounding of hours and money."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.25", "1.3"),
            ("1.24", "1.2"),
            ("0.04", "0.0"),
            ("0.05", "0.1"),
            ("2", "2.0"),
        ],
    )
    def test_round_hours(self, value, expected):
        assert round_hours(Decimal(value)) == Decimal(expected)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("33.745", "33.75"),
            ("33.744", "33.74"),
            ("0.005", "0.01"),
            ("225", "225.00"),
        ],
    )
    def test_round_currency(self, value, expected):
        assert round_currency(Decimal(value)) == Decimal(expected)

    def test_meter_delta(self):
        assert meter_delta(Decimal("100.0"), Decimal("101.5")) == Decimal("1.5")
        assert meter_delta(Decimal("50.00"), Decimal("51.16")) == Decimal("1.2")

    def test_meter_delta_has_no_float_drift(self):
        """Test that decimal meter deltas are exact."""
        assert meter_delta(Decimal("50.0"), Decimal("51.2")) == Decimal("1.2")
