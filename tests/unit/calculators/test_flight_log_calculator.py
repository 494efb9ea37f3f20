"""Tests for the flight log calculator."""

from decimal import Decimal

import pytest

from flight_billing.calculators.flight_log_calculator import (
    calculate_credited_time,
    calculate_flight_log,
)
from flight_billing.calculators.segment_calculator import calculate_segments
from flight_billing.models.aircraft import BillingBasis, TotalTimeMethod


class TestCalculateCreditedTime:
    """Test total time methods."""

    @pytest.mark.parametrize(
        "method,expected",
        [
            (TotalTimeMethod.HOBBS, "2.0"),
            (TotalTimeMethod.TACHO, "1.8"),
            (TotalTimeMethod.AIRSWITCH, "2.0"),
            (TotalTimeMethod.HOBBS_LESS_5, "1.9"),
            (TotalTimeMethod.HOBBS_LESS_10, "1.8"),
            (TotalTimeMethod.TACHO_LESS_5, "1.71"),
            (TotalTimeMethod.TACHO_LESS_10, "1.62"),
        ],
    )
    def test_methods(self, method, expected):
        credited = calculate_credited_time(Decimal("2.0"), Decimal("1.8"), method)
        assert credited == Decimal(expected)


class TestCalculateFlightLog:
    """Test flight log derivation."""

    def test_dual_flight(self, scenario_a_reading, aircraft, dual_flight_type):
        segments = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        ).value

        log = calculate_flight_log(scenario_a_reading, aircraft, segments)

        assert log.hobbs_time == Decimal("1.5")
        assert log.tach_time == Decimal("1.2")
        assert log.dual_time == Decimal("1.5")
        assert log.solo_time == Decimal("0.0")
        assert log.flight_time == Decimal("1.5")
        assert log.total_hours_start == Decimal("1234.5")
        assert log.total_hours_end == Decimal("1236.0")
        assert log.billing_basis is BillingBasis.HOBBS

    def test_solo_continuation_counts_as_solo_time(
        self, scenario_b_reading, aircraft, dual_flight_type
    ):
        segments = calculate_segments(
            scenario_b_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        ).value

        log = calculate_flight_log(scenario_b_reading, aircraft, segments)

        assert log.dual_time == Decimal("1.5")
        assert log.solo_time == Decimal("0.5")
        assert log.flight_time == Decimal("2.0")

    def test_baseline_is_kept(self, scenario_a_reading, aircraft, dual_flight_type):
        """Test a given baseline overrides the aircraft's current total hours."""
        segments = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        ).value
        moved = aircraft.model_copy(update={"total_hours": Decimal("1236.0")})

        log = calculate_flight_log(
            scenario_a_reading, moved, segments, total_hours_start=Decimal("1234.5")
        )

        assert log.total_hours_start == Decimal("1234.5")
        assert log.total_hours_end == Decimal("1236.0")

    def test_tacho_total_time_method(
        self, scenario_a_reading, aircraft, dual_flight_type
    ):
        segments = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        ).value
        tacho = aircraft.model_copy(
            update={"total_time_method": TotalTimeMethod.TACHO}
        )

        log = calculate_flight_log(scenario_a_reading, tacho, segments)

        assert log.total_hours_end == Decimal("1235.7")
