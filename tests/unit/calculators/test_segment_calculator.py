"""Tests for the segment calculator."""

from decimal import Decimal

from flight_billing.calculators.segment_calculator import calculate_segments
from flight_billing.models.aircraft import BillingBasis, MeterReading
from flight_billing.models.result import ErrorKind
from flight_billing.models.segment import SegmentKind


class TestCalculateSegments:
    """Test conversion of meter readings into billable segments."""

    def test_dual_flight_single_segment(self, scenario_a_reading, dual_flight_type):
        """Test a plain dual flight produces one dual segment."""
        result = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        assert result.is_ok
        (segment,) = result.value
        assert segment.kind is SegmentKind.DUAL
        assert segment.duration_hours == Decimal("1.5")
        assert segment.flight_type_id == "ft-dual"
        assert segment.instructor_id == "ins-1"

    def test_tacho_basis_uses_tacho_delta(self, scenario_a_reading, dual_flight_type):
        result = calculate_segments(
            scenario_a_reading, BillingBasis.TACHO, dual_flight_type, "ins-1"
        )

        assert result.value[0].duration_hours == Decimal("1.2")

    def test_solo_continuation(self, scenario_b_reading, dual_flight_type):
        """Test a solo end reading adds a solo continuation segment."""
        result = calculate_segments(
            scenario_b_reading,
            BillingBasis.HOBBS,
            dual_flight_type,
            "ins-1",
            solo_flight_type_id="ft-solo",
        )

        dual, solo = result.value
        assert dual.duration_hours == Decimal("1.5")
        assert solo.kind is SegmentKind.SOLO_CONTINUATION
        assert solo.duration_hours == Decimal("0.5")
        assert solo.flight_type_id == "ft-solo"
        assert solo.instructor_id is None

    def test_solo_continuation_defaults_to_dual_flight_type(
        self, scenario_b_reading, dual_flight_type
    ):
        result = calculate_segments(
            scenario_b_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        assert result.value[1].flight_type_id == "ft-dual"

    def test_solo_flight_type(self, scenario_a_reading, solo_flight_type):
        """Test a solo flight type needs no instructor and yields a solo segment."""
        result = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, solo_flight_type
        )

        (segment,) = result.value
        assert segment.kind is SegmentKind.SOLO
        assert not segment.has_instructor

    def test_solo_end_ignored_for_solo_flight_type(
        self, scenario_b_reading, solo_flight_type
    ):
        result = calculate_segments(
            scenario_b_reading, BillingBasis.HOBBS, solo_flight_type
        )

        assert len(result.value) == 1

    def test_trial_flight_requires_instructor(
        self, scenario_a_reading, trial_flight_type
    ):
        result = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, trial_flight_type
        )

        assert result.is_err
        assert result.kind is ErrorKind.INSTRUCTOR_REQUIRED
        assert result.detail == "Instructor required for trial flights"

    def test_dual_flight_requires_instructor(
        self, scenario_a_reading, dual_flight_type
    ):
        result = calculate_segments(
            scenario_a_reading, BillingBasis.HOBBS, dual_flight_type
        )

        assert result.kind is ErrorKind.INSTRUCTOR_REQUIRED

    def test_invalid_reading(self, dual_flight_type):
        """Test an end reading before the start is rejected with issues."""
        reading = MeterReading(
            hobbs_start="101.5", hobbs_end="100.0", tach_start="50.0", tach_end="51.2"
        )

        result = calculate_segments(
            reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        assert result.kind is ErrorKind.INVALID_METER_READING
        assert result.detail == "End Hobbs must be greater than Start Hobbs"
        assert result.issues[0].field == "hobbs_end"

    def test_missing_reading(self, dual_flight_type):
        result = calculate_segments(
            MeterReading(), BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        assert result.kind is ErrorKind.INVALID_METER_READING
        assert len(result.issues) == 4

    def test_zero_rounded_delta_produces_no_billable_time(self, dual_flight_type):
        """Test a basis delta that rounds to zero yields no segments."""
        reading = MeterReading(
            hobbs_start="100.0", hobbs_end="100.5", tach_start="50.00", tach_end="50.04"
        )

        result = calculate_segments(
            reading, BillingBasis.TACHO, dual_flight_type, "ins-1"
        )

        assert result.kind is ErrorKind.INVALID_METER_READING
        assert result.detail == "Meter readings produce no billable time"

    def test_zero_rounded_solo_continuation_is_dropped(self, dual_flight_type):
        reading = MeterReading(
            hobbs_start="100.0",
            hobbs_end="101.5",
            tach_start="50.0",
            tach_end="51.2",
            solo_end_hobbs="101.54",
        )

        result = calculate_segments(
            reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        assert [s.kind for s in result.value] == [SegmentKind.DUAL]

    def test_durations_are_positive_and_sum_to_deltas(
        self, scenario_b_reading, dual_flight_type
    ):
        """Test segment durations add up to the rounded meter deltas."""
        result = calculate_segments(
            scenario_b_reading, BillingBasis.HOBBS, dual_flight_type, "ins-1"
        )

        durations = [s.duration_hours for s in result.value]
        assert all(d > 0 for d in durations)
        assert sum(durations) == Decimal("2.0")
