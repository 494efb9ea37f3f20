"""Tests for the charge planner."""

from decimal import Decimal

from flight_billing.completion.charge_planner import ChargeRequest, plan_charges
from flight_billing.models.aircraft import FlightType, MeterReading
from flight_billing.models.invoice import ItemOrigin
from flight_billing.models.result import ErrorKind
from flight_billing.models.segment import SegmentKind
from flight_billing.services.rate_resolver import RateResolver


class TestPlanCharges:
    """Test end-to-end calculation of computed items."""

    def test_dual_flight(self, scenario_a_reading, aircraft, dual_flight_type, resolver):
        """Test a dual flight is priced into aircraft and instructor items."""
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=dual_flight_type,
            instructor_id="ins-1",
            instructor_name="Jane Smith",
        )

        plan = plan_charges(request, resolver).value

        aircraft_item, instructor_item = plan.items
        assert aircraft_item.quantity == Decimal("1.5")
        assert aircraft_item.amount == Decimal("225.00")
        assert aircraft_item.tax_amount == Decimal("33.75")
        assert aircraft_item.line_total == Decimal("258.75")
        assert instructor_item.description == "Dual PPL Training - Jane Smith"
        assert instructor_item.line_total == Decimal("138.00")
        assert all(item.origin is ItemOrigin.COMPUTED for item in plan.items)
        assert plan.totals.total == Decimal("396.75")
        assert plan.tax_rate == Decimal("0.15")
        assert plan.flight_log.total_hours_end == Decimal("1236.0")

    def test_solo_continuation_billed_at_solo_rate(
        self,
        scenario_b_reading,
        aircraft,
        dual_flight_type,
        solo_flight_type,
        resolver,
    ):
        """Test the solo segment uses the solo flight type's own rate."""
        request = ChargeRequest(
            meter_reading=scenario_b_reading,
            aircraft=aircraft,
            flight_type=dual_flight_type,
            instructor_id="ins-1",
            solo_flight_type=solo_flight_type,
        )

        plan = plan_charges(request, resolver).value

        assert [s.kind for s in plan.segments] == [
            SegmentKind.DUAL,
            SegmentKind.SOLO_CONTINUATION,
        ]
        solo_items = [i for i in plan.items if i.charge_key.startswith("solo:")]
        assert len(solo_items) == 1
        solo_item = solo_items[0]
        assert solo_item.quantity == Decimal("0.5")
        assert solo_item.unit_price == Decimal("140.00")
        assert solo_item.description == "Solo PPL Solo - ZK-ABC"
        assert plan.flight_log.solo_time == Decimal("0.5")

    def test_solo_flight_type_has_no_instructor_item(
        self, scenario_a_reading, aircraft, solo_flight_type, resolver
    ):
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=solo_flight_type,
        )

        plan = plan_charges(request, resolver).value

        (item,) = plan.items
        assert item.line_total == Decimal("241.50")

    def test_trial_instructor_not_taxed(
        self, scenario_a_reading, aircraft, trial_flight_type, resolver
    ):
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=trial_flight_type,
            instructor_id="ins-1",
        )

        plan = plan_charges(request, resolver).value

        assert plan.items[1].tax_amount == Decimal("0.00")
        assert plan.items[1].line_total == Decimal("135.00")

    def test_rate_not_configured(self, scenario_a_reading, aircraft, resolver):
        """Test a flight type without an aircraft rate fails the plan."""
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=FlightType(id="ft-aero", name="Aerobatics"),
            instructor_id="ins-1",
        )

        result = plan_charges(request, resolver)

        assert result.kind is ErrorKind.RATE_NOT_CONFIGURED

    def test_rate_lookup_failed(
        self, scenario_a_reading, aircraft, dual_flight_type, failing_rate_source
    ):
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=dual_flight_type,
            instructor_id="ins-1",
        )

        result = plan_charges(request, RateResolver(failing_rate_source))

        assert result.kind is ErrorKind.RATE_LOOKUP_FAILED

    def test_invalid_reading_stops_before_rates(
        self, aircraft, dual_flight_type, rate_source, resolver
    ):
        request = ChargeRequest(
            meter_reading=MeterReading(hobbs_start="100"),
            aircraft=aircraft,
            flight_type=dual_flight_type,
            instructor_id="ins-1",
        )

        result = plan_charges(request, resolver)

        assert result.kind is ErrorKind.INVALID_METER_READING
        assert rate_source.lookup_count == 0

    def test_baseline_passed_through(
        self, scenario_a_reading, aircraft, dual_flight_type, resolver
    ):
        request = ChargeRequest(
            meter_reading=scenario_a_reading,
            aircraft=aircraft,
            flight_type=dual_flight_type,
            instructor_id="ins-1",
        )

        plan = plan_charges(request, resolver, total_hours_start=Decimal("1000.0")).value

        assert plan.flight_log.total_hours_start == Decimal("1000.0")
        assert plan.flight_log.total_hours_end == Decimal("1001.5")
