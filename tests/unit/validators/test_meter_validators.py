"""Tests for meter reading and charge input validators."""

from decimal import Decimal

import pytest

from flight_billing.models.aircraft import BillingBasis, MeterReading
from flight_billing.validators.meter_validators import (
    MeterValidators,
    validate_charge_input,
    validate_meter_reading,
)
from flight_billing.validators.validation_report import ValidationReport


class TestMeterValidators:
    """Tests for single value and pair checks."""

    def test_missing_value(self):
        report = ValidationReport()
        MeterValidators.validate_meter_value(None, "hobbs_start", report)

        assert report.first_error_message() == "Meter value is required"

    def test_negative_value(self):
        report = ValidationReport()
        MeterValidators.validate_meter_value(Decimal("-1"), "tach_start", report)

        assert report.first_error_message() == "Meter value cannot be negative"

    def test_valid_value(self):
        report = ValidationReport()
        MeterValidators.validate_meter_value(Decimal("0"), "tach_start", report)

        assert report.is_valid()

    def test_pair_end_before_start(self):
        report = ValidationReport()
        MeterValidators.validate_meter_pair(
            Decimal("101.5"), Decimal("100.0"), "hobbs", report, is_basis=True
        )

        error = report.get_errors()[0]
        assert error.field == "hobbs_end"
        assert error.message == "End Hobbs must be greater than Start Hobbs"
        assert error.context == {"billing_basis": "hobbs"}

    def test_pair_equal_values(self):
        report = ValidationReport()
        MeterValidators.validate_meter_pair(
            Decimal("50.0"), Decimal("50.0"), "tach", report
        )

        error = report.get_errors()[0]
        assert error.message == "End Tach must be greater than Start Tach"
        assert error.context is None

    def test_pair_very_long_flight_warns(self):
        report = ValidationReport()
        MeterValidators.validate_meter_pair(
            Decimal("100.0"), Decimal("1100.0"), "hobbs", report
        )

        assert report.is_valid()
        assert report.warning_count == 1


class TestValidateMeterReading:
    """Tests for whole-reading validation."""

    def test_valid_reading(self, scenario_a_reading):
        report = validate_meter_reading(scenario_a_reading, BillingBasis.HOBBS)
        assert report.is_valid()
        assert not report.issues

    def test_valid_solo_continuation(self, scenario_b_reading):
        report = validate_meter_reading(scenario_b_reading, BillingBasis.HOBBS)
        assert report.is_valid()

    def test_missing_values_reported_together(self):
        report = validate_meter_reading(
            MeterReading(hobbs_start="100.0"), BillingBasis.HOBBS
        )

        assert report.error_count == 3
        assert {issue.field for issue in report.get_errors()} == {
            "hobbs_end",
            "tach_start",
            "tach_end",
        }

    def test_hobbs_end_not_after_start(self):
        reading = MeterReading(
            hobbs_start="101.5", hobbs_end="100.0", tach_start="50.0", tach_end="51.2"
        )

        report = validate_meter_reading(reading, BillingBasis.HOBBS)

        assert report.first_error_message() == (
            "End Hobbs must be greater than Start Hobbs"
        )

    def test_tacho_basis_flagged_in_context(self):
        reading = MeterReading(
            hobbs_start="100.0", hobbs_end="101.5", tach_start="51.2", tach_end="50.0"
        )

        report = validate_meter_reading(reading, BillingBasis.TACHO)

        assert report.get_errors()[0].context == {"billing_basis": "tach"}

    def test_solo_end_not_after_dual_end(self):
        reading = MeterReading(
            hobbs_start="100.0",
            hobbs_end="101.5",
            tach_start="50.0",
            tach_end="51.2",
            solo_end_hobbs="101.5",
        )

        report = validate_meter_reading(reading, BillingBasis.HOBBS)

        assert report.first_error_message() == (
            "Solo End Hobbs must be greater than Dual End Hobbs"
        )


class TestValidateChargeInput:
    """Tests for line item input validation."""

    def test_valid_input(self):
        report = validate_charge_input(
            Decimal("2"), Decimal("20.00"), Decimal("0.15"), "Landing fee"
        )
        assert report.is_valid()
        assert not report.issues

    @pytest.mark.parametrize(
        "quantity,unit_price,tax_rate,description,message",
        [
            (
                Decimal("-1"),
                Decimal("20"),
                None,
                "Landing",
                "Quantity must be a non-negative number",
            ),
            (
                Decimal("1"),
                Decimal("-20"),
                None,
                "Landing",
                "Unit price must be a non-negative number",
            ),
            (
                Decimal("1"),
                Decimal("20"),
                Decimal("15"),
                "Landing",
                "Tax rate must be between 0 and 1 (e.g., 0.15 for 15%)",
            ),
            (Decimal("1"), Decimal("20"), None, "  ", "Description cannot be empty"),
            (None, Decimal("20"), None, "Landing", "Quantity is required"),
        ],
    )
    def test_invalid_input(self, quantity, unit_price, tax_rate, description, message):
        report = validate_charge_input(quantity, unit_price, tax_rate, description)

        assert report.first_error_message() == message

    def test_zero_quantity_warns(self):
        report = validate_charge_input(Decimal("0"), Decimal("20"))

        assert report.is_valid()
        assert report.warning_count == 1
