"""Field-level validators for meter readings and charge inputs.

This module checks raw meter readings before segments are derived, and the
quantity, price and tax inputs of manually added charges. Problems are
collected in a ValidationReport rather than raised.
"""

from decimal import Decimal
from typing import Optional

from flight_billing.models.aircraft import BillingBasis, MeterReading
from flight_billing.validators.validation_report import ValidationReport

# Readings larger than this are almost certainly a typo (extra digit)
MAX_SINGLE_FLIGHT_HOURS = Decimal("24")


class MeterValidators:
    """Collection of meter reading validation methods."""

    @staticmethod
    def validate_meter_value(
        value: Optional[Decimal],
        field_name: str,
        report: ValidationReport,
    ) -> None:
        """Validate that a meter value is present and not negative.

        Args:
            value: The meter value to validate
            field_name: Name of the field being validated
            report: ValidationReport to collect issues
        """
        if value is None:
            report.add_error(field_name, "Meter value is required", None)
            return

        if not value.is_finite():
            report.add_error(field_name, "Meter value must be a number", value)
            return

        if value < 0:
            report.add_error(field_name, "Meter value cannot be negative", value)

    @staticmethod
    def validate_meter_pair(
        start: Optional[Decimal],
        end: Optional[Decimal],
        meter_name: str,
        report: ValidationReport,
        is_basis: bool = False,
    ) -> None:
        """Validate a start/end meter pair.

        Args:
            start: Start reading
            end: End reading
            meter_name: "hobbs" or "tach"
            report: ValidationReport to collect issues
            is_basis: Whether this pair is the billing basis
        """
        label = "Hobbs" if meter_name == "hobbs" else "Tach"
        context = {"billing_basis": meter_name} if is_basis else None

        if start is None or end is None:
            message = f"Start and End {label} are required"
            if is_basis:
                message += " (billing basis)"
            report.add_error(f"{meter_name}_end", message, end, context)
            return

        if not (start.is_finite() and end.is_finite()):
            return

        if end <= start:
            report.add_error(
                f"{meter_name}_end",
                f"End {label} must be greater than Start {label}",
                end,
                context,
            )
            return

        if end - start > MAX_SINGLE_FLIGHT_HOURS:
            report.add_warning(
                f"{meter_name}_end",
                f"{label} delta of {end - start}h is unusually long for one flight",
                end,
                context,
            )

    @staticmethod
    def validate_solo_end(
        reading: MeterReading,
        report: ValidationReport,
    ) -> None:
        """Validate the solo continuation end reading.

        The solo end must be greater than the dual end Hobbs.
        """
        if reading.solo_end_hobbs is None:
            return

        if not reading.solo_end_hobbs.is_finite() or reading.solo_end_hobbs < 0:
            report.add_error(
                "solo_end_hobbs",
                "Meter value must be a non-negative number",
                reading.solo_end_hobbs,
            )
            return

        hobbs_end = reading.hobbs_end
        if hobbs_end is not None and reading.solo_end_hobbs <= hobbs_end:
            report.add_error(
                "solo_end_hobbs",
                "Solo End Hobbs must be greater than Dual End Hobbs",
                reading.solo_end_hobbs,
            )


def validate_meter_reading(
    reading: MeterReading, basis: BillingBasis
) -> ValidationReport:
    """Validate a complete meter reading for a billing basis.

    Both meter pairs are required (the flight log records both); the pair
    matching the billing basis is flagged as such in the issue context.

    Args:
        reading: Meter reading to validate
        basis: Billing basis of the aircraft

    Returns:
        ValidationReport with every issue found
    """
    report = ValidationReport()

    for field_name in ("hobbs_start", "hobbs_end", "tach_start", "tach_end"):
        MeterValidators.validate_meter_value(
            getattr(reading, field_name), field_name, report
        )

    if report.has_errors():
        # Pair checks would only repeat the missing/negative value errors
        return report

    MeterValidators.validate_meter_pair(
        reading.hobbs_start,
        reading.hobbs_end,
        "hobbs",
        report,
        is_basis=basis is BillingBasis.HOBBS,
    )
    MeterValidators.validate_meter_pair(
        reading.tach_start,
        reading.tach_end,
        "tach",
        report,
        is_basis=basis is BillingBasis.TACHO,
    )
    MeterValidators.validate_solo_end(reading, report)

    return report


def validate_charge_input(
    quantity: Optional[Decimal],
    unit_price: Optional[Decimal],
    tax_rate: Optional[Decimal] = None,
    description: Optional[str] = "-",
) -> ValidationReport:
    """Validate the inputs of a line item.

    Args:
        quantity: Hours or units billed
        unit_price: Tax-exclusive price per unit
        tax_rate: Tax rate, must lie in [0, 1] when given
        description: Item description, must not be blank

    Returns:
        ValidationReport with every issue found
    """
    report = ValidationReport()

    if quantity is None:
        report.add_error("quantity", "Quantity is required", None)
    elif not quantity.is_finite() or quantity < 0:
        report.add_error("quantity", "Quantity must be a non-negative number", quantity)

    if unit_price is None:
        report.add_error("unit_price", "Unit price is required", None)
    elif not unit_price.is_finite() or unit_price < 0:
        report.add_error(
            "unit_price", "Unit price must be a non-negative number", unit_price
        )

    if tax_rate is not None and (
        not tax_rate.is_finite() or tax_rate < 0 or tax_rate > 1
    ):
        report.add_error(
            "tax_rate",
            "Tax rate must be between 0 and 1 (e.g., 0.15 for 15%)",
            tax_rate,
        )

    if description is None or not description.strip():
        report.add_error("description", "Description cannot be empty", description)

    if quantity is not None and quantity.is_finite() and quantity == 0:
        report.add_warning(
            "quantity", "Quantity is zero; the item bills nothing", quantity
        )

    return report
