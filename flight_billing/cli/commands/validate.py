"""Validate meter readings command."""

import sys
from decimal import Decimal
from typing import Optional

import click

from flight_billing.cli.utils.formatters import (
    format_error,
    format_info,
    format_success,
    format_warning,
)
from flight_billing.cli.utils.options import build_meter_reading, meter_reading_options
from flight_billing.models.aircraft import BillingBasis
from flight_billing.validators.meter_validators import validate_meter_reading
from flight_billing.validators.validation_report import ValidationSeverity


@click.command(name="validate-meters")
@meter_reading_options
@click.option(
    "--severity",
    type=click.Choice(["error", "warning", "info"], case_sensitive=False),
    default="warning",
    help="Minimum severity level to display (default: warning)",
)
def validate_meters(
    hobbs_start: Optional[Decimal],
    hobbs_end: Optional[Decimal],
    tach_start: Optional[Decimal],
    tach_end: Optional[Decimal],
    solo_end_hobbs: Optional[Decimal],
    basis: str,
    severity: str,
):
    """Validate meter readings before completing a flight.

    Checks for:
    - Missing Hobbs or Tacho readings
    - End readings not greater than start readings
    - Solo end Hobbs not greater than dual end Hobbs
    - Implausibly long flights

    Returns non-zero exit code if errors are found.

    Example:
        flight-billing validate-meters --hobbs-start 100.0 --hobbs-end 101.5 \\
            --tach-start 50.0 --tach-end 51.2
    """
    severity_level = ValidationSeverity[severity.upper()]
    billing_basis = BillingBasis(basis.lower())

    click.echo(format_info(f"Validating meter readings ({billing_basis.value} basis)..."))

    reading = build_meter_reading(
        hobbs_start, hobbs_end, tach_start, tach_end, solo_end_hobbs
    )
    report = validate_meter_reading(reading, billing_basis)

    click.echo()
    click.echo("=" * 60)
    click.echo("Validation Summary")
    click.echo("=" * 60)
    click.echo(f"Errors:           {report.error_count}")
    click.echo(f"Warnings:         {report.warning_count}")
    click.echo(f"Info:             {report.info_count}")
    click.echo()

    for issue in report.issues:
        if issue.severity < severity_level:
            continue
        text = f"  {issue.field}: {issue.message}"
        if issue.severity == ValidationSeverity.ERROR:
            click.echo(format_error(text))
        elif issue.severity == ValidationSeverity.WARNING:
            click.echo(format_warning(text))
        else:
            click.echo(format_info(text))

    click.echo()
    if report.has_errors():
        click.echo(format_error(f"Validation failed with {report.error_count} error(s)"))
        sys.exit(1)
    if report.warning_count:
        click.echo(
            format_warning(f"Validation completed with {report.warning_count} warning(s)")
        )
    else:
        click.echo(format_success("Meter readings are valid"))
