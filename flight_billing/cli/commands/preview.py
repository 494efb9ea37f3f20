"""Preview flight charges command."""

import json
from decimal import Decimal
from typing import Optional

import click

from flight_billing.cli.error_handlers import (
    CLIError,
    ConfigurationError,
    error_from_result,
    handle_cli_error,
)
from flight_billing.cli.utils.formatters import (
    format_info,
    format_money,
    format_success,
    format_table,
)
from flight_billing.cli.utils.options import (
    DECIMAL,
    build_meter_reading,
    meter_reading_options,
)
from flight_billing.completion.charge_planner import (
    ChargePlan,
    ChargeRequest,
    plan_charges,
)
from flight_billing.config.settings import get_config
from flight_billing.models.aircraft import (
    Aircraft,
    BillingBasis,
    FlightType,
    InstructionType,
    TotalTimeMethod,
)
from flight_billing.models.result import Err
from flight_billing.services.rate_cache import RateCache
from flight_billing.services.rate_resolver import RateResolver
from flight_billing.services.rate_sources import RateFileError, StaticRateSource


def _plan_as_dict(plan: ChargePlan) -> dict:
    totals = plan.totals
    return {
        "segments": [s.model_dump(mode="json") for s in plan.segments],
        "flight_log": plan.flight_log.model_dump(mode="json", exclude={"meter_reading"}),
        "line_items": [
            item.model_dump(
                mode="json",
                include={
                    "description",
                    "quantity",
                    "unit_price",
                    "tax_rate",
                    "amount",
                    "tax_amount",
                    "line_total",
                    "rate_inclusive",
                    "charge_key",
                },
            )
            for item in plan.items
        ],
        "totals": totals.model_dump(mode="json"),
    }


def _echo_plan(plan: ChargePlan) -> None:
    rows = [
        [
            item.description,
            str(item.quantity),
            format_money(item.unit_price),
            f"{item.tax_rate:.2%}",
            format_money(item.amount),
            format_money(item.tax_amount),
            format_money(item.line_total),
        ]
        for item in plan.items
    ]
    click.echo(
        format_table(
            ["Description", "Qty", "Rate", "Tax %", "Amount", "Tax", "Total"],
            rows,
            right_align=(1, 2, 3, 4, 5, 6),
        )
    )

    totals = plan.totals
    click.echo()
    click.echo(f"Subtotal:  {format_money(totals.subtotal):>12}")
    click.echo(f"Tax:       {format_money(totals.tax):>12}")
    click.echo(f"Total:     {format_money(totals.total):>12}")

    log = plan.flight_log
    click.echo()
    click.echo(
        f"Flight log: Hobbs {log.hobbs_time}h, Tacho {log.tach_time}h, "
        f"dual {log.dual_time}h, solo {log.solo_time}h"
    )
    click.echo(
        f"Airframe total hours: {log.total_hours_start} -> {log.total_hours_end}"
    )


@click.command(name="preview")
@click.option(
    "--rates",
    "rates_file",
    type=click.Path(dir_okay=False),
    required=True,
    help="JSON rate file (tax rate, aircraft and instructor rates)",
)
@click.option("--aircraft-id", required=True, help="Aircraft id used in the rate file")
@click.option("--registration", default=None, help="Aircraft registration")
@click.option(
    "--total-time-method",
    type=click.Choice([m.value for m in TotalTimeMethod], case_sensitive=False),
    default=None,
    help="How flight time is credited to total hours (default from config)",
)
@click.option("--total-hours", type=DECIMAL, default="0", help="Airframe total hours")
@click.option("--flight-type-id", required=True, help="Flight type flown")
@click.option("--flight-type-name", default=None, help="Flight type name")
@click.option(
    "--instruction-type",
    type=click.Choice([t.value for t in InstructionType], case_sensitive=False),
    default=InstructionType.DUAL.value,
    show_default=True,
)
@click.option("--instructor-id", default=None, help="Instructor aboard")
@click.option("--instructor-name", default=None, help="Instructor name")
@click.option(
    "--solo-flight-type-id",
    default=None,
    help="Flight type billed for the solo continuation",
)
@click.option("--solo-flight-type-name", default=None)
@meter_reading_options
@click.option("--json", "as_json", is_flag=True, help="Print the draft as JSON")
@click.pass_context
def preview_charges(
    ctx: click.Context,
    rates_file: str,
    aircraft_id: str,
    registration: Optional[str],
    total_time_method: Optional[str],
    total_hours: Decimal,
    flight_type_id: str,
    flight_type_name: Optional[str],
    instruction_type: str,
    instructor_id: Optional[str],
    instructor_name: Optional[str],
    solo_flight_type_id: Optional[str],
    solo_flight_type_name: Optional[str],
    hobbs_start: Optional[Decimal],
    hobbs_end: Optional[Decimal],
    tach_start: Optional[Decimal],
    tach_end: Optional[Decimal],
    solo_end_hobbs: Optional[Decimal],
    basis: str,
    as_json: bool,
):
    """Preview the draft invoice of a flight without saving anything.

    Derives segments from the meter readings, prices them against the rate
    file and prints line items, totals and the flight log.

    Example:
        flight-billing preview --rates rates.json --aircraft-id ac-1 \\
            --registration ZK-ABC --flight-type-id ft-dual \\
            --instructor-id ins-1 --hobbs-start 100.0 --hobbs-end 101.5 \\
            --tach-start 50.0 --tach-end 51.2
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    try:
        try:
            source = StaticRateSource.from_json_file(rates_file)
        except RateFileError as e:
            raise ConfigurationError(str(e), "Check the rate file path and JSON") from e

        config = get_config()
        aircraft = Aircraft(
            id=aircraft_id,
            registration=registration or aircraft_id,
            billing_basis=BillingBasis(basis.lower()),
            total_time_method=TotalTimeMethod(
                (total_time_method or config.default_total_time_method).lower()
            ),
            total_hours=total_hours,
        )
        flight_type = FlightType(
            id=flight_type_id,
            name=flight_type_name or flight_type_id,
            instruction_type=InstructionType(instruction_type.lower()),
        )
        solo_flight_type = None
        if solo_flight_type_id:
            solo_flight_type = FlightType(
                id=solo_flight_type_id,
                name=solo_flight_type_name or solo_flight_type_id,
                instruction_type=InstructionType.SOLO,
            )

        request = ChargeRequest(
            meter_reading=build_meter_reading(
                hobbs_start, hobbs_end, tach_start, tach_end, solo_end_hobbs
            ),
            aircraft=aircraft,
            flight_type=flight_type,
            instructor_id=instructor_id,
            instructor_name=instructor_name,
            solo_flight_type=solo_flight_type,
        )

        if not as_json:
            click.echo(format_info(f"Pricing flight on {aircraft.registration}..."))

        resolver = RateResolver(source, RateCache.from_config(config))
        result = plan_charges(request, resolver)
        if isinstance(result, Err):
            raise error_from_result(result)
        plan = result.value

        if as_json:
            click.echo(json.dumps(_plan_as_dict(plan), indent=2))
            return

        click.echo()
        _echo_plan(plan)
        click.echo()
        click.echo(format_success("Preview complete (nothing was saved)"))

    except CLIError as e:
        ctx.exit(handle_cli_error(e, debug))
