"""Shared click options for commands that take meter readings."""

from decimal import Decimal, InvalidOperation
from typing import Callable

import click

from flight_billing.models.aircraft import BillingBasis, MeterReading


class DecimalParamType(click.ParamType):
    """Click parameter parsed into a Decimal."""

    name = "decimal"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid number", param, ctx)


DECIMAL = DecimalParamType()


def meter_reading_options(func: Callable) -> Callable:
    """Add --hobbs-start/--hobbs-end/--tach-start/--tach-end/--solo-end-hobbs."""
    options = [
        click.option("--hobbs-start", type=DECIMAL, default=None, help="Start Hobbs"),
        click.option("--hobbs-end", type=DECIMAL, default=None, help="End Hobbs"),
        click.option("--tach-start", type=DECIMAL, default=None, help="Start Tacho"),
        click.option("--tach-end", type=DECIMAL, default=None, help="End Tacho"),
        click.option(
            "--solo-end-hobbs",
            type=DECIMAL,
            default=None,
            help="Hobbs at the end of a solo continuation (dual flights only)",
        ),
        click.option(
            "--basis",
            type=click.Choice([b.value for b in BillingBasis], case_sensitive=False),
            default=BillingBasis.HOBBS.value,
            show_default=True,
            help="Meter used for aircraft billing",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_meter_reading(
    hobbs_start, hobbs_end, tach_start, tach_end, solo_end_hobbs
) -> MeterReading:
    return MeterReading(
        hobbs_start=hobbs_start,
        hobbs_end=hobbs_end,
        tach_start=tach_start,
        tach_end=tach_end,
        solo_end_hobbs=solo_end_hobbs,
    )
