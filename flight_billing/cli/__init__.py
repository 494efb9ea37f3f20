"""Flight Billing CLI.

This module provides a command-line interface for the flight billing
engine. It includes commands for previewing the charges of a flight and
validating meter readings.
"""

import click

from flight_billing.cli.commands.preview import preview_charges
from flight_billing.cli.commands.validate import validate_meters
from flight_billing.config.logging_config import LoggingConfig, configure_logging

__version__ = "1.0.0"


@click.group(help="Flight Billing CLI - Price flights and check meter readings")
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Verbose logging and stack traces")
@click.pass_context
def cli(ctx: click.Context, debug: bool):
    """Flight Billing CLI main entry point."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    if debug:
        configure_logging(LoggingConfig(log_level="DEBUG"))


cli.add_command(preview_charges)
cli.add_command(validate_meters)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
