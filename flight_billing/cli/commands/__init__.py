"""CLI commands."""

from flight_billing.cli.commands.preview import preview_charges
from flight_billing.cli.commands.validate import validate_meters

__all__ = ["preview_charges", "validate_meters"]
