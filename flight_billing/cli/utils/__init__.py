"""CLI utility functions."""

from flight_billing.cli.utils.formatters import (
    format_error,
    format_info,
    format_success,
    format_table,
    format_warning,
)
from flight_billing.cli.utils.options import (
    DECIMAL,
    build_meter_reading,
    meter_reading_options,
)

__all__ = [
    "DECIMAL",
    "build_meter_reading",
    "format_error",
    "format_info",
    "format_success",
    "format_table",
    "format_warning",
    "meter_reading_options",
]
