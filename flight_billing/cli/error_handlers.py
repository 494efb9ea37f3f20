"""Error handling for CLI commands."""

import traceback
from typing import Optional

import click

from flight_billing.cli.utils.formatters import format_error, format_warning
from flight_billing.models.result import Err, ErrorKind
from flight_billing.services.gateways import GatewayError


class CLIError(Exception):
    """Base exception for CLI errors with user-friendly messages."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        """
        Initialize CLI error.

        Args:
            message: Error message to display
            recovery_hint: Optional hint for recovering from the error
        """
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


class ConfigurationError(CLIError):
    """Missing or malformed configuration (settings, rate file, rate rows)."""

    pass


class APIError(CLIError):
    """The billing API or rate source could not be reached."""

    pass


class DataValidationError(CLIError):
    """Meter readings or charge inputs were rejected."""

    pass


class ProcessingError(CLIError):
    """A calculation or commit could not be carried out."""

    pass


_HINTS = {
    ErrorKind.INVALID_METER_READING: "Check the Hobbs and Tacho readings",
    ErrorKind.INSTRUCTOR_REQUIRED: "Pass --instructor-id for dual and trial flights",
    ErrorKind.RATE_NOT_CONFIGURED: "Add the missing rate to the rate file",
    ErrorKind.RATE_LOOKUP_FAILED: "Retry once the rate source is reachable",
}


def error_from_result(err: Err) -> CLIError:
    """Map an engine Err to the CLI error shown to the operator."""
    hint = _HINTS.get(err.kind)
    if err.kind in (
        ErrorKind.INVALID_METER_READING,
        ErrorKind.INSTRUCTOR_REQUIRED,
        ErrorKind.INVALID_CHARGE_INPUT,
        ErrorKind.VALIDATION_FAILED,
    ):
        return DataValidationError(err.detail, hint)
    if err.kind is ErrorKind.RATE_NOT_CONFIGURED:
        return ConfigurationError(err.detail, hint)
    if err.kind is ErrorKind.RATE_LOOKUP_FAILED:
        return APIError(err.detail, hint)
    return ProcessingError(err.detail, hint)


def _echo_with_hint(title: str, error: CLIError) -> None:
    click.echo(format_error(f"{title}: {error.message}"))
    if error.recovery_hint:
        click.echo(format_warning(f"Hint: {error.recovery_hint}"))


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """
    Handle CLI errors with user-friendly messages.

    Args:
        error: The exception that occurred
        debug: Whether to show full stack trace

    Returns:
        Exit code (1-9 for different error types)
    """
    if isinstance(error, ConfigurationError):
        _echo_with_hint("Configuration Error", error)
        return 1

    elif isinstance(error, APIError):
        _echo_with_hint("API Error", error)
        return 2

    elif isinstance(error, DataValidationError):
        _echo_with_hint("Data Validation Error", error)
        return 3

    elif isinstance(error, ProcessingError):
        _echo_with_hint("Processing Error", error)
        return 4

    elif isinstance(error, GatewayError):
        status_code = error.status_code

        if status_code == 401:
            click.echo(format_error("Authentication Failed"))
            click.echo(format_warning("Hint: Check BILLING_API_TOKEN in the .env file"))
            return 5

        elif status_code == 403:
            click.echo(format_error("Permission Denied"))
            click.echo(
                format_warning(
                    "Hint: Ensure the API token may access this booking"
                )
            )
            return 6

        elif status_code == 404:
            click.echo(format_error("Resource Not Found"))
            click.echo(format_warning("Hint: Verify the booking and item ids"))
            return 7

        elif status_code == 429:
            click.echo(format_error("Rate Limit Exceeded"))
            click.echo(
                format_warning("Hint: Wait a few minutes before retrying")
            )
            return 8

        else:
            click.echo(format_error(f"Billing API Error: {error}"))
            return 9

    elif isinstance(error, click.Abort):
        click.echo(format_warning("\nOperation cancelled by user"))
        return 130

    else:
        click.echo(format_error(f"Unexpected Error: {type(error).__name__}"))
        click.echo(str(error))

        if debug:
            click.echo("\nFull stack trace:")
            click.echo(traceback.format_exc())
        else:
            click.echo(format_warning("\nRun with --debug flag for full stack trace"))

        return 255
