"""Interfaces of the remote collaborators used by the billing engine.

The engine talks to three remote services:
- RateSource: aircraft/instructor rates and the organization tax rate
- InvoiceItemStore: per-item create/update/delete on the draft invoice
- CompletionGateway: the atomic flight log + invoice commit

Implementations raise GatewayError (or a subclass) for any failure; the
engine converts those into typed results at its public boundary.
"""

from decimal import Decimal
from typing import Optional, Protocol

from flight_billing.models.completion import CommitRequest, CommitResponse
from flight_billing.models.invoice import InvoiceItemRecord, LineItem
from flight_billing.models.rates import RateQuote


class GatewayError(Exception):
    """A remote call failed.

    Attributes:
        status_code: HTTP status code, None for transport failures
        transient: Whether repeating the call may succeed
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transient: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient


class NotFoundError(GatewayError):
    """The remote resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class VersionConflictError(GatewayError):
    """The invoice changed since the caller's version was read."""

    def __init__(
        self,
        message: str,
        expected_version: Optional[int] = None,
        current_version: Optional[int] = None,
    ):
        super().__init__(message, status_code=409)
        self.expected_version = expected_version
        self.current_version = current_version


class RateSource(Protocol):
    """Read-only lookup of rates and the organization tax rate."""

    def get_aircraft_rate(
        self, aircraft_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        """Rate for an aircraft on a flight type, None if not configured."""
        ...

    def get_instructor_rate(
        self, instructor_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        """Rate for an instructor on a flight type, None if not configured."""
        ...

    def get_tax_rate(self) -> Decimal:
        """Organization-wide tax rate in [0, 1]."""
        ...


class InvoiceItemStore(Protocol):
    """Per-item mutations of a booking's draft invoice."""

    def create_item(self, booking_id: str, item: LineItem) -> InvoiceItemRecord:
        ...

    def update_item(
        self, booking_id: str, remote_id: str, item: LineItem
    ) -> InvoiceItemRecord:
        ...

    def delete_item(self, booking_id: str, remote_id: str) -> Optional[int]:
        """Delete a row; returns the new invoice version if the store tracks one."""
        ...


class CompletionGateway(Protocol):
    """Commits a completed flight.

    ``complete_booking`` writes the flight log and finalizes the invoice as
    one logical operation. The two single-half methods retry the half that
    failed in an earlier partial commit.
    """

    def complete_booking(self, request: CommitRequest) -> CommitResponse:
        ...

    def commit_flight_log(self, request: CommitRequest) -> CommitResponse:
        ...

    def finalize_invoice(self, request: CommitRequest) -> CommitResponse:
        ...
