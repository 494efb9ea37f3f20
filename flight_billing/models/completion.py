"""Booking completion models.

Covers the billing lifecycle stages of a booking, the commit request sent
to the remote store, the store's response, and the terminal
CompletionResult.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import ConfigDict, Field

from flight_billing.models.base import BaseDataModel
from flight_billing.models.invoice import InvoiceItemRecord, LineItem
from flight_billing.models.segment import FlightLog


class BillingStage(str, Enum):
    """Billing lifecycle of a booking.

    FLYING -> (calculate)* -> DRAFT_READY -> (edit)* -> COMPLETING -> COMPLETED,
    with COMPLETING -> DRAFT_READY on any failure.
    """

    FLYING = "flying"
    DRAFT_READY = "draft_ready"
    COMPLETING = "completing"
    COMPLETED = "completed"


class BookingStatus(str, Enum):
    FLYING = "flying"
    COMPLETED = "complete"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"


class CommitHalf(str, Enum):
    """The two halves of a completion commit."""

    FLIGHT_LOG = "flight_log"
    INVOICE = "invoice"


class CommitLineItem(BaseDataModel):
    """A line item as sent in a commit request.

    ``id`` is the server row id for persisted items and None for items the
    server has to insert.
    """

    id: Optional[str] = None
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    amount: Decimal
    tax_amount: Decimal
    line_total: Decimal
    rate_inclusive: Decimal
    chargeable_id: Optional[str] = None
    charge_key: Optional[str] = None

    @classmethod
    def from_line_item(cls, item: LineItem) -> "CommitLineItem":
        return cls(
            id=item.remote_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_rate=item.tax_rate,
            amount=item.amount,
            tax_amount=item.tax_amount,
            line_total=item.line_total,
            rate_inclusive=item.rate_inclusive,
            chargeable_id=item.chargeable_ref,
            charge_key=item.charge_key,
        )


class CommitRequest(BaseDataModel):
    """Single logical commit of a completed flight.

    Attributes:
        booking_id: Booking being completed
        idempotency_key: Identical for identical requests, so the store can
            drop a double submit
        flight_type_id: Flight type flown
        instructor_id: Instructor for dual/trial flights
        solo_flight_type_id: Flight type of the solo continuation
        flight_log: Flight log values
        line_items: Final draft line items
        expected_version: Invoice version the draft was built against
    """

    booking_id: str
    idempotency_key: str
    flight_type_id: str
    instructor_id: Optional[str] = None
    solo_flight_type_id: Optional[str] = None
    flight_log: FlightLog
    line_items: Tuple[CommitLineItem, ...]
    expected_version: Optional[int] = None


class CommitResponse(BaseDataModel):
    """What the remote store reports after a commit.

    Attributes:
        flight_log_committed: The flight log was written
        invoice_finalized: The invoice was finalized with the given items
        booking_status: Booking status after the commit
        invoice_status: Invoice status after the commit
        invoice_id: Invoice identifier
        invoice_total: Invoice total as stored
        items: Invoice item rows as stored
        warning: Non-fatal server message (e.g. invoice already issued)
    """

    model_config = ConfigDict(extra="ignore")

    flight_log_committed: bool = True
    invoice_finalized: bool = True
    booking_status: BookingStatus = BookingStatus.COMPLETED
    invoice_status: InvoiceStatus = InvoiceStatus.FINALIZED
    invoice_id: Optional[str] = None
    invoice_total: Optional[Decimal] = None
    items: Tuple[InvoiceItemRecord, ...] = ()
    warning: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        return self.flight_log_committed != self.invoice_finalized

    @property
    def failed_half(self) -> Optional[CommitHalf]:
        if not self.flight_log_committed:
            return CommitHalf.FLIGHT_LOG
        if not self.invoice_finalized:
            return CommitHalf.INVOICE
        return None


class CompletionResult(BaseDataModel):
    """Terminal outcome of a successful completion.

    Attributes:
        booking_id: Booking that was completed
        booking_status: Always COMPLETED
        invoice_status: FINALIZED, or DRAFT when the store kept the invoice open
        invoice_id: Invoice identifier
        invoice_total: Invoice total as stored
        warnings: Non-fatal messages to show the operator
    """

    booking_id: str
    booking_status: BookingStatus = BookingStatus.COMPLETED
    invoice_status: InvoiceStatus
    invoice_id: Optional[str] = None
    invoice_total: Optional[Decimal] = None
    warnings: Tuple[str, ...] = Field(default_factory=tuple)
