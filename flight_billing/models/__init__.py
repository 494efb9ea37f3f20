"""Data models for the flight billing engine.

This package contains Pydantic models for all billing entities:
- BaseDataModel: Base class with common configuration
- Aircraft, FlightType, MeterReading: Calculation inputs
- FlightSegment, FlightLog: Values derived from meter readings
- RateQuote, ResolvedRates: Rate lookups
- LineItem, DraftInvoiceState: The draft invoice
- CommitRequest, CommitResponse, CompletionResult: Completion commit
- Ok, Err, ErrorKind: Result type returned by every engine operation
"""

from flight_billing.models.aircraft import (
    Aircraft,
    BillingBasis,
    FlightType,
    InstructionType,
    MeterReading,
    TotalTimeMethod,
)
from flight_billing.models.base import BaseDataModel
from flight_billing.models.completion import (
    BillingStage,
    BookingStatus,
    CommitHalf,
    CommitLineItem,
    CommitRequest,
    CommitResponse,
    CompletionResult,
    InvoiceStatus,
)
from flight_billing.models.invoice import (
    DraftInvoiceState,
    InvoiceItemRecord,
    InvoiceTotals,
    ItemOrigin,
    ItemUpdate,
    LineItem,
    fold_totals,
)
from flight_billing.models.rates import RateQuote, RateSubject, ResolvedRates
from flight_billing.models.result import Err, ErrorKind, Ok, Result, ResultError
from flight_billing.models.segment import FlightLog, FlightSegment, SegmentKind

__all__ = [
    "Aircraft",
    "BaseDataModel",
    "BillingBasis",
    "BillingStage",
    "BookingStatus",
    "CommitHalf",
    "CommitLineItem",
    "CommitRequest",
    "CommitResponse",
    "CompletionResult",
    "DraftInvoiceState",
    "Err",
    "ErrorKind",
    "FlightLog",
    "FlightSegment",
    "FlightType",
    "InstructionType",
    "InvoiceItemRecord",
    "InvoiceStatus",
    "InvoiceTotals",
    "ItemOrigin",
    "ItemUpdate",
    "LineItem",
    "MeterReading",
    "Ok",
    "RateQuote",
    "RateSubject",
    "ResolvedRates",
    "Result",
    "ResultError",
    "SegmentKind",
    "TotalTimeMethod",
    "fold_totals",
]
