"""Flight completion session: the stateful handle used by the application.

One session per booking being completed. It runs calculations, forwards
staff edits to the Draft Reconciler, and commits through the Completion
Coordinator, while exposing:

- ``draft_state``: the current draft invoice
- ``is_calculating`` / ``is_completing``: in-flight flags
- ``last_error`` / ``last_warning``: the two observable failure slots
- ``stage``: the billing lifecycle stage

Every failed operation sets exactly one slot: PARTIAL_COMMIT goes to the
warning slot, everything else to the error slot. Superseded calculations
set neither.
"""

import logging
import threading
from decimal import Decimal
from typing import Iterable, Optional

from flight_billing.calculators.line_item_factory import price_chargeable
from flight_billing.completion.charge_planner import (
    ChargePlan,
    ChargeRequest,
    plan_charges,
)
from flight_billing.completion.completion_coordinator import CompletionCoordinator
from flight_billing.completion.draft_reconciler import DraftReconciler
from flight_billing.models.aircraft import Aircraft, FlightType, MeterReading
from flight_billing.models.completion import BillingStage, CompletionResult
from flight_billing.models.invoice import (
    DraftInvoiceState,
    InvoiceItemRecord,
    InvoiceTotals,
    ItemUpdate,
)
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.services.gateways import InvoiceItemStore
from flight_billing.services.rate_resolver import RateResolver
from flight_billing.utils.logging_utils import booking_context

logger = logging.getLogger(__name__)


class FlightCompletionSession:
    """
    Completes one booking: calculate, edit, commit.

    Calculations are tagged with increasing sequence numbers. A calculation
    that resolves after a newer one has already resolved is dropped and
    returns Err(SUPERSEDED) without touching the draft or the error slot.

    Example:
        >>> session = FlightCompletionSession(
        ...     "bk-1", aircraft, resolver, item_store, coordinator
        ... )
        >>> session.calculate(reading, flight_type, instructor_id="ins-1")
        >>> session.add_item("Landing fee", Decimal("20"), Decimal("2"))
        >>> result = session.complete()
        >>> session.stage
        <BillingStage.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        booking_id: str,
        aircraft: Aircraft,
        resolver: RateResolver,
        item_store: InvoiceItemStore,
        coordinator: CompletionCoordinator,
    ):
        self.booking_id = booking_id
        self.aircraft = aircraft
        self.resolver = resolver
        self.coordinator = coordinator
        self._draft = DraftReconciler(booking_id, item_store)

        self._lock = threading.Lock()
        self._stage = BillingStage.FLYING
        self._plan: Optional[ChargePlan] = None
        self._total_hours_start: Optional[Decimal] = None
        self._last_error: Optional[Err] = None
        self._last_warning: Optional[Err] = None

        # Calculation sequencing
        self._next_seq = 0
        self._resolved_seq = 0
        self._calculations_in_flight = 0
        self._completions_in_flight = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def draft_state(self) -> DraftInvoiceState:
        return self._draft.state

    @property
    def totals(self) -> InvoiceTotals:
        return self._draft.totals()

    @property
    def stage(self) -> BillingStage:
        return self._stage

    @property
    def is_calculating(self) -> bool:
        return self._calculations_in_flight > 0

    @property
    def is_completing(self) -> bool:
        return self._completions_in_flight > 0

    @property
    def last_error(self) -> Optional[Err]:
        return self._last_error

    @property
    def last_warning(self) -> Optional[Err]:
        return self._last_warning

    @property
    def plan(self) -> Optional[ChargePlan]:
        return self._plan

    def _record(self, result: Result) -> Result:
        """Update the error/warning slots from an operation's outcome."""
        if isinstance(result, Err):
            if result.kind is ErrorKind.SUPERSEDED:
                return result
            if result.kind.is_warning:
                self._last_warning = result
            else:
                self._last_error = result
        else:
            self._last_error = None
        return result

    def _edit_blocked(self) -> Optional[Err]:
        if self._stage is BillingStage.COMPLETED:
            return Err(
                ErrorKind.ALREADY_COMPLETED,
                f"Booking {self.booking_id} is already completed",
            )
        if self._stage is BillingStage.COMPLETING:
            return Err(
                ErrorKind.VALIDATION_FAILED,
                f"Booking {self.booking_id} is being completed",
            )
        return None

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def calculate(
        self,
        meter_reading: MeterReading,
        flight_type: FlightType,
        instructor_id: Optional[str] = None,
        instructor_name: Optional[str] = None,
        solo_flight_type: Optional[FlightType] = None,
    ) -> Result[DraftInvoiceState]:
        """
        Calculate charges from meter readings and (re)initialize the draft.

        On failure the draft is left exactly as it was.

        Args:
            meter_reading: Readings captured at the end of the flight
            flight_type: Flight type flown
            instructor_id: Instructor aboard for dual/trial flights
            instructor_name: Instructor name for item descriptions
            solo_flight_type: Flight type of the solo continuation

        Returns:
            Ok with the new draft state, or Err (INVALID_METER_READING,
            INSTRUCTOR_REQUIRED, RATE_NOT_CONFIGURED, RATE_LOOKUP_FAILED,
            ALREADY_COMPLETED, SUPERSEDED)
        """
        with self._lock:
            blocked = self._edit_blocked()
            if blocked is not None:
                return self._record(blocked)
            self._next_seq += 1
            seq = self._next_seq
            self._calculations_in_flight += 1
            total_hours_start = self._total_hours_start

        request = ChargeRequest(
            meter_reading=meter_reading,
            aircraft=self.aircraft,
            flight_type=flight_type,
            instructor_id=instructor_id,
            instructor_name=instructor_name,
            solo_flight_type=solo_flight_type,
        )
        try:
            with booking_context(self.booking_id, "calculate"):
                planned = plan_charges(request, self.resolver, total_hours_start)
        finally:
            with self._lock:
                self._calculations_in_flight -= 1

        with self._lock:
            if seq < self._resolved_seq:
                logger.warning(
                    f"Dropping stale calculation #{seq} for booking "
                    f"{self.booking_id} (#{self._resolved_seq} already resolved)"
                )
                return Err(
                    ErrorKind.SUPERSEDED,
                    f"Calculation #{seq} superseded by #{self._resolved_seq}",
                )
            self._resolved_seq = seq

            if isinstance(planned, Err):
                logger.info(
                    f"Calculation failed for booking {self.booking_id}: {planned}"
                )
                return self._record(planned)

            plan = planned.value
            initialized = self._draft.initialize(plan.items)
            if isinstance(initialized, Err):
                return self._record(initialized)

            self._plan = plan
            if self._total_hours_start is None:
                self._total_hours_start = plan.flight_log.total_hours_start
            if self._stage is BillingStage.FLYING:
                self._stage = BillingStage.DRAFT_READY

            logger.info(
                f"Calculated booking {self.booking_id}: "
                f"{plan.flight_log.flight_time}h, "
                f"total {initialized.value.totals.total}"
            )
            return self._record(initialized)

    def hydrate(
        self, records: Iterable[InvoiceItemRecord], version: Optional[int] = None
    ) -> Result[DraftInvoiceState]:
        """Load a previously persisted draft invoice for this booking."""
        with booking_context(self.booking_id, "hydrate"):
            return self._record(self._draft.hydrate(records, version))

    # ------------------------------------------------------------------
    # Staff edits
    # ------------------------------------------------------------------

    def add_item(
        self,
        name: str,
        rate: Decimal,
        quantity: Decimal,
        taxable: bool = True,
        chargeable_id: Optional[str] = None,
    ) -> Result[DraftInvoiceState]:
        """Add a chargeable (landing fee, extra) to the draft."""
        with self._lock:
            blocked = self._edit_blocked()
        if blocked is not None:
            return self._record(blocked)

        with booking_context(self.booking_id, "add_item"):
            if self._plan is not None:
                tax_rate = self._plan.tax_rate
            else:
                tax_result = self.resolver.tax_rate()
                if isinstance(tax_result, Err):
                    return self._record(tax_result)
                tax_rate = tax_result.value

            priced = price_chargeable(
                chargeable_id, name, rate, taxable, quantity, tax_rate
            )
            if isinstance(priced, Err):
                return self._record(priced)
            return self._record(self._draft.add(priced.value))

    def update_item(
        self, item_id: str, changes: ItemUpdate
    ) -> Result[DraftInvoiceState]:
        """Edit quantity, unit price or description of a draft item."""
        with self._lock:
            blocked = self._edit_blocked()
        if blocked is not None:
            return self._record(blocked)

        with booking_context(self.booking_id, "update_item"):
            return self._record(self._draft.update(item_id, changes))

    def delete_item(self, item_id: str) -> Result[DraftInvoiceState]:
        """Remove an item from the draft."""
        with self._lock:
            blocked = self._edit_blocked()
        if blocked is not None:
            return self._record(blocked)

        with booking_context(self.booking_id, "delete_item"):
            return self._record(self._draft.delete(item_id))

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete(
        self, final_meter_reading: Optional[MeterReading] = None
    ) -> Result[CompletionResult]:
        """
        Commit the flight log and the draft invoice.

        Waits for an in-flight edit to settle, so the commit never carries
        an item whose persistence is later rolled back.

        Args:
            final_meter_reading: Readings confirmed at completion; defaults to
                the readings of the last calculation

        Returns:
            Ok with the CompletionResult, or Err. A repeated identical call
            after success returns the same result without a new commit.
        """
        with self._lock:
            plan = self._plan
            previous_stage = self._stage
            if previous_stage is not BillingStage.COMPLETED:
                self._stage = BillingStage.COMPLETING
            self._completions_in_flight += 1

        reading = final_meter_reading
        if reading is None and plan is not None:
            reading = plan.request.meter_reading

        try:
            with booking_context(self.booking_id, "complete"):
                if reading is None:
                    result: Result[CompletionResult] = Err(
                        ErrorKind.VALIDATION_FAILED,
                        "Calculate the flight charges before completing",
                    )
                else:
                    result = self._draft.commit_with(
                        lambda state: self.coordinator.complete(
                            self.booking_id, reading, state, plan
                        )
                    )
        except BaseException:
            with self._lock:
                self._completions_in_flight -= 1
                if self._stage is BillingStage.COMPLETING:
                    self._stage = previous_stage
            raise

        with self._lock:
            self._completions_in_flight -= 1
            if isinstance(result, Ok):
                self._stage = BillingStage.COMPLETED
                self._last_warning = None
            elif self._stage is not BillingStage.COMPLETED:
                self._stage = (
                    BillingStage.DRAFT_READY if plan is not None else BillingStage.FLYING
                )
            return self._record(result)
