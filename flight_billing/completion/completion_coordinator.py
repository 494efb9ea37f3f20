"""Completion Coordinator: the single terminal commit of a flight.

Sends the flight log and the final draft items to the store as one
logical, idempotent commit per booking. Tracks per booking:
- the completed result and the fingerprint of the request that produced
  it, so an identical repeat returns the same result without a second
  remote call
- the half that failed in a partial commit, so a retry only re-sends
  that half
"""

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from flight_billing.calculators.flight_log_calculator import calculate_flight_log
from flight_billing.calculators.segment_calculator import calculate_segments
from flight_billing.completion.charge_planner import ChargePlan
from flight_billing.models.aircraft import MeterReading
from flight_billing.models.completion import (
    CommitHalf,
    CommitLineItem,
    CommitRequest,
    CommitResponse,
    CompletionResult,
)
from flight_billing.models.invoice import DraftInvoiceState
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.services.gateways import (
    CompletionGateway,
    GatewayError,
    VersionConflictError,
)
from flight_billing.utils.logging_utils import LogContext, generate_correlation_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Completed:
    fingerprint: str
    result: CompletionResult


def request_fingerprint(
    booking_id: str,
    meter_reading: MeterReading,
    plan: ChargePlan,
    draft_state: DraftInvoiceState,
) -> str:
    """Stable hash of everything a commit depends on.

    Two complete() calls with the same booking, meter reading, flight
    details and draft items produce the same fingerprint.
    """
    payload = {
        "booking_id": booking_id,
        "meter_reading": meter_reading.model_dump(mode="json"),
        "flight_type_id": plan.request.flight_type.id,
        "instructor_id": plan.request.instructor_id,
        "solo_flight_type_id": plan.request.solo_flight_type_id,
        "items": [
            CommitLineItem.from_line_item(item).model_dump(mode="json", exclude={"id"})
            for item in draft_state.line_items
        ],
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class CompletionCoordinator:
    """
    Commits completed flights, at most once per booking.

    Calls for the same booking are serialized; different bookings never
    wait on each other.

    State is per process and kept until forget() is called for a booking,
    so an identical repeat of a completed commit can be answered locally.

    Example:
        >>> coordinator = CompletionCoordinator(gateway)
        >>> result = coordinator.complete("bk-1", reading, draft.state, plan)
        >>> result.value.invoice_status
        <InvoiceStatus.FINALIZED: 'finalized'>
    """

    def __init__(self, gateway: CompletionGateway):
        self.gateway = gateway
        self._completed: Dict[str, _Completed] = {}
        self._pending_half: Dict[str, CommitHalf] = {}
        self._booking_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, booking_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._booking_locks.setdefault(booking_id, threading.Lock())

    def is_completed(self, booking_id: str) -> bool:
        return booking_id in self._completed

    def pending_half(self, booking_id: str) -> Optional[CommitHalf]:
        """Half that failed in the last partial commit, if any."""
        return self._pending_half.get(booking_id)

    def forget(self, booking_id: str) -> None:
        """Drop everything tracked for a booking.

        Call once no session for the booking remains. A later complete()
        for it is treated as a first commit.
        """
        with self._lock_for(booking_id):
            self._completed.pop(booking_id, None)
            self._pending_half.pop(booking_id, None)
        with self._registry_lock:
            self._booking_locks.pop(booking_id, None)
        logger.debug(f"Forgot completion state for booking {booking_id}")

    def complete(
        self,
        booking_id: str,
        final_meter_reading: MeterReading,
        draft_state: DraftInvoiceState,
        plan: Optional[ChargePlan],
    ) -> Result[CompletionResult]:
        """
        Commit the flight log and final invoice items of a booking.

        Args:
            booking_id: Booking to complete
            final_meter_reading: Readings confirmed at completion
            draft_state: Final draft invoice
            plan: The calculation the draft was built from

        Returns:
            Ok with the CompletionResult, or Err with kind ALREADY_COMPLETED,
            VALIDATION_FAILED, VERSION_CONFLICT, COMMIT_FAILED or
            PARTIAL_COMMIT
        """
        with self._lock_for(booking_id):
            if plan is None:
                return Err(
                    ErrorKind.VALIDATION_FAILED,
                    "Calculate the flight charges before completing",
                )

            fingerprint = request_fingerprint(
                booking_id, final_meter_reading, plan, draft_state
            )

            completed = self._completed.get(booking_id)
            if completed is not None:
                if completed.fingerprint == fingerprint:
                    logger.info(
                        f"Booking {booking_id} already completed with an "
                        f"identical request, returning previous result"
                    )
                    return Ok(completed.result)
                return Err(
                    ErrorKind.ALREADY_COMPLETED,
                    f"Booking {booking_id} is already completed",
                )

            request_result = self._build_request(
                booking_id, final_meter_reading, draft_state, plan, fingerprint
            )
            if isinstance(request_result, Err):
                return request_result
            request = request_result.value

            with LogContext(correlation_id=generate_correlation_id()):
                return self._commit(booking_id, request, fingerprint)

    def _build_request(
        self,
        booking_id: str,
        final_meter_reading: MeterReading,
        draft_state: DraftInvoiceState,
        plan: ChargePlan,
        fingerprint: str,
    ) -> Result[CommitRequest]:
        if draft_state.is_empty:
            return Err(
                ErrorKind.VALIDATION_FAILED, "Draft invoice has no line items"
            )

        charge_request = plan.request
        segments_result = calculate_segments(
            final_meter_reading,
            charge_request.aircraft.billing_basis,
            charge_request.flight_type,
            instructor_id=charge_request.instructor_id,
            solo_flight_type_id=charge_request.solo_flight_type_id,
        )
        if isinstance(segments_result, Err):
            return Err(
                ErrorKind.VALIDATION_FAILED,
                f"Final meter reading is invalid: {segments_result.detail}",
                segments_result.issues,
            )

        final_segments = [
            (s.kind, s.duration_hours, s.flight_type_id) for s in segments_result.value
        ]
        planned_segments = [
            (s.kind, s.duration_hours, s.flight_type_id) for s in plan.segments
        ]
        if final_segments != planned_segments:
            return Err(
                ErrorKind.VALIDATION_FAILED,
                "Final meter reading does not match the calculated draft; "
                "recalculate before completing",
            )

        flight_log = calculate_flight_log(
            final_meter_reading,
            charge_request.aircraft,
            segments_result.value,
            plan.flight_log.total_hours_start,
        )

        return Ok(
            CommitRequest(
                booking_id=booking_id,
                idempotency_key=f"{booking_id}-{fingerprint[:32]}",
                flight_type_id=charge_request.flight_type.id,
                instructor_id=charge_request.instructor_id,
                solo_flight_type_id=charge_request.solo_flight_type_id,
                flight_log=flight_log,
                line_items=tuple(
                    CommitLineItem.from_line_item(item)
                    for item in draft_state.line_items
                ),
                expected_version=draft_state.version,
            )
        )

    def _send(self, booking_id: str, request: CommitRequest) -> CommitResponse:
        pending = self._pending_half.get(booking_id)
        if pending is CommitHalf.FLIGHT_LOG:
            logger.info(f"Retrying flight log commit for booking {booking_id}")
            return self.gateway.commit_flight_log(request)
        if pending is CommitHalf.INVOICE:
            logger.info(f"Retrying invoice finalize for booking {booking_id}")
            return self.gateway.finalize_invoice(request)
        return self.gateway.complete_booking(request)

    def _commit(
        self, booking_id: str, request: CommitRequest, fingerprint: str
    ) -> Result[CompletionResult]:
        pending = self._pending_half.get(booking_id)
        try:
            response = self._send(booking_id, request)
        except VersionConflictError as e:
            logger.warning(f"Commit of booking {booking_id} rejected: {e}")
            return Err(
                ErrorKind.VERSION_CONFLICT,
                f"Invoice was changed elsewhere, reload before completing: {e}",
            )
        except GatewayError as e:
            logger.error(f"Commit of booking {booking_id} failed: {e}")
            return Err(ErrorKind.COMMIT_FAILED, f"Commit failed: {e}")

        # A single-half retry leaves the other half as already committed
        flight_log_done = response.flight_log_committed or pending is CommitHalf.INVOICE
        invoice_done = response.invoice_finalized or pending is CommitHalf.FLIGHT_LOG

        if not flight_log_done and not invoice_done:
            logger.error(f"Commit of booking {booking_id} wrote nothing")
            return Err(
                ErrorKind.COMMIT_FAILED,
                response.warning or "Commit was not applied",
            )

        if not (flight_log_done and invoice_done):
            failed = CommitHalf.INVOICE if flight_log_done else CommitHalf.FLIGHT_LOG
            self._pending_half[booking_id] = failed
            logger.warning(
                f"Partial commit for booking {booking_id}: "
                f"{failed.value} not committed"
            )
            return Err(
                ErrorKind.PARTIAL_COMMIT,
                f"The {failed.value.replace('_', ' ')} was not committed; "
                f"complete again to retry it",
            )

        self._pending_half.pop(booking_id, None)
        result = CompletionResult(
            booking_id=booking_id,
            booking_status=response.booking_status,
            invoice_status=response.invoice_status,
            invoice_id=response.invoice_id,
            invoice_total=response.invoice_total,
            warnings=(response.warning,) if response.warning else (),
        )
        self._completed[booking_id] = _Completed(fingerprint, result)
        logger.info(
            f"Booking {booking_id} completed, invoice {result.invoice_id} "
            f"{result.invoice_status.value} total {result.invoice_total}"
        )
        return Ok(result)
