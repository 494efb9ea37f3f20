"""Flight completion: draft reconciliation and the terminal commit."""

from flight_billing.completion.charge_planner import (
    ChargePlan,
    ChargeRequest,
    plan_charges,
)
from flight_billing.completion.completion_coordinator import (
    CompletionCoordinator,
    request_fingerprint,
)
from flight_billing.completion.draft_reconciler import DraftReconciler
from flight_billing.completion.session import FlightCompletionSession

__all__ = [
    "ChargePlan",
    "ChargeRequest",
    "CompletionCoordinator",
    "DraftReconciler",
    "FlightCompletionSession",
    "plan_charges",
    "request_fingerprint",
]
