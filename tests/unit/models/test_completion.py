"""Unit tests for completion models."""

from decimal import Decimal

from flight_billing.models.completion import (
    BookingStatus,
    CommitHalf,
    CommitLineItem,
    CommitResponse,
    CompletionResult,
    InvoiceStatus,
)
from flight_billing.models.invoice import ItemOrigin, LineItem


class TestCommitResponse:
    """Test commit response parsing."""

    def test_defaults_are_a_full_success(self):
        response = CommitResponse()

        assert response.flight_log_committed
        assert response.invoice_finalized
        assert not response.is_partial
        assert response.failed_half is None

    def test_unknown_fields_ignored(self):
        response = CommitResponse.model_validate(
            {"invoice_id": "inv-1", "server_time": "now", "booking_status": "complete"}
        )

        assert response.invoice_id == "inv-1"
        assert response.booking_status is BookingStatus.COMPLETED

    def test_failed_flight_log_half(self):
        response = CommitResponse(flight_log_committed=False)

        assert response.is_partial
        assert response.failed_half is CommitHalf.FLIGHT_LOG

    def test_failed_invoice_half(self):
        response = CommitResponse(invoice_finalized=False)

        assert response.is_partial
        assert response.failed_half is CommitHalf.INVOICE

    def test_both_halves_failed_is_not_partial(self):
        response = CommitResponse(flight_log_committed=False, invoice_finalized=False)
        assert not response.is_partial


class TestCommitLineItem:
    """Test conversion of line items for commit."""

    def test_from_persisted_item(self):
        item = LineItem(
            id="item-1",
            remote_id="row-7",
            chargeable_ref="ch-landing",
            description="Landing fee",
            quantity="2",
            unit_price="20",
            tax_rate="0.15",
            amount="40.00",
            tax_amount="6.00",
            line_total="46.00",
            rate_inclusive="23.00",
            origin=ItemOrigin.MANUAL,
        )

        commit_item = CommitLineItem.from_line_item(item)

        assert commit_item.id == "row-7"
        assert commit_item.chargeable_id == "ch-landing"
        assert commit_item.line_total == Decimal("46.00")

    def test_unpersisted_item_has_no_id(self):
        item = LineItem(id="item-1", description="x", quantity="1", unit_price="1")
        assert CommitLineItem.from_line_item(item).id is None


class TestCompletionResult:
    def test_defaults(self):
        result = CompletionResult(
            booking_id="bk-1", invoice_status=InvoiceStatus.FINALIZED
        )

        assert result.booking_status is BookingStatus.COMPLETED
        assert result.warnings == ()
