"""
Global pytest configuration and fixtures.
"""
import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from flight_billing.config import BillingEngineConfig, reload_config
from flight_billing.models.aircraft import (
    Aircraft,
    BillingBasis,
    FlightType,
    InstructionType,
    MeterReading,
)
from flight_billing.models.completion import CommitRequest, CommitResponse
from flight_billing.models.invoice import InvoiceItemRecord, LineItem
from flight_billing.models.rates import RateSubject
from flight_billing.services.gateways import GatewayError
from flight_billing.services.rate_resolver import RateResolver
from flight_billing.services.rate_sources import StaticRateSource


@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Test environment variables for configuration."""
    return {
        "ENVIRONMENT": "testing",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "BILLING_API_BASE_URL": "https://billing.test/api",
        "BILLING_API_TOKEN": "test-token",
        "BILLING_REQUEST_TIMEOUT": "5",
        "MAX_RETRIES": "2",
        "RETRY_DELAY": "0",
        "RATE_CACHE_TTL_SECONDS": "30",
        "RATE_CACHE_MAX_SIZE": "16",
    }


@pytest.fixture
def mock_env(test_env_vars, monkeypatch):
    """Mock environment variables for testing."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)

    # Clear the global config to force reload with test values
    import flight_billing.config.settings

    flight_billing.config.settings._config = None

    yield test_env_vars

    flight_billing.config.settings._config = None


@pytest.fixture
def test_config(mock_env) -> BillingEngineConfig:
    """Test configuration instance."""
    return reload_config()


# ----------------------------------------------------------------------
# In-memory remote collaborators
# ----------------------------------------------------------------------


class InMemoryItemStore:
    """Invoice item store keeping rows in a dict and bumping a version."""

    def __init__(self):
        self.rows: Dict[str, InvoiceItemRecord] = {}
        self.version = 1
        self.calls: List[tuple] = []
        self.fail_next: Optional[Exception] = None
        self._next_id = 0

    def _maybe_fail(self):
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    def _store(self, remote_id: str, item: LineItem) -> InvoiceItemRecord:
        self.version += 1
        record = InvoiceItemRecord(
            id=remote_id,
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
            invoice_version=self.version,
        )
        self.rows[remote_id] = record
        return record

    def create_item(self, booking_id: str, item: LineItem) -> InvoiceItemRecord:
        self.calls.append(("create", booking_id, item.id))
        self._maybe_fail()
        self._next_id += 1
        return self._store(f"row-{self._next_id}", item)

    def update_item(
        self, booking_id: str, remote_id: str, item: LineItem
    ) -> InvoiceItemRecord:
        self.calls.append(("update", booking_id, remote_id))
        self._maybe_fail()
        return self._store(remote_id, item)

    def delete_item(self, booking_id: str, remote_id: str) -> Optional[int]:
        self.calls.append(("delete", booking_id, remote_id))
        self._maybe_fail()
        self.rows.pop(remote_id, None)
        self.version += 1
        return self.version


class BlockingItemStore:
    """Item store wrapper whose next call of one kind blocks, then fails.

    Set ``block_next`` to "create", "update" or "delete". That call sets
    ``entered``, waits for ``release`` and raises a transient GatewayError;
    every other call goes straight to the wrapped store.
    """

    def __init__(self, inner: InMemoryItemStore):
        self.inner = inner
        self.block_next: Optional[str] = None
        self.entered = threading.Event()
        self.release = threading.Event()

    def _gate(self, kind: str) -> None:
        if self.block_next != kind:
            return
        self.block_next = None
        self.entered.set()
        self.release.wait(timeout=5)
        raise GatewayError("item store unavailable", status_code=503, transient=True)

    def create_item(self, booking_id: str, item: LineItem) -> InvoiceItemRecord:
        self._gate("create")
        return self.inner.create_item(booking_id, item)

    def update_item(
        self, booking_id: str, remote_id: str, item: LineItem
    ) -> InvoiceItemRecord:
        self._gate("update")
        return self.inner.update_item(booking_id, remote_id, item)

    def delete_item(self, booking_id: str, remote_id: str) -> Optional[int]:
        self._gate("delete")
        return self.inner.delete_item(booking_id, remote_id)


class FakeCompletionGateway:
    """Completion gateway recording requests and replaying scripted outcomes.

    ``outcomes`` is consumed in order; each entry is a CommitResponse, a
    dict of CommitResponse fields, or an exception to raise. When empty, a
    fully successful response is returned.
    """

    def __init__(self, outcomes: Optional[List[Any]] = None):
        self.outcomes = list(outcomes or [])
        self.calls: List[tuple] = []
        self.invoices: Dict[str, Decimal] = {}

    def _respond(self, method: str, request: CommitRequest) -> CommitResponse:
        self.calls.append((method, request))
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, dict):
                outcome = CommitResponse(**outcome)
            response = outcome
        else:
            response = CommitResponse()

        total = sum((item.line_total for item in request.line_items), Decimal("0"))
        if response.invoice_finalized:
            self.invoices[request.booking_id] = total
        return response.model_copy(
            update={
                "invoice_id": response.invoice_id or f"inv-{request.booking_id}",
                "invoice_total": response.invoice_total or total,
            }
        )

    def complete_booking(self, request: CommitRequest) -> CommitResponse:
        return self._respond("complete_booking", request)

    def commit_flight_log(self, request: CommitRequest) -> CommitResponse:
        return self._respond("commit_flight_log", request)

    def finalize_invoice(self, request: CommitRequest) -> CommitResponse:
        return self._respond("finalize_invoice", request)


class FailingRateSource:
    """Rate source whose every lookup raises a transient gateway error."""

    def get_aircraft_rate(self, aircraft_id, flight_type_id):
        raise GatewayError("rate service unavailable", status_code=503, transient=True)

    def get_instructor_rate(self, instructor_id, flight_type_id):
        raise GatewayError("rate service unavailable", status_code=503, transient=True)

    def get_tax_rate(self):
        raise GatewayError("rate service unavailable", status_code=503, transient=True)


@pytest.fixture
def item_store() -> InMemoryItemStore:
    return InMemoryItemStore()


@pytest.fixture
def blocking_item_store(item_store) -> BlockingItemStore:
    return BlockingItemStore(item_store)


@pytest.fixture
def completion_gateway() -> FakeCompletionGateway:
    return FakeCompletionGateway()


@pytest.fixture
def failing_rate_source() -> FailingRateSource:
    return FailingRateSource()


# ----------------------------------------------------------------------
# Sample flights and rates
# ----------------------------------------------------------------------


@pytest.fixture
def aircraft() -> Aircraft:
    return Aircraft(
        id="ac-1",
        registration="ZK-ABC",
        billing_basis=BillingBasis.HOBBS,
        total_hours=Decimal("1234.5"),
    )


@pytest.fixture
def dual_flight_type() -> FlightType:
    return FlightType(
        id="ft-dual", name="PPL Training", instruction_type=InstructionType.DUAL
    )


@pytest.fixture
def solo_flight_type() -> FlightType:
    return FlightType(
        id="ft-solo", name="PPL Solo", instruction_type=InstructionType.SOLO
    )


@pytest.fixture
def trial_flight_type() -> FlightType:
    return FlightType(
        id="ft-trial", name="Trial Flight", instruction_type=InstructionType.TRIAL
    )


@pytest.fixture
def rate_source() -> StaticRateSource:
    """Rates: aircraft 150/140/160, instructor 80/90, tax 15%."""
    source = StaticRateSource(tax_rate="0.15")
    source.set_rate(RateSubject.AIRCRAFT, "ac-1", "ft-dual", "150.00")
    source.set_rate(RateSubject.AIRCRAFT, "ac-1", "ft-solo", "140.00")
    source.set_rate(RateSubject.AIRCRAFT, "ac-1", "ft-trial", "160.00")
    source.set_rate(RateSubject.INSTRUCTOR, "ins-1", "ft-dual", "80.00")
    source.set_rate(RateSubject.INSTRUCTOR, "ins-1", "ft-trial", "90.00", taxable=False)
    return source


@pytest.fixture
def resolver(rate_source) -> RateResolver:
    return RateResolver(rate_source)


@pytest.fixture
def scenario_a_reading() -> MeterReading:
    return MeterReading(
        hobbs_start="100.0", hobbs_end="101.5", tach_start="50.0", tach_end="51.2"
    )


@pytest.fixture
def scenario_b_reading() -> MeterReading:
    return MeterReading(
        hobbs_start="100.0",
        hobbs_end="101.5",
        tach_start="50.0",
        tach_end="51.2",
        solo_end_hobbs="102.0",
    )


# Pytest configuration for different test types
def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on location."""
    for item in items:
        if "tests/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
