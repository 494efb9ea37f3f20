"""
HTTP client for the remote billing API.

Implements the RateSource, InvoiceItemStore and CompletionGateway
interfaces over a JSON REST API using requests. Idempotent calls are
wrapped in the RetryHandler; item creation is sent once.

Endpoints (relative to BILLING_API_BASE_URL):
    GET    /rates/aircraft/{aircraft_id}/{flight_type_id}
    GET    /rates/instructor/{instructor_id}/{flight_type_id}
    GET    /organization/tax-rate
    POST   /bookings/{booking_id}/invoice/items
    PATCH  /bookings/{booking_id}/invoice/items/{item_id}
    DELETE /bookings/{booking_id}/invoice/items/{item_id}
    POST   /bookings/{booking_id}/complete
    POST   /bookings/{booking_id}/flight-log
    POST   /bookings/{booking_id}/invoice/finalize
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from flight_billing.models.base import to_decimal
from flight_billing.models.completion import CommitRequest, CommitResponse
from flight_billing.models.invoice import InvoiceItemRecord, LineItem
from flight_billing.models.rates import RateQuote, RateSubject
from flight_billing.services.gateways import (
    GatewayError,
    NotFoundError,
    VersionConflictError,
)
from flight_billing.services.retry_handler import (
    CircuitBreakerError,
    RetryExhaustedException,
    RetryHandler,
)
from flight_billing.utils.logging_utils import (
    get_correlation_id,
    sanitize_sensitive_data,
)

logger = logging.getLogger(__name__)


class HttpBillingGateway:
    """
    requests-based client of the billing API.

    Features:
    - Shared requests.Session with bearer token and JSON headers
    - Retry with backoff for idempotent calls (GET, PATCH, DELETE, commits)
    - Idempotency-Key header on commit calls
    - HTTP 404 mapped to NotFoundError (or None for rate lookups)
    - HTTP 409 mapped to VersionConflictError
    - Correlation id forwarded as X-Correlation-ID

    Example:
        >>> from flight_billing.config import get_config
        >>> gateway = HttpBillingGateway.from_config(get_config())
        >>> gateway.get_tax_rate()
        Decimal('0.15')
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        retry_handler: Optional[RetryHandler] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_handler = retry_handler or RetryHandler()
        self._session = session or requests.Session()
        self._session.headers.update(headers or {})

    @classmethod
    def from_config(cls, config: Any) -> "HttpBillingGateway":
        return cls(
            base_url=config.api_base_url,
            headers=config.get_request_headers(),
            timeout=config.request_timeout,
            retry_handler=RetryHandler.from_config(config),
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        request_headers = dict(headers or {})
        correlation_id = get_correlation_id()
        if correlation_id:
            request_headers["X-Correlation-ID"] = correlation_id

        if payload is not None:
            logger.debug(f"{method} {path} {sanitize_sensitive_data(payload)}")
        else:
            logger.debug(f"{method} {path}")

        try:
            response = self._session.request(
                method,
                url,
                json=payload,
                headers=request_headers,
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise GatewayError(
                f"{method} {path} failed: {type(e).__name__}", transient=True
            ) from e

        if response.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found")
        if response.status_code == 409:
            body = self._json(response) or {}
            raise VersionConflictError(
                body.get("message", f"{method} {path}: version conflict"),
                expected_version=body.get("expected_version"),
                current_version=body.get("current_version"),
            )
        if response.status_code >= 400:
            body = self._json(response) or {}
            raise GatewayError(
                f"{method} {path} returned HTTP {response.status_code}: "
                f"{body.get('message', response.reason)}",
                status_code=response.status_code,
                transient=response.status_code == 429
                or response.status_code >= 500,
            )

        return self._json(response)

    @staticmethod
    def _json(response: requests.Response) -> Optional[Dict[str, Any]]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        retry: bool = True,
    ) -> Optional[Dict[str, Any]]:
        if not retry:
            return self._send(method, path, payload, headers)

        try:
            return self.retry_handler.execute_with_retry(
                self._send, method, path, payload, headers
            )
        except RetryExhaustedException as e:
            raise GatewayError(str(e), transient=True) from e
        except CircuitBreakerError as e:
            raise GatewayError(
                f"{method} {path} not sent: billing API circuit open", transient=True
            ) from e

    # ------------------------------------------------------------------
    # RateSource
    # ------------------------------------------------------------------

    def _get_rate(
        self, subject: RateSubject, subject_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        try:
            body = self._request(
                "GET", f"/rates/{subject.value}/{subject_id}/{flight_type_id}"
            )
        except NotFoundError:
            return None

        if not body or body.get("rate") is None:
            return None
        return RateQuote(
            subject_kind=subject,
            subject_id=subject_id,
            flight_type_id=flight_type_id,
            rate_exclusive=body["rate"],
            taxable=bool(body.get("taxable", True)),
        )

    def get_aircraft_rate(
        self, aircraft_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        return self._get_rate(RateSubject.AIRCRAFT, aircraft_id, flight_type_id)

    def get_instructor_rate(
        self, instructor_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        return self._get_rate(RateSubject.INSTRUCTOR, instructor_id, flight_type_id)

    def get_tax_rate(self) -> Decimal:
        body = self._request("GET", "/organization/tax-rate")
        if not body or body.get("tax_rate") is None:
            raise GatewayError("Tax rate response has no tax_rate")
        try:
            return to_decimal(body["tax_rate"])
        except ValueError as e:
            raise GatewayError(f"Malformed tax rate response: {e}") from e

    # ------------------------------------------------------------------
    # InvoiceItemStore
    # ------------------------------------------------------------------

    @staticmethod
    def _item_payload(item: LineItem) -> Dict[str, Any]:
        payload = item.model_dump(
            mode="json",
            include={
                "description",
                "quantity",
                "unit_price",
                "tax_rate",
                "amount",
                "tax_amount",
                "line_total",
                "rate_inclusive",
                "charge_key",
            },
        )
        payload["chargeable_id"] = item.chargeable_ref
        return payload

    @staticmethod
    def _record(body: Optional[Dict[str, Any]]) -> InvoiceItemRecord:
        try:
            return InvoiceItemRecord.model_validate(body or {})
        except ValidationError as e:
            raise GatewayError(f"Malformed invoice item response: {e}") from e

    def create_item(self, booking_id: str, item: LineItem) -> InvoiceItemRecord:
        body = self._request(
            "POST",
            f"/bookings/{booking_id}/invoice/items",
            self._item_payload(item),
            retry=False,
        )
        return self._record(body)

    def update_item(
        self, booking_id: str, remote_id: str, item: LineItem
    ) -> InvoiceItemRecord:
        body = self._request(
            "PATCH",
            f"/bookings/{booking_id}/invoice/items/{remote_id}",
            self._item_payload(item),
        )
        return self._record(body)

    def delete_item(self, booking_id: str, remote_id: str) -> Optional[int]:
        body = self._request(
            "DELETE", f"/bookings/{booking_id}/invoice/items/{remote_id}"
        )
        if body and body.get("invoice_version") is not None:
            return int(body["invoice_version"])
        return None

    # ------------------------------------------------------------------
    # CompletionGateway
    # ------------------------------------------------------------------

    def _commit(self, path: str, request: CommitRequest) -> CommitResponse:
        body = self._request(
            "POST",
            f"/bookings/{request.booking_id}{path}",
            request.model_dump(mode="json"),
            headers={"Idempotency-Key": request.idempotency_key},
        )
        try:
            return CommitResponse.model_validate(body or {})
        except ValidationError as e:
            raise GatewayError(f"Malformed commit response: {e}") from e

    def complete_booking(self, request: CommitRequest) -> CommitResponse:
        return self._commit("/complete", request)

    def commit_flight_log(self, request: CommitRequest) -> CommitResponse:
        return self._commit("/flight-log", request)

    def finalize_invoice(self, request: CommitRequest) -> CommitResponse:
        return self._commit("/invoice/finalize", request)
