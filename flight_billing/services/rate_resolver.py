"""
Rate resolver for the flight billing engine.

Looks up the aircraft rate, the instructor rate and the organization tax
rate needed to price one segment, and classifies failures:
- RATE_NOT_CONFIGURED: a required rate row does not exist (not retried)
- RATE_LOOKUP_FAILED: the rate source could not be reached
"""

import logging
from decimal import Decimal
from functools import partial
from typing import Optional

from flight_billing.models.base import to_decimal
from flight_billing.models.rates import RateQuote, RateSubject, ResolvedRates
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.services.gateways import RateSource
from flight_billing.services.rate_cache import RateCache

logger = logging.getLogger(__name__)


class RateResolver:
    """
    Resolves rates for (aircraft, instructor, flight type) lookups.

    Lookups go through an optional RateCache keyed by
    (subject, subject id, flight type id). The tax rate is read on every
    resolve.

    Example:
        >>> resolver = RateResolver(StaticRateSource.from_json_file("rates.json"))
        >>> result = resolver.resolve("ac-1", "ins-1", "ft-dual")
        >>> result.value.aircraft_rate.rate_exclusive
        Decimal('150.00')
    """

    def __init__(self, source: RateSource, cache: Optional[RateCache] = None):
        self.source = source
        self.cache = cache

    def _lookup(
        self, subject: RateSubject, subject_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        if subject is RateSubject.AIRCRAFT:
            loader = partial(self.source.get_aircraft_rate, subject_id, flight_type_id)
        else:
            loader = partial(
                self.source.get_instructor_rate, subject_id, flight_type_id
            )

        if self.cache is None:
            return loader()
        return self.cache.get_or_load(subject, subject_id, flight_type_id, loader)

    def resolve(
        self,
        aircraft_id: str,
        instructor_id: Optional[str],
        flight_type_id: str,
    ) -> Result[ResolvedRates]:
        """
        Resolve the rates for one segment.

        Args:
            aircraft_id: Aircraft flown
            instructor_id: Instructor aboard, None for solo segments
            flight_type_id: Flight type the segment is billed against

        Returns:
            Ok with ResolvedRates (instructor_rate set iff instructor_id was
            given), or Err with kind RATE_NOT_CONFIGURED or RATE_LOOKUP_FAILED
        """
        try:
            aircraft_rate = self._lookup(
                RateSubject.AIRCRAFT, aircraft_id, flight_type_id
            )
            if aircraft_rate is None:
                logger.warning(
                    f"No aircraft rate for aircraft {aircraft_id} "
                    f"and flight type {flight_type_id}"
                )
                return Err(
                    ErrorKind.RATE_NOT_CONFIGURED,
                    f"No aircraft rate configured for aircraft {aircraft_id} "
                    f"and flight type {flight_type_id}",
                )

            instructor_rate = None
            if instructor_id:
                instructor_rate = self._lookup(
                    RateSubject.INSTRUCTOR, instructor_id, flight_type_id
                )
                if instructor_rate is None:
                    logger.warning(
                        f"No instructor rate for instructor {instructor_id} "
                        f"and flight type {flight_type_id}"
                    )
                    return Err(
                        ErrorKind.RATE_NOT_CONFIGURED,
                        f"No instructor rate configured for instructor "
                        f"{instructor_id} and flight type {flight_type_id}",
                    )
        except Exception as e:
            # Any source failure is a lookup failure, never a missing rate
            logger.error(
                f"Rate lookup failed for {aircraft_id}/{flight_type_id}: "
                f"{type(e).__name__}: {e}"
            )
            return Err(
                ErrorKind.RATE_LOOKUP_FAILED,
                f"Rate lookup failed: {type(e).__name__}: {e}",
            )

        tax_result = self.tax_rate()
        if isinstance(tax_result, Err):
            return tax_result

        return Ok(
            ResolvedRates(
                aircraft_rate=aircraft_rate,
                instructor_rate=instructor_rate,
                tax_rate=tax_result.value,
            )
        )

    def tax_rate(self) -> Result[Decimal]:
        """Organization tax rate on its own, for pricing manual chargeables."""
        try:
            tax_rate = to_decimal(self.source.get_tax_rate())
        except Exception as e:
            logger.error(f"Tax rate lookup failed: {type(e).__name__}: {e}")
            return Err(
                ErrorKind.RATE_LOOKUP_FAILED,
                f"Tax rate lookup failed: {type(e).__name__}: {e}",
            )
        if not tax_rate.is_finite() or not Decimal("0") <= tax_rate <= Decimal("1"):
            return Err(
                ErrorKind.RATE_LOOKUP_FAILED,
                f"Organization tax rate {tax_rate} is outside [0, 1]",
            )
        return Ok(tax_rate)

    def invalidate(
        self, subject_id: Optional[str] = None, flight_type_id: Optional[str] = None
    ) -> int:
        """Drop cached rates for a subject and/or flight type."""
        if self.cache is None:
            return 0
        return self.cache.invalidate(subject_id=subject_id, flight_type_id=flight_type_id)
