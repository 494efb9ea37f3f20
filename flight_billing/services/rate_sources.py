"""
In-process rate source backed by a mapping or a JSON rate file.

Used by the CLI preview command and in tests. The JSON file format is:

    {
        "tax_rate": "0.15",
        "aircraft": {"ac-1": {"ft-dual": "150.00", "ft-solo": {"rate": "140", "taxable": true}}},
        "instructor": {"ins-1": {"ft-dual": "80.00"}}
    }

A rate is either a bare number/string or an object with ``rate`` and an
optional ``taxable`` flag.
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flight_billing.models.base import to_decimal
from flight_billing.models.rates import RateQuote, RateSubject

logger = logging.getLogger(__name__)


class RateFileError(ValueError):
    """The rate file is missing or malformed."""


class StaticRateSource:
    """
    Rate source holding fixed rates in memory.

    Example:
        >>> source = StaticRateSource(tax_rate="0.15")
        >>> source.set_rate(RateSubject.AIRCRAFT, "ac-1", "ft-dual", "150")
        >>> source.get_aircraft_rate("ac-1", "ft-dual").rate_exclusive
        Decimal('150')
    """

    def __init__(self, tax_rate: Union[Decimal, str, int] = Decimal("0")):
        self.tax_rate = to_decimal(tax_rate)
        self._rates: Dict[tuple, RateQuote] = {}
        self.lookup_count = 0

    def set_rate(
        self,
        subject: RateSubject,
        subject_id: str,
        flight_type_id: str,
        rate: Union[Decimal, str, int],
        taxable: bool = True,
    ) -> RateQuote:
        quote = RateQuote(
            subject_kind=subject,
            subject_id=subject_id,
            flight_type_id=flight_type_id,
            rate_exclusive=rate,
            taxable=taxable,
        )
        self._rates[(subject, subject_id, flight_type_id)] = quote
        return quote

    def remove_rate(
        self, subject: RateSubject, subject_id: str, flight_type_id: str
    ) -> None:
        self._rates.pop((subject, subject_id, flight_type_id), None)

    def get_aircraft_rate(
        self, aircraft_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        self.lookup_count += 1
        return self._rates.get((RateSubject.AIRCRAFT, aircraft_id, flight_type_id))

    def get_instructor_rate(
        self, instructor_id: str, flight_type_id: str
    ) -> Optional[RateQuote]:
        self.lookup_count += 1
        return self._rates.get(
            (RateSubject.INSTRUCTOR, instructor_id, flight_type_id)
        )

    def get_tax_rate(self) -> Decimal:
        return self.tax_rate

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StaticRateSource":
        """
        Build a source from the rate file structure.

        Raises:
            RateFileError: If a rate entry is malformed
        """
        try:
            source = cls(tax_rate=data.get("tax_rate", "0"))
            for subject in RateSubject:
                for subject_id, by_flight_type in data.get(subject.value, {}).items():
                    for flight_type_id, entry in by_flight_type.items():
                        if isinstance(entry, dict):
                            source.set_rate(
                                subject,
                                subject_id,
                                flight_type_id,
                                entry["rate"],
                                taxable=bool(entry.get("taxable", True)),
                            )
                        else:
                            source.set_rate(subject, subject_id, flight_type_id, entry)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RateFileError(f"Invalid rate data: {e}") from e

        logger.debug(f"Loaded {len(source._rates)} rates")
        return source

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "StaticRateSource":
        """
        Load rates from a JSON file.

        Raises:
            RateFileError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RateFileError(f"Cannot read rate file {path}: {e}") from e

        if not isinstance(data, dict):
            raise RateFileError(f"Rate file {path} must contain a JSON object")
        return cls.from_dict(data)
