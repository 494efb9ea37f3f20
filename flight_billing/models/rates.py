"""Rate quote models.

A RateQuote is read-only and only valid for the lookup that produced it.
Rates are tax exclusive; the tax-inclusive figure is for display.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from flight_billing.models.base import BaseDataModel, to_decimal


class RateSubject(str, Enum):
    """What a rate is charged for."""

    AIRCRAFT = "aircraft"
    INSTRUCTOR = "instructor"


class RateQuote(BaseDataModel):
    """An hourly rate for a subject flying a given flight type.

    Attributes:
        subject_kind: Aircraft or instructor
        subject_id: Aircraft or instructor identifier
        flight_type_id: Flight type the rate applies to
        rate_exclusive: Hourly rate excluding tax
        taxable: Whether the organization tax rate applies
    """

    subject_kind: RateSubject
    subject_id: str = Field(..., min_length=1)
    flight_type_id: str = Field(..., min_length=1)
    rate_exclusive: Decimal = Field(..., ge=0)
    taxable: bool = True

    @field_validator("rate_exclusive", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)

    def rate_inclusive(self, tax_rate: Decimal) -> Decimal:
        """Tax-inclusive rate for display, rounded to cents."""
        applied = tax_rate if self.taxable else Decimal("0")
        return (self.rate_exclusive * (Decimal("1") + applied)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )


class ResolvedRates(BaseDataModel):
    """Rates resolved for one (aircraft, instructor, flight type) lookup.

    Attributes:
        aircraft_rate: Aircraft rate for the flight type
        instructor_rate: Instructor rate, None when no instructor was asked for
        tax_rate: Organization-wide tax rate in [0, 1]
    """

    aircraft_rate: RateQuote
    instructor_rate: Optional[RateQuote] = None
    tax_rate: Decimal = Field(..., ge=0, le=1)

    @field_validator("tax_rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)

    def tax_rate_for(self, quote: RateQuote) -> Decimal:
        """Tax rate applied to items priced from a quote."""
        return self.tax_rate if quote.taxable else Decimal("0")
