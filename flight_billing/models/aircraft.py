"""Aircraft, flight type and meter reading models.

These are the immutable inputs to a charge calculation: the aircraft and
how it is billed, the flight type flown, and the meter readings captured
at the end of the flight.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from flight_billing.models.base import BaseDataModel, to_decimal


class BillingBasis(str, Enum):
    """Which meter delta is authoritative for aircraft billing."""

    HOBBS = "hobbs"
    TACHO = "tacho"


class InstructionType(str, Enum):
    """Instruction type of a flight type."""

    DUAL = "dual"
    SOLO = "solo"
    TRIAL = "trial"

    @property
    def requires_instructor(self) -> bool:
        return self in (InstructionType.DUAL, InstructionType.TRIAL)


class TotalTimeMethod(str, Enum):
    """How flight time is credited to the airframe's total hours."""

    HOBBS = "hobbs"
    TACHO = "tacho"
    AIRSWITCH = "airswitch"
    HOBBS_LESS_5 = "hobbs less 5%"
    HOBBS_LESS_10 = "hobbs less 10%"
    TACHO_LESS_5 = "tacho less 5%"
    TACHO_LESS_10 = "tacho less 10%"


class Aircraft(BaseDataModel):
    """An aircraft as seen by the billing engine.

    Attributes:
        id: Aircraft identifier
        registration: Registration mark used in line item descriptions
        billing_basis: Meter used for aircraft billing
        total_time_method: How flight time is credited to total hours
        total_hours: Airframe total hours before this flight
    """

    id: str = Field(..., min_length=1)
    registration: str = Field(..., min_length=1)
    billing_basis: BillingBasis = BillingBasis.HOBBS
    total_time_method: TotalTimeMethod = TotalTimeMethod.HOBBS
    total_hours: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("total_hours", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)


class FlightType(BaseDataModel):
    """A flight type (e.g. "PPL Training") and its instruction type."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    instruction_type: InstructionType = InstructionType.DUAL


class MeterReading(BaseDataModel):
    """Raw meter readings captured at the end of a flight.

    Values are not range-checked on construction. The meter validators
    report every problem at once as a ValidationReport so that callers get
    a typed InvalidMeterReading result instead of an exception.

    Attributes:
        hobbs_start: Hobbs meter at engine start
        hobbs_end: Hobbs meter at the end of the dual segment
        tach_start: Tacho meter at engine start
        tach_end: Tacho meter at shutdown
        solo_end_hobbs: Hobbs meter at the end of a solo continuation

    Example:
        >>> reading = MeterReading(
        ...     hobbs_start=100.0, hobbs_end=101.5,
        ...     tach_start=50.0, tach_end=51.2,
        ... )
        >>> reading.hobbs_end - reading.hobbs_start
        Decimal('1.5')
    """

    hobbs_start: Optional[Decimal] = None
    hobbs_end: Optional[Decimal] = None
    tach_start: Optional[Decimal] = None
    tach_end: Optional[Decimal] = None
    solo_end_hobbs: Optional[Decimal] = None

    @field_validator(
        "hobbs_start",
        "hobbs_end",
        "tach_start",
        "tach_end",
        "solo_end_hobbs",
        mode="before",
    )
    @classmethod
    def convert_to_decimal(cls, v):
        if v is None or v == "":
            return None
        return to_decimal(v)

    @property
    def has_solo_continuation(self) -> bool:
        return self.solo_end_hobbs is not None

    def basis_pair(self, basis: BillingBasis):
        """Return the (start, end) meter pair for a billing basis."""
        if basis is BillingBasis.HOBBS:
            return self.hobbs_start, self.hobbs_end
        return self.tach_start, self.tach_end
