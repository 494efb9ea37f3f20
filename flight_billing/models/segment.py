"""Flight segment and flight log models.

Segments are derived from meter deltas and never persisted on their own.
The flight log is the record of the flight committed alongside the invoice.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from flight_billing.models.aircraft import BillingBasis, MeterReading
from flight_billing.models.base import BaseDataModel


class SegmentKind(str, Enum):
    """Kind of billable time segment.

    DUAL is the primary segment of a dual or trial flight, SOLO the primary
    segment of a solo flight type, SOLO_CONTINUATION the time flown alone
    after a dual segment.
    """

    DUAL = "dual"
    SOLO = "solo"
    SOLO_CONTINUATION = "solo_continuation"

    @property
    def charge_prefix(self) -> str:
        """Prefix used for charge keys of items priced from this segment."""
        return "solo" if self is SegmentKind.SOLO_CONTINUATION else "primary"


class FlightSegment(BaseDataModel):
    """A billable time segment.

    Attributes:
        kind: Segment kind
        duration_hours: Billable duration, rounded to 1 decimal place
        flight_type_id: Flight type the segment is billed against
        instructor_id: Instructor aboard, None for solo time
    """

    kind: SegmentKind
    duration_hours: Decimal = Field(..., gt=0)
    flight_type_id: str = Field(..., min_length=1)
    instructor_id: Optional[str] = None

    @property
    def has_instructor(self) -> bool:
        return self.instructor_id is not None


class FlightLog(BaseDataModel):
    """Flight log values derived from a meter reading.

    Attributes:
        meter_reading: The reading the log was derived from
        billing_basis: Meter used for billing
        hobbs_time: Hobbs delta, 1 dp
        tach_time: Tacho delta, 1 dp
        dual_time: Billable dual (or trial) time
        solo_time: Billable solo time, including solo continuation
        flight_time: dual_time + solo_time
        total_hours_start: Airframe total hours before the flight
        total_hours_end: Airframe total hours after crediting this flight
    """

    meter_reading: MeterReading
    billing_basis: BillingBasis
    hobbs_time: Decimal
    tach_time: Decimal
    dual_time: Decimal = Decimal("0.0")
    solo_time: Decimal = Decimal("0.0")
    flight_time: Decimal
    total_hours_start: Decimal
    total_hours_end: Decimal
