"""Charge planner: meter readings to priced draft items.

Runs one calculation end to end: Segment Calculator, Rate Resolver and
Line Item Factory, plus the flight log for the commit. Pure with respect
to the draft; nothing is persisted here.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from flight_billing.calculators.flight_log_calculator import calculate_flight_log
from flight_billing.calculators.line_item_factory import (
    DescriptionLabels,
    price_segment,
)
from flight_billing.calculators.segment_calculator import calculate_segments
from flight_billing.models.aircraft import Aircraft, FlightType, MeterReading
from flight_billing.models.invoice import LineItem, fold_totals
from flight_billing.models.result import Err, Ok, Result
from flight_billing.models.segment import FlightLog, FlightSegment
from flight_billing.services.rate_resolver import RateResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeRequest:
    """Inputs of one calculation.

    Attributes:
        meter_reading: Meter readings captured at the end of the flight
        aircraft: Aircraft flown
        flight_type: Flight type flown
        instructor_id: Instructor aboard for dual/trial flights
        instructor_name: Instructor name used in item descriptions
        solo_flight_type: Flight type of the solo continuation, if different
    """

    meter_reading: MeterReading
    aircraft: Aircraft
    flight_type: FlightType
    instructor_id: Optional[str] = None
    instructor_name: Optional[str] = None
    solo_flight_type: Optional[FlightType] = None

    @property
    def solo_flight_type_id(self) -> Optional[str]:
        return self.solo_flight_type.id if self.solo_flight_type else None


@dataclass(frozen=True)
class ChargePlan:
    """Outcome of a successful calculation."""

    request: ChargeRequest
    segments: List[FlightSegment]
    flight_log: FlightLog
    items: List[LineItem]
    tax_rate: Decimal

    @property
    def totals(self):
        return fold_totals(self.items)


def plan_charges(
    request: ChargeRequest,
    resolver: RateResolver,
    total_hours_start: Optional[Decimal] = None,
) -> Result[ChargePlan]:
    """
    Calculate the computed line items of a flight.

    Args:
        request: Calculation inputs
        resolver: Rate resolver
        total_hours_start: Airframe baseline kept from an earlier calculation

    Returns:
        Ok with the ChargePlan, or the first Err from segment calculation,
        rate resolution or pricing
    """
    aircraft = request.aircraft
    segments_result = calculate_segments(
        request.meter_reading,
        aircraft.billing_basis,
        request.flight_type,
        instructor_id=request.instructor_id,
        solo_flight_type_id=request.solo_flight_type_id,
    )
    if isinstance(segments_result, Err):
        return segments_result
    segments = segments_result.value

    labels = DescriptionLabels(
        flight_type_name=request.flight_type.name,
        aircraft_registration=aircraft.registration,
        instructor_name=request.instructor_name or "Instructor",
        instruction_type=request.flight_type.instruction_type,
        solo_flight_type_name=(
            request.solo_flight_type.name if request.solo_flight_type else None
        ),
    )

    items: List[LineItem] = []
    tax_rate = Decimal("0")
    for segment in segments:
        rates_result = resolver.resolve(
            aircraft.id, segment.instructor_id, segment.flight_type_id
        )
        if isinstance(rates_result, Err):
            return rates_result
        rates = rates_result.value
        tax_rate = rates.tax_rate

        priced = price_segment(
            segment,
            rates.aircraft_rate,
            rates.instructor_rate,
            rates.tax_rate,
            labels,
        )
        if isinstance(priced, Err):
            return priced
        items.extend(priced.value)

    flight_log = calculate_flight_log(
        request.meter_reading, aircraft, segments, total_hours_start
    )
    logger.debug(
        f"Planned {len(items)} item(s) from {len(segments)} segment(s), "
        f"flight time {flight_log.flight_time}h"
    )
    return Ok(
        ChargePlan(
            request=request,
            segments=segments,
            flight_log=flight_log,
            items=items,
            tax_rate=tax_rate,
        )
    )
