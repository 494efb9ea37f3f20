"""Segment calculator for the flight billing engine.

This module converts raw meter readings into billable time segments:
- A primary segment from the billing-basis meter delta
- An optional solo continuation segment from the solo end Hobbs reading

Durations are rounded to 1 decimal place, half-up. Zero-duration segments
are never emitted.
"""

import logging
from typing import List, Optional

from flight_billing.calculators.rounding import meter_delta
from flight_billing.models.aircraft import (
    BillingBasis,
    FlightType,
    InstructionType,
    MeterReading,
)
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.models.segment import FlightSegment, SegmentKind
from flight_billing.validators.meter_validators import validate_meter_reading

logger = logging.getLogger(__name__)


def calculate_segments(
    reading: MeterReading,
    basis: BillingBasis,
    flight_type: FlightType,
    instructor_id: Optional[str] = None,
    solo_flight_type_id: Optional[str] = None,
) -> Result[List[FlightSegment]]:
    """Derive billable segments from a meter reading.

    Rules:
    - The primary segment lasts ``end - start`` of the basis meter. It is a
      DUAL segment for dual and trial flight types (carrying the instructor)
      and a SOLO segment for solo flight types (no instructor).
    - When ``solo_end_hobbs`` is given on a dual flight type, a
      SOLO_CONTINUATION segment of ``solo_end_hobbs - hobbs_end`` follows.
      It is always Hobbs based and never carries an instructor. It is billed
      against ``solo_flight_type_id`` when given, else the dual flight type.
    - Segments whose duration rounds to zero are dropped.

    Args:
        reading: Meter readings captured at the end of the flight
        basis: Meter used for aircraft billing
        flight_type: Flight type flown
        instructor_id: Instructor aboard for dual/trial flights
        solo_flight_type_id: Flight type of the solo continuation

    Returns:
        Ok with one or two segments, or Err with kind INVALID_METER_READING
        (bad readings) or INSTRUCTOR_REQUIRED (dual/trial without instructor)

    Example:
        >>> reading = MeterReading(
        ...     hobbs_start=100.0, hobbs_end=101.5,
        ...     tach_start=50.0, tach_end=51.2, solo_end_hobbs=102.0,
        ... )
        >>> dual = FlightType(id="ft-dual", name="PPL Training")
        >>> result = calculate_segments(reading, BillingBasis.HOBBS, dual, "ins-1")
        >>> [(s.kind.value, s.duration_hours) for s in result.value]
        [('dual', Decimal('1.5')), ('solo_continuation', Decimal('0.5'))]
    """
    report = validate_meter_reading(reading, basis)
    if report.has_errors():
        logger.debug(f"Meter reading rejected: {report.summary()}")
        return Err(
            ErrorKind.INVALID_METER_READING,
            report.first_error_message() or "Invalid meter reading",
            report.get_errors(),
        )

    instruction_type = flight_type.instruction_type
    if instruction_type.requires_instructor and not instructor_id:
        return Err(
            ErrorKind.INSTRUCTOR_REQUIRED,
            f"Instructor required for {instruction_type.value} flights",
        )

    start, end = reading.basis_pair(basis)
    base_duration = meter_delta(start, end)

    segments: List[FlightSegment] = []
    if base_duration > 0:
        if instruction_type is InstructionType.SOLO:
            segments.append(
                FlightSegment(
                    kind=SegmentKind.SOLO,
                    duration_hours=base_duration,
                    flight_type_id=flight_type.id,
                )
            )
        else:
            segments.append(
                FlightSegment(
                    kind=SegmentKind.DUAL,
                    duration_hours=base_duration,
                    flight_type_id=flight_type.id,
                    instructor_id=instructor_id,
                )
            )
    else:
        # e.g. tach 50.00 -> 50.04
        logger.debug(f"{basis.value} delta rounds to zero, no primary segment")

    if reading.has_solo_continuation:
        if instruction_type is InstructionType.DUAL:
            solo_duration = meter_delta(reading.hobbs_end, reading.solo_end_hobbs)
            if solo_duration > 0:
                segments.append(
                    FlightSegment(
                        kind=SegmentKind.SOLO_CONTINUATION,
                        duration_hours=solo_duration,
                        flight_type_id=solo_flight_type_id or flight_type.id,
                    )
                )
            else:
                logger.debug("Solo continuation rounds to zero, discarded")
        else:
            logger.debug(
                f"Solo end Hobbs ignored for {instruction_type.value} flight type"
            )

    if not segments:
        return Err(
            ErrorKind.INVALID_METER_READING,
            "Meter readings produce no billable time",
        )

    return Ok(segments)
