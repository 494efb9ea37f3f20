"""Flight log calculator.

Derives the flight log recorded with a completed booking: meter times,
dual/solo split, and the airframe total hours credited for the flight.
"""

from decimal import Decimal
from typing import List, Optional

from flight_billing.calculators.rounding import meter_delta, round_hours
from flight_billing.models.aircraft import Aircraft, MeterReading, TotalTimeMethod
from flight_billing.models.segment import FlightLog, FlightSegment, SegmentKind

_CREDIT_FACTORS = {
    TotalTimeMethod.HOBBS: ("hobbs", Decimal("1")),
    TotalTimeMethod.TACHO: ("tach", Decimal("1")),
    # No airswitch meter is captured; Hobbs is the closest proxy
    TotalTimeMethod.AIRSWITCH: ("hobbs", Decimal("1")),
    TotalTimeMethod.HOBBS_LESS_5: ("hobbs", Decimal("0.95")),
    TotalTimeMethod.HOBBS_LESS_10: ("hobbs", Decimal("0.90")),
    TotalTimeMethod.TACHO_LESS_5: ("tach", Decimal("0.95")),
    TotalTimeMethod.TACHO_LESS_10: ("tach", Decimal("0.90")),
}


def calculate_credited_time(
    hobbs_time: Decimal, tach_time: Decimal, method: TotalTimeMethod
) -> Decimal:
    """Flight time credited to the airframe for a total time method.

    Example:
        >>> calculate_credited_time(
        ...     Decimal("2.0"), Decimal("1.8"), TotalTimeMethod.HOBBS_LESS_10
        ... )
        Decimal('1.800')
    """
    meter, factor = _CREDIT_FACTORS[method]
    base = hobbs_time if meter == "hobbs" else tach_time
    return base * factor


def calculate_flight_log(
    reading: MeterReading,
    aircraft: Aircraft,
    segments: List[FlightSegment],
    total_hours_start: Optional[Decimal] = None,
) -> FlightLog:
    """Build the flight log for a validated reading and its segments.

    Args:
        reading: Validated meter reading
        aircraft: Aircraft flown
        segments: Segments derived from the reading
        total_hours_start: Baseline from a previous calculation of the same
            booking; when None the aircraft's current total hours are used.
            Keeping the first baseline prevents crediting a flight twice
            when meter readings are corrected.

    Returns:
        FlightLog for the commit request
    """
    hobbs_time = meter_delta(reading.hobbs_start, reading.hobbs_end)
    tach_time = meter_delta(reading.tach_start, reading.tach_end)

    dual_time = sum(
        (s.duration_hours for s in segments if s.kind is SegmentKind.DUAL),
        Decimal("0.0"),
    )
    solo_time = sum(
        (s.duration_hours for s in segments if s.kind is not SegmentKind.DUAL),
        Decimal("0.0"),
    )

    baseline = aircraft.total_hours if total_hours_start is None else total_hours_start
    credited = calculate_credited_time(hobbs_time, tach_time, aircraft.total_time_method)

    return FlightLog(
        meter_reading=reading,
        billing_basis=aircraft.billing_basis,
        hobbs_time=hobbs_time,
        tach_time=tach_time,
        dual_time=round_hours(dual_time),
        solo_time=round_hours(solo_time),
        flight_time=round_hours(dual_time + solo_time),
        total_hours_start=baseline,
        total_hours_end=round_hours(baseline + credited),
    )
