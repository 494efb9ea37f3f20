"""Calculator modules for the flight billing engine."""

from flight_billing.calculators.flight_log_calculator import (
    calculate_credited_time,
    calculate_flight_log,
)
from flight_billing.calculators.line_item_factory import (
    DescriptionLabels,
    ItemAmounts,
    build_line_item,
    calculate_item_amounts,
    new_item_id,
    price_chargeable,
    price_segment,
    reprice_item,
)
from flight_billing.calculators.rounding import (
    meter_delta,
    round_currency,
    round_hours,
)
from flight_billing.calculators.segment_calculator import calculate_segments

__all__ = [
    # segment_calculator
    "calculate_segments",
    # flight_log_calculator
    "calculate_credited_time",
    "calculate_flight_log",
    # line_item_factory
    "DescriptionLabels",
    "ItemAmounts",
    "build_line_item",
    "calculate_item_amounts",
    "new_item_id",
    "price_chargeable",
    "price_segment",
    "reprice_item",
    # rounding
    "meter_delta",
    "round_currency",
    "round_hours",
]
