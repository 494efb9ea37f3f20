"""Line item factory for the flight billing engine.

This module prices segments and ad-hoc chargeables into invoice line items:
- Item amount math (amount, tax, line total, tax-inclusive rate)
- Aircraft and instructor items for each flight segment
- Manual chargeables such as landing fees

All money is Decimal rounded half-up to cents. ``line_total`` is the sum
of the rounded amount and rounded tax so that invoice totals add up to
the cent.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from flight_billing.calculators.rounding import round_currency
from flight_billing.models.aircraft import InstructionType
from flight_billing.models.base import to_decimal
from flight_billing.models.invoice import ItemOrigin, LineItem
from flight_billing.models.rates import RateQuote
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.models.segment import FlightSegment, SegmentKind
from flight_billing.validators.meter_validators import validate_charge_input

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemAmounts:
    """Computed amounts of a line item, all rounded to cents."""

    amount: Decimal
    tax_amount: Decimal
    line_total: Decimal
    rate_inclusive: Decimal


@dataclass(frozen=True)
class DescriptionLabels:
    """Names used to build line item descriptions.

    Attributes:
        flight_type_name: Name of the flight type flown
        aircraft_registration: Registration of the aircraft
        instructor_name: Display name of the instructor
        instruction_type: Instruction type of the flight type
        solo_flight_type_name: Name of the solo continuation's flight type
    """

    flight_type_name: str
    aircraft_registration: str
    instructor_name: str = "Instructor"
    instruction_type: InstructionType = InstructionType.DUAL
    solo_flight_type_name: Optional[str] = None


def new_item_id() -> str:
    """Local identifier for a new line item."""
    return f"item-{uuid.uuid4().hex[:12]}"


def calculate_item_amounts(
    quantity: Decimal, unit_price: Decimal, tax_rate: Decimal
) -> ItemAmounts:
    """Calculate the amounts of a line item.

    Inputs are assumed validated (non-negative, tax rate in [0, 1]).

    Example:
        >>> amounts = calculate_item_amounts(
        ...     Decimal("1.5"), Decimal("150"), Decimal("0.15")
        ... )
        >>> amounts.amount, amounts.tax_amount, amounts.line_total
        (Decimal('225.00'), Decimal('33.75'), Decimal('258.75'))
    """
    amount = round_currency(quantity * unit_price)
    tax_amount = round_currency(amount * tax_rate)
    return ItemAmounts(
        amount=amount,
        tax_amount=tax_amount,
        line_total=amount + tax_amount,
        rate_inclusive=round_currency(unit_price * (Decimal("1") + tax_rate)),
    )


def build_line_item(
    description: str,
    quantity: Decimal,
    unit_price: Decimal,
    tax_rate: Decimal,
    origin: ItemOrigin,
    item_id: Optional[str] = None,
    chargeable_ref: Optional[str] = None,
    charge_key: Optional[str] = None,
) -> Result[LineItem]:
    """Validate inputs and build a priced line item.

    Returns:
        Ok with the item, or Err with kind INVALID_CHARGE_INPUT
    """
    try:
        quantity, unit_price, tax_rate = (
            None if value is None else to_decimal(value)
            for value in (quantity, unit_price, tax_rate)
        )
    except ValueError as e:
        return Err(ErrorKind.INVALID_CHARGE_INPUT, str(e))

    report = validate_charge_input(quantity, unit_price, tax_rate, description)
    if report.has_errors():
        return Err(
            ErrorKind.INVALID_CHARGE_INPUT,
            report.first_error_message() or "Invalid charge input",
            report.get_errors(),
        )

    amounts = calculate_item_amounts(quantity, unit_price, tax_rate)
    return Ok(
        LineItem(
            id=item_id or new_item_id(),
            chargeable_ref=chargeable_ref,
            description=description.strip(),
            quantity=quantity,
            unit_price=unit_price,
            tax_rate=tax_rate,
            amount=amounts.amount,
            tax_amount=amounts.tax_amount,
            line_total=amounts.line_total,
            rate_inclusive=amounts.rate_inclusive,
            origin=origin,
            charge_key=charge_key,
        )
    )


def reprice_item(
    item: LineItem,
    quantity: Optional[Decimal] = None,
    unit_price: Optional[Decimal] = None,
    description: Optional[str] = None,
) -> Result[LineItem]:
    """Apply an edit to an item and recompute its amounts.

    The item keeps its id, remote id, origin, charge key and tax rate.
    """
    result = build_line_item(
        description=description if description is not None else item.description,
        quantity=quantity if quantity is not None else item.quantity,
        unit_price=unit_price if unit_price is not None else item.unit_price,
        tax_rate=item.tax_rate,
        origin=item.origin,
        item_id=item.id,
        chargeable_ref=item.chargeable_ref,
        charge_key=item.charge_key,
    )
    if isinstance(result, Err):
        return result
    return Ok(result.value.model_copy(update={"remote_id": item.remote_id}))


def _segment_description(
    segment: FlightSegment, labels: DescriptionLabels, subject: str
) -> str:
    if segment.kind is SegmentKind.SOLO_CONTINUATION:
        flight_type_name = labels.solo_flight_type_name or labels.flight_type_name
        return f"Solo {flight_type_name} - {subject}"
    if segment.kind is SegmentKind.SOLO:
        return f"Solo {labels.flight_type_name} - {subject}"
    if labels.instruction_type is InstructionType.TRIAL:
        return f"{labels.flight_type_name} - {subject}"
    return f"Dual {labels.flight_type_name} - {subject}"


def price_segment(
    segment: FlightSegment,
    aircraft_rate: RateQuote,
    instructor_rate: Optional[RateQuote],
    tax_rate: Decimal,
    labels: DescriptionLabels,
) -> Result[List[LineItem]]:
    """Price a flight segment into line items.

    Each segment yields one aircraft item (``quantity = duration_hours``,
    ``unit_price = aircraft_rate.rate_exclusive``) and, when the segment
    carries an instructor, one paired instructor item. The organization tax
    rate applies to a rate only if it is taxable.

    Args:
        segment: Segment to price
        aircraft_rate: Aircraft rate for the segment's flight type
        instructor_rate: Instructor rate, required when the segment has an
            instructor
        tax_rate: Organization tax rate
        labels: Names used in item descriptions

    Returns:
        Ok with one or two computed items, Err with kind RATE_NOT_CONFIGURED
        when an instructor segment has no instructor rate, or
        INVALID_CHARGE_INPUT for negative inputs

    Example:
        >>> items = price_segment(segment, aircraft_rate, None, Decimal("0.15"), labels)
        >>> items.value[0].line_total
        Decimal('258.75')
    """
    prefix = segment.kind.charge_prefix
    items: List[LineItem] = []

    aircraft_result = build_line_item(
        description=_segment_description(segment, labels, labels.aircraft_registration),
        quantity=segment.duration_hours,
        unit_price=aircraft_rate.rate_exclusive,
        tax_rate=tax_rate if aircraft_rate.taxable else Decimal("0"),
        origin=ItemOrigin.COMPUTED,
        charge_key=f"{prefix}:aircraft",
    )
    if isinstance(aircraft_result, Err):
        return aircraft_result
    items.append(aircraft_result.value)

    if segment.has_instructor:
        if instructor_rate is None:
            return Err(
                ErrorKind.RATE_NOT_CONFIGURED,
                f"No instructor rate configured for instructor "
                f"{segment.instructor_id} and flight type {segment.flight_type_id}",
            )
        instructor_result = build_line_item(
            description=_segment_description(segment, labels, labels.instructor_name),
            quantity=segment.duration_hours,
            unit_price=instructor_rate.rate_exclusive,
            tax_rate=tax_rate if instructor_rate.taxable else Decimal("0"),
            origin=ItemOrigin.COMPUTED,
            charge_key=f"{prefix}:instructor",
        )
        if isinstance(instructor_result, Err):
            return instructor_result
        items.append(instructor_result.value)

    logger.debug(
        f"Priced {segment.kind.value} segment of {segment.duration_hours}h "
        f"into {len(items)} item(s)"
    )
    return Ok(items)


def price_chargeable(
    chargeable_id: Optional[str],
    name: str,
    rate: Decimal,
    taxable: bool,
    quantity: Decimal,
    tax_rate: Decimal,
) -> Result[LineItem]:
    """Price an ad-hoc chargeable (landing fee, extra) added by staff.

    Args:
        chargeable_id: Chargeable catalogue reference, None for free text
        name: Description printed on the invoice
        rate: Tax-exclusive unit price
        taxable: Whether the organization tax rate applies
        quantity: Number of units
        tax_rate: Organization tax rate

    Returns:
        Ok with a manual line item, or Err with kind INVALID_CHARGE_INPUT

    Example:
        >>> fee = price_chargeable(
        ...     "chg-landing", "Landing fee", Decimal("20"), True,
        ...     Decimal("2"), Decimal("0.15"),
        ... )
        >>> fee.value.line_total
        Decimal('46.00')
    """
    return build_line_item(
        description=name,
        quantity=quantity,
        unit_price=rate,
        tax_rate=tax_rate if taxable else Decimal("0"),
        origin=ItemOrigin.MANUAL,
        chargeable_ref=chargeable_id,
    )
