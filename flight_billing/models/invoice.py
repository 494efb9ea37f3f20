"""Invoice line item and draft invoice models.

This module defines the priced line items a draft invoice is made of, the
partial update applied by staff edits, the server's stored row shape, and
the draft state snapshot whose totals are always folded from its items.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple

from pydantic import ConfigDict, Field, field_validator

from flight_billing.models.base import BaseDataModel, to_decimal

ZERO = Decimal("0.00")


class ItemOrigin(str, Enum):
    """Whether a line item came from a calculation or was added by staff."""

    COMPUTED = "computed"
    MANUAL = "manual"


class LineItem(BaseDataModel):
    """A priced invoice line item.

    Amounts are produced by the line item factory so that
    ``amount = quantity * unit_price``, ``tax_amount = amount * tax_rate``,
    ``line_total = amount + tax_amount`` and
    ``rate_inclusive = unit_price * (1 + tax_rate)``, each rounded to cents.

    Attributes:
        id: Local identifier, stable for the lifetime of the draft
        remote_id: Identifier of the persisted row, None until stored
        chargeable_ref: Chargeable catalogue reference for manual charges
        description: Text printed on the invoice
        quantity: Hours or units billed
        unit_price: Tax-exclusive price per unit
        tax_rate: Applied tax rate in [0, 1]
        amount: Tax-exclusive amount
        tax_amount: Tax on amount
        line_total: amount + tax_amount
        rate_inclusive: Tax-inclusive unit price (display only)
        origin: Computed by a calculation or added manually
        charge_key: Stable key of a computed item, e.g. ``primary:aircraft``
    """

    id: str = Field(..., min_length=1)
    remote_id: Optional[str] = None
    chargeable_ref: Optional[str] = None
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    line_total: Decimal = ZERO
    rate_inclusive: Decimal = ZERO
    origin: ItemOrigin = ItemOrigin.MANUAL
    charge_key: Optional[str] = None

    @field_validator(
        "quantity",
        "unit_price",
        "tax_rate",
        "amount",
        "tax_amount",
        "line_total",
        "rate_inclusive",
        mode="before",
    )
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)

    @property
    def is_persisted(self) -> bool:
        return self.remote_id is not None

    @property
    def is_computed(self) -> bool:
        return self.origin is ItemOrigin.COMPUTED


class ItemUpdate(BaseDataModel):
    """Partial update of a line item made by staff.

    Unset fields keep their current value. The tax rate of an item is not
    editable; it follows the rate it was priced from.
    """

    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    description: Optional[str] = None

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        if v is None:
            return None
        return to_decimal(v)

    @property
    def is_empty(self) -> bool:
        return (
            self.quantity is None
            and self.unit_price is None
            and self.description is None
        )


class InvoiceItemRecord(BaseDataModel):
    """An invoice item row as stored by the remote invoice store.

    Attributes:
        id: Server identifier of the row
        invoice_version: Invoice version after the write that returned this row
    """

    id: str = Field(..., min_length=1)
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("0")
    amount: Decimal
    tax_amount: Decimal = ZERO
    line_total: Decimal
    rate_inclusive: Decimal = ZERO
    chargeable_id: Optional[str] = None
    charge_key: Optional[str] = None
    invoice_version: Optional[int] = None

    # The store may return bookkeeping columns the engine does not use
    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "quantity",
        "unit_price",
        "tax_rate",
        "amount",
        "tax_amount",
        "line_total",
        "rate_inclusive",
        mode="before",
    )
    @classmethod
    def convert_to_decimal(cls, v):
        if v is None:
            return ZERO
        return to_decimal(v)

    def to_line_item(self, local_id: Optional[str] = None) -> LineItem:
        """Convert a stored row into a persisted line item.

        Rows without a charge key, or with a chargeable reference, were added
        by staff and are treated as manual items.
        """
        computed = self.charge_key is not None and self.chargeable_id is None
        return LineItem(
            id=local_id or self.id,
            remote_id=self.id,
            chargeable_ref=self.chargeable_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
            amount=self.amount,
            tax_amount=self.tax_amount,
            line_total=self.line_total,
            rate_inclusive=self.rate_inclusive,
            origin=ItemOrigin.COMPUTED if computed else ItemOrigin.MANUAL,
            charge_key=self.charge_key,
        )


class InvoiceTotals(BaseDataModel):
    """Invoice totals folded from line items."""

    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO


def fold_totals(items: Iterable[LineItem]) -> InvoiceTotals:
    """Fold line items into invoice totals.

    ``subtotal = sum(amount)``, ``tax = sum(tax_amount)`` and
    ``total = sum(line_total)``. Always a full recomputation, never an
    incremental patch.
    """
    subtotal = ZERO
    tax = ZERO
    total = ZERO
    for item in items:
        subtotal += item.amount
        tax += item.tax_amount
        total += item.line_total

    return InvoiceTotals(
        subtotal=subtotal.quantize(ZERO),
        tax=tax.quantize(ZERO),
        total=total.quantize(ZERO),
    )


class DraftInvoiceState(BaseDataModel):
    """Snapshot of a booking's draft invoice.

    Attributes:
        line_items: Items in insertion order
        totals: Fold of line_items
        version: Remote invoice version the draft was last synchronised with
    """

    line_items: Tuple[LineItem, ...] = ()
    totals: InvoiceTotals = InvoiceTotals()
    version: Optional[int] = None

    @classmethod
    def from_items(
        cls, items: Iterable[LineItem], version: Optional[int] = None
    ) -> "DraftInvoiceState":
        items = tuple(items)
        return cls(line_items=items, totals=fold_totals(items), version=version)

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    def find(self, item_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None

    @property
    def computed_items(self) -> Tuple[LineItem, ...]:
        return tuple(item for item in self.line_items if item.is_computed)

    @property
    def manual_items(self) -> Tuple[LineItem, ...]:
        return tuple(item for item in self.line_items if not item.is_computed)
