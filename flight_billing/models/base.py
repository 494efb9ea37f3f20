"""Base model for all data models in the flight billing engine.

This module provides a base Pydantic model with common configuration
and the Decimal coercion shared by every monetary and meter field.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseDataModel(BaseModel):
    """Base class for all data models.

    Provides common configuration for:
    - Validation with type checking
    - Serialization to/from dictionaries
    - Immutability (frozen models, changed through ``model_copy``)
    - Arbitrary types support for decimals

    Example:
        >>> class Rate(BaseDataModel):
        ...     name: str
        ...     amount: Decimal
        >>> rate = Rate(name="Landing fee", amount=Decimal("25.00"))
        >>> rate.model_dump()
        {'name': 'Landing fee', 'amount': Decimal('25.00')}
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        strict=False,
        extra="forbid",
        # Snapshots of draft state are shared with callers, so nothing may
        # be mutated in place
        frozen=True,
    )


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric value to Decimal without float artefacts.

    Floats go through ``str`` so that ``101.5`` becomes ``Decimal('101.5')``
    rather than its binary expansion.

    Raises:
        ValueError: If the value cannot be converted to Decimal
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Cannot convert {value!r} to Decimal: {e}")
