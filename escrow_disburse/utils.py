"""Utility functions for the escrow disbursement calculator.

This module provides helpers for turning loosely typed upstream values into
``Decimal`` amounts, for currency rounding, and for flattening the extra list
nesting that the upstream aggregation wraps around rules and expenses.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Any, List, Optional

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

TWO_PLACES = Decimal("0.01")
WHOLE_UNIT = Decimal("1")


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails or the value is not finite.
    """
    try:
        cleaned = value.replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Return ``value`` as a ``Decimal`` or ``default`` when it is not numeric.

    Accepts ints, floats, ``Decimal`` instances and numeric strings. Booleans,
    ``None``, blank strings and anything unparsable map to ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, (int, float)):
        # str() keeps floats such as 0.1 from dragging binary noise along
        return to_decimal(str(value), default)
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            return decimal_from_str(value)
        except ValueError:
            return default
    return default


def round_money(amount: Decimal) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_up(amount: Decimal) -> Decimal:
    """Round up to the next whole currency unit."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_CEILING)


def unwrap_nested(items: Any) -> List[Any]:
    """Return a flat list from a value that may be wrapped in an extra list.

    ``[[a, b]]`` and ``[a, b]`` both yield ``[a, b]``; ``None`` yields ``[]``.
    Only one level of wrapping is removed.
    """
    if not items:
        return []
    if not isinstance(items, (list, tuple)):
        return [items]
    if isinstance(items[0], (list, tuple)):
        return list(items[0])
    return list(items)


def first_or_value(value: Any) -> Any:
    """Return the first element of a list, or the value itself."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value
