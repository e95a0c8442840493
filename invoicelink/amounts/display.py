"""Approximate display total for previews.

Uses ordinary float arithmetic over human-readable amounts and rounds to two
decimals. Good enough for a social-media card; never use it for anything a
payment depends on (see ``invoicelink.amounts.arithmetic``).
"""

from collections.abc import Iterable

from invoicelink.invoice.schema import LineItem


def _to_float(value: object) -> float:
    try:
        return float(str(value))
    except ValueError:
        return 0.0


def _adjustment(base: float, value: str | None) -> float:
    """Parse tax/discount string (percentage or fixed amount)."""
    if not value:
        return 0.0
    if value.endswith("%"):
        return base * _to_float(value[:-1]) / 100
    return _to_float(value)


def calculate_display_total(
    items: Iterable[LineItem],
    tax: str | None = None,
    discount: str | None = None,
) -> str:
    """Calculate a preview total formatted with 2 decimal places.

    Args:
        items: Line items with display-unit rates
        tax: Optional percentage ("10%") or fixed display amount
        discount: Optional percentage or fixed display amount

    Returns:
        Total such as "275.00"
    """
    subtotal = sum(_to_float(item.quantity) * _to_float(item.rate) for item in items)
    total = subtotal + _adjustment(subtotal, tax) - _adjustment(subtotal, discount)
    return f"{total:.2f}"
