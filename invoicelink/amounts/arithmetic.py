"""Exact invoice arithmetic over atomic units.

All monetary values are integers in the token's smallest denomination
(e.g. wei, or 10^-6 USDC), so totals never pick up floating-point error.
Display strings are converted at the edges with ``parse_units`` and
``format_units``.

Example (USDC with 6 decimals):
- Display: "150.50"
- Atomic: 150500000

For the low-precision preview total used by OG metadata see
``invoicelink.amounts.display``; the two paths are intentionally separate.
"""

import re
import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from invoicelink.invoice.schema import Invoice

_DECIMAL_PATTERN = re.compile(r"^\d+(\.\d+)?$")
_ATOMIC_PATTERN = re.compile(r"^\d+$")


class InvalidAmountError(ValueError):
    """Raised when an amount, rate or adjustment string cannot be parsed."""


class NegativeTotalError(ValueError):
    """Raised when discounts push an invoice total below zero."""


@dataclass(frozen=True)
class AtomicLineItem:
    """Line item for calculation (rate in atomic units)."""

    quantity: Decimal | int | float
    rate: str


@dataclass(frozen=True)
class Totals:
    """Result of an exact total calculation, all values in atomic units."""

    subtotal: int
    tax_amount: int
    discount_amount: int
    total: int
    decimals: int

    def format(self) -> str:
        """Total as a fixed-point display string."""
        return format_units(self.total, self.decimals)


def parse_units(amount: str, decimals: int) -> int:
    """Convert a display amount to atomic units.

    Args:
        amount: Human readable amount (e.g. "150.50")
        decimals: Token decimals (e.g. 6 for USDC)

    Returns:
        Amount in atomic units (e.g. 150500000)

    Raises:
        InvalidAmountError: If the string is not a plain non-negative decimal or
            has more fractional digits than the token supports
    """
    value = amount.strip()
    if not _DECIMAL_PATTERN.match(value):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    whole, _, fraction = value.partition(".")
    if len(fraction) > decimals:
        raise InvalidAmountError(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )
    return int(whole + fraction.ljust(decimals, "0"))


def format_units(atomic: int, decimals: int) -> str:
    """Convert atomic units to a display amount with exactly ``decimals`` digits.

    Examples:
        format_units(150500000, 6)  # "150.500000"
        format_units(42, 0)         # "42"
    """
    sign = "-" if atomic < 0 else ""
    digits = str(abs(atomic)).rjust(decimals + 1, "0")
    if decimals == 0:
        return f"{sign}{digits}"
    return f"{sign}{digits[:-decimals]}.{digits[-decimals:]}"


def _parse_atomic(value: str, field: str) -> int:
    if not _ATOMIC_PATTERN.match(value):
        raise InvalidAmountError(f"Invalid {field}: {value!r} is not an atomic-unit integer")
    return int(value)


def _quantity_ratio(quantity: Decimal | int | float) -> tuple[int, int]:
    try:
        value = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
    except InvalidOperation as e:
        raise InvalidAmountError(f"Invalid quantity: {quantity!r}") from e

    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(f"Invalid quantity: {quantity!r}")
    return value.as_integer_ratio()


def _adjustment_amount(subtotal: int, adjustment: str | None, field: str) -> int:
    if not adjustment:
        return 0

    if adjustment.endswith("%"):
        percent = adjustment[:-1]
        if not _DECIMAL_PATTERN.match(percent):
            raise InvalidAmountError(f"Invalid {field} percentage: {adjustment!r}")
        numerator, denominator = Decimal(percent).as_integer_ratio()
        return subtotal * numerator // (denominator * 100)

    return _parse_atomic(adjustment, field)


def calculate_totals(
    items: Sequence[AtomicLineItem],
    decimals: int,
    tax: str | None = None,
    discount: str | None = None,
) -> Totals:
    """Calculate invoice totals using integer arithmetic.

    Each line is ``rate * quantity`` computed as an exact rational product and
    truncated toward zero, so fractional quantities never go through binary
    floating point. Percentage adjustments ("10%") apply to the subtotal;
    fixed adjustments are atomic-unit integers.

    Args:
        items: Line items with rate in atomic units
        decimals: Token decimals, used for display formatting
        tax: Optional percentage or fixed atomic-unit amount
        discount: Optional percentage or fixed atomic-unit amount

    Returns:
        Calculated totals in atomic units

    Raises:
        InvalidAmountError: If a rate, quantity or adjustment is malformed
        NegativeTotalError: If the discount exceeds subtotal plus tax

    Example:
        >>> totals = calculate_totals(
        ...     [AtomicLineItem(quantity=2, rate="150000000")], decimals=6, tax="10%"
        ... )
        >>> totals.format()
        '330.000000'
    """
    subtotal = 0
    for item in items:
        rate = _parse_atomic(item.rate, "rate")
        numerator, denominator = _quantity_ratio(item.quantity)
        subtotal += rate * numerator // denominator

    tax_amount = _adjustment_amount(subtotal, tax, "tax")
    discount_amount = _adjustment_amount(subtotal, discount, "discount")
    total = subtotal + tax_amount - discount_amount

    if total < 0:
        raise NegativeTotalError(
            f"Invoice total would be negative ({format_units(total, decimals)})"
        )

    return Totals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total=total,
        decimals=decimals,
    )


def _adjustment_to_atomic(adjustment: str | None, decimals: int) -> str | None:
    if not adjustment or adjustment.endswith("%"):
        return adjustment
    return str(parse_units(adjustment, decimals))


def calculate_invoice_totals(invoice: Invoice) -> Totals:
    """Calculate exact totals for an invoice whose amounts are in display units.

    Args:
        invoice: Validated invoice

    Returns:
        Totals in atomic units of the invoice's token
    """
    items = [
        AtomicLineItem(quantity=item.quantity, rate=str(parse_units(item.rate, invoice.decimals)))
        for item in invoice.items
    ]
    return calculate_totals(
        items,
        invoice.decimals,
        tax=_adjustment_to_atomic(invoice.tax, invoice.decimals),
        discount=_adjustment_to_atomic(invoice.discount, invoice.decimals),
    )


def generate_magic_dust() -> int:
    """Generate a random Magic Dust amount (1-999 atomic units).

    Magic Dust is added to a total so a payment can be matched to its invoice
    on-chain without a backend.
    """
    return secrets.randbelow(999) + 1


def add_magic_dust(total: str, magic_dust: int) -> str:
    """Add Magic Dust to an atomic-unit total.

    Args:
        total: Current total in atomic units
        magic_dust: Magic Dust amount (1-999)

    Returns:
        New total in atomic units
    """
    return str(_parse_atomic(total or "0", "total") + magic_dust)
