"""Invoice field limits and format patterns.

Single source of truth for all field length restrictions. Sized so that a
fully populated invoice still fits the 2000 byte URL budget after binary
packing and text compression.

Used by:
- Invoice schema (strict validation)
- Editing surfaces (max length attributes)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldLimits:
    """Maximum lengths and counts for bounded invoice fields."""

    invoice_id: int = 50  # e.g. "INV-2024-001234" or a UUID
    name: int = 100
    email: int = 100
    phone: int = 30  # international format with spaces
    address: int = 200  # multi-line physical address
    tax_id: int = 50
    notes: int = 280
    currency: int = 10  # token symbols (USDC, WETH, ...)
    description: int = 200
    max_items: int = 5
    max_decimals: int = 18  # ERC-20 standard maximum

    # Financial limits
    rate: int = 24  # e.g. "999999999999.999999"
    max_quantity: int = 99999
    percentage: int = 6  # e.g. "100.00"


FIELD_LIMITS = FieldLimits()

# Ethereum address (0x + 40 hex chars)
ETH_ADDRESS_REGEX = r"^0x[a-fA-F0-9]{40}$"

# Canonical non-negative decimal: no leading zeros, optional fraction
NUMERIC_STRING_REGEX = r"^(0|[1-9]\d*)(\.\d+)?$"

# Integer amount in atomic units (e.g. "150000000" = 150.00 USDC)
ATOMIC_UNITS_REGEX = r"^(0|[1-9]\d*)$"

# Tax/discount: percentage ("10%", "7.5%") or fixed amount ("10")
ADJUSTMENT_REGEX = r"^\d+(\.\d+)?%?$"

# Loose email check; deliverability is the sender's concern
EMAIL_REGEX = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
