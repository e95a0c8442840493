"""Invoice data models.

Pydantic models are the schema layer for the codec: they are validated once
when the editing surface hands an invoice over, and again when a decoder
rebuilds one from a link. Attributes are snake_case; aliases follow the
camelCase wire/JSON names (``invoiceId``, ``issuedAt``, ``from``, ...).
"""

from decimal import Decimal
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from invoicelink.invoice.limits import (
    ADJUSTMENT_REGEX,
    ATOMIC_UNITS_REGEX,
    EMAIL_REGEX,
    ETH_ADDRESS_REGEX,
    FIELD_LIMITS,
    NUMERIC_STRING_REGEX,
)

# In-memory schema version; older wire versions are migrated to it on decode
CURRENT_SCHEMA_VERSION = 3

UINT32_MAX = 0xFFFFFFFF

# Addresses are stored lowercase so the 20-byte wire form round-trips exactly
WalletAddress = Annotated[
    str,
    StringConstraints(pattern=ETH_ADDRESS_REGEX),
    AfterValidator(str.lower),
]

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


def fractional_digits(value: str) -> int:
    """Count digits after the decimal point of a numeric string."""
    _, _, fraction = value.partition(".")
    return len(fraction)


class Party(BaseModel):
    """Invoice sender or client."""

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1, max_length=FIELD_LIMITS.name)
    wallet_address: WalletAddress | None = None
    email: str | None = Field(None, max_length=FIELD_LIMITS.email, pattern=EMAIL_REGEX)
    physical_address: str | None = Field(None, max_length=FIELD_LIMITS.address)
    phone: str | None = Field(None, max_length=FIELD_LIMITS.phone)
    tax_id: str | None = Field(None, max_length=FIELD_LIMITS.tax_id)


class LineItem(BaseModel):
    """Single billable line.

    Attributes:
        description: What is being billed
        quantity: Positive multiplier, kept as Decimal so totals stay exact
        rate: Unit price as an exact decimal string in display units
            (e.g. "150.50" USDC)
    """

    model_config = _MODEL_CONFIG

    description: str = Field(min_length=1, max_length=FIELD_LIMITS.description)
    quantity: Decimal = Field(gt=0, le=FIELD_LIMITS.max_quantity)
    rate: str = Field(max_length=FIELD_LIMITS.rate, pattern=NUMERIC_STRING_REGEX)


class Invoice(BaseModel):
    """Versioned invoice document carried in a payment link.

    The model is immutable: encoders read it, decoders build a fresh one.
    """

    model_config = _MODEL_CONFIG

    version: Literal[3] = CURRENT_SCHEMA_VERSION
    invoice_id: str = Field(min_length=1, max_length=FIELD_LIMITS.invoice_id)
    issued_at: int = Field(gt=0, le=UINT32_MAX, description="Unix timestamp (seconds)")
    due_at: int = Field(gt=0, le=UINT32_MAX, description="Unix timestamp (seconds)")

    # Payment target
    network_id: int = Field(gt=0, description="EVM chain id")
    currency: str = Field(min_length=1, max_length=FIELD_LIMITS.currency)
    token_address: WalletAddress | None = None
    decimals: int = Field(ge=0, le=FIELD_LIMITS.max_decimals)

    # Parties
    sender: Party = Field(alias="from")
    client: Party

    items: list[LineItem] = Field(min_length=1, max_length=FIELD_LIMITS.max_items)
    tax: str | None = Field(None, max_length=FIELD_LIMITS.rate, pattern=ADJUSTMENT_REGEX)
    discount: str | None = Field(None, max_length=FIELD_LIMITS.rate, pattern=ADJUSTMENT_REGEX)
    notes: str | None = Field(None, max_length=FIELD_LIMITS.notes)

    # Pre-calculated total and Magic Dust, both in atomic units
    total: str | None = Field(None, max_length=FIELD_LIMITS.rate * 2, pattern=ATOMIC_UNITS_REGEX)
    magic_dust: str | None = Field(None, pattern=ATOMIC_UNITS_REGEX)

    @field_validator("tax", "discount")
    @classmethod
    def _check_percentage_range(cls, value: str | None) -> str | None:
        if value is not None and value.endswith("%"):
            if Decimal(value[:-1]) > 100:
                raise ValueError("Percentage must be between 0 and 100")
        return value

    @field_validator("magic_dust")
    @classmethod
    def _check_magic_dust_range(cls, value: str | None) -> str | None:
        if value is not None and not 1 <= int(value) <= 999:
            raise ValueError("Magic Dust must be between 1 and 999 atomic units")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "Invoice":
        if self.due_at < self.issued_at:
            raise ValueError("Due date must be on or after issue date")
        for index, item in enumerate(self.items):
            if fractional_digits(item.rate) > self.decimals:
                raise ValueError(
                    f"items.{index}.rate has more fractional digits than "
                    f"the token supports ({self.decimals})"
                )
        for field, value in (("tax", self.tax), ("discount", self.discount)):
            # Fixed amounts are display units of the token; percentages are unbounded
            if value is not None and not value.endswith("%"):
                if fractional_digits(value) > self.decimals:
                    raise ValueError(
                        f"Fixed {field} has more fractional digits than "
                        f"the token supports ({self.decimals})"
                    )
        return self
