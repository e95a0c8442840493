"""OG preview encoding for social sharing.

A deliberately small, human-readable projection of an invoice that travels
in the ``?og=`` query parameter, so link unfurlers can render a card without
ever seeing the hash fragment.

Format: ``id_amount_currency_network[_from][_due]``

Known limitation: the decoder tells the optional parts apart by shape. A due
date is always four digits (MMDD), so a sender name that is exactly four
digits (e.g. "2024") is read back as a due date. Kept as-is for
compatibility with links already in circulation.

Amount note: the preview amount applies a percentage discount to the
subtotal, the same base as tax. Older releases applied it to the running
total after tax, so when an invoice has both a tax and a percentage discount,
its preview amount can differ from a link minted before this change.
"""

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from invoicelink.amounts.display import calculate_display_total
from invoicelink.codec.errors import OGPreviewFormatError
from invoicelink.invoice.schema import Invoice
from invoicelink.network import codes

DELIMITER = "_"
MAX_SENDER_LENGTH = 20

# Delimiter plus characters that would break the query string
_UNSAFE_CHARS = re.compile(r"[_#?&=%]")
_DUE_DATE = re.compile(r"^\d{4}$")


class OGPreviewData(BaseModel):
    """Minimal, non-sensitive invoice metadata for OG previews."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(description="Shortened invoice id (first 8 chars, no dashes)")
    amount: str = Field(description="Total formatted with 2 decimal places")
    currency: str
    network: str = Field(description="Network short code (eth, arb, op, poly)")
    sender: str | None = Field(None, alias="from", description="Sanitized sender name")
    due: str | None = Field(None, description="Due date as MMDD (UTC)")


def _safe_sender_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("", name[:MAX_SENDER_LENGTH]).strip()


def encode_og_preview(invoice: Invoice) -> str:
    """Encode minimal invoice metadata for the og query parameter.

    Args:
        invoice: Full invoice

    Returns:
        Delimited preview string

    Example:
        >>> encode_og_preview(invoice)
        'a1b2c3d4_1250.00_USDC_arb_Acme_1231'
    """
    parts = [
        invoice.invoice_id.replace("-", "")[:8],
        calculate_display_total(invoice.items, tax=invoice.tax, discount=invoice.discount),
        invoice.currency,
        codes.get_network_code(invoice.network_id),
    ]

    sender = _safe_sender_name(invoice.sender.name)
    if sender:
        parts.append(sender)

    if invoice.due_at:
        parts.append(datetime.fromtimestamp(invoice.due_at, tz=UTC).strftime("%m%d"))

    return DELIMITER.join(parts)


def decode_og_preview(og_string: str) -> OGPreviewData:
    """Decode an OG preview string.

    Args:
        og_string: Value of the og query parameter

    Returns:
        Parsed preview data

    Raises:
        OGPreviewFormatError: If fewer than 4 parts are present
    """
    parts = og_string.split(DELIMITER)
    if len(parts) < 4:
        raise OGPreviewFormatError(
            f"Invalid OG preview format: minimum 4 parts required, got {len(parts)}"
        )

    sender = None
    if len(parts) >= 5 and parts[4] and not _DUE_DATE.match(parts[4]):
        sender = parts[4]

    due = parts[-1] if _DUE_DATE.match(parts[-1]) else None

    return OGPreviewData(
        id=parts[0],
        amount=parts[1],
        currency=parts[2],
        network=parts[3],
        sender=sender,
        due=due,
    )


def get_network_id_from_code(code: str) -> int | None:
    """Get network chain id from a short code (case-insensitive)."""
    return codes.get_network_id_from_code(code)
