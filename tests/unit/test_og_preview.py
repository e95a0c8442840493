"""Unit tests for the OG preview codec.

Tests cover:
- Encoding of the fixed reference invoice
- Decoding and the MMDD disambiguation rule
- Sender name sanitization
"""

from typing import Any

import pytest

from invoicelink.codec.errors import OGPreviewFormatError
from invoicelink.codec.og_preview import (
    MAX_SENDER_LENGTH,
    decode_og_preview,
    encode_og_preview,
    get_network_id_from_code,
)
from invoicelink.invoice.schema import Invoice

# 2025-12-31 00:00:00 UTC
DEC_31_2025 = 1_767_139_200


@pytest.fixture
def invoice_data() -> dict[str, Any]:
    """Reference invoice used for OG examples."""
    return {
        "invoice_id": "550e8400-e29b-41d4-a716-446655440000",
        "issued_at": DEC_31_2025 - 30 * 86_400,
        "due_at": DEC_31_2025,
        "network_id": 42161,
        "currency": "USDC",
        "decimals": 6,
        "sender": {"name": "Acme Inc"},
        "client": {"name": "Globex", "email": "ap@globex.example"},
        "items": [{"description": "Service", "quantity": 1, "rate": "1000.00"}],
        "notes": "Private note",
    }


def test_encode_reference_invoice(invoice_data: dict[str, Any]) -> None:
    """Test the exact preview string for the reference invoice."""
    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert og == "550e8400_1000.00_USDC_arb_Acme Inc_1231"


def test_encode_contains_only_preview_fields(invoice_data: dict[str, Any]) -> None:
    """Test that client data and notes never reach the preview."""
    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert "Globex" not in og
    assert "Private" not in og


def test_encode_is_deterministic(invoice_data: dict[str, Any]) -> None:
    """Test that encoding twice yields identical strings."""
    invoice = Invoice.model_validate(invoice_data)

    assert encode_og_preview(invoice) == encode_og_preview(invoice)


def test_encode_amount_includes_adjustments(invoice_data: dict[str, Any]) -> None:
    """Test that the preview amount applies tax."""
    invoice_data["items"] = [
        {"description": "Design", "quantity": 2, "rate": "100.00"},
        {"description": "Review", "quantity": 1, "rate": "50.00"},
    ]
    invoice_data["tax"] = "10%"

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert og.split("_")[1] == "275.00"


def test_encode_unknown_network_uses_chain_id(invoice_data: dict[str, Any]) -> None:
    """Test the chain id fallback for networks without a short code."""
    invoice_data["network_id"] = 8453

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert og.split("_")[3] == "8453"


def test_sender_name_sanitized(invoice_data: dict[str, Any]) -> None:
    """Test that query-breaking characters are removed from the name."""
    invoice_data["sender"]["name"] = "Test & Co"

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert "&" not in og
    assert og.split("_")[4] == "Test  Co"


def test_sender_name_truncated(invoice_data: dict[str, Any]) -> None:
    """Test that long names are cut to the preview limit."""
    invoice_data["sender"]["name"] = "The Extremely Long Company Name Holdings AG"
    assert len(invoice_data["sender"]["name"]) == 43

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    sender = og.split("_")[4]
    assert len(sender) <= MAX_SENDER_LENGTH
    assert sender == "The Extremely Long C"


def test_underscores_do_not_shift_fields(invoice_data: dict[str, Any]) -> None:
    """Test that the delimiter is stripped from names."""
    invoice_data["sender"]["name"] = "snake_case_llc"

    decoded = decode_og_preview(encode_og_preview(Invoice.model_validate(invoice_data)))

    assert decoded.sender == "snakecasellc"
    assert decoded.due == "1231"


def test_sender_omitted_when_empty_after_sanitizing(invoice_data: dict[str, Any]) -> None:
    """Test that a name made only of unsafe characters is left out."""
    invoice_data["sender"]["name"] = "_#?&"

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert og == "550e8400_1000.00_USDC_arb_1231"


def test_decode_full() -> None:
    """Test decoding all six fields."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb_Acme_1231")

    assert decoded.id == "a1b2c3d4"
    assert decoded.amount == "1250.00"
    assert decoded.currency == "USDC"
    assert decoded.network == "arb"
    assert decoded.sender == "Acme"
    assert decoded.due == "1231"


def test_decode_four_digit_fifth_part_is_due_date() -> None:
    """Test that a 4-digit fifth part is read as MMDD, not a name."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb_1231")

    assert decoded.sender is None
    assert decoded.due == "1231"


def test_decode_numeric_name_is_ambiguous() -> None:
    """Test the known limitation: a name like "2024" reads as a due date."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb_2024")

    assert decoded.sender is None
    assert decoded.due == "2024"


def test_decode_without_due_date() -> None:
    """Test a sender name with no due date."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb_Acme")

    assert decoded.sender == "Acme"
    assert decoded.due is None


def test_decode_minimal() -> None:
    """Test the four mandatory parts alone."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb")

    assert decoded.sender is None
    assert decoded.due is None


def test_decode_dump_uses_from_alias() -> None:
    """Test that the sender serializes under its wire name."""
    decoded = decode_og_preview("a1b2c3d4_1250.00_USDC_arb_Acme_1231")

    assert decoded.model_dump(by_alias=True)["from"] == "Acme"


@pytest.mark.parametrize("og", ["", "a1b2c3d4", "a1b2c3d4_1250.00_USDC"])
def test_decode_too_few_parts(og: str) -> None:
    """Test that fewer than four parts is rejected."""
    with pytest.raises(OGPreviewFormatError, match="Invalid OG preview format"):
        decode_og_preview(og)


def test_network_code_reverse_lookup() -> None:
    """Test resolving a decoded network code to its chain id."""
    assert get_network_id_from_code(decode_og_preview("a_1.00_ETH_ETH").network) == 1
    assert get_network_id_from_code("unknown") is None


def test_encode_percentage_discount_uses_subtotal(invoice_data: dict[str, Any]) -> None:
    """Test that tax and a percentage discount share the subtotal as base."""
    invoice_data["tax"] = "10%"
    invoice_data["discount"] = "10%"

    og = encode_og_preview(Invoice.model_validate(invoice_data))

    assert og.split("_")[1] == "1000.00"
