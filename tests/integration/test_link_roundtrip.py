"""Integration tests for the full share-link flow.

Covers what a payer's browser does with a link: split the URL, parse the
hash fragment into an invoice, and read the OG preview a link unfurler
would see. Older links are checked to keep decoding after upgrades.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from invoicelink.amounts.arithmetic import add_magic_dust, calculate_invoice_totals
from invoicelink.amounts.display import calculate_display_total
from invoicelink.binary.base62 import encode_base62
from invoicelink.binary.packer_v2 import pack_v2
from invoicelink.codec.encode import generate_invoice_url
from invoicelink.codec.og_preview import decode_og_preview, get_network_id_from_code
from invoicelink.codec.parse_hash import HashParseFailure, HashParseSuccess, parse_invoice_hash
from invoicelink.invoice.schema import Invoice
from invoicelink.shared.config import Settings

pytestmark = pytest.mark.integration


@pytest.fixture
def settings() -> Settings:
    """Settings with a local base URL."""
    return Settings(app_base_url="http://localhost:3000")


@pytest.fixture
def invoice_data() -> dict:
    """Invoice as handed over by the editor, using wire names."""
    return {
        "invoiceId": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
        "issuedAt": 1_735_689_600,
        "dueAt": 1_738_368_000,
        "networkId": 137,
        "currency": "USDT",
        "tokenAddress": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
        "decimals": 6,
        "from": {
            "name": "Pixel & Co",
            "walletAddress": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            "email": "hello@pixel.example",
        },
        "client": {
            "name": "Initech",
            "walletAddress": "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
            "physicalAddress": "4120 Freidrich Lane, Austin TX",
        },
        "items": [
            {"description": "Brand identity", "quantity": 1, "rate": "1800.00"},
            {"description": "Revisions (hours)", "quantity": "2.5", "rate": "80"},
        ],
        "tax": "20%",
        "discount": "100",
        "notes": "Net 30. Thank you!",
    }


def test_share_link_roundtrip(invoice_data: dict, settings: Settings) -> None:
    """Test generating a link and reading both halves back."""
    invoice = Invoice.model_validate(invoice_data)
    totals = calculate_invoice_totals(invoice)
    invoice = invoice.model_copy(
        update={"total": add_magic_dust(str(totals.total), 417), "magic_dust": "417"}
    )

    url = generate_invoice_url(invoice, include_og=True, settings=settings)
    parts = urlsplit(url)

    result = parse_invoice_hash("#" + parts.fragment)
    assert isinstance(result, HashParseSuccess)
    assert result.data == invoice
    assert result.data.total == "2300000417"

    preview = decode_og_preview(parse_qs(parts.query)["og"][0])
    assert preview.id == "7c9e6679"
    assert preview.amount == calculate_display_total(
        invoice.items, tax=invoice.tax, discount=invoice.discount
    )
    assert preview.amount == "2300.00"
    assert preview.sender == "Pixel  Co"
    assert preview.due == "0201"
    assert get_network_id_from_code(preview.network) == invoice.network_id


def test_legacy_link_still_opens(invoice_data: dict) -> None:
    """Test that a link minted by an older release decodes into the current schema."""
    invoice_data["discount"] = "5%"
    invoice = Invoice.model_validate(invoice_data)
    legacy_fragment = "#B" + encode_base62(pack_v2(invoice, Settings()))

    result = parse_invoice_hash(legacy_fragment)

    assert isinstance(result, HashParseSuccess)
    assert result.data.version == 3
    assert calculate_invoice_totals(result.data) == calculate_invoice_totals(invoice)


def test_tampered_link_fails_gracefully(invoice_data: dict, settings: Settings) -> None:
    """Test that a hand-edited link yields a failure result, not an exception."""
    url = generate_invoice_url(Invoice.model_validate(invoice_data), settings=settings)
    fragment = urlsplit(url).fragment

    result = parse_invoice_hash(fragment[:40])

    assert isinstance(result, HashParseFailure)
    assert "Decode failed" in str(result.error)
