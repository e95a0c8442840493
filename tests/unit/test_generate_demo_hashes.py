"""Unit tests for the demo hash generator script."""

import logging

import pytest

from invoicelink.codec.decode import decode_invoice
from invoicelink.codec.parse_hash import HashParseSuccess, parse_invoice_hash
from invoicelink.shared.config import Settings
from scripts.generate_demo_hashes import build_demo_invoices, generate_demo_hashes


def test_build_demo_invoices() -> None:
    """Test that demo invoices are valid and cover several networks."""
    invoices = build_demo_invoices(now=1_700_000_000)

    assert [invoice.invoice_id for invoice in invoices] == ["INV-001", "INV-002", "INV-003"]
    assert {invoice.network_id for invoice in invoices} == {42161, 137, 1}
    assert all(invoice.issued_at == 1_700_000_000 for invoice in invoices)


def test_generate_bare_hashes() -> None:
    """Test that hashes decode back to the demo invoices."""
    hashes = generate_demo_hashes()

    assert len(hashes) == 3
    assert all(encoded.startswith("H") for encoded in hashes)
    assert [decode_invoice(encoded).invoice_id for encoded in hashes] == [
        "INV-001",
        "INV-002",
        "INV-003",
    ]


def test_generate_urls_with_og() -> None:
    """Test full URL output with OG preview data."""
    urls = generate_demo_hashes(base_url="http://localhost:3000", include_og=True)

    assert len(urls) == 3
    for url in urls:
        assert url.startswith("http://localhost:3000/pay?og=")
        assert isinstance(parse_invoice_hash(url.split("#", 1)[1]), HashParseSuccess)


def test_generate_logs_service_identity(caplog: pytest.LogCaptureFixture) -> None:
    """Test that the run is tagged with the configured service identity."""
    settings = Settings(service_name="demo-runner", service_version="9.9.9", environment="staging")

    with caplog.at_level(logging.INFO):
        hashes = generate_demo_hashes(settings=settings)

    assert len(hashes) == 3
    assert "demo-runner v9.9.9 (staging): encoding 3 demo invoices" in caplog.text


def test_generate_respects_url_budget_from_settings() -> None:
    """Test that links over the configured budget are skipped."""
    urls = generate_demo_hashes(include_og=True, settings=Settings(max_url_bytes=50))

    assert urls == []
