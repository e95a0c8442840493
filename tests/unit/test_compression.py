"""Unit tests for URL-safe compression."""

import re
import zlib

import pytest

from invoicelink.compression.service import compress, decompress, deflate_bytes, inflate_bytes

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]*$")


def test_deflate_is_deterministic() -> None:
    """Test that the same input always compresses to the same bytes."""
    raw = b"Website redesign, hosting and maintenance " * 4

    assert deflate_bytes(raw) == deflate_bytes(raw)
    assert len(deflate_bytes(raw)) < len(raw)


def test_inflate_restores_input() -> None:
    """Test raw DEFLATE decompression."""
    raw = "Invoice notes with ünïcödé and emoji 🚀".encode()

    assert inflate_bytes(deflate_bytes(raw)) == raw


def test_inflate_rejects_truncated_stream() -> None:
    """Test that an incomplete stream raises instead of returning partial data."""
    compressed = deflate_bytes(b"a fairly long text block that compresses " * 10)

    with pytest.raises(zlib.error):
        inflate_bytes(compressed[: len(compressed) // 2])


def test_inflate_rejects_trailing_data() -> None:
    """Test that bytes after the end of the stream are rejected."""
    with pytest.raises(zlib.error):
        inflate_bytes(deflate_bytes(b"hello") + b"\x00\x01")


def test_compress_output_is_url_safe() -> None:
    """Test that compressed text needs no URL escaping."""
    compressed = compress('{"invoiceId": "INV-001", "notes": "Thanks! ?&=#"}' * 3)

    assert URL_SAFE.match(compressed)
    assert "=" not in compressed


def test_compress_decompress() -> None:
    """Test that decompress restores compressed text."""
    text = "Payment due within 30 days. Late fees apply."

    assert decompress(compress(text)) == text


@pytest.mark.parametrize("garbage", ["!!!", "not-compressed", "AAAA"])
def test_decompress_invalid_returns_none(garbage: str) -> None:
    """Test that invalid input returns None rather than raising."""
    assert decompress(garbage) is None
