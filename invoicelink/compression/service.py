"""Reversible compression for URL embedding.

Two layers:
- ``deflate_bytes``/``inflate_bytes``: raw DEFLATE for the binary codec's
  selective text compression (no zlib header or checksum, every byte counts)
- ``compress``/``decompress``: generic string compression with URL-safe
  output, for callers that want to embed arbitrary text in a link

Based on the zlib module documentation:
https://docs.python.org/3/library/zlib.html
"""

import base64
import binascii
import logging
import zlib

logger = logging.getLogger(__name__)

# Negative window bits select a raw DEFLATE stream
_RAW_DEFLATE_WBITS = -zlib.MAX_WBITS


def deflate_bytes(raw: bytes) -> bytes:
    """Compress bytes with raw DEFLATE at maximum compression.

    Output is deterministic for a given input.
    """
    compressor = zlib.compressobj(level=9, wbits=_RAW_DEFLATE_WBITS)
    return compressor.compress(raw) + compressor.flush()


def inflate_bytes(data: bytes) -> bytes:
    """Decompress a raw DEFLATE stream.

    Raises:
        zlib.error: If the stream is corrupt or incomplete
    """
    decompressor = zlib.decompressobj(wbits=_RAW_DEFLATE_WBITS)
    raw = decompressor.decompress(data) + decompressor.flush()
    if not decompressor.eof:
        raise zlib.error("incomplete or truncated stream")
    if decompressor.unused_data:
        raise zlib.error("trailing data after end of stream")
    return raw


def compress(data: str) -> str:
    """Compress a string into URL-safe text.

    Args:
        data: Arbitrary text

    Returns:
        URL-safe base64 (no padding) of the DEFLATE-compressed UTF-8 bytes
    """
    encoded = base64.urlsafe_b64encode(deflate_bytes(data.encode("utf-8")))
    return encoded.decode("ascii").rstrip("=")


def decompress(compressed: str) -> str | None:
    """Decompress a string produced by ``compress``.

    Args:
        compressed: URL-safe compressed text

    Returns:
        Original text, or None if the input is not valid compressed data
    """
    padding = "=" * (-len(compressed) % 4)
    try:
        raw = base64.urlsafe_b64decode(compressed + padding)
        return inflate_bytes(raw).decode("utf-8")
    except (binascii.Error, zlib.error, UnicodeDecodeError, ValueError) as e:
        logger.debug(f"Decompression failed: {e}")
        return None
