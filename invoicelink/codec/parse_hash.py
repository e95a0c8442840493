"""Safe hash-fragment parsing.

Hash fragments are untrusted input: hand-edited URLs, truncated copy-paste
and stale links from older releases all end up here. ``parse_invoice_hash``
turns decode failures into a result value so callers never need a try/except
on the common path.
"""

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict

from invoicelink.codec.decode import decode_invoice
from invoicelink.codec.errors import CodecError, DecodeError
from invoicelink.invoice.schema import Invoice

logger = logging.getLogger(__name__)


class HashParseSuccess(BaseModel):
    """Hash fragment decoded into an invoice."""

    success: Literal[True] = True
    data: Invoice


class HashParseFailure(BaseModel):
    """Hash fragment could not be decoded.

    Attributes:
        success: Always False
        error: The codec error, so callers can distinguish e.g.
            UnsupportedVersionError from DecodeError
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: Literal[False] = False
    error: CodecError


HashParseResult = HashParseSuccess | HashParseFailure


def parse_invoice_hash(hash_fragment: str) -> HashParseResult:
    """Parse a URL hash fragment into invoice data.

    Args:
        hash_fragment: Hash fragment, with or without the leading '#'

    Returns:
        HashParseSuccess with the invoice, or HashParseFailure with the error

    Example:
        >>> result = parse_invoice_hash(fragment)
        >>> if result.success:
        ...     show(result.data)
        ... else:
        ...     warn(str(result.error))
    """
    encoded = hash_fragment.removeprefix("#")
    if not encoded:
        return HashParseFailure(error=DecodeError("Empty hash fragment"))

    try:
        return HashParseSuccess(data=decode_invoice(encoded))
    except CodecError as e:
        logger.warning(f"Rejected invoice hash ({type(e).__name__}): {e}")
        return HashParseFailure(error=e)
    except Exception as e:
        logger.exception(f"Unexpected error decoding invoice hash: {e}")
        return HashParseFailure(error=DecodeError(f"Failed to decode invoice: {e}"))
