"""Invoice decoding with version dispatch.

The first character of an encoded invoice selects the schema version; the
registry supplies the matching unpacker. Unknown prefixes are rejected, never
retried with the current parser.
"""

import logging

from pydantic import ValidationError

from invoicelink.binary.base62 import decode_base62
from invoicelink.codec.errors import CodecError, DecodeError
from invoicelink.codec.registry import VersionRegistry
from invoicelink.invoice.schema import Invoice
from invoicelink.shared import metrics

logger = logging.getLogger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    )


def decode_invoice(compressed: str) -> Invoice:
    """Decode an encoded invoice string.

    Older versions are migrated to the current in-memory schema on read.

    Args:
        compressed: Encoded invoice from the URL hash fragment

    Returns:
        Freshly built Invoice

    Raises:
        UnsupportedVersionError: If the prefix names an unknown version
        DecodeError: If the body is empty, corrupt, truncated or fails schema checks
    """
    try:
        invoice = _decode(compressed)
    except CodecError:
        metrics.record_operation("decode", "error")
        raise

    metrics.record_operation("decode", "success")
    return invoice


def _decode(compressed: str) -> Invoice:
    if not compressed:
        raise DecodeError("Decode failed: empty payload")

    schema_version = VersionRegistry.get_by_prefix(compressed[0])

    body = compressed[1:]
    if not body:
        raise DecodeError("Decode failed: empty payload")

    try:
        payload = decode_base62(body)
    except ValueError as e:
        raise DecodeError(f"Decode failed: {e}") from e

    try:
        invoice = schema_version.unpack(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Decode failed: invalid invoice data: {_format_validation_error(e)}"
        ) from e

    logger.debug(f"Decoded invoice {invoice.invoice_id} from v{schema_version.version}")
    return invoice
