"""Invoice encoding and shareable URL assembly.

Links carry the whole invoice in the hash fragment, which browsers never send
to a server. The only part of a link that can reach a server (and its logs)
is the optional ``?og=`` query parameter, and that is restricted to the OG
preview subset produced by ``encode_og_preview``.
"""

import logging
from urllib.parse import quote

from invoicelink.binary.base62 import encode_base62
from invoicelink.codec.errors import UrlTooLongError
from invoicelink.codec.og_preview import encode_og_preview
from invoicelink.codec.registry import VersionRegistry
from invoicelink.invoice.schema import Invoice
from invoicelink.shared import metrics
from invoicelink.shared.config import Settings, get_settings

logger = logging.getLogger(__name__)

PAY_PATH = "/pay"


def encode_invoice(invoice: Invoice, settings: Settings | None = None) -> str:
    """Encode an invoice into a compact URL-safe string.

    Output is the current version's one-letter prefix followed by the Base62
    packed payload. Encoding is deterministic: the same invoice always yields
    the same string.

    Args:
        invoice: Validated invoice
        settings: Optional settings override

    Returns:
        Encoded invoice (e.g. "H4k9...")
    """
    settings = settings or get_settings()
    schema_version = VersionRegistry.current()

    payload = schema_version.pack(invoice, settings)
    encoded = schema_version.prefix + encode_base62(payload)

    metrics.record_operation("encode", "success")
    metrics.record_payload_size("encode", len(encoded))
    logger.debug(
        f"Encoded invoice {invoice.invoice_id} as v{schema_version.version}: "
        f"{len(payload)} bytes packed, {len(encoded)} chars"
    )
    return encoded


def generate_invoice_url(
    invoice: Invoice,
    base_url: str | None = None,
    include_og: bool = False,
    settings: Settings | None = None,
) -> str:
    """Generate a shareable payment URL for the invoice.

    Args:
        invoice: Validated invoice
        base_url: Base URL override (default: settings.app_base_url)
        include_og: Add the OG preview query parameter for social unfurling
        settings: Optional settings override

    Returns:
        ``{base}/pay#{encoded}`` or ``{base}/pay?og={preview}#{encoded}``

    Raises:
        UrlTooLongError: If the URL exceeds settings.max_url_bytes (UTF-8)

    Example:
        >>> generate_invoice_url(invoice, include_og=True)
        'https://voidpay.xyz/pay?og=a1b2c3d4_1250.00_USDC_arb_Acme_1231#H...'
    """
    settings = settings or get_settings()
    encoded = encode_invoice(invoice, settings)
    app_url = (base_url or settings.app_base_url).rstrip("/")

    if include_og:
        og_data = quote(encode_og_preview(invoice), safe="_.-")
        url = f"{app_url}{PAY_PATH}?og={og_data}#{encoded}"
    else:
        url = f"{app_url}{PAY_PATH}#{encoded}"

    size_bytes = len(url.encode("utf-8"))
    if size_bytes > settings.max_url_bytes:
        metrics.record_operation("generate_url", "error")
        logger.warning(
            f"Invoice {invoice.invoice_id} URL is {size_bytes} bytes "
            f"(limit {settings.max_url_bytes})"
        )
        raise UrlTooLongError(size_bytes, settings.max_url_bytes)

    metrics.record_operation("generate_url", "success")
    metrics.record_payload_size("generate_url", size_bytes)
    return url
