"""Typed errors raised by the invoice codec.

All codec failures are per-call and recoverable: callers show the message to
the user and let them re-check the link or shorten the invoice.
"""


class CodecError(ValueError):
    """Base class for invoice codec failures."""


class UnsupportedVersionError(CodecError):
    """Encoded invoice carries a version prefix this build cannot read."""


class DecodeError(CodecError):
    """Encoded invoice body is corrupt, truncated or fails schema checks."""


class TruncatedPayloadError(DecodeError):
    """Binary payload ended before all declared fields were read."""


class UrlTooLongError(CodecError):
    """Generated URL exceeds the byte budget."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"URL size ({size_bytes} bytes) exceeds {limit_bytes} byte limit: "
            "invoice too large to share via link"
        )


class OGPreviewFormatError(CodecError):
    """OG preview string does not have the required fields."""
