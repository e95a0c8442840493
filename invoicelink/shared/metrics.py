"""Prometheus metrics for the invoice codec.

Exposes key metrics for monitoring:
- Encode/decode/URL operation counts by outcome
- Payload size histograms (encoded string and URL length in bytes)

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Histogram

# Operation metrics
codec_operations_total = Counter(
    "invoice_codec_operations_total",
    "Total invoice codec operations",
    ["operation", "status"],
)

codec_payload_bytes = Histogram(
    "invoice_codec_payload_bytes",
    "Size of encoded invoice payloads and URLs in bytes",
    ["operation"],
    buckets=(100, 250, 500, 750, 1000, 1500, 2000, 4000),
)


def record_operation(operation: str, status: str) -> None:
    """Record a codec operation outcome.

    Args:
        operation: Operation name (encode, decode, generate_url)
        status: Outcome (success, error)
    """
    codec_operations_total.labels(operation=operation, status=status).inc()


def record_payload_size(operation: str, size_bytes: int) -> None:
    """Record the size of a produced payload.

    Args:
        operation: Operation name (encode, generate_url)
        size_bytes: Payload size in bytes
    """
    codec_payload_bytes.labels(operation=operation).observe(size_bytes)
