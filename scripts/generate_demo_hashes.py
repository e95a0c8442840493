#!/usr/bin/env python3
"""Generate encoded hashes and payment URLs for demo invoices.

Useful for seeding landing pages and checking how much of the URL budget
typical invoices use.

Usage:
    python scripts/generate_demo_hashes.py
    python scripts/generate_demo_hashes.py --include-og --base-url http://localhost:3000
"""

import logging
import time

from invoicelink.codec.encode import encode_invoice, generate_invoice_url
from invoicelink.codec.errors import UrlTooLongError
from invoicelink.invoice.schema import Invoice
from invoicelink.shared.config import Settings, get_settings

logging.basicConfig(level=get_settings().log_level, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60

USDC_ARBITRUM = "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8"
USDT_POLYGON = "0xc2132d05d31c914a87c6611c10748aeb04b58e8f"


def build_demo_invoices(now: int | None = None) -> list[Invoice]:
    """Build the demo invoice set.

    Args:
        now: Issue timestamp (default: current time)

    Returns:
        Validated demo invoices
    """
    issued_at = now or int(time.time())

    return [
        Invoice(
            invoice_id="INV-001",
            issued_at=issued_at,
            due_at=issued_at + 30 * DAY_SECONDS,
            network_id=42161,
            currency="USDC",
            token_address=USDC_ARBITRUM,
            decimals=6,
            sender={
                "name": "Acme Design Studio",
                "wallet_address": "0x742d35cc6634c0532925a3b844bc454e4438f44e",
                "email": "billing@acme.example",
            },
            client={"name": "Globex Corporation", "email": "ap@globex.example"},
            items=[
                {"description": "Website redesign", "quantity": 1, "rate": "2500.00"},
                {"description": "Hosting (monthly)", "quantity": 3, "rate": "49.99"},
            ],
            tax="8.5%",
            notes="Thank you for your business!",
        ),
        Invoice(
            invoice_id="INV-002",
            issued_at=issued_at,
            due_at=issued_at + 14 * DAY_SECONDS,
            network_id=137,
            currency="USDT",
            token_address=USDT_POLYGON,
            decimals=6,
            sender={
                "name": "Freelance Dev",
                "wallet_address": "0x8ba1f109551bd432803012645ac136ddd64dba72",
            },
            client={"name": "Startup Labs"},
            items=[{"description": "Smart contract audit", "quantity": 40, "rate": "150"}],
            discount="5%",
        ),
        Invoice(
            invoice_id="INV-003",
            issued_at=issued_at,
            due_at=issued_at + 7 * DAY_SECONDS,
            network_id=1,
            currency="ETH",
            decimals=18,
            sender={
                "name": "Node Operators Ltd",
                "wallet_address": "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
                "physical_address": "1 Validator Way, Berlin, Germany",
            },
            client={
                "name": "DAO Treasury",
                "wallet_address": "0xfb6916095ca1df60bb79ce92ce3ea74c37c5d359",
            },
            items=[
                {"description": "Validator hosting", "quantity": "0.5", "rate": "1.25"},
                {"description": "Monitoring", "quantity": 1, "rate": "0.015"},
            ],
        ),
    ]


def generate_demo_hashes(
    base_url: str | None = None,
    include_og: bool = False,
    settings: Settings | None = None,
) -> list[str]:
    """Encode every demo invoice.

    Args:
        base_url: When set (or include_og is set), produce full URLs instead
            of bare hashes
        include_og: Add the OG preview query parameter
        settings: Optional settings override

    Returns:
        One hash or URL per demo invoice that fits the URL budget
    """
    settings = settings or get_settings()
    invoices = build_demo_invoices()
    logger.info(
        f"{settings.service_name} v{settings.service_version} ({settings.environment}): "
        f"encoding {len(invoices)} demo invoices"
    )

    outputs: list[str] = []
    for invoice in invoices:
        if base_url is None and not include_og:
            outputs.append(encode_invoice(invoice, settings))
            continue
        try:
            outputs.append(
                generate_invoice_url(
                    invoice, base_url=base_url, include_og=include_og, settings=settings
                )
            )
        except UrlTooLongError as e:
            logger.error(f"Skipping {invoice.invoice_id}: {e}")
    return outputs


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Generate demo invoice hashes")
    parser.add_argument(
        "--base-url",
        default=None,
        help="Print full payment URLs built on this base URL",
    )
    parser.add_argument(
        "--include-og",
        action="store_true",
        help="Include the OG preview query parameter (implies full URLs)",
    )
    args = parser.parse_args()

    for line in generate_demo_hashes(base_url=args.base_url, include_og=args.include_og):
        logger.info(f"{len(line):>5} chars  {line}")
