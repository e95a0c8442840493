"""Supported networks and their short codes.

Short codes keep OG preview strings compact (``arb`` instead of ``42161``).
"""

from typing import TypedDict


class NetworkInfo(TypedDict):
    name: str
    currency: str


NETWORKS: dict[int, NetworkInfo] = {
    1: {"name": "Ethereum", "currency": "ETH"},
    42161: {"name": "Arbitrum", "currency": "ETH"},
    10: {"name": "Optimism", "currency": "ETH"},
    137: {"name": "Polygon", "currency": "MATIC"},
}

NETWORK_CODES: dict[int, str] = {
    1: "eth",
    42161: "arb",
    10: "op",
    137: "poly",
}

NETWORK_CODES_REVERSE: dict[str, int] = {code: chain_id for chain_id, code in NETWORK_CODES.items()}


def get_network_code(network_id: int) -> str:
    """Get short code for a chain id.

    Args:
        network_id: EVM chain id

    Returns:
        Short code, or the stringified chain id for unknown networks
    """
    return NETWORK_CODES.get(network_id, str(network_id))


def get_network_id_from_code(code: str) -> int | None:
    """Case-insensitive reverse lookup of a network short code.

    Args:
        code: Short code such as "arb" or "ETH"

    Returns:
        Chain id, or None if the code is unknown
    """
    return NETWORK_CODES_REVERSE.get(code.lower())
