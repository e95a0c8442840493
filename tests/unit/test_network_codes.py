"""Unit tests for network short codes."""

import pytest

from invoicelink.network.codes import (
    NETWORK_CODES,
    NETWORKS,
    get_network_code,
    get_network_id_from_code,
)


@pytest.mark.parametrize(
    ("network_id", "code"),
    [(1, "eth"), (42161, "arb"), (10, "op"), (137, "poly")],
)
def test_known_network_codes(network_id: int, code: str) -> None:
    """Test short codes for supported networks in both directions."""
    assert get_network_code(network_id) == code
    assert get_network_id_from_code(code) == network_id


def test_unknown_network_falls_back_to_chain_id() -> None:
    """Test that unknown chains use the stringified chain id."""
    assert get_network_code(8453) == "8453"


def test_reverse_lookup_case_insensitive() -> None:
    """Test that reverse lookup ignores case."""
    assert get_network_id_from_code("ARB") == 42161
    assert get_network_id_from_code("Poly") == 137


def test_reverse_lookup_unknown_code() -> None:
    """Test that unknown codes return None."""
    assert get_network_id_from_code("base") is None


def test_every_network_has_a_code() -> None:
    """Test that the network table and code table agree."""
    assert set(NETWORKS) == set(NETWORK_CODES)
