"""Dictionary compression for common strings.

Well-known currency symbols and token contracts are replaced by a one-byte
code. Code 0 is reserved for "not in dictionary".
"""

CURRENCY_DICT: dict[str, int] = {
    "USDC": 1,
    "USDT": 2,
    "DAI": 3,
    "ETH": 4,
    "WETH": 5,
    "MATIC": 6,
    "ARB": 7,
    "OP": 8,
    "AVAX": 9,
    "BNB": 10,
    "BUSD": 11,
    "FRAX": 12,
    "LUSD": 13,
    "sUSD": 14,
    "TUSD": 15,
}

CURRENCY_DICT_REVERSE: dict[int, str] = {code: symbol for symbol, code in CURRENCY_DICT.items()}

TOKEN_DICT: dict[str, int] = {
    # Ethereum Mainnet
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": 1,  # USDC
    "0xdac17f958d2ee523a2206206994597c13d831ec7": 2,  # USDT
    "0x6b175474e89094c44da98b954eedeac495271d0f": 3,  # DAI
    "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": 4,  # WETH
    # Polygon
    "0x2791bca1f2de4661ed88a30c99a7a9449aa84174": 5,  # USDC
    "0xc2132d05d31c914a87c6611c10748aeb04b58e8f": 6,  # USDT
    "0x8f3cf7ad23cd3cadbd9735aff958023239c6a063": 7,  # DAI
    # Arbitrum
    "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8": 8,  # USDC
    "0xfd086bc7cd5c481dcc9c85ebe478a1c0b69fcbb9": 9,  # USDT
    "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1": 10,  # DAI
}

TOKEN_DICT_REVERSE: dict[int, str] = {code: address for address, code in TOKEN_DICT.items()}


def currency_code(symbol: str) -> int:
    """Dictionary code for a currency symbol (case-sensitive), 0 if absent."""
    return CURRENCY_DICT.get(symbol, 0)


def token_code(address: str) -> int:
    """Dictionary code for a token address (case-insensitive), 0 if absent."""
    return TOKEN_DICT.get(address.lower(), 0)
