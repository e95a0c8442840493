"""Base62 encoding.

Alphabet: 0-9a-zA-Z. Every character is URL-safe without escaping, and the
output is more compact than hex while avoiding Base64's ``+/=`` characters.
"""

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE = len(ALPHABET)

_INDEX = {char: index for index, char in enumerate(ALPHABET)}


def encode_base62(data: bytes) -> str:
    """Encode bytes as Base62.

    Leading zero bytes are preserved as leading ``0`` characters.
    """
    if not data:
        return ""

    num = int.from_bytes(data, "big")
    digits: list[str] = []
    while num > 0:
        num, remainder = divmod(num, BASE)
        digits.append(ALPHABET[remainder])

    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return ALPHABET[0] * leading_zeros + "".join(reversed(digits))


def decode_base62(text: str) -> bytes:
    """Decode a Base62 string.

    Raises:
        ValueError: If the string contains a character outside the alphabet
    """
    if not text:
        return b""

    num = 0
    for char in text:
        digit = _INDEX.get(char)
        if digit is None:
            raise ValueError(f"Invalid Base62 character: {char!r}")
        num = num * BASE + digit

    leading_zeros = len(text) - len(text.lstrip(ALPHABET[0]))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * leading_zeros + body
