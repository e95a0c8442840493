"""Byte-level field primitives for the binary invoice layouts.

``ByteWriter`` appends fields to an in-memory buffer; ``ByteReader`` consumes
them in the same order. Each field type has a ``write_x``/``read_x`` pair:

- fixed-size big-endian integers (u8, u16, u32)
- LEB128 varints (7 data bits + continuation bit) over arbitrary-precision
  ints, so token amounts with 18 decimals need no special casing
- length-prefixed UTF-8 strings
- 20-byte wallet addresses
"""

from invoicelink.codec.errors import DecodeError, TruncatedPayloadError

ADDRESS_SIZE = 20


def address_to_bytes(address: str) -> bytes:
    """Parse a ``0x``-prefixed wallet address into 20 bytes.

    Raises:
        ValueError: If the address is not 40 hex digits
    """
    hex_digits = address[2:] if address.startswith("0x") else address
    if len(hex_digits) != ADDRESS_SIZE * 2:
        raise ValueError(f"Invalid address length: {address}")
    return bytes.fromhex(hex_digits)


def bytes_to_address(data: bytes) -> str:
    """Format 20 bytes as a lowercase ``0x`` wallet address."""
    if len(data) != ADDRESS_SIZE:
        raise ValueError(f"Invalid address bytes length: {len(data)}")
    return "0x" + data.hex()


class ByteWriter:
    """Append-only binary buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def write_byte(self, value: int) -> None:
        self._buffer.append(value)

    def write_uint16(self, value: int) -> None:
        self._buffer += value.to_bytes(2, "big")

    def write_uint32(self, value: int) -> None:
        self._buffer += value.to_bytes(4, "big")

    def write_varint(self, value: int) -> None:
        """Write a non-negative integer of any size as a LEB128 varint.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError(f"Varint cannot encode negative value: {value}")
        while value > 0x7F:
            self._buffer.append((value & 0x7F) | 0x80)
            value >>= 7
        self._buffer.append(value)

    def write_bytes(self, data: bytes) -> None:
        self._buffer += data

    def write_string(self, value: str) -> None:
        """Write a varint length prefix followed by UTF-8 bytes."""
        encoded = value.encode("utf-8")
        self.write_varint(len(encoded))
        self._buffer += encoded

    def write_address(self, address: str) -> None:
        self._buffer += address_to_bytes(address)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class ByteReader:
    """Sequential reader over a binary payload.

    Every read checks bounds and raises ``TruncatedPayloadError`` rather than
    silently padding with zeros.
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, size: int) -> bytes:
        if size > self.remaining:
            raise TruncatedPayloadError(
                f"Decode failed: payload truncated at byte {self._offset} "
                f"(needed {size}, {self.remaining} left)"
            )
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def read_byte(self) -> int:
        return self._take(1)[0]

    def read_uint16(self) -> int:
        return int.from_bytes(self._take(2), "big")

    def read_uint32(self) -> int:
        return int.from_bytes(self._take(4), "big")

    def read_varint(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.read_byte()
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return value
            shift += 7

    def read_bytes(self, size: int) -> bytes:
        return self._take(size)

    def read_string(self) -> str:
        length = self.read_varint()
        raw = self._take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Decode failed: invalid UTF-8 text at byte {self._offset}") from e

    def read_address(self) -> str:
        return bytes_to_address(self._take(ADDRESS_SIZE))

    def ensure_consumed(self) -> None:
        """Reject payloads with bytes left over after the last field."""
        if self.remaining:
            raise DecodeError(f"Decode failed: {self.remaining} unexpected trailing bytes")
