"""Binary invoice layout V3: hybrid strategy (current).

Combines tight binary packing for structured fields with selective DEFLATE
compression of the free-text block:

- Bit flags (one varint) for every optional field
- Delta encoding for the due date
- Dictionary codes for common currencies and token contracts
- Wallet addresses as raw 20 bytes
- Rates as (scale, mantissa) varints, so "1000.00" costs 3 bytes and
  18-decimal amounts need no float conversion
- Text fields length-prefixed in one block, DEFLATE-compressed only when the
  block is large enough for compression to pay off and actually shrinks it

Layout::

    u8      version (3)
    varint  flags
    u32     issued_at
    varint  due_at - issued_at
    varint  network_id
    varint  decimals
    varint  currency dictionary code (0 = literal in text block)
    [token]           u8 mode (0 = dictionary code, 1 = raw) + code or 20 bytes
    [sender wallet]   20 bytes
    [client wallet]   20 bytes
    varint  item count
    per item: varint rate scale, varint rate mantissa
    [total]           varint
    [magic dust]      varint
    varint  text block length, text block bytes
"""

import logging
import zlib
from enum import IntFlag
from typing import Any

from invoicelink.amounts.arithmetic import format_units
from invoicelink.binary.dictionary import (
    CURRENCY_DICT_REVERSE,
    TOKEN_DICT_REVERSE,
    currency_code,
    token_code,
)
from invoicelink.binary.stream import ByteReader, ByteWriter
from invoicelink.codec.errors import DecodeError
from invoicelink.compression.service import deflate_bytes, inflate_bytes
from invoicelink.invoice.limits import FIELD_LIMITS
from invoicelink.invoice.schema import Invoice, Party
from invoicelink.shared.config import Settings

logger = logging.getLogger(__name__)

VERSION = 3
PREFIX = "H"  # Hybrid

_TOKEN_MODE_DICT = 0
_TOKEN_MODE_RAW = 1


class OptionalField(IntFlag):
    """Presence bits for optional fields."""

    HAS_NOTES = 1 << 0
    HAS_TOKEN = 1 << 1
    HAS_SENDER_WALLET = 1 << 2
    HAS_SENDER_EMAIL = 1 << 3
    HAS_SENDER_ADDRESS = 1 << 4
    HAS_SENDER_PHONE = 1 << 5
    HAS_SENDER_TAX_ID = 1 << 6
    HAS_CLIENT_WALLET = 1 << 7
    HAS_CLIENT_EMAIL = 1 << 8
    HAS_CLIENT_ADDRESS = 1 << 9
    HAS_CLIENT_PHONE = 1 << 10
    HAS_CLIENT_TAX_ID = 1 << 11
    HAS_TAX = 1 << 12
    HAS_DISCOUNT = 1 << 13
    TEXT_COMPRESSED = 1 << 14
    HAS_TOTAL = 1 << 15
    HAS_MAGIC_DUST = 1 << 16


_ALL_FLAGS = sum(flag.value for flag in OptionalField)

# Optional party text fields, in wire order
_PARTY_TEXT_FIELDS = ("email", "physical_address", "phone", "tax_id")

_PartyFlags = tuple[OptionalField, tuple[OptionalField, ...]]

_SENDER_FLAGS: _PartyFlags = (
    OptionalField.HAS_SENDER_WALLET,
    (
        OptionalField.HAS_SENDER_EMAIL,
        OptionalField.HAS_SENDER_ADDRESS,
        OptionalField.HAS_SENDER_PHONE,
        OptionalField.HAS_SENDER_TAX_ID,
    ),
)
_CLIENT_FLAGS: _PartyFlags = (
    OptionalField.HAS_CLIENT_WALLET,
    (
        OptionalField.HAS_CLIENT_EMAIL,
        OptionalField.HAS_CLIENT_ADDRESS,
        OptionalField.HAS_CLIENT_PHONE,
        OptionalField.HAS_CLIENT_TAX_ID,
    ),
)


def _split_decimal(value: str) -> tuple[int, int]:
    """Split a canonical decimal string into (scale, mantissa)."""
    whole, _, fraction = value.partition(".")
    return len(fraction), int(whole + fraction)


def _party_flags(party: Party, party_flags: _PartyFlags) -> int:
    wallet_flag, text_flags = party_flags
    flags = wallet_flag if party.wallet_address is not None else 0
    for field, flag in zip(_PARTY_TEXT_FIELDS, text_flags):
        if getattr(party, field) is not None:
            flags |= flag
    return flags


def _compute_flags(invoice: Invoice) -> int:
    flags = 0
    if invoice.notes is not None:
        flags |= OptionalField.HAS_NOTES
    if invoice.token_address is not None:
        flags |= OptionalField.HAS_TOKEN
    if invoice.tax is not None:
        flags |= OptionalField.HAS_TAX
    if invoice.discount is not None:
        flags |= OptionalField.HAS_DISCOUNT
    if invoice.total is not None:
        flags |= OptionalField.HAS_TOTAL
    if invoice.magic_dust is not None:
        flags |= OptionalField.HAS_MAGIC_DUST
    flags |= _party_flags(invoice.sender, _SENDER_FLAGS)
    flags |= _party_flags(invoice.client, _CLIENT_FLAGS)
    return flags


def _pack_text(invoice: Invoice, currency_dict_code: int) -> bytes:
    text = ByteWriter()
    text.write_string(invoice.invoice_id)
    if not currency_dict_code:
        text.write_string(invoice.currency)
    if invoice.notes is not None:
        text.write_string(invoice.notes)

    for party in (invoice.sender, invoice.client):
        text.write_string(party.name)
        for field in _PARTY_TEXT_FIELDS:
            value = getattr(party, field)
            if value is not None:
                text.write_string(value)

    if invoice.tax is not None:
        text.write_string(invoice.tax)
    if invoice.discount is not None:
        text.write_string(invoice.discount)

    for item in invoice.items:
        text.write_string(item.description)
        text.write_string(str(item.quantity))

    return text.getvalue()


def pack_v3(invoice: Invoice, settings: Settings) -> bytes:
    """Pack an invoice into the V3 hybrid binary layout.

    Args:
        invoice: Validated invoice
        settings: Settings providing the text compression threshold

    Returns:
        Packed bytes (without prefix or Base62 encoding)
    """
    flags = _compute_flags(invoice)
    currency_dict_code = currency_code(invoice.currency)

    raw_text = _pack_text(invoice, currency_dict_code)
    text_payload = raw_text
    if len(raw_text) > settings.text_compression_threshold:
        compressed = deflate_bytes(raw_text)
        if len(compressed) < len(raw_text):
            text_payload = compressed
            flags |= OptionalField.TEXT_COMPRESSED
        logger.debug(
            f"Text block {len(raw_text)} bytes, deflated {len(compressed)} bytes, "
            f"compressed={bool(flags & OptionalField.TEXT_COMPRESSED)}"
        )

    writer = ByteWriter()
    writer.write_byte(VERSION)
    writer.write_varint(int(flags))
    writer.write_uint32(invoice.issued_at)
    writer.write_varint(invoice.due_at - invoice.issued_at)
    writer.write_varint(invoice.network_id)
    writer.write_varint(invoice.decimals)
    writer.write_varint(currency_dict_code)

    if invoice.token_address is not None:
        code = token_code(invoice.token_address)
        if code:
            writer.write_byte(_TOKEN_MODE_DICT)
            writer.write_byte(code)
        else:
            writer.write_byte(_TOKEN_MODE_RAW)
            writer.write_address(invoice.token_address)

    for party in (invoice.sender, invoice.client):
        if party.wallet_address is not None:
            writer.write_address(party.wallet_address)

    writer.write_varint(len(invoice.items))
    for item in invoice.items:
        scale, mantissa = _split_decimal(item.rate)
        writer.write_varint(scale)
        writer.write_varint(mantissa)

    if invoice.total is not None:
        writer.write_varint(int(invoice.total))
    if invoice.magic_dust is not None:
        writer.write_varint(int(invoice.magic_dust))

    writer.write_varint(len(text_payload))
    writer.write_bytes(text_payload)
    return writer.getvalue()


def _read_party(
    text: ByteReader,
    flags: int,
    wallet: str | None,
    party_flags: _PartyFlags,
) -> dict[str, Any]:
    _, text_flags = party_flags
    party: dict[str, Any] = {"name": text.read_string(), "wallet_address": wallet}
    for field, flag in zip(_PARTY_TEXT_FIELDS, text_flags):
        party[field] = text.read_string() if flags & flag else None
    return party


def unpack_v3(data: bytes) -> Invoice:
    """Unpack V3 bytes into an invoice.

    Args:
        data: Packed bytes (prefix and Base62 already removed)

    Returns:
        Invoice instance

    Raises:
        DecodeError: If the payload is truncated, has trailing bytes, unknown
            flags, out-of-range counts, or an undecompressable text block
        pydantic.ValidationError: If the decoded fields fail schema checks
    """
    reader = ByteReader(data)

    version = reader.read_byte()
    if version != VERSION:
        raise DecodeError(f"Decode failed: version byte {version} does not match V{VERSION} layout")

    flags = reader.read_varint()
    if flags & ~_ALL_FLAGS:
        raise DecodeError(f"Decode failed: unknown flag bits {flags & ~_ALL_FLAGS:#x}")

    issued_at = reader.read_uint32()
    due_at = issued_at + reader.read_varint()
    network_id = reader.read_varint()
    decimals = reader.read_varint()
    currency_dict_code = reader.read_varint()

    token_address: str | None = None
    if flags & OptionalField.HAS_TOKEN:
        mode = reader.read_byte()
        if mode == _TOKEN_MODE_DICT:
            code = reader.read_byte()
            token_address = TOKEN_DICT_REVERSE.get(code)
            if token_address is None:
                raise DecodeError(f"Decode failed: unknown token dictionary code {code}")
        elif mode == _TOKEN_MODE_RAW:
            token_address = reader.read_address()
        else:
            raise DecodeError(f"Decode failed: unknown token mode {mode}")

    sender_wallet = (
        reader.read_address() if flags & OptionalField.HAS_SENDER_WALLET else None
    )
    client_wallet = (
        reader.read_address() if flags & OptionalField.HAS_CLIENT_WALLET else None
    )

    item_count = reader.read_varint()
    if not 0 < item_count <= FIELD_LIMITS.max_items:
        raise DecodeError(f"Decode failed: invalid line item count {item_count}")

    rates: list[str] = []
    for _ in range(item_count):
        scale = reader.read_varint()
        if scale > FIELD_LIMITS.max_decimals:
            raise DecodeError(f"Decode failed: rate scale {scale} out of range")
        rates.append(format_units(reader.read_varint(), scale))

    total = str(reader.read_varint()) if flags & OptionalField.HAS_TOTAL else None
    magic_dust = str(reader.read_varint()) if flags & OptionalField.HAS_MAGIC_DUST else None

    text_payload = reader.read_bytes(reader.read_varint())
    reader.ensure_consumed()

    if flags & OptionalField.TEXT_COMPRESSED:
        try:
            text_payload = inflate_bytes(text_payload)
        except zlib.error as e:
            raise DecodeError(f"Decode failed: cannot decompress text data: {e}") from e

    text = ByteReader(text_payload)
    invoice_id = text.read_string()

    if currency_dict_code:
        currency = CURRENCY_DICT_REVERSE.get(currency_dict_code)
        if currency is None:
            raise DecodeError(f"Decode failed: unknown currency code {currency_dict_code}")
    else:
        currency = text.read_string()

    notes = text.read_string() if flags & OptionalField.HAS_NOTES else None
    sender = _read_party(text, flags, sender_wallet, _SENDER_FLAGS)
    client = _read_party(text, flags, client_wallet, _CLIENT_FLAGS)
    tax = text.read_string() if flags & OptionalField.HAS_TAX else None
    discount = text.read_string() if flags & OptionalField.HAS_DISCOUNT else None

    items = [
        {"description": text.read_string(), "quantity": text.read_string(), "rate": rate}
        for rate in rates
    ]
    text.ensure_consumed()

    return Invoice.model_validate(
        {
            "invoice_id": invoice_id,
            "issued_at": issued_at,
            "due_at": due_at,
            "network_id": network_id,
            "currency": currency,
            "token_address": token_address,
            "decimals": decimals,
            "sender": sender,
            "client": client,
            "items": items,
            "tax": tax,
            "discount": discount,
            "notes": notes,
            "total": total,
            "magic_dust": magic_dust,
        }
    )
