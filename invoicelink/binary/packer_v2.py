"""Binary invoice layout V2 (legacy).

Every field inline, no compression. Links produced by older releases still
circulate, so the layout stays readable; new links are always written with
the current version.

Differences from the current in-memory schema, migrated on read:
- rates are atomic-unit integer strings (converted to display units using the
  invoice's decimals)
- tax/discount are bare percentages ("10" means 10%, gains a "%" suffix)
- the sender wallet is mandatory; tax ids, fixed adjustments, totals and
  Magic Dust do not exist
"""

from enum import IntFlag
from typing import Any

from invoicelink.amounts.arithmetic import InvalidAmountError, format_units, parse_units
from invoicelink.binary.dictionary import (
    CURRENCY_DICT_REVERSE,
    TOKEN_DICT_REVERSE,
    currency_code,
    token_code,
)
from invoicelink.binary.stream import ByteReader, ByteWriter
from invoicelink.codec.errors import CodecError, DecodeError
from invoicelink.invoice.limits import FIELD_LIMITS
from invoicelink.invoice.schema import Invoice, Party
from invoicelink.shared.config import Settings

VERSION = 2
PREFIX = "B"  # Binary only

_MODE_DICT = 0
_MODE_RAW = 1


class LegacyField(IntFlag):
    """Presence bits for optional fields (2 bytes)."""

    HAS_NOTES = 1 << 0
    HAS_TOKEN = 1 << 1
    HAS_SENDER_EMAIL = 1 << 2
    HAS_SENDER_ADDRESS = 1 << 3
    HAS_SENDER_PHONE = 1 << 4
    HAS_CLIENT_WALLET = 1 << 5
    HAS_CLIENT_EMAIL = 1 << 6
    HAS_CLIENT_ADDRESS = 1 << 7
    HAS_CLIENT_PHONE = 1 << 8
    HAS_TAX = 1 << 9
    HAS_DISCOUNT = 1 << 10
    # Set by old encoders but never acted on
    USE_LZ_COMPRESSION = 1 << 11


_PARTY_TEXT_FIELDS = ("email", "physical_address", "phone")
_SENDER_TEXT_FLAGS = (
    LegacyField.HAS_SENDER_EMAIL,
    LegacyField.HAS_SENDER_ADDRESS,
    LegacyField.HAS_SENDER_PHONE,
)
_CLIENT_TEXT_FLAGS = (
    LegacyField.HAS_CLIENT_EMAIL,
    LegacyField.HAS_CLIENT_ADDRESS,
    LegacyField.HAS_CLIENT_PHONE,
)


def _legacy_percentage(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    if not value.endswith("%"):
        raise CodecError(f"V{VERSION} cannot represent a fixed {field} amount: {value!r}")
    return value[:-1]


def _check_representable(invoice: Invoice) -> None:
    if invoice.sender.wallet_address is None:
        raise CodecError(f"V{VERSION} requires a sender wallet address")
    if invoice.sender.tax_id is not None or invoice.client.tax_id is not None:
        raise CodecError(f"V{VERSION} cannot represent tax ids")
    if invoice.total is not None or invoice.magic_dust is not None:
        raise CodecError(f"V{VERSION} cannot represent totals or Magic Dust")


def _write_party_text(
    writer: ByteWriter, party: Party, text_flags: tuple[LegacyField, ...], flags: int
) -> None:
    for field, flag in zip(_PARTY_TEXT_FIELDS, text_flags):
        if flags & flag:
            writer.write_string(getattr(party, field))


def pack_v2(invoice: Invoice, settings: Settings) -> bytes:
    """Pack an invoice into the legacy V2 layout.

    Only used to produce compatibility fixtures; links are always generated
    with the current version.

    Raises:
        CodecError: If the invoice uses fields V2 cannot carry
    """
    _check_representable(invoice)
    tax = _legacy_percentage(invoice.tax, "tax")
    discount = _legacy_percentage(invoice.discount, "discount")

    flags = 0
    for value, flag in (
        (invoice.notes, LegacyField.HAS_NOTES),
        (invoice.token_address, LegacyField.HAS_TOKEN),
        (invoice.client.wallet_address, LegacyField.HAS_CLIENT_WALLET),
        (tax, LegacyField.HAS_TAX),
        (discount, LegacyField.HAS_DISCOUNT),
    ):
        if value is not None:
            flags |= flag
    for party, text_flags in (
        (invoice.sender, _SENDER_TEXT_FLAGS),
        (invoice.client, _CLIENT_TEXT_FLAGS),
    ):
        for field, flag in zip(_PARTY_TEXT_FIELDS, text_flags):
            if getattr(party, field) is not None:
                flags |= flag

    writer = ByteWriter()
    writer.write_byte(VERSION)
    writer.write_uint16(int(flags))
    writer.write_string(invoice.invoice_id)
    writer.write_uint32(invoice.issued_at)
    writer.write_varint(invoice.due_at - invoice.issued_at)
    if invoice.notes is not None:
        writer.write_string(invoice.notes)
    writer.write_varint(invoice.network_id)

    code = currency_code(invoice.currency)
    if code:
        writer.write_byte(_MODE_DICT)
        writer.write_byte(code)
    else:
        writer.write_byte(_MODE_RAW)
        writer.write_string(invoice.currency)

    if invoice.token_address is not None:
        code = token_code(invoice.token_address)
        if code:
            writer.write_byte(_MODE_DICT)
            writer.write_byte(code)
        else:
            writer.write_byte(_MODE_RAW)
            writer.write_address(invoice.token_address)

    writer.write_varint(invoice.decimals)

    writer.write_string(invoice.sender.name)
    writer.write_address(invoice.sender.wallet_address)  # type: ignore[arg-type]
    _write_party_text(writer, invoice.sender, _SENDER_TEXT_FLAGS, flags)

    writer.write_string(invoice.client.name)
    if invoice.client.wallet_address is not None:
        writer.write_address(invoice.client.wallet_address)
    _write_party_text(writer, invoice.client, _CLIENT_TEXT_FLAGS, flags)

    writer.write_varint(len(invoice.items))
    for item in invoice.items:
        writer.write_string(item.description)
        writer.write_string(str(item.quantity))
        writer.write_string(str(parse_units(item.rate, invoice.decimals)))

    if tax is not None:
        writer.write_string(tax)
    if discount is not None:
        writer.write_string(discount)

    return writer.getvalue()


def _read_dict_or_raw(reader: ByteReader, reverse: dict[int, str], raw_address: bool) -> str:
    mode = reader.read_byte()
    if mode == _MODE_DICT:
        code = reader.read_byte()
        value = reverse.get(code)
        if value is None:
            raise DecodeError(f"Decode failed: unknown dictionary code {code}")
        return value
    if mode == _MODE_RAW:
        return reader.read_address() if raw_address else reader.read_string()
    raise DecodeError(f"Decode failed: unknown dictionary mode {mode}")


def _read_party_text(
    reader: ByteReader, party: dict[str, Any], text_flags: tuple[LegacyField, ...], flags: int
) -> None:
    for field, flag in zip(_PARTY_TEXT_FIELDS, text_flags):
        party[field] = reader.read_string() if flags & flag else None


def _migrate_rate(atomic: str, decimals: int) -> str:
    try:
        return format_units(parse_units(atomic, 0), decimals)
    except InvalidAmountError as e:
        raise DecodeError(f"Decode failed: invalid legacy rate {atomic!r}") from e


def _migrate_percentage(value: str | None) -> str | None:
    return None if value is None else f"{value}%"


def unpack_v2(data: bytes) -> Invoice:
    """Unpack legacy V2 bytes and migrate them to the current schema.

    Raises:
        DecodeError: If the payload is structurally invalid
        pydantic.ValidationError: If migrated fields fail schema checks
    """
    reader = ByteReader(data)

    version = reader.read_byte()
    if version != VERSION:
        raise DecodeError(f"Decode failed: version byte {version} does not match V{VERSION} layout")

    flags = reader.read_uint16()
    invoice_id = reader.read_string()
    issued_at = reader.read_uint32()
    due_at = issued_at + reader.read_varint()
    notes = reader.read_string() if flags & LegacyField.HAS_NOTES else None
    network_id = reader.read_varint()
    currency = _read_dict_or_raw(reader, CURRENCY_DICT_REVERSE, raw_address=False)
    token_address = (
        _read_dict_or_raw(reader, TOKEN_DICT_REVERSE, raw_address=True)
        if flags & LegacyField.HAS_TOKEN
        else None
    )
    decimals = reader.read_varint()
    if decimals > FIELD_LIMITS.max_decimals:
        raise DecodeError(f"Decode failed: decimals {decimals} out of range")

    sender: dict[str, Any] = {"name": reader.read_string(), "wallet_address": reader.read_address()}
    _read_party_text(reader, sender, _SENDER_TEXT_FLAGS, flags)

    client: dict[str, Any] = {"name": reader.read_string()}
    client["wallet_address"] = (
        reader.read_address() if flags & LegacyField.HAS_CLIENT_WALLET else None
    )
    _read_party_text(reader, client, _CLIENT_TEXT_FLAGS, flags)

    item_count = reader.read_varint()
    if not 0 < item_count <= FIELD_LIMITS.max_items:
        raise DecodeError(f"Decode failed: invalid line item count {item_count}")

    items = []
    for _ in range(item_count):
        description = reader.read_string()
        quantity = reader.read_string()
        rate = _migrate_rate(reader.read_string(), decimals)
        items.append({"description": description, "quantity": quantity, "rate": rate})

    tax = reader.read_string() if flags & LegacyField.HAS_TAX else None
    discount = reader.read_string() if flags & LegacyField.HAS_DISCOUNT else None
    reader.ensure_consumed()

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
            "tax": _migrate_percentage(tax),
            "discount": _migrate_percentage(discount),
            "notes": notes,
        }
    )
