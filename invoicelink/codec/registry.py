"""Registry of binary invoice schema versions.

Keeps "which version do we write" separate from "which versions can we
read". Each entry maps a version number (and its one-letter URL prefix) to a
pair of pure functions; adding a version means adding one packer module and
one entry here, without touching the encode/decode call sites.

Based on Registry Pattern: Python Cookbook 3rd Edition, Recipe 9.22
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from invoicelink.binary import packer_v2, packer_v3
from invoicelink.codec.errors import UnsupportedVersionError
from invoicelink.invoice.schema import Invoice
from invoicelink.shared.config import Settings

logger = logging.getLogger(__name__)

CURRENT_VERSION = packer_v3.VERSION


@dataclass(frozen=True)
class SchemaVersion:
    """A readable (and writable) wire format revision.

    Attributes:
        version: Version number, also stored as the first payload byte
        prefix: Single character that starts encoded strings of this version
        pack: Invoice -> payload bytes
        unpack: Payload bytes -> Invoice (migrated to the current schema)
    """

    version: int
    prefix: str
    pack: Callable[[Invoice, Settings], bytes]
    unpack: Callable[[bytes], Invoice]


class VersionRegistry:
    """Mapping of version numbers and prefixes to schema versions."""

    _versions: dict[int, SchemaVersion] = {
        packer_v2.VERSION: SchemaVersion(
            version=packer_v2.VERSION,
            prefix=packer_v2.PREFIX,
            pack=packer_v2.pack_v2,
            unpack=packer_v2.unpack_v2,
        ),
        packer_v3.VERSION: SchemaVersion(
            version=packer_v3.VERSION,
            prefix=packer_v3.PREFIX,
            pack=packer_v3.pack_v3,
            unpack=packer_v3.unpack_v3,
        ),
    }

    @classmethod
    def register(cls, schema_version: SchemaVersion) -> None:
        """Register a new schema version.

        Args:
            schema_version: Version entry with a unique number and prefix

        Raises:
            ValueError: If the prefix is not a single character or is already
                used by a different version
        """
        if len(schema_version.prefix) != 1:
            raise ValueError(f"Version prefix must be one character: {schema_version.prefix!r}")
        for existing in cls._versions.values():
            same_prefix = existing.prefix == schema_version.prefix
            if same_prefix and existing.version != schema_version.version:
                raise ValueError(
                    f"Prefix '{schema_version.prefix}' already used by version {existing.version}"
                )
        cls._versions[schema_version.version] = schema_version
        logger.info(f"Registered schema version: {schema_version.version}")

    @classmethod
    def get(cls, version: int) -> SchemaVersion:
        """Get schema version by number.

        Raises:
            UnsupportedVersionError: If the version is not registered
        """
        if version not in cls._versions:
            available = ", ".join(str(v) for v in cls.list_versions())
            raise UnsupportedVersionError(
                f"Unsupported schema version: {version}. Supported versions: {available}"
            )
        return cls._versions[version]

    @classmethod
    def get_by_prefix(cls, prefix: str) -> SchemaVersion:
        """Get schema version by its encoded-string prefix.

        Raises:
            UnsupportedVersionError: If no registered version uses the prefix
        """
        for schema_version in cls._versions.values():
            if schema_version.prefix == prefix:
                return schema_version
        available = ", ".join(v.prefix for v in cls._versions.values())
        raise UnsupportedVersionError(
            f"Unsupported schema version: prefix {prefix!r}. Supported prefixes: {available}"
        )

    @classmethod
    def current(cls) -> SchemaVersion:
        """Schema version used for all new encodings."""
        return cls.get(CURRENT_VERSION)

    @classmethod
    def list_versions(cls) -> list[int]:
        return sorted(cls._versions)
