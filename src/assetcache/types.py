"""
Core types for the asset cache.

This module defines the fundamental data structures used throughout the system:
- AssetType: the closed set of content categories
- OpenMode: the open intent of an accessor session
- AssetId: frozen (identifier, category) pair naming one logical asset
- Size constants shared by the accessor and the disk cache
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from uuid import UUID

from assetcache.exceptions import InvalidAssetError

# Largest size an accessor reports; there is no enforced per-store cap.
MAX_ASSET_SIZE = 2**31 - 1

NULL_ASSET_UUID = UUID(int=0)


class AssetType(str, Enum):
    """Content categories an asset can be cached under."""

    TEXTURE = "texture"
    SOUND = "sound"
    CALLINGCARD = "callcard"
    LANDMARK = "landmark"
    SCRIPT = "script"
    CLOTHING = "clothing"
    OBJECT = "object"
    NOTECARD = "notecard"
    CATEGORY = "category"
    LSL_TEXT = "lsltext"
    LSL_BYTECODE = "lslbyte"
    BODYPART = "bodypart"
    ANIMATION = "animatn"
    GESTURE = "gesture"
    MESH = "mesh"
    SETTINGS = "settings"
    MATERIAL = "material"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | AssetType) -> AssetType:
        """Look up a category by value or member name, case-insensitive.

        Raises:
            InvalidAssetError: If no category matches.
        """
        if isinstance(value, AssetType):
            return value
        text = value.strip().lower()
        for member in cls:
            if member.value == text or member.name.lower() == text:
                return member
        raise InvalidAssetError("Unknown asset type", {"value": value})


class OpenMode(IntEnum):
    """Open intent for an accessor session.

    Values keep the legacy bit layout: APPEND and READ_WRITE both carry the
    WRITE bit.
    """

    READ = 0x1
    WRITE = 0x2
    READ_WRITE = 0x3
    APPEND = 0x6

    @classmethod
    def parse(cls, value: str | int | OpenMode) -> OpenMode:
        """Look up a mode by name (``"read_write"``, ``"append"``) or value."""
        if isinstance(value, OpenMode):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidAssetError("Unknown open mode", {"value": value}) from None
        name = value.strip().upper().replace("-", "_")
        try:
            return cls[name]
        except KeyError:
            raise InvalidAssetError("Unknown open mode", {"value": value}) from None

    @property
    def writable(self) -> bool:
        return bool(self & OpenMode.WRITE)


@dataclass(frozen=True)
class AssetId:
    """Content identity: an opaque 128-bit identifier plus its category.

    Immutable; a rename produces a new AssetId bound to the same bytes.
    """

    uuid: UUID
    asset_type: AssetType = AssetType.NONE

    @classmethod
    def parse(cls, uuid_text: str, asset_type: str | AssetType = AssetType.NONE) -> AssetId:
        """Build an AssetId from user input.

        Args:
            uuid_text: Identifier in any form ``uuid.UUID`` accepts.
            asset_type: Category value or name.

        Raises:
            InvalidAssetError: If either part is malformed.
        """
        try:
            uid = UUID(uuid_text.strip())
        except (ValueError, AttributeError):
            raise InvalidAssetError("Malformed asset id", {"value": uuid_text}) from None
        return cls(uuid=uid, asset_type=AssetType.parse(asset_type))

    @property
    def id_string(self) -> str:
        """Canonical lowercase hyphenated rendering of the identifier."""
        return str(self.uuid)

    @property
    def is_null(self) -> bool:
        return self.uuid == NULL_ASSET_UUID

    def with_type(self, asset_type: AssetType) -> AssetId:
        """Return the same identifier under another category."""
        return AssetId(uuid=self.uuid, asset_type=asset_type)

    def __str__(self) -> str:
        return f"{self.id_string}:{self.asset_type.value}"
