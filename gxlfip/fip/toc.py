#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""FIP table of contents structures.

The TOC consists of a 16 byte header followed by 32 byte entries, one per packed
image. All values are stored little-endian.
"""

from struct import calcsize, pack, unpack_from
from typing import Optional

from typing_extensions import Self

from gxlfip.exceptions import GXLFIPParsingError
from gxlfip.fip.format import FipFormat
from gxlfip.utils.abstract import BaseClass
from gxlfip.utils.ext_enum import ExtEnum


class FipImageType(ExtEnum):
    """Boot images supported by the FIP container."""

    BL2 = (0, "bl2", "First stage bootloader (primary stage)")
    BL30 = (1, "bl30", "System control processor firmware")
    BL31 = (2, "bl31", "EL3 runtime firmware (trusted firmware)")
    BL32 = (3, "bl32", "Secure-EL1 payload (trusted OS)")
    BL33 = (4, "bl33", "Non-trusted firmware (non-trusted bootloader)")


FIP_IMAGE_UUIDS: dict[FipImageType, bytes] = {
    FipImageType.BL2: bytes.fromhex("5ff9ec0b4d223e4da544c39d81c73f0a"),
    FipImageType.BL30: bytes.fromhex("9766fd3d89bee849ae5d78a140608213"),
    FipImageType.BL31: bytes.fromhex("47d4086d4cfe98469b952950cbbd5a00"),
    FipImageType.BL32: bytes.fromhex("05d0e18953dc13478d2b500a4b7a3e38"),
    FipImageType.BL33: bytes.fromhex("d6d0eea7fceed54b97829934f234b6e4"),
}


def get_image_type(uuid: bytes) -> Optional[FipImageType]:
    """Get image type of the UUID.

    :param uuid: 16 byte UUID from TOC entry.
    :return: Image type or None for unknown UUID.
    """
    for image_type, image_uuid in FIP_IMAGE_UUIDS.items():
        if image_uuid == uuid:
            return image_type
    return None


class TocHeader(BaseClass):
    """FIP TOC header: magic, vendor serial number and reserved flags."""

    FORMAT = "<IIQ"
    SIZE = calcsize(FORMAT)

    def __init__(self, name: int, serial_number: int, flags: int = 0) -> None:
        """Constructor.

        :param name: FIP magic
        :param serial_number: Vendor specific number
        :param flags: Flags, reserved for later use
        """
        self.name = name
        self.serial_number = serial_number
        self.flags = flags

    @classmethod
    def for_format(cls, fip_format: FipFormat) -> Self:
        """Create the header of given container format."""
        return cls(fip_format.toc_magic, fip_format.toc_serial)

    def __repr__(self) -> str:
        return f"TocHeader(0x{self.name:08X}, 0x{self.serial_number:08X}, {self.flags})"

    def __str__(self) -> str:
        return (
            f"TOC Header <NAME:0x{self.name:08X}, SERIAL:0x{self.serial_number:08X}, "
            f"FLAGS:0x{self.flags:X}>"
        )

    def export(self) -> bytes:
        """Binary representation of the header."""
        return pack(self.FORMAT, self.name, self.serial_number, self.flags)

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse header.

        :param data: Raw data as bytes or bytearray
        :param offset: Offset of input data
        :raises GXLFIPParsingError: Not enough data
        :return: TocHeader object
        """
        if len(data) < offset + cls.SIZE:
            raise GXLFIPParsingError(f"Not enough data to parse TOC header: {len(data)} bytes")
        return cls(*unpack_from(cls.FORMAT, data, offset))


class TocEntry(BaseClass):
    """FIP TOC entry describing one packed image."""

    FORMAT = "<16sQQQ"
    SIZE = calcsize(FORMAT)

    def __init__(self, uuid: bytes, offset: int, size: int, flags: int = 0) -> None:
        """Constructor.

        :param uuid: UUID of the image entry
        :param offset: Offset of the image from the FIP base address
        :param size: Size of the image
        :param flags: Flags for the image, unused
        """
        self.uuid = uuid
        self.offset = offset
        self.size = size
        self.flags = flags

    @classmethod
    def for_image(cls, image_type: FipImageType, offset: int, size: int) -> Self:
        """Create the entry of given image type."""
        return cls(FIP_IMAGE_UUIDS[image_type], offset, size)

    @property
    def image_type(self) -> Optional[FipImageType]:
        """Image type of the entry, None for an unknown UUID."""
        return get_image_type(self.uuid)

    def __repr__(self) -> str:
        return f"TocEntry({self.uuid.hex()}, 0x{self.offset:X}, 0x{self.size:X}, {self.flags})"

    def __str__(self) -> str:
        image_type = self.image_type
        name = image_type.label.upper() if image_type else f"UNKNOWN({self.uuid.hex()})"
        return f"{name:<6} offset: 0x{self.offset:08X}, size: 0x{self.size:08X}"

    def export(self) -> bytes:
        """Binary representation of the entry."""
        return pack(self.FORMAT, self.uuid, self.offset, self.size, self.flags)

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse entry.

        :param data: Raw data as bytes or bytearray
        :param offset: Offset of input data
        :raises GXLFIPParsingError: Not enough data
        :return: TocEntry object
        """
        if len(data) < offset + cls.SIZE:
            raise GXLFIPParsingError(f"Not enough data to parse TOC entry at 0x{offset:X}")
        return cls(*unpack_from(cls.FORMAT, data, offset))

    @staticmethod
    def slot_offset(index: int) -> int:
        """Get scratch offset of the TOC entry slot `index`."""
        return TocHeader.SIZE + index * TocEntry.SIZE


class EntryPointMarker(BaseClass):
    """Entry-point marker announcing an image with entry-point header."""

    FORMAT = "<II"
    SIZE = calcsize(FORMAT)

    def __init__(self, magic: int, value: int) -> None:
        self.magic = magic
        self.value = value

    @classmethod
    def for_format(cls, fip_format: FipFormat) -> Self:
        """Create the marker of given container format."""
        return cls(fip_format.entry_marker_magic, fip_format.entry_marker_value)

    def __repr__(self) -> str:
        return f"EntryPointMarker(0x{self.magic:08X}, {self.value})"

    def __str__(self) -> str:
        return f"Entry-point marker <MAGIC:0x{self.magic:08X}, VALUE:{self.value}>"

    def export(self) -> bytes:
        """Binary representation of the marker."""
        return pack(self.FORMAT, self.magic, self.value)

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse marker.

        :param data: Raw data as bytes or bytearray
        :param offset: Offset of input data
        :return: EntryPointMarker object
        """
        return cls(*unpack_from(cls.FORMAT, data, offset))


def max_toc_entries(fip_format: FipFormat) -> int:
    """Get number of TOC entry slots that fit in front of the entry-point marker.

    :param fip_format: Container format.
    :return: Maximal number of TOC entries.
    """
    return (fip_format.entry_marker_offset - TocHeader.SIZE) // TocEntry.SIZE


class Toc:
    """Parsed content of the TOC scratch region."""

    def __init__(
        self,
        header: TocHeader,
        entries: list[TocEntry],
        entry_point_marker: Optional[EntryPointMarker] = None,
        entry_headers: Optional[dict[int, bytes]] = None,
    ) -> None:
        """Constructor.

        :param header: TOC header
        :param entries: Used TOC entries
        :param entry_point_marker: Entry-point marker if present
        :param entry_headers: Entry-point header slices indexed by TOC entry index
        """
        self.header = header
        self.entries = entries
        self.entry_point_marker = entry_point_marker
        self.entry_headers = entry_headers or {}

    def __str__(self) -> str:
        nfo = f"{self.header}\n"
        for index, entry in enumerate(self.entries):
            nfo += f" [{index}] {entry}"
            if index in self.entry_headers:
                nfo += " (entry-point header)"
            nfo += "\n"
        if self.entry_point_marker:
            nfo += f"{self.entry_point_marker}\n"
        return nfo

    @classmethod
    def parse(cls, data: bytes, fip_format: FipFormat) -> Self:
        """Parse TOC scratch region.

        Entries are read until the first empty (all zeros or all ones) slot.

        :param data: TOC scratch content.
        :param fip_format: Container format.
        :raises GXLFIPParsingError: Invalid TOC magic or truncated data.
        :return: Parsed TOC.
        """
        if len(data) < fip_format.toc_size:
            raise GXLFIPParsingError(
                f"Not enough TOC data: {len(data)} bytes, expected 0x{fip_format.toc_size:X}"
            )
        header = TocHeader.parse(data)
        if header.name != fip_format.toc_magic:
            raise GXLFIPParsingError(
                f"Invalid TOC magic: 0x{header.name:08X}, expected 0x{fip_format.toc_magic:08X}"
            )

        entries = []
        for index in range(max_toc_entries(fip_format)):
            raw = data[TocEntry.slot_offset(index) : TocEntry.slot_offset(index + 1)]
            if raw in (bytes(TocEntry.SIZE), b"\xff" * TocEntry.SIZE):
                break
            entries.append(TocEntry.parse(raw))

        marker = EntryPointMarker.parse(data, fip_format.entry_marker_offset)
        entry_headers = {}
        if marker.magic == fip_format.entry_marker_magic:
            for index in range(len(entries)):
                slot = fip_format.entry_header_slot(index)
                if slot + fip_format.entry_header_size > fip_format.terminator_offset:
                    break
                chunk = data[slot : slot + fip_format.entry_header_size]
                if unpack_from("<I", chunk)[0] == fip_format.entry_header_magic:
                    entry_headers[index] = chunk
        return cls(
            header=header,
            entries=entries,
            entry_point_marker=(
                marker if marker.magic == fip_format.entry_marker_magic else None
            ),
            entry_headers=entry_headers,
        )
