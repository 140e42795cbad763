#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Layout constants of the FIP container formats.

All sizes, offsets and magic values of a container format are kept together in one
`FipFormat` record. The builder and the orchestrator never use inline literals, so
a new format variant is only a new entry of `FIP_FORMATS`.
"""

from dataclasses import dataclass

from gxlfip.exceptions import GXLFIPKeyError


@dataclass(frozen=True)
class FipFormat:
    """Fixed layout of one FIP container format version."""

    name: str
    #: TOC header magic ("name" field)
    toc_magic: int
    #: vendor specific serial number stored in the TOC header
    toc_serial: int
    #: reserved region of the primary stage (BL2) at the start of the container
    primary_size: int
    #: size of the whole encrypted region (TOC scratch + control block header)
    fip_size: int
    #: size of the control block header appended by the encryption stage
    cblk_header_size: int
    #: payload alignment of secondary images
    alignment: int
    #: offset and size of the all-ones run marking the end of the TOC entries
    terminator_offset: int
    terminator_size: int
    #: entry-point header detection inside the images
    entry_probe_offset: int
    entry_header_size: int
    entry_header_magic: int
    #: entry-point marker written into the scratch when the magic matches
    entry_marker_offset: int
    entry_marker_magic: int
    entry_marker_value: int
    #: base of the entry indexed slots holding the copied entry-point headers
    entry_header_slot_base: int

    @property
    def toc_size(self) -> int:
        """Size of the TOC scratch region handed to the encryption stage."""
        return self.fip_size - self.cblk_header_size

    @property
    def container_base(self) -> int:
        """Offset of the first secondary payload relative to the container base."""
        return self.fip_size

    def entry_header_slot(self, index: int) -> int:
        """Get scratch offset of the entry-point header slot for TOC entry `index`.

        :param index: Index of the TOC entry.
        :return: Absolute offset in the TOC scratch.
        """
        return self.entry_header_slot_base + self.entry_header_size * index


GXL_FORMAT = FipFormat(
    name="gxl",
    toc_magic=0xAA640001,
    toc_serial=0x12345678,
    primary_size=0xC000,
    fip_size=0x4000,
    cblk_header_size=0x200,
    alignment=0x4000,
    terminator_offset=0xC00,
    terminator_size=0x80,
    entry_probe_offset=256,
    entry_header_size=0x50,
    entry_header_magic=0x12348765,
    entry_marker_offset=0x400,
    entry_marker_magic=0x87654321,
    entry_marker_value=1,
    entry_header_slot_base=0x430,
)

FIP_FORMATS = {GXL_FORMAT.name: GXL_FORMAT}
DEFAULT_FIP_FORMAT = GXL_FORMAT.name


def get_fip_format(name: str) -> FipFormat:
    """Get container format by its name.

    :param name: Name of the format, e.g. "gxl".
    :raises GXLFIPKeyError: Unknown format.
    :return: Format record.
    """
    try:
        return FIP_FORMATS[name.lower()]
    except KeyError as exc:
        raise GXLFIPKeyError(
            f"Unknown FIP format '{name}', supported: {', '.join(FIP_FORMATS)}"
        ) from exc
