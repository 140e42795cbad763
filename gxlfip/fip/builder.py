#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""FIP table of contents builder.

The builder keeps the in-progress TOC in a temporary scratch file. Every added image
gets one TOC entry, its payload is copied straight into the final output, and the
entry-point header of an image carrying one is patched into the scratch.
"""

import logging
import os
import tempfile
from struct import unpack_from
from types import TracebackType
from typing import BinaryIO, Optional, Type

from gxlfip.exceptions import GXLFIPError, GXLFIPFormatError, GXLFIPIOError
from gxlfip.fip.format import GXL_FORMAT, FipFormat
from gxlfip.fip.toc import (
    EntryPointMarker,
    FipImageType,
    Toc,
    TocEntry,
    TocHeader,
    max_toc_entries,
)
from gxlfip.utils.blockio import copy_stream, read_full, write_full
from gxlfip.utils.misc import align, extend_block

logger = logging.getLogger(__name__)


def _seek(stream: BinaryIO, offset: int, whence: int = os.SEEK_SET) -> int:
    try:
        return stream.seek(offset, whence)
    except OSError as exc:
        raise GXLFIPIOError(f"Cannot seek to 0x{offset:X}: {str(exc)}") from exc


class FipBuilder:
    """FIP TOC builder owning the temporary TOC scratch file.

    The builder is used as a context manager, the scratch file is created on enter
    and removed on exit regardless of the result:

    .. code-block:: python

        with FipBuilder() as fip, open("u-boot.bin", "w+b") as output:
            fip.add_image(FipImageType.BL30, bl30, output)
    """

    TEMP_PREFIX = "fip.bin."

    def __init__(self, fip_format: FipFormat = GXL_FORMAT, tmp_dir: Optional[str] = None) -> None:
        """Constructor.

        :param fip_format: Layout of the created container.
        :param tmp_dir: Directory for the scratch file, system temporary directory by default.
        """
        self.fip_format = fip_format
        self.tmp_dir = tmp_dir
        self.current_offset = fip_format.container_base
        self.entry_count = 0
        self.path: Optional[str] = None
        self._scratch: Optional[BinaryIO] = None

    def __repr__(self) -> str:
        return f"FipBuilder({self.fip_format.name}, entries: {self.entry_count})"

    def __enter__(self) -> "FipBuilder":
        self.init()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]] = None,
        exc_val: Optional[BaseException] = None,
        exc_tb: Optional[TracebackType] = None,
    ) -> None:
        self.cleanup()

    @property
    def scratch(self) -> BinaryIO:
        """Opened TOC scratch stream."""
        if self._scratch is None:
            raise GXLFIPError("FIP builder is not initialized")
        return self._scratch

    @property
    def max_entries(self) -> int:
        """Number of TOC entry slots of the format."""
        return max_toc_entries(self.fip_format)

    def init(self) -> None:
        """Create the scratch file with the TOC header and the end of TOC marker.

        :raises GXLFIPIOError: The scratch file cannot be created or written.
        """
        if self._scratch is not None:
            raise GXLFIPError("FIP builder is already initialized")
        fmt = self.fip_format
        try:
            fd, self.path = tempfile.mkstemp(prefix=self.TEMP_PREFIX, dir=self.tmp_dir)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot create fip temp: {str(exc)}") from exc
        logger.debug(f"Created FIP TOC scratch {self.path}")

        try:
            try:
                self._scratch = os.fdopen(fd, "w+b")
            except OSError as exc:
                os.close(fd)
                raise GXLFIPIOError(f"Cannot open fip temp: {str(exc)}") from exc
            try:
                self._scratch.truncate(fmt.toc_size)
            except OSError as exc:
                raise GXLFIPIOError(f"Cannot truncate fip toc header: {str(exc)}") from exc
            _seek(self._scratch, 0)
            write_full(self._scratch, TocHeader.for_format(fmt).export())
            # End of toc entry
            _seek(self._scratch, fmt.terminator_offset)
            write_full(self._scratch, b"\xff" * fmt.terminator_size)
        except GXLFIPError:
            self.cleanup()
            raise

        self.current_offset = fmt.container_base
        self.entry_count = 0

    def cleanup(self) -> None:
        """Close and remove the scratch file, safe to call repeatedly."""
        if self._scratch is not None:
            self._scratch.close()
            self._scratch = None
        if self.path is not None:
            if os.path.exists(self.path):
                os.remove(self.path)
                logger.debug(f"Removed FIP TOC scratch {self.path}")
            self.path = None

    def add_image(self, image_type: FipImageType, image: BinaryIO, output: BinaryIO) -> TocEntry:
        """Add a bootloader image in the boot image.

        Writes the TOC entry, patches the entry-point header when the image carries one
        and copies the image into the output behind the primary stage region.

        :param image_type: Type of bootloader image
        :param image: Bootloader image to add
        :param output: Final boot image file
        :raises GXLFIPFormatError: No free TOC slot or the image is too short.
        :raises GXLFIPIOError: Any read, write or seek fails.
        :return: Written TOC entry.
        """
        fmt = self.fip_format
        scratch = self.scratch
        if self.entry_count >= self.max_entries:
            raise GXLFIPFormatError(
                f"No free TOC entry for {image_type.label}, maximum is {self.max_entries}"
            )

        size = _seek(image, 0, os.SEEK_END)
        entry = TocEntry.for_image(image_type, self.current_offset, size)
        logger.debug(f"Adding {image_type.label}: {entry}")

        _seek(scratch, TocEntry.slot_offset(self.entry_count))
        write_full(scratch, entry.export())

        _seek(image, fmt.entry_probe_offset)
        header = read_full(image, fmt.entry_header_size)
        if not header:
            raise GXLFIPFormatError(
                f"Cannot read {image_type.label} image entry header, "
                f"image size {size} B is not above 0x{fmt.entry_probe_offset:X}"
            )
        if len(header) >= 4 and unpack_from("<I", header)[0] == fmt.entry_header_magic:
            self._write_entry_header(image_type, header)

        _seek(image, 0)
        copy_stream(image, output, fmt.primary_size + entry.offset)

        self.current_offset += align(size, fmt.alignment)
        self.entry_count += 1
        return entry

    def _write_entry_header(self, image_type: FipImageType, header: bytes) -> None:
        fmt = self.fip_format
        slot = fmt.entry_header_slot(self.entry_count)
        if slot + fmt.entry_header_size > fmt.terminator_offset:
            raise GXLFIPFormatError(
                f"Entry-point header slot of TOC entry {self.entry_count} "
                "overlaps the end of TOC marker"
            )
        if len(header) < fmt.entry_header_size:
            logger.warning(
                f"{image_type.label} entry-point header is truncated to {len(header)} bytes"
            )
        logger.debug(f"{image_type.label} has entry-point header, TOC slot at 0x{slot:X}")
        _seek(self.scratch, fmt.entry_marker_offset)
        write_full(self.scratch, EntryPointMarker.for_format(fmt).export())
        _seek(self.scratch, slot)
        write_full(self.scratch, extend_block(header, fmt.entry_header_size))

    def get_toc(self) -> Toc:
        """Parse the current content of the scratch file.

        :return: Table of contents.
        """
        _seek(self.scratch, 0)
        return Toc.parse(read_full(self.scratch, self.fip_format.toc_size), self.fip_format)
