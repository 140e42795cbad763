#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""FIP container creation and inspection.

Layout of the created container::

    0x0000                  BL2 verbatim, region of `primary_size` bytes
    primary_size            encrypted TOC followed by the control block header
    primary_size + offset   secondary images, each aligned to `alignment`
"""

import logging
import os
import tempfile
from contextlib import ExitStack
from typing import Any, BinaryIO, Optional

from typing_extensions import Self

from gxlfip.cblk.amlcblk import AES_KEY_SIZE, AmlControlBlock, AmlControlBlockHeader
from gxlfip.cblk.base import EncryptionStage
from gxlfip.crypto.symmetric import AES_BLOCK_SIZE
from gxlfip.exceptions import (
    GXLFIPEncryptionError,
    GXLFIPError,
    GXLFIPFormatError,
    GXLFIPIOError,
    GXLFIPParsingError,
)
from gxlfip.fip.builder import FipBuilder
from gxlfip.fip.format import DEFAULT_FIP_FORMAT, GXL_FORMAT, FipFormat, get_fip_format
from gxlfip.fip.toc import FipImageType, Toc, TocEntry
from gxlfip.utils.blockio import copy_stream
from gxlfip.utils.config import Config
from gxlfip.utils.database import get_schema_file
from gxlfip.utils.misc import size_fmt
from gxlfip.utils.schema_validator import CommentedConfig

logger = logging.getLogger(__name__)


def _open(path: str, mode: str) -> BinaryIO:
    try:
        return open(path, mode)  # pylint: disable=unspecified-encoding
    except OSError as exc:
        raise GXLFIPIOError(f"Cannot open {path}: {str(exc)}") from exc


def _remove(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)
        logger.debug(f"Removed temporary file {path}")


class FipContainer:
    """FIP container orchestrator.

    Splices the primary stage, the encrypted TOC and the secondary images into one
    output file. Images are added in the fixed order BL30, BL31, BL32 (if any), BL33.
    """

    ENC_TEMP_PREFIX = "fip.enc."

    def __init__(
        self,
        bl2: str,
        bl30: str,
        bl31: str,
        bl33: str,
        bl32: Optional[str] = None,
        encryption: Optional[EncryptionStage] = None,
        fip_format: FipFormat = GXL_FORMAT,
        tmp_dir: Optional[str] = None,
    ) -> None:
        """Constructor.

        :param bl2: Path to the primary stage image.
        :param bl30: Path to the BL30 image.
        :param bl31: Path to the BL31 image.
        :param bl33: Path to the BL33 image.
        :param bl32: Optional path to the BL32 image.
        :param encryption: Encryption stage of the TOC, random key control block by default.
        :param fip_format: Layout of the created container.
        :param tmp_dir: Directory for temporary files, system temporary directory by default.
        """
        self.bl2 = bl2
        self.bl30 = bl30
        self.bl31 = bl31
        self.bl32 = bl32
        self.bl33 = bl33
        self.encryption = encryption or AmlControlBlock()
        self.fip_format = fip_format
        self.tmp_dir = tmp_dir

    def __repr__(self) -> str:
        return f"FipContainer({self.fip_format.name}, {len(self.images)} secondary images)"

    @property
    def images(self) -> list[tuple[FipImageType, str]]:
        """Secondary images in the order of adding into the container."""
        images = [(FipImageType.BL30, self.bl30), (FipImageType.BL31, self.bl31)]
        if self.bl32:
            images.append((FipImageType.BL32, self.bl32))
        images.append((FipImageType.BL33, self.bl33))
        return images

    def _create_temp(self, stack: ExitStack) -> BinaryIO:
        try:
            fd, path = tempfile.mkstemp(prefix=self.ENC_TEMP_PREFIX, dir=self.tmp_dir)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot create fip encryption temp: {str(exc)}") from exc
        stack.callback(_remove, path)
        logger.debug(f"Created FIP encryption scratch {path}")
        try:
            temp = os.fdopen(fd, "w+b")
        except OSError as exc:
            os.close(fd)
            raise GXLFIPIOError(f"Cannot open fip encryption temp: {str(exc)}") from exc
        return stack.enter_context(temp)

    def _encrypt_toc(self, builder: FipBuilder, dest: BinaryIO) -> int:
        try:
            self.encryption.enc_init(builder.scratch)
            self.encryption.enc_encrypt(dest, builder.scratch)
            self.encryption.enc_dump_header(dest)
        except GXLFIPError:
            raise
        except (OSError, ValueError) as exc:
            raise GXLFIPEncryptionError(f"TOC encryption failed: {str(exc)}") from exc
        try:
            size = dest.seek(0, os.SEEK_END)
            dest.seek(0)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot get size of encrypted TOC: {str(exc)}") from exc
        if size > self.fip_format.fip_size:
            raise GXLFIPFormatError(
                f"Encrypted TOC size 0x{size:X} exceeds "
                f"the FIP region 0x{self.fip_format.fip_size:X}"
            )
        return size

    def build(self, output: str) -> list[TocEntry]:
        """Create the FIP container.

        All temporary files are removed on every exit path, the content of the output
        is unspecified when the build fails.

        :param output: Path of the created container, truncated if it exists.
        :raises GXLFIPFormatError: Images don't fit into the container layout.
        :raises GXLFIPIOError: Any read, write or seek fails.
        :raises GXLFIPEncryptionError: The encryption stage fails.
        :return: TOC entries of the secondary images.
        """
        fmt = self.fip_format
        with ExitStack() as stack:
            builder = stack.enter_context(FipBuilder(fmt, self.tmp_dir))
            out = stack.enter_context(_open(output, "w+b"))

            with _open(self.bl2, "rb") as bl2:
                bl2_size = copy_stream(bl2, out, 0)
            if bl2_size > fmt.primary_size:
                raise GXLFIPFormatError(
                    f"BL2 image size 0x{bl2_size:X} exceeds "
                    f"the primary region 0x{fmt.primary_size:X}"
                )
            logger.debug(f"BL2 copied, size: {size_fmt(bl2_size)}")

            entries = []
            for image_type, path in self.images:
                with _open(path, "rb") as image:
                    entries.append(builder.add_image(image_type, image, out))

            enc = self._create_temp(stack)
            enc_size = self._encrypt_toc(builder, enc)
            copy_stream(enc, out, fmt.primary_size)
            logger.debug(f"Encrypted TOC copied, size: {size_fmt(enc_size)}")

            # zero padding up to the aligned end of the last payload
            try:
                out.truncate(fmt.primary_size + builder.current_offset)
            except OSError as exc:
                raise GXLFIPIOError(f"Cannot pad FIP container: {str(exc)}") from exc

        logger.info(f"FIP container created: {output}")
        return entries

    @staticmethod
    def get_validation_schemas() -> list[dict[str, Any]]:
        """Get list of validation schemas of the container configuration."""
        sch = get_schema_file("fip")
        return [sch["fip_images"], sch["fip_output"], sch["fip_encryption"]]

    @classmethod
    def get_config_template(cls) -> str:
        """Get configuration template as commented YAML."""
        schemas = cls.get_validation_schemas()
        return CommentedConfig("FIP container configuration", schemas).get_template()

    @classmethod
    def load_from_config(cls, config: Config, tmp_dir: Optional[str] = None) -> Self:
        """Create the container from the configuration.

        :param config: Container configuration.
        :param tmp_dir: Directory for temporary files.
        :return: FIP container ready to be built.
        """
        config.check(cls.get_validation_schemas(), check_unknown_props=True)
        aes_key = aes_iv = None
        if "aes_key" in config:
            aes_key = config.load_symmetric_key("aes_key", AES_KEY_SIZE, name="AES key")
        if "aes_iv" in config:
            aes_iv = config.load_symmetric_key("aes_iv", AES_BLOCK_SIZE, name="AES IV")
        return cls(
            bl2=config.get_input_file_name("bl2"),
            bl30=config.get_input_file_name("bl30"),
            bl31=config.get_input_file_name("bl31"),
            bl32=config.get_input_file_name("bl32") if config.get("bl32") else None,
            bl33=config.get_input_file_name("bl33"),
            encryption=AmlControlBlock(aes_key=aes_key, aes_iv=aes_iv),
            fip_format=get_fip_format(config.get_str("format", DEFAULT_FIP_FORMAT)),
            tmp_dir=tmp_dir,
        )

    @staticmethod
    def parse_toc(
        data: bytes, fip_format: FipFormat = GXL_FORMAT
    ) -> tuple[AmlControlBlockHeader, Toc]:
        """Decrypt and parse the TOC of the container.

        :param data: Whole container data.
        :param fip_format: Layout of the container.
        :raises GXLFIPParsingError: The container is too short or its TOC is invalid.
        :return: Control block header and parsed TOC.
        """
        end = fip_format.primary_size + fip_format.fip_size
        if len(data) < end:
            raise GXLFIPParsingError(
                f"Container is too short: 0x{len(data):X} bytes, the TOC ends at 0x{end:X}"
            )
        header, toc_data = AmlControlBlock.decrypt(data[fip_format.primary_size : end])
        return header, Toc.parse(toc_data, fip_format)


def create_fip(
    bl2: str,
    bl30: str,
    bl31: str,
    bl33: str,
    output: str,
    bl32: Optional[str] = None,
    encryption: Optional[EncryptionStage] = None,
    fip_format: FipFormat = GXL_FORMAT,
    tmp_dir: Optional[str] = None,
) -> list[TocEntry]:
    """Create the FIP container from bootloader images.

    :param bl2: Path to the primary stage image.
    :param bl30: Path to the BL30 image.
    :param bl31: Path to the BL31 image.
    :param bl33: Path to the BL33 image.
    :param output: Path of the created container.
    :param bl32: Optional path to the BL32 image.
    :param encryption: Encryption stage of the TOC.
    :param fip_format: Layout of the created container.
    :param tmp_dir: Directory for temporary files.
    :return: TOC entries of the secondary images.
    """
    container = FipContainer(
        bl2=bl2,
        bl30=bl30,
        bl31=bl31,
        bl32=bl32,
        bl33=bl33,
        encryption=encryption,
        fip_format=fip_format,
        tmp_dir=tmp_dir,
    )
    return container.build(output)


class FipContainerInfo:
    """Summary of a built FIP container."""

    def __init__(
        self, fip_format: FipFormat, size: int, cblk_header: AmlControlBlockHeader, toc: Toc
    ) -> None:
        self.fip_format = fip_format
        self.size = size
        self.cblk_header = cblk_header
        self.toc = toc

    def __repr__(self) -> str:
        return f"FipContainerInfo({self.fip_format.name}, {len(self.toc.entries)} entries)"

    def __str__(self) -> str:
        nfo = f"FIP container ({self.fip_format.name}), size: {size_fmt(self.size)}\n"
        nfo += f"Control block at 0x{self.fip_format.primary_size:X}:\n"
        nfo += str(self.cblk_header)
        nfo += str(self.toc)
        return nfo

    def get_image_data(self, data: bytes, entry: TocEntry) -> bytes:
        """Get the payload of the TOC entry from the container data."""
        start = self.fip_format.primary_size + entry.offset
        return data[start : start + entry.size]


def inspect_container(data: bytes, fip_format: FipFormat = GXL_FORMAT) -> FipContainerInfo:
    """Read back the TOC of a built FIP container.

    :param data: Whole container data.
    :param fip_format: Layout of the container.
    :return: Container summary.
    """
    header, toc = FipContainer.parse_toc(data, fip_format)
    for entry in toc.entries:
        if fip_format.primary_size + entry.offset + entry.size > len(data):
            logger.warning(f"TOC entry exceeds the container data: {entry}")
    return FipContainerInfo(fip_format=fip_format, size=len(data), cblk_header=header, toc=toc)
