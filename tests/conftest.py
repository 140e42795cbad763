#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2020-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP pytest configuration and shared test fixtures."""

import os
from pathlib import Path
from struct import pack
from typing import Callable, Optional

import pytest

from tests.cli_runner import CliRunner

os.environ["GXLFIP_DEBUG_LOGGING_DISABLED"] = "True"

ENTRY_HEADER_MAGIC = 0x12348765

ImageFactory = Callable[..., str]


def image_data(size: int, fill: int = 0xA5, entry_header: Optional[bytes] = None) -> bytes:
    """Create image content, optionally carrying an entry-point header at offset 256.

    :param size: Size of the image.
    :param fill: Fill byte of the image body.
    :param entry_header: Header placed at offset 256, truncated to the image size.
    :return: Image data.
    """
    data = bytearray([fill] * size)
    if entry_header is not None:
        end = min(256 + len(entry_header), size)
        data[256:end] = entry_header[: end - 256]
    return bytes(data)


def entry_header(payload: bytes = b"") -> bytes:
    """Create 80 byte entry-point header starting with the magic."""
    header = pack("<I", ENTRY_HEADER_MAGIC) + payload
    return header + bytes(0x50 - len(header))


@pytest.fixture
def cli_runner() -> CliRunner:
    """Get CLI runner instance for testing."""
    return CliRunner()


@pytest.fixture
def image_factory(tmp_path: Path) -> ImageFactory:
    """Factory writing image files into the test temporary directory.

    :return: Callable (name, size, fill=0xA5, entry_header=None) -> path.
    """

    def create(
        name: str, size: int, fill: int = 0xA5, entry_header: Optional[bytes] = None
    ) -> str:
        path = os.path.join(tmp_path, name)
        with open(path, "wb") as f:
            f.write(image_data(size, fill, entry_header))
        return path

    return create


@pytest.fixture
def images(image_factory: ImageFactory) -> dict[str, str]:
    """Set of bootloader images, BL31 carries the entry-point header."""
    return {
        "bl2": image_factory("bl2.bin", 0xB000, fill=0x22),
        "bl30": image_factory("bl30.bin", 0x1000, fill=0x30),
        "bl31": image_factory("bl31.bin", 0x2000, fill=0x31, entry_header=entry_header(b"BL31")),
        "bl33": image_factory("bl33.bin", 0x800, fill=0x33),
    }
