#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Tests of the FIP container creation and inspection."""

import os
from pathlib import Path
from struct import unpack_from
from typing import BinaryIO

import pytest

from gxlfip.cblk.amlcblk import AmlControlBlock, AmlControlBlockHeader
from gxlfip.cblk.base import EncryptionStage
from gxlfip.exceptions import (
    GXLFIPEncryptionError,
    GXLFIPError,
    GXLFIPFormatError,
    GXLFIPIOError,
    GXLFIPParsingError,
    GXLFIPVerificationError,
)
from gxlfip.fip.container import FipContainer, create_fip, inspect_container
from gxlfip.fip.format import GXL_FORMAT
from gxlfip.fip.toc import FipImageType
from gxlfip.utils.config import Config
from gxlfip.utils.misc import load_binary
from tests.conftest import ImageFactory, entry_header, image_data

AES_KEY = bytes(range(32))
AES_IV = bytes(range(16))


def _fixed_key() -> AmlControlBlock:
    return AmlControlBlock(aes_key=AES_KEY, aes_iv=AES_IV)


@pytest.fixture
def scratch_dir(tmp_path: Path) -> str:
    path = tmp_path / "tmp"
    path.mkdir()
    return str(path)


def test_three_images(image_factory: ImageFactory, tmp_path: Path, scratch_dir: str) -> None:
    output = str(tmp_path / "u-boot.bin")
    entries = create_fip(
        bl2=image_factory("bl2.bin", 0xC000, fill=0),
        bl30=image_factory("bl30.bin", 0x1000, fill=0x30),
        bl31=image_factory("bl31.bin", 0x2000, fill=0x31),
        bl33=image_factory("bl33.bin", 0x800, fill=0x33),
        output=output,
        tmp_dir=scratch_dir,
    )
    data = load_binary(output)
    assert len(data) == 0xC000 + 0x4000 + 3 * 0x4000
    assert data[:0xC000] == bytes(0xC000)

    header, toc = FipContainer.parse_toc(data)
    assert header.payload_size == GXL_FORMAT.toc_size
    assert toc.entries == entries
    assert [e.offset - GXL_FORMAT.container_base for e in toc.entries] == [0, 0x4000, 0x8000]
    assert [e.size for e in toc.entries] == [0x1000, 0x2000, 0x800]
    assert [e.image_type for e in toc.entries] == [
        FipImageType.BL30,
        FipImageType.BL31,
        FipImageType.BL33,
    ]
    assert toc.entry_point_marker is None
    for entry, fill in zip(toc.entries, [0x30, 0x31, 0x33]):
        start = GXL_FORMAT.primary_size + entry.offset
        assert data[start : start + entry.size] == image_data(entry.size, fill)
    assert not os.listdir(scratch_dir)


def test_entry_point_header(images: dict[str, str], tmp_path: Path, scratch_dir: str) -> None:
    output = str(tmp_path / "u-boot.bin")
    FipContainer(**images, tmp_dir=scratch_dir).build(output)
    _, toc = FipContainer.parse_toc(load_binary(output))
    assert toc.entry_point_marker is not None
    assert toc.entry_point_marker.magic == 0x87654321
    assert toc.entry_point_marker.value == 1
    assert toc.entry_headers == {1: entry_header(b"BL31")}


def test_no_entry_point_header(image_factory: ImageFactory, tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    create_fip(
        bl2=image_factory("bl2.bin", 0x100),
        bl30=image_factory("bl30.bin", 0x1000),
        bl31=image_factory("bl31.bin", 0x1000, entry_header=b"\x66\x87\x34\x12"),
        bl33=image_factory("bl33.bin", 0x1000),
        output=output,
        encryption=_fixed_key(),
    )
    blob = load_binary(output)[GXL_FORMAT.primary_size : GXL_FORMAT.primary_size + 0x4000]
    _, toc_data = AmlControlBlock.decrypt(blob)
    assert toc_data[0x400:0x408] == bytes(8)
    assert toc_data[0x430:0xC00] == bytes(0xC00 - 0x430)
    assert toc_data[0xC00:0xC80] == b"\xff" * 0x80


def test_encrypted_region(images: dict[str, str], tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    FipContainer(**images, encryption=_fixed_key()).build(output)
    data = load_binary(output)
    assert data[: 0xB000] == image_data(0xB000, fill=0x22)
    assert data[0xB000:0xC000] == bytes(0x1000)
    header = AmlControlBlockHeader.parse(data, 0xC000 + 0x3E00)
    assert header.encrypted_size == 0x3E00
    assert header.aes_key == AES_KEY
    assert header.aes_iv == AES_IV
    # TOC is not stored in cleartext
    assert unpack_from("<I", data, 0xC000)[0] != GXL_FORMAT.toc_magic


def test_reproducible_with_fixed_key(images: dict[str, str], tmp_path: Path) -> None:
    first = str(tmp_path / "first.bin")
    second = str(tmp_path / "second.bin")
    FipContainer(**images, encryption=_fixed_key()).build(first)
    FipContainer(**images, encryption=_fixed_key()).build(second)
    assert load_binary(first) == load_binary(second)


def test_random_key(images: dict[str, str], tmp_path: Path) -> None:
    first = str(tmp_path / "first.bin")
    second = str(tmp_path / "second.bin")
    FipContainer(**images).build(first)
    FipContainer(**images).build(second)
    first_data, second_data = load_binary(first), load_binary(second)
    assert first_data[0xC000:0x10000] != second_data[0xC000:0x10000]
    assert first_data[0x10000:] == second_data[0x10000:]


def test_bl32_order(images: dict[str, str], image_factory: ImageFactory, tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    container = FipContainer(**images, bl32=image_factory("bl32.bin", 0x4001, fill=0x32))
    assert [image_type for image_type, _ in container.images] == [
        FipImageType.BL30,
        FipImageType.BL31,
        FipImageType.BL32,
        FipImageType.BL33,
    ]
    entries = container.build(output)
    assert [e.offset for e in entries] == [0x4000, 0x8000, 0xC000, 0x14000]
    assert len(load_binary(output)) == 0xC000 + 0x18000


def test_existing_output_truncated(images: dict[str, str], tmp_path: Path) -> None:
    output = tmp_path / "u-boot.bin"
    output.write_bytes(b"\x5a" * 0x40000)
    FipContainer(**images).build(str(output))
    assert output.stat().st_size == 0x1C000


def test_unwritable_output(images: dict[str, str], tmp_path: Path, scratch_dir: str) -> None:
    output = str(tmp_path / "missing" / "u-boot.bin")
    with pytest.raises(GXLFIPIOError):
        FipContainer(**images, tmp_dir=scratch_dir).build(output)
    assert not os.listdir(scratch_dir)


def test_missing_image(images: dict[str, str], tmp_path: Path, scratch_dir: str) -> None:
    images["bl33"] = str(tmp_path / "missing.bin")
    with pytest.raises(GXLFIPIOError):
        FipContainer(**images, tmp_dir=scratch_dir).build(str(tmp_path / "u-boot.bin"))
    assert not os.listdir(scratch_dir)


def test_bl2_too_big(
    images: dict[str, str], image_factory: ImageFactory, tmp_path: Path, scratch_dir: str
) -> None:
    images["bl2"] = image_factory("big_bl2.bin", 0xC001)
    with pytest.raises(GXLFIPFormatError):
        FipContainer(**images, tmp_dir=scratch_dir).build(str(tmp_path / "u-boot.bin"))
    assert not os.listdir(scratch_dir)


def test_short_image(
    images: dict[str, str], image_factory: ImageFactory, tmp_path: Path, scratch_dir: str
) -> None:
    images["bl30"] = image_factory("short.bin", 0x80)
    with pytest.raises(GXLFIPFormatError):
        FipContainer(**images, tmp_dir=scratch_dir).build(str(tmp_path / "u-boot.bin"))
    assert not os.listdir(scratch_dir)


def test_load_from_config(images: dict[str, str], tmp_path: Path) -> None:
    cfg = Config(
        {
            "bl2": "bl2.bin",
            "bl30": "bl30.bin",
            "bl31": "bl31.bin",
            "bl33": "bl33.bin",
            "output": "u-boot.bin",
            "format": "gxl",
            "aes_key": AES_KEY.hex(),
            "aes_iv": "0x" + AES_IV.hex(),
        }
    )
    cfg.search_paths = [str(tmp_path)]
    cfg.config_dir = str(tmp_path)
    container = FipContainer.load_from_config(cfg)
    assert container.bl31 == images["bl31"].replace("\\", "/")
    assert container.bl32 is None
    assert isinstance(container.encryption, AmlControlBlock)
    assert container.encryption.aes_key == AES_KEY
    assert container.encryption.aes_iv == AES_IV
    assert container.fip_format == GXL_FORMAT


def test_load_from_config_missing_image(images: dict[str, str], tmp_path: Path) -> None:
    cfg = Config({"bl2": "bl2.bin", "bl30": "bl30.bin", "bl31": "bl31.bin", "output": "a.bin"})
    cfg.search_paths = [str(tmp_path)]
    with pytest.raises(GXLFIPError, match="bl33"):
        FipContainer.load_from_config(cfg)


def test_config_template() -> None:
    template = FipContainer.get_config_template()
    for key in ["bl2", "bl30", "bl31", "bl32", "bl33", "output", "aes_key", "aes_iv"]:
        assert f"{key}:" in template


def test_inspect_container(images: dict[str, str], tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    entries = FipContainer(**images, encryption=_fixed_key()).build(output)
    data = load_binary(output)
    info = inspect_container(data)
    assert info.size == len(data)
    assert info.toc.entries == entries
    assert info.get_image_data(data, entries[0]) == image_data(0x1000, fill=0x30)
    nfo = str(info)
    assert "BL30" in nfo
    assert "entry-point header" in nfo


def test_inspect_truncated_container(images: dict[str, str], tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    FipContainer(**images).build(output)
    data = load_binary(output)
    with pytest.raises(GXLFIPParsingError):
        inspect_container(data[:0xF000])


def test_inspect_corrupted_container(images: dict[str, str], tmp_path: Path) -> None:
    output = str(tmp_path / "u-boot.bin")
    FipContainer(**images).build(output)
    data = bytearray(load_binary(output))
    data[0xC000] ^= 0xFF
    with pytest.raises(GXLFIPVerificationError):
        inspect_container(bytes(data))


class FailingEncryption(EncryptionStage):
    """Encryption stage failing after it has been initialized."""

    def __init__(self) -> None:
        self.initialized = False

    def enc_init(self, source: BinaryIO) -> None:
        self.initialized = True

    def enc_encrypt(self, dest: BinaryIO, source: BinaryIO) -> None:
        dest.write(b"partial")
        raise OSError("cipher engine failure")

    def enc_dump_header(self, dest: BinaryIO) -> None:
        raise AssertionError("header dumped after failed encryption")


def test_encryption_failure(images: dict[str, str], tmp_path: Path, scratch_dir: str) -> None:
    encryption = FailingEncryption()
    container = FipContainer(**images, encryption=encryption, tmp_dir=scratch_dir)
    with pytest.raises(GXLFIPEncryptionError, match="cipher engine failure"):
        container.build(str(tmp_path / "u-boot.bin"))
    assert encryption.initialized
    assert not os.listdir(scratch_dir)
