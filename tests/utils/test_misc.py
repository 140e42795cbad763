#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause
"""Tests of the miscellaneous utilities."""

import os
from pathlib import Path

import pytest

from gxlfip.exceptions import GXLFIPError, GXLFIPValueError
from gxlfip.utils.misc import (
    align,
    extend_block,
    find_file,
    get_printable_path,
    load_binary,
    load_configuration,
    load_hex_string,
    load_text,
    size_fmt,
    value_to_int,
    wrap_text,
    write_file,
)


@pytest.mark.parametrize(
    "num,alignment,result",
    [(0, 0x4000, 0), (1, 0x4000, 0x4000), (0x4000, 0x4000, 0x4000), (0x4001, 0x4000, 0x8000)],
)
def test_align(num: int, alignment: int, result: int) -> None:
    assert align(num, alignment) == result


@pytest.mark.parametrize("num,alignment", [(-1, 4), (1, 0)])
def test_align_invalid(num: int, alignment: int) -> None:
    with pytest.raises(GXLFIPError):
        align(num, alignment)


def test_extend_block() -> None:
    assert extend_block(b"\x01", 4) == b"\x01\x00\x00\x00"
    assert extend_block(b"\x01", 3, padding=0xFF) == b"\x01\xff\xff"
    assert extend_block(b"\x01\x02", 2) == b"\x01\x02"
    with pytest.raises(GXLFIPError):
        extend_block(b"\x01\x02", 1)


@pytest.mark.parametrize(
    "value,result",
    [(5, 5), ("10", 10), ("0x10", 16), ("0b101", 5), ("0o17", 15), (b"\x01\x00", 256)],
)
def test_value_to_int(value, result: int) -> None:
    assert value_to_int(value) == result


def test_value_to_int_invalid() -> None:
    assert value_to_int("bl2", 7) == 7
    with pytest.raises(GXLFIPError):
        value_to_int("bl2")


@pytest.mark.parametrize(
    "num,result",
    [(0, "0 B"), (1023, "1023 B"), (1024, "1.0 kiB"), (0x1C000, "112.0 kiB")],
)
def test_size_fmt(num: int, result: str) -> None:
    assert size_fmt(num) == result


def test_size_fmt_decimal() -> None:
    assert size_fmt(1500, use_kibibyte=False) == "1.5 kB"


def test_write_and_load(tmp_path: Path) -> None:
    path = os.path.join(tmp_path, "sub", "data.bin")
    assert write_file(b"\x00\x01", path, mode="wb") == 2
    assert load_binary(path) == b"\x00\x01"
    assert load_binary("data.bin", search_paths=[os.path.join(tmp_path, "sub")]) == b"\x00\x01"
    write_file("text", path)
    assert load_text(path) == "text"


def test_find_path(tmp_path: Path) -> None:
    (tmp_path / "dir").mkdir()
    (tmp_path / "dir" / "file.txt").write_text("x")
    found = find_file("file.txt", search_paths=[str(tmp_path / "missing"), str(tmp_path / "dir")])
    assert found == str(tmp_path / "dir" / "file.txt").replace("\\", "/")
    assert find_file("nothing.txt", search_paths=[str(tmp_path)], raise_exc=False) == ""
    with pytest.raises(GXLFIPError, match="not found"):
        find_file("nothing.txt", search_paths=[str(tmp_path)])
    with pytest.raises(GXLFIPError, match="not found"):
        find_file(str(tmp_path / "nothing.txt"))


def test_load_hex_string(tmp_path: Path) -> None:
    (tmp_path / "key.txt").write_text("00112233\n")
    (tmp_path / "key.bin").write_bytes(b"\xff\xfe\xfd\xfc")
    assert load_hex_string("0x00112233", 4) == bytes.fromhex("00112233")
    assert load_hex_string("key.txt", 4, search_paths=[str(tmp_path)]) == bytes.fromhex("00112233")
    assert load_hex_string("key.bin", 4, search_paths=[str(tmp_path)]) == b"\xff\xfe\xfd\xfc"
    assert load_hex_string(b"\x01\x02", 2) == b"\x01\x02"
    assert len(load_hex_string(None, 16)) == 16
    with pytest.raises(GXLFIPValueError, match="size"):
        load_hex_string("0011", 4)
    with pytest.raises(GXLFIPValueError, match="Invalid"):
        load_hex_string("not hex", 4)


def test_load_configuration(tmp_path: Path) -> None:
    (tmp_path / "cfg.json").write_text('{"bl2": "bl2.bin"}')
    (tmp_path / "cfg.yaml").write_text("bl2: bl2.bin\nformat: gxl\n")
    (tmp_path / "list.yaml").write_text("- bl2.bin\n")
    (tmp_path / "empty.yaml").write_text("")
    assert load_configuration(str(tmp_path / "cfg.json")) == {"bl2": "bl2.bin"}
    assert load_configuration(str(tmp_path / "cfg.yaml")) == {"bl2": "bl2.bin", "format": "gxl"}
    with pytest.raises(GXLFIPError, match="Invalid configuration"):
        load_configuration(str(tmp_path / "list.yaml"))
    with pytest.raises(GXLFIPError, match="Can't parse"):
        load_configuration(str(tmp_path / "empty.yaml"))
    with pytest.raises(GXLFIPError, match="Can't load"):
        load_configuration(str(tmp_path / "missing.yaml"))


def test_get_printable_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = str(tmp_path / "u-boot.bin")
    assert get_printable_path(path) == path
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GXLFIP_RELATIVE_PATHS", "1")
    assert get_printable_path(path) == "u-boot.bin"


def test_wrap_text() -> None:
    assert wrap_text("aaa bbb ccc\nddd", max_line=7) == "aaa bbb\nccc\nddd"
