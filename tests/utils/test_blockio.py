#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Tests of reliable block I/O helpers."""

import io
from typing import Any

import pytest

from gxlfip.exceptions import GXLFIPIOError, GXLFIPValueError
from gxlfip.utils.blockio import COPY_BLOCK_SIZE, copy_stream, read_full, write_full


class ChunkedIO(io.BytesIO):
    """Stream transferring at most `chunk` bytes per call."""

    def __init__(self, data: bytes = b"", chunk: int = 7) -> None:
        super().__init__(data)
        self.chunk = chunk
        self.calls = 0

    def read(self, size: Any = -1) -> bytes:
        self.calls += 1
        if size is None or size < 0:
            size = self.chunk
        return super().read(min(size, self.chunk))

    def write(self, data: Any) -> int:
        self.calls += 1
        return super().write(bytes(data[: self.chunk]))


class StalledIO(io.BytesIO):
    def write(self, data: Any) -> int:
        return 0


class NonBlockingIO(io.BytesIO):
    def read(self, size: Any = -1) -> Any:
        return None


class BrokenIO(io.BytesIO):
    def read(self, size: Any = -1) -> bytes:
        raise OSError("device not ready")

    def write(self, data: Any) -> int:
        raise OSError("no space left on device")


def test_read_full_short_reads() -> None:
    data = bytes(range(100))
    stream = ChunkedIO(data, chunk=7)
    assert read_full(stream, 100) == data
    assert stream.calls > 1


def test_read_full_eof() -> None:
    stream = ChunkedIO(b"0123456789", chunk=3)
    assert read_full(stream, 64) == b"0123456789"
    assert read_full(stream, 64) == b""


def test_read_full_no_data_available() -> None:
    assert read_full(NonBlockingIO(b"data"), 4) == b""


def test_read_full_error() -> None:
    with pytest.raises(GXLFIPIOError, match="device not ready"):
        read_full(BrokenIO(), 16)


def test_write_full_short_writes() -> None:
    data = bytes(range(256)) * 3
    stream = ChunkedIO(chunk=10)
    assert write_full(stream, data) == len(data)
    assert stream.getvalue() == data


def test_write_full_stalled() -> None:
    with pytest.raises(GXLFIPIOError, match="stalled"):
        write_full(StalledIO(), b"data")


def test_write_full_error() -> None:
    with pytest.raises(GXLFIPIOError, match="no space left"):
        write_full(BrokenIO(), b"data")


@pytest.mark.parametrize(
    "size",
    [0, 1, COPY_BLOCK_SIZE - 1, COPY_BLOCK_SIZE, 2 * COPY_BLOCK_SIZE, 3 * COPY_BLOCK_SIZE + 5],
)
def test_copy_stream(size: int) -> None:
    data = bytes(i & 0xFF for i in range(size))
    dest = io.BytesIO()
    assert copy_stream(ChunkedIO(data, chunk=100), dest, 0x100) == size
    if size:
        assert dest.getvalue() == bytes(0x100) + data


def test_copy_stream_from_current_position() -> None:
    source = io.BytesIO(b"headerpayload")
    source.seek(6)
    dest = io.BytesIO(b"x" * 16)
    assert copy_stream(source, dest, 2) == 7
    assert dest.getvalue() == b"xxpayloadxxxxxxx"


def test_copy_stream_write_error() -> None:
    with pytest.raises(GXLFIPIOError):
        copy_stream(io.BytesIO(b"data"), BrokenIO(), 0)


@pytest.mark.parametrize("block_size", [0, -1])
def test_copy_stream_invalid_block_size(block_size: int) -> None:
    dest = io.BytesIO()
    with pytest.raises(GXLFIPValueError):
        copy_stream(io.BytesIO(b"data"), dest, 0, block_size=block_size)
    assert dest.getvalue() == b""
