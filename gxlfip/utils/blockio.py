#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Reliable block I/O over binary streams.

The helpers guarantee full-buffer semantics on top of streams that may transfer
less data than requested in a single call (raw files, pipes, sockets), and copy
whole images between streams block by block.
"""

import logging
from typing import BinaryIO

from gxlfip.exceptions import GXLFIPIOError, GXLFIPValueError

logger = logging.getLogger(__name__)

COPY_BLOCK_SIZE = 512


def read_full(stream: BinaryIO, size: int) -> bytes:
    """Read a block of data from a stream.

    The stream is read repeatedly until `size` bytes are obtained or the stream
    signals end of data (empty read). A stream that has no data available
    (non-blocking read returning None) is treated as end of data as well.

    :param stream: Stream to read the block from.
    :param size: Size of the block to read.
    :raises GXLFIPIOError: Underlying read fails.
    :return: Read data; shorter than `size` only when end of stream has been reached.
    """
    chunks = []
    remaining = size
    while remaining > 0:
        try:
            chunk = stream.read(remaining)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot read data: {str(exc)}") from exc
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def write_full(stream: BinaryIO, data: bytes) -> int:
    """Write a block of data into a stream.

    Short writes are continued until the whole block is written. A write that makes
    no progress at all is reported as a failure instead of looping forever.

    :param stream: Stream to write the block into.
    :param data: Actual block data.
    :raises GXLFIPIOError: Underlying write fails or stalls.
    :return: Number of written bytes, always len(data).
    """
    view = memoryview(data)
    written = 0
    while written < len(view):
        try:
            count = stream.write(view[written:])
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot write data: {str(exc)}") from exc
        if not count:
            raise GXLFIPIOError(f"Write stalled after {written} of {len(view)} bytes")
        written += count
    return written


def copy_stream(
    source: BinaryIO, dest: BinaryIO, dest_offset: int, block_size: int = COPY_BLOCK_SIZE
) -> int:
    """Copy a stream as-is into another stream at specific offset.

    The source is copied from its current position up to its end. The position of
    `dest` is undefined when the copy fails.

    :param source: Source stream to copy.
    :param dest: Destination stream to copy into.
    :param dest_offset: Offset at which source is copied into destination.
    :param block_size: Size of the copied blocks.
    :raises GXLFIPValueError: Block size is not positive.
    :raises GXLFIPIOError: Seek, read or write fails.
    :return: Number of copied bytes.
    """
    if block_size <= 0:
        raise GXLFIPValueError(f"Invalid copy block size: {block_size}")
    try:
        dest.seek(dest_offset)
    except OSError as exc:
        raise GXLFIPIOError(f"Cannot seek to offset {dest_offset:#x}: {str(exc)}") from exc

    copied = 0
    while True:
        block = read_full(source, block_size)
        if block:
            copied += write_full(dest, block)
        if len(block) < block_size:
            break
    logger.debug(f"Copied {copied} bytes at offset {dest_offset:#x}")
    return copied
