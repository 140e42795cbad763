#!/usr/bin/env python
# -*- coding: UTF-8 -*-
# Copyright 2020-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP miscellaneous utilities and helper functions.

This module provides alignment arithmetic, file search and load/store helpers,
number conversions and configuration file loading used throughout GXLFIP.
"""

import json
import logging
import os
import re
import textwrap
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import yaml

from gxlfip.crypto.rng import random_bytes
from gxlfip.exceptions import GXLFIPError, GXLFIPValueError

logger = logging.getLogger(__name__)


class Endianness(str, Enum):
    """Byte order enumeration."""

    BIG = "big"
    LITTLE = "little"


def align(number: int, alignment: int = 4) -> int:
    """Align number to specified byte boundary.

    The function aligns the input number up to the nearest multiple of the specified
    alignment value.

    :param number: The number to be aligned (size or address).
    :param alignment: The boundary alignment value, typically a power of 2.
    :return: Aligned number that is always greater than or equal to the input number.
    :raises GXLFIPError: When alignment is non-positive or number is negative.
    """
    if alignment <= 0 or number < 0:
        raise GXLFIPError("Wrong alignment")

    return (number + (alignment - 1)) // alignment * alignment


def extend_block(data: bytes, length: int, padding: int = 0) -> bytes:
    """Extend binary data block with padding to reach specified length.

    :param data: Binary block to be extended.
    :param length: Requested block length; must be >= current block length.
    :param padding: 8-bit value to be used as padding (default: 0).
    :return: Block extended with padding bytes.
    :raises GXLFIPError: When the length is smaller than current block length.
    """
    current_len = len(data)
    if length < current_len:
        raise GXLFIPError("Incorrect length")
    num_padding = length - current_len
    if not num_padding:
        return data
    return data + bytes([padding]) * num_padding


def load_binary(path: str, search_paths: Optional[list[str]] = None) -> bytes:
    """Load binary file into bytes.

    :param path: Path to the binary file to load.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: Content of the binary file as bytes.
    """
    data = load_file(path, mode="rb", search_paths=search_paths)
    assert isinstance(data, bytes)
    return data


def load_text(path: str, search_paths: Optional[list[str]] = None) -> str:
    """Load text file content into string.

    :param path: Path to the text file to load.
    :param search_paths: List of directories to search for the file, defaults to None.
    :return: Content of the text file as string.
    """
    text = load_file(path, mode="r", search_paths=search_paths)
    assert isinstance(text, str)
    return text


def load_file(
    path: str, mode: str = "r", search_paths: Optional[list[str]] = None
) -> Union[str, bytes]:
    """Load file content from specified path.

    :param path: Path to the file to be loaded.
    :param mode: File reading mode, 'r' for text or 'rb' for binary.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: File content as string (text mode) or bytes (binary mode).
    """
    path = find_file(path, search_paths=search_paths)
    logger.debug(f"Loading {'binary' if 'b' in mode else 'text'} file from {path}")
    encoding = None if "b" in mode else "utf-8"
    with open(path, mode, encoding=encoding) as f:
        return f.read()


def write_file(
    data: Union[str, bytes],
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
) -> int:
    """Write data to a file, creating the parent directories when needed.

    :param data: Data to write to the file.
    :param path: Path to the target file.
    :param mode: File writing mode ('w' for text, 'wb' for binary), defaults to 'w'.
    :param encoding: Text encoding ('ascii', 'utf-8'), defaults to 'utf-8'.
    :return: Number of characters or bytes written to the file.
    """
    path = path.replace("\\", "/")
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)

    logger.debug(f"Storing {'binary' if 'b' in mode else 'text'} file at {path}")
    with open(path, mode, encoding=None if "b" in mode else encoding) as f:
        return f.write(data)


def get_abs_path(file_path: str, base_dir: Optional[str] = None) -> str:
    """Convert relative or absolute file path to normalized absolute path.

    :param file_path: File path to be converted to absolute path.
    :param base_dir: Base directory to create absolute path, if not specified the system CWD is used.
    :return: Absolute file path with normalized separators.
    """
    if os.path.isabs(file_path):
        return file_path.replace("\\", "/")

    return os.path.abspath(os.path.join(base_dir or os.getcwd(), file_path)).replace("\\", "/")


def _find_path(
    path: str,
    check_func: Callable[[str], bool],
    use_cwd: bool = True,
    search_paths: Optional[list[str]] = None,
    raise_exc: bool = True,
) -> str:
    """Find and return the full path to a file or directory.

    Search paths take precedence over current working directory when both are specified.

    :param path: File name, part of file path or full path to search for.
    :param check_func: Function to validate if the found path exists and meets criteria.
    :param use_cwd: Try current working directory to find the file, defaults to True.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :param raise_exc: Raise exception if file is not found, defaults to True.
    :return: Full absolute path or empty string if not found and raise_exc is False.
    :raises GXLFIPError: Path not found in any of the searched locations.
    """
    path = path.replace("\\", "/")

    if os.path.isabs(path):
        if not check_func(path):
            if raise_exc:
                raise GXLFIPError(f"Path '{path}' not found")
            return ""
        return path
    if search_paths:
        for dir_candidate in search_paths:
            if not dir_candidate:
                continue
            dir_candidate = dir_candidate.replace("\\", "/")
            path_candidate = get_abs_path(path, base_dir=dir_candidate)
            if check_func(path_candidate):
                return path_candidate
    if use_cwd and check_func(path):
        return get_abs_path(path)
    searched_in: list[str] = []
    if use_cwd:
        searched_in.append(os.path.abspath(os.curdir))
    if search_paths:
        searched_in.extend(filter(None, search_paths))
    searched_in = [s.replace("\\", "/") for s in searched_in]
    err_str = f"Path '{path}' not found, Searched in: {', '.join(searched_in)}"
    if not raise_exc:
        logger.debug(err_str)
        return ""
    raise GXLFIPError(err_str)


def find_file(
    file_path: str,
    use_cwd: bool = True,
    search_paths: Optional[list[str]] = None,
    raise_exc: bool = True,
) -> str:
    """Find file in filesystem.

    :param file_path: File name, part of file path or full path to search for.
    :param use_cwd: Try current working directory to find the file, defaults to True.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :param raise_exc: Raise exception if file is not found, defaults to True.
    :return: Full absolute path to the found file.
    :raises GXLFIPError: File not found in any of the search locations.
    """
    return _find_path(
        path=file_path,
        check_func=os.path.isfile,
        use_cwd=use_cwd,
        search_paths=search_paths,
        raise_exc=raise_exc,
    )


def value_to_int(value: Union[bytes, bytearray, int, str], default: Optional[int] = None) -> int:
    """Convert value from multiple formats to integer.

    Supports integers, big-endian bytes and strings with optional 0b/0o/0x prefix.

    :param value: Input value to convert (int, bytes, bytearray, or str).
    :param default: Default value returned when conversion fails.
    :return: Converted integer value.
    :raises GXLFIPError: Unsupported input type or invalid conversion without default.
    """
    if isinstance(value, int):
        return value

    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, Endianness.BIG.value)

    if isinstance(value, str) and value != "":
        match = re.match(
            r"(?P<prefix>0[box])?(?P<number>[0-9a-f_]+)(?P<suffix>[ul]{0,3})$",
            value.strip().lower(),
        )
        if match:
            base = {"0b": 2, "0o": 8, "0": 10, "0x": 16, None: 10}[match.group("prefix")]
            try:
                return int(match.group("number"), base=base)
            except ValueError:
                pass

    if default is not None:
        return default
    raise GXLFIPError(f"Invalid input number type({type(value)}) with value ({value})")


def load_hex_string(
    source: Optional[Union[str, bytes]],
    expected_size: int,
    search_paths: Optional[list[str]] = None,
    name: Optional[str] = "key",
) -> bytes:
    """Load hexadecimal data from a file, a hex string or bytes.

    If no source is provided, a random value of the expected size is generated. Files may
    hold either a hex string or raw binary data.

    :param source: File path, hexadecimal string or bytes. Random value if None.
    :param expected_size: Expected size of the data in bytes.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :param name: Name for the key/data to load, defaults to "key".
    :raises GXLFIPValueError: Invalid input data or size mismatch.
    :return: Data in bytes with the expected size.
    """
    if not source:
        logger.warning(
            f"The {name} source is not specified, "
            f"the random value is used in size of {expected_size} B."
        )
        return random_bytes(expected_size)

    if isinstance(source, bytes):
        key: Optional[bytes] = source
    else:
        key = None
        file_path = find_file(source, search_paths=search_paths, raise_exc=False)
        if file_path:
            try:
                key = bytes.fromhex(load_text(file_path).strip().replace("0x", "", 1))
            except (ValueError, UnicodeDecodeError):
                key = load_binary(file_path)
        else:
            hex_str = source.strip()
            if hex_str.lower().startswith("0x"):
                hex_str = hex_str[2:]
            try:
                key = bytes.fromhex(hex_str)
            except ValueError:
                pass

    if key is None:
        raise GXLFIPValueError(f"Invalid {name} input: {source!r}")
    if len(key) != expected_size:
        raise GXLFIPValueError(f"Invalid {name} size. Expected: {expected_size}, got: {len(key)}")
    return key


def size_fmt(num: Union[float, int], use_kibibyte: bool = True) -> str:
    """Format byte size into human-readable string representation.

    :param num: The byte size value to format.
    :param use_kibibyte: If True, use binary prefixes (1024-based) with 'iB' suffix.
    :return: Formatted size string with value and unit (e.g., "1.5 MiB", "1024 B").
    """
    base, suffix = [(1000.0, "B"), (1024.0, "iB")][use_kibibyte]
    i = "B"
    for i in ["B"] + [i + suffix for i in list("kMGTP")]:
        if num < base:
            break
        num /= base

    return f"{int(num)} {i}" if i == "B" else f"{num:3.1f} {i}"


def load_configuration(path: str, search_paths: Optional[list[str]] = None) -> dict:
    """Load configuration from YAML or JSON file.

    The content is parsed as JSON first, then as YAML.

    :param path: Path to configuration file (relative or absolute).
    :param search_paths: List of paths where to search for the file, defaults to None.
    :raises GXLFIPError: When file cannot be loaded, parsed, or contains invalid format.
    :return: Content of configuration as dictionary.
    """
    try:
        config = load_text(path, search_paths=search_paths)
    except Exception as exc:
        raise GXLFIPError(f"Can't load configuration file: {str(exc)}") from exc

    config_data: Optional[dict] = None
    try:
        config_data = json.loads(config)
    except json.JSONDecodeError:
        try:
            config_data = yaml.safe_load(config)
        except (yaml.YAMLError, UnicodeDecodeError):
            pass

    if not config_data:
        raise GXLFIPError(f"Can't parse configuration file: {path}")
    if not isinstance(config_data, dict):
        raise GXLFIPError(f"Invalid configuration file: {path}")

    return config_data


def get_printable_path(path: str) -> str:
    """Get printable path for file display purposes.

    When GXLFIP_RELATIVE_PATHS is set to "1", the path is printed relative to the
    current working directory.

    :param path: Absolute or relative file path to convert.
    :return: Display-friendly file path string.
    """
    if os.environ.get("GXLFIP_RELATIVE_PATHS") == "1":
        return Path(os.path.relpath(path, os.getcwd())).as_posix()
    return path


def wrap_text(text: str, max_line: int = 100) -> str:
    """Wrap text while preserving the existing line breaks.

    :param text: Input text to be wrapped.
    :param max_line: Maximum line length for wrapped output, defaults to 100.
    :return: Formatted text with appropriate line breaks inserted.
    """
    lines = text.splitlines()
    return "\n".join([textwrap.fill(text=line, width=max_line) for line in lines])
