#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause


"""GXLFIP Configuration utility tests."""

import os
from pathlib import Path

import pytest

from gxlfip.exceptions import GXLFIPError, GXLFIPValueError
from gxlfip.utils.config import Config
from gxlfip.utils.schema_validator import CommentedConfig


def test_config_basic() -> None:
    """Test basic Config class functionality."""
    cfg = Config({"test": 1})
    assert 1 == cfg["test"]
    assert 1 == cfg.get("test")
    assert cfg.get("missing") is None
    assert 2 == cfg.get("missing", 2)


def test_config_nested_get() -> None:
    cfg = Config({"test": {"test_1": "nested_1"}, "list": [{"item": 5}]})
    assert "nested_1" == cfg["test/test_1"]
    assert "nested_1" == cfg.get("test/test_1")
    assert 5 == cfg["list/0/item"]
    with pytest.raises(GXLFIPError):
        _ = cfg["test/missing"]


def test_config_get_str() -> None:
    cfg = Config({"format": "gxl", "number": 1})
    assert "gxl" == cfg.get_str("format")
    assert "default" == cfg.get_str("missing", "default")
    with pytest.raises(GXLFIPError):
        cfg.get_str("number")


def test_config_from_file(tmp_path: Path) -> None:
    """Test loading of the YAML file and resolving of paths relative to it."""
    (tmp_path / "bl2.bin").write_bytes(bytes(16))
    (tmp_path / "key.txt").write_text("0x" + "11" * 32)
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text('bl2: bl2.bin\noutput: out/u-boot.bin\naes_key: key.txt\naes_iv: "22" \n')
    cfg = Config.create_from_file(str(cfg_path))

    assert cfg.config_dir == str(tmp_path).replace("\\", "/")
    assert cfg.config_name == "config.yaml"
    assert cfg.get_input_file_name("bl2") == str(tmp_path / "bl2.bin").replace("\\", "/")
    assert cfg.get_output_file_name("output") == str(tmp_path / "out" / "u-boot.bin").replace(
        "\\", "/"
    )
    assert cfg.load_symmetric_key("aes_key", 32) == b"\x11" * 32
    assert cfg.load_symmetric_key("aes_iv", 1) == b"\x22"
    with pytest.raises(GXLFIPValueError):
        cfg.load_symmetric_key("aes_iv", 16)
    with pytest.raises(GXLFIPError):
        cfg.load_symmetric_key("missing", 16)
    with pytest.raises(GXLFIPError, match="bl33"):
        cfg.get_input_file_name("bl33")


def test_config_absolute_output(tmp_path: Path) -> None:
    output = os.path.join(tmp_path, "u-boot.bin")
    cfg = Config({"output": output})
    assert cfg.get_output_file_name("output") == output


def test_config_check(tmp_path: Path) -> None:
    (tmp_path / "bl2.bin").write_bytes(bytes(16))
    schema = {
        "type": "object",
        "properties": {
            "bl2": {"type": "string", "format": "file"},
            "key": {"type": "string", "format": "file-or-hex-value"},
        },
        "required": ["bl2"],
    }
    cfg = Config({"bl2": "bl2.bin", "key": "0x1234"})
    cfg.search_paths = [str(tmp_path)]
    cfg.check([schema])

    cfg["key"] = "not-a-key"
    with pytest.raises(GXLFIPError, match="neither a valid hex value"):
        cfg.check([schema])

    with pytest.raises(GXLFIPError, match="Missing field"):
        Config({"key": "1234"}).check([schema])


def test_config_check_unknown(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    schema = {"type": "object", "properties": {"known": {"type": "string"}}}
    Config({"known": "a", "unknown": 1}).check([schema], check_unknown_props=True)
    assert "Unknown property found in configuration: 'unknown'" in caplog.text


def test_commented_config() -> None:
    schema = {
        "type": "object",
        "title": "Images",
        "properties": {
            "bl2": {"type": "string", "title": "BL2 image", "template_value": "bl2.bin"},
            "format": {"type": "string", "title": "Format", "enum": ["gxl"]},
        },
        "required": ["bl2"],
    }
    commented = CommentedConfig("Test configuration", [schema])
    with pytest.raises(GXLFIPError, match="no template value for format"):
        commented.get_template()

    config = commented.get_config({"bl2": "my_bl2.bin", "format": "gxl"})
    assert "Test configuration" in config
    assert "BL2 image [Required]" in config
    assert "Possible options: <gxl>" in config
    assert "bl2: my_bl2.bin" in config
    assert "format: gxl" in config


def test_config_check_unsupported_format() -> None:
    schema = {"type": "object", "properties": {"path": {"type": "string", "format": "dir"}}}
    with pytest.raises(GXLFIPError, match="Invalid validation schema"):
        Config({"path": "."}).check([schema])
