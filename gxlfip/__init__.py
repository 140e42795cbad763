#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP - Firmware Image Package builder for GXL SoC boot chains.

The package assembles a bootable container out of the first stage bootloader (BL2)
and the secondary bootloader stages (BL30, BL31, BL32, BL33). The secondary stages
are described by a table of contents (TOC) that is encrypted by a control block
encryption stage and stored right behind the BL2 reserved region.

INTERFACES:
    - Python library (gxlfip.fip, gxlfip.cblk)
    - Command line tool `gxlfip`
"""

import os
from typing import Optional, Union

from packaging.version import Version, parse
from platformdirs import PlatformDirs


def get_gxlfip_version() -> Version:
    """Get GXLFIP version information.

    The version comes from the generated __version__ module of an installed package,
    or is computed by setuptools_scm when running from a source tree.

    :raises ImportError: When both __version__ module and setuptools_scm are unavailable.
    :return: Parsed version object.
    """
    try:
        from .__version__ import __version__ as gxlfip_version
    except ImportError:
        from setuptools_scm import get_version

        gxlfip_version = get_version(root="..", relative_to=__file__, fallback_version="0.0.0")
    return parse(gxlfip_version)


def value_to_bool(value: Optional[Union[bool, int, str]]) -> bool:
    """Convert value to boolean from environment-like formats.

    :param value: Value to convert (string, int, bool, or None).
    :return: Boolean representation of the input value.
    """
    if isinstance(value, str):
        return value in ("True", "true", "T", "1")
    return bool(value)


version = get_gxlfip_version()

__author__ = "NXP"
__license__ = "BSD-3-Clause"
__version__ = str(version)

GXLFIP_VERSION_BASE = version.base_version

GXLFIP_DATA_FOLDER = os.environ.get("GXLFIP_DATA_FOLDER") or os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "data"
)
GXLFIP_PLATFORM_DIRS = PlatformDirs(
    appauthor="nxp",
    appname="gxlfip",
    version=GXLFIP_VERSION_BASE,
    ensure_exists=False,
)

GXLFIP_YML_INDENT = 2

GXLFIP_DEBUG_LOGGING_DISABLED = value_to_bool(os.environ.get("GXLFIP_DEBUG_LOGGING_DISABLED"))
GXLFIP_DEBUG_LOG_FILE = os.environ.get(
    "GXLFIP_DEBUG_LOG_FILE", os.path.join(GXLFIP_PLATFORM_DIRS.user_log_dir, "debug.log")
)
GXLFIP_SCHEMA_STRICT = value_to_bool(os.environ.get("GXLFIP_SCHEMA_STRICT"))
