#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""FIP (Firmware Image Package) container support.

This package provides the table of contents structures, the TOC builder and the
orchestration creating the final bootable container.
"""

from gxlfip.fip.builder import FipBuilder
from gxlfip.fip.container import FipContainer, FipContainerInfo, create_fip, inspect_container
from gxlfip.fip.format import FIP_FORMATS, FipFormat, get_fip_format
from gxlfip.fip.toc import EntryPointMarker, FipImageType, Toc, TocEntry, TocHeader

__all__ = [
    "EntryPointMarker",
    "FIP_FORMATS",
    "FipBuilder",
    "FipContainer",
    "FipContainerInfo",
    "FipFormat",
    "FipImageType",
    "Toc",
    "TocEntry",
    "TocHeader",
    "create_fip",
    "get_fip_format",
    "inspect_container",
]
