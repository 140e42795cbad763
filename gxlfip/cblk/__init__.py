#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Control block encryption stages of the FIP container."""

from gxlfip.cblk.amlcblk import AmlControlBlock, AmlControlBlockHeader
from gxlfip.cblk.base import EncryptionStage

__all__ = ["AmlControlBlock", "AmlControlBlockHeader", "EncryptionStage"]
