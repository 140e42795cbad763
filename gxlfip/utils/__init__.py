#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2020-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP utilities package.

Common helpers used across GXLFIP: file and number utilities, block I/O,
configuration handling and schema validation.
"""
