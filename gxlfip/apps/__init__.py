#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2020-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP applications package.

This package contains command-line applications delivered with GXLFIP.
"""
