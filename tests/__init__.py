#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2021,2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP test package initialization module."""
