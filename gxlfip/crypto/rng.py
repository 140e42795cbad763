#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2023,2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP cryptographic random number generation utilities."""

# Used security modules


from secrets import token_bytes


def random_bytes(length: int) -> bytes:
    """Generate cryptographically secure random bytes.

    :param length: The number of random bytes to generate.
    :raises ValueError: If length is negative.
    :return: Cryptographically secure random bytes of specified length.
    """
    return token_bytes(length)

