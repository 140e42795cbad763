#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Encryption stage interface used by the FIP container orchestrator.

The orchestrator treats the encryption stage as an opaque three-call sequence and
never depends on the algorithm behind it.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO


class EncryptionStage(ABC):
    """Encryption stage transforming the TOC scratch region.

    The stage instance holds the encryption context between the calls.
    """

    @abstractmethod
    def enc_init(self, source: BinaryIO) -> None:
        """Inspect the TOC scratch and derive the key and context material.

        :param source: TOC scratch stream.
        """

    @abstractmethod
    def enc_encrypt(self, dest: BinaryIO, source: BinaryIO) -> None:
        """Encrypt the content of the TOC scratch into the destination.

        :param dest: Destination stream.
        :param source: TOC scratch stream.
        """

    @abstractmethod
    def enc_dump_header(self, dest: BinaryIO) -> None:
        """Write the header describing the encryption parameters into the destination.

        :param dest: Destination stream, the one used by `enc_encrypt`.
        """
