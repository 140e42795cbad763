#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP cryptographic hash algorithms.

Thin wrapper around the cryptography library used to compute the digests stored
in the control block header.
"""

# Used security modules

from cryptography.hazmat.primitives import hashes

from gxlfip.exceptions import GXLFIPError
from gxlfip.utils.ext_enum import ExtEnum


class EnumHashAlgorithm(ExtEnum):
    """Hash algorithm enumeration."""

    SHA256 = (1, "sha256", "SHA256")
    SHA384 = (2, "sha384", "SHA384")
    SHA512 = (3, "sha512", "SHA512")


def get_hash_algorithm(algorithm: EnumHashAlgorithm) -> hashes.HashAlgorithm:
    """Get hash algorithm instance for specified algorithm type.

    :param algorithm: Hash algorithm type enumeration value.
    :raises GXLFIPError: If the specified algorithm is not supported.
    :return: Instance of the corresponding hash algorithm class.
    """
    algo_cls = getattr(hashes, algorithm.label.upper(), None)  # hack: get class object by name
    if algo_cls is None:
        raise GXLFIPError(f"Unsupported algorithm: hashes.{algorithm.label.upper()}")
    return algo_cls()  # pylint: disable=not-callable


def get_hash_length(algorithm: EnumHashAlgorithm) -> int:
    """Get hash algorithm binary length.

    :param algorithm: Hash algorithm type enumeration.
    :return: Length of hash digest in bytes.
    """
    return get_hash_algorithm(algorithm).digest_size


def get_hash(data: bytes, algorithm: EnumHashAlgorithm = EnumHashAlgorithm.SHA256) -> bytes:
    """Compute hash digest from input data using specified algorithm.

    :param data: Input data to be hashed.
    :param algorithm: Hash algorithm to use for computation.
    :return: Hash digest as bytes.
    """
    hash_obj = hashes.Hash(get_hash_algorithm(algorithm))
    hash_obj.update(data)
    return hash_obj.finalize()
