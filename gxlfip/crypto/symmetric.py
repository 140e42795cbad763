#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP symmetric cryptography utilities.

AES in CBC mode, used by the control block encryption stage.
"""


# Used security modules
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from gxlfip.exceptions import GXLFIPError

AES_BLOCK_SIZE = algorithms.AES.block_size // 8


def _check_aes_params(key: bytes, init_vector: bytes) -> None:
    if len(key) * 8 not in algorithms.AES.key_sizes:
        raise GXLFIPError(
            "The key must be a valid AES key length: "
            f"{', '.join([str(k) for k in algorithms.AES.key_sizes])}"
        )
    if len(init_vector) != AES_BLOCK_SIZE:
        raise GXLFIPError(f"The initial vector length must be {AES_BLOCK_SIZE}")


def aes_cbc_encrypt(key: bytes, plain_data: bytes, iv_data: Optional[bytes] = None) -> bytes:
    """Encrypt plain data with AES in CBC mode.

    No padding is applied, the caller is responsible for block aligned input. If no
    initialization vector is provided, a zero-filled IV is used.

    :param key: AES encryption key, must be valid AES key length (128, 192, or 256 bits).
    :param plain_data: Raw data to be encrypted, multiple of AES block size.
    :param iv_data: Initialization vector for CBC mode, defaults to zero-filled block.
    :raises GXLFIPError: Invalid key length, IV length or data length.
    :return: Encrypted data.
    """
    init_vector = iv_data or bytes(AES_BLOCK_SIZE)
    _check_aes_params(key, init_vector)
    if len(plain_data) % AES_BLOCK_SIZE:
        raise GXLFIPError(f"The data length must be aligned to {AES_BLOCK_SIZE} bytes")
    cipher = Cipher(algorithms.AES(key), modes.CBC(init_vector))
    enc = cipher.encryptor()
    return enc.update(plain_data) + enc.finalize()


def aes_cbc_decrypt(key: bytes, encrypted_data: bytes, iv_data: Optional[bytes] = None) -> bytes:
    """Decrypt encrypted data with AES in CBC mode.

    :param key: The AES key for data decryption (must be valid AES key length).
    :param encrypted_data: The encrypted input data to be decrypted.
    :param iv_data: Initialization vector data (optional, defaults to zero-filled).
    :raises GXLFIPError: Invalid key length or initialization vector length.
    :return: Decrypted data as bytes.
    """
    init_vector = iv_data or bytes(AES_BLOCK_SIZE)
    _check_aes_params(key, init_vector)
    if len(encrypted_data) % AES_BLOCK_SIZE:
        raise GXLFIPError(f"The data length must be aligned to {AES_BLOCK_SIZE} bytes")
    cipher = Cipher(algorithms.AES(key), modes.CBC(init_vector))
    dec = cipher.decryptor()
    return dec.update(encrypted_data) + dec.finalize()
