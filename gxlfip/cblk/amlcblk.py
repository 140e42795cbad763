#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""AES control block encryption stage.

The TOC scratch is encrypted by AES-256-CBC and followed by a 0x200 byte control
block header, which carries the key material and the SHA-256 digest of the plain
data needed by the loader to decrypt and check the region.

Control block layout (little-endian)::

    0x00  magic "@AML"
    0x04  version
    0x08  header size
    0x0C  flags
    0x10  payload (plain data) size
    0x14  encrypted data size
    0x18  reserved (8 bytes)
    0x20  AES key (32 bytes)
    0x40  AES IV (16 bytes)
    0x50  SHA-256 of the payload (32 bytes)
    0x70  zero padding up to the header size
"""

import logging
import os
from struct import calcsize, pack, unpack_from
from typing import BinaryIO, Optional

from typing_extensions import Self

from gxlfip.cblk.base import EncryptionStage
from gxlfip.crypto.hash import EnumHashAlgorithm, get_hash, get_hash_length
from gxlfip.crypto.rng import random_bytes
from gxlfip.crypto.symmetric import AES_BLOCK_SIZE, aes_cbc_decrypt, aes_cbc_encrypt
from gxlfip.exceptions import (
    GXLFIPEncryptionError,
    GXLFIPError,
    GXLFIPIOError,
    GXLFIPParsingError,
    GXLFIPVerificationError,
)
from gxlfip.utils.abstract import BaseClass
from gxlfip.utils.blockio import read_full, write_full
from gxlfip.utils.misc import extend_block

logger = logging.getLogger(__name__)

AES_KEY_SIZE = 32
DIGEST_ALGORITHM = EnumHashAlgorithm.SHA256


class AmlControlBlockHeader(BaseClass):
    """Control block header describing the encrypted region."""

    MAGIC = b"@AML"
    VERSION = 1
    SIZE = 0x200
    FLAG_ENCRYPTED = 0x1
    FORMAT = f"<4s5I8x{AES_KEY_SIZE}s{AES_BLOCK_SIZE}s{get_hash_length(DIGEST_ALGORITHM)}s"

    def __init__(
        self,
        payload_size: int,
        encrypted_size: int,
        aes_key: bytes,
        aes_iv: bytes,
        digest: bytes,
        flags: int = FLAG_ENCRYPTED,
        version: int = VERSION,
    ) -> None:
        """Constructor.

        :param payload_size: Size of the plain data
        :param encrypted_size: Size of the encrypted data
        :param aes_key: AES-256 key
        :param aes_iv: AES initialization vector
        :param digest: SHA-256 digest of the plain data
        :param flags: Control block flags
        :param version: Control block version
        """
        self.payload_size = payload_size
        self.encrypted_size = encrypted_size
        self.aes_key = aes_key
        self.aes_iv = aes_iv
        self.digest = digest
        self.flags = flags
        self.version = version

    def __repr__(self) -> str:
        return f"AmlControlBlockHeader(v{self.version}, 0x{self.encrypted_size:X})"

    def __str__(self) -> str:
        nfo = str()
        nfo += f" Version:          {self.version}\n"
        nfo += f" Flags:            0x{self.flags:X}\n"
        nfo += f" Payload size:     0x{self.payload_size:X}\n"
        nfo += f" Encrypted size:   0x{self.encrypted_size:X}\n"
        nfo += f" AES key:          {self.aes_key.hex()}\n"
        nfo += f" AES IV:           {self.aes_iv.hex()}\n"
        nfo += f" Payload SHA-256:  {self.digest.hex()}\n"
        return nfo

    def export(self) -> bytes:
        """Binary representation of the header padded to its full size."""
        data = pack(
            self.FORMAT,
            self.MAGIC,
            self.version,
            self.SIZE,
            self.flags,
            self.payload_size,
            self.encrypted_size,
            self.aes_key,
            self.aes_iv,
            self.digest,
        )
        return extend_block(data, self.SIZE)

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse header.

        :param data: Raw data as bytes or bytearray
        :param offset: Offset of input data
        :raises GXLFIPParsingError: Invalid magic, size or not enough data
        :return: Control block header
        """
        if len(data) < offset + calcsize(cls.FORMAT):
            raise GXLFIPParsingError("Not enough data to parse control block header")
        (
            magic,
            version,
            header_size,
            flags,
            payload_size,
            encrypted_size,
            aes_key,
            aes_iv,
            digest,
        ) = unpack_from(cls.FORMAT, data, offset)
        if magic != cls.MAGIC:
            raise GXLFIPParsingError(f"Invalid control block magic: {magic!r}")
        if header_size != cls.SIZE:
            raise GXLFIPParsingError(f"Invalid control block header size: 0x{header_size:X}")
        return cls(
            payload_size=payload_size,
            encrypted_size=encrypted_size,
            aes_key=aes_key,
            aes_iv=aes_iv,
            digest=digest,
            flags=flags,
            version=version,
        )


class AmlControlBlock(EncryptionStage):
    """AES-256-CBC control block encryption stage.

    Key and IV are random unless given, fixed values make the output reproducible.
    """

    def __init__(self, aes_key: Optional[bytes] = None, aes_iv: Optional[bytes] = None) -> None:
        """Constructor.

        :param aes_key: AES-256 key, random if not specified.
        :param aes_iv: AES initialization vector, random if not specified.
        :raises GXLFIPEncryptionError: Invalid key or IV length.
        """
        if aes_key is not None and len(aes_key) != AES_KEY_SIZE:
            raise GXLFIPEncryptionError(f"Invalid AES key size: {len(aes_key)}")
        if aes_iv is not None and len(aes_iv) != AES_BLOCK_SIZE:
            raise GXLFIPEncryptionError(f"Invalid AES IV size: {len(aes_iv)}")
        self.aes_key = aes_key
        self.aes_iv = aes_iv
        self.header: Optional[AmlControlBlockHeader] = None

    def enc_init(self, source: BinaryIO) -> None:
        """Measure the TOC scratch and prepare the key material.

        :param source: TOC scratch stream.
        :raises GXLFIPEncryptionError: The source size is not AES block aligned.
        """
        try:
            size = source.seek(0, os.SEEK_END)
            source.seek(0)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot get the size of encrypted data: {str(exc)}") from exc
        if size == 0 or size % AES_BLOCK_SIZE:
            raise GXLFIPEncryptionError(
                f"Encrypted data size 0x{size:X} is not aligned to {AES_BLOCK_SIZE} bytes"
            )
        digest = get_hash(read_full(source, size), DIGEST_ALGORITHM)
        self.header = AmlControlBlockHeader(
            payload_size=size,
            encrypted_size=0,
            aes_key=self.aes_key or random_bytes(AES_KEY_SIZE),
            aes_iv=self.aes_iv or random_bytes(AES_BLOCK_SIZE),
            digest=digest,
        )
        logger.debug(f"Control block initialized for 0x{size:X} bytes")

    def _get_header(self) -> AmlControlBlockHeader:
        if self.header is None:
            raise GXLFIPEncryptionError("Control block is not initialized")
        return self.header

    def enc_encrypt(self, dest: BinaryIO, source: BinaryIO) -> None:
        """Encrypt the TOC scratch into the beginning of the destination.

        :param dest: Destination stream.
        :param source: TOC scratch stream.
        :raises GXLFIPEncryptionError: Not initialized or encryption fails.
        """
        header = self._get_header()
        try:
            source.seek(0)
            dest.seek(0)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot rewind encryption streams: {str(exc)}") from exc
        data = read_full(source, header.payload_size)
        if len(data) != header.payload_size:
            raise GXLFIPEncryptionError(
                f"Encrypted data changed its size: 0x{len(data):X} != 0x{header.payload_size:X}"
            )
        try:
            encrypted = aes_cbc_encrypt(header.aes_key, data, header.aes_iv)
        except GXLFIPError as exc:
            raise GXLFIPEncryptionError(f"Cannot encrypt data: {exc.description}") from exc
        header.encrypted_size = write_full(dest, encrypted)

    def enc_dump_header(self, dest: BinaryIO) -> None:
        """Append the control block header behind the encrypted data.

        :param dest: Destination stream.
        :raises GXLFIPEncryptionError: Data not encrypted yet.
        """
        header = self._get_header()
        if not header.encrypted_size:
            raise GXLFIPEncryptionError("Control block header dumped before encryption")
        try:
            dest.seek(header.encrypted_size)
        except OSError as exc:
            raise GXLFIPIOError(f"Cannot seek behind encrypted data: {str(exc)}") from exc
        write_full(dest, header.export())

    @staticmethod
    def decrypt(blob: bytes) -> tuple[AmlControlBlockHeader, bytes]:
        """Decrypt a region produced by the control block encryption stage.

        The header is expected in the last 0x200 bytes of the blob.

        :param blob: Encrypted data followed by the control block header.
        :raises GXLFIPParsingError: Invalid header.
        :raises GXLFIPVerificationError: Digest of decrypted data doesn't match.
        :return: Tuple of the header and the decrypted data.
        """
        if len(blob) <= AmlControlBlockHeader.SIZE:
            raise GXLFIPParsingError(f"Control block is too short: {len(blob)} bytes")
        header_offset = len(blob) - AmlControlBlockHeader.SIZE
        header = AmlControlBlockHeader.parse(blob, header_offset)
        if header.encrypted_size != header_offset:
            raise GXLFIPParsingError(
                f"Control block header describes 0x{header.encrypted_size:X} encrypted bytes, "
                f"but 0x{header_offset:X} bytes are present"
            )
        data = aes_cbc_decrypt(header.aes_key, blob[:header_offset], header.aes_iv)
        data = data[: header.payload_size]
        if get_hash(data, DIGEST_ALGORITHM) != header.digest:
            raise GXLFIPVerificationError("Digest of the decrypted control block doesn't match")
        return header, data
