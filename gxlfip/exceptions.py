#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2019-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP exception classes.

Every failure of the library is reported by an exception derived from GXLFIPError,
so the callers can tell resource, transfer, format and encryption problems apart.
"""

from typing import Optional

#######################################################################
# # GXLFIP Exceptions
#######################################################################


class GXLFIPError(Exception):
    """GXLFIP Base Exception.

    :cvar fmt: Default error message format template.
    """

    fmt = "GXLFIP: {description}"

    def __init__(self, desc: Optional[str] = None) -> None:
        """Initialize the base GXLFIP Exception.

        :param desc: Optional description of the exception.
        """
        super().__init__()
        self.description = desc

    def __str__(self) -> str:
        """Return formatted exception message, "Unknown Error" when no description is set."""
        return self.fmt.format(description=self.description or "Unknown Error")


class GXLFIPKeyError(GXLFIPError, KeyError):
    """GXLFIP Key Error exception for missing or invalid keys."""


class GXLFIPValueError(GXLFIPError, ValueError):
    """GXLFIP standard value error exception."""


class GXLFIPTypeError(GXLFIPError, TypeError):
    """GXLFIP standard type error exception."""


class GXLFIPIOError(GXLFIPError, IOError):
    """GXLFIP I/O error exception.

    Raised when a file-like resource cannot be created, opened, sized or positioned,
    or when a read or write underneath the block I/O layer fails.
    """


class GXLFIPFormatError(GXLFIPError, ValueError):
    """GXLFIP container format error.

    Raised when an image or a container breaks the fixed layout rules, e.g. the TOC
    runs out of entry slots or an image is too short to probe its entry-point header.
    """


class GXLFIPParsingError(GXLFIPError):
    """GXLFIP parsing error of binary structures."""


class GXLFIPEncryptionError(GXLFIPError):
    """GXLFIP error reported by the encryption stage."""


class GXLFIPVerificationError(GXLFIPError):
    """GXLFIP verification error, e.g. digest mismatch of a decrypted control block."""
