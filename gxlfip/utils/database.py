#!/usr/bin/env python
# -*- coding: UTF-8 -*-
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Access to the data files shipped with GXLFIP."""

import logging
import os
from copy import deepcopy
from typing import Any

from gxlfip import GXLFIP_DATA_FOLDER
from gxlfip.exceptions import GXLFIPError, GXLFIPValueError
from gxlfip.utils.misc import load_configuration

logger = logging.getLogger(__name__)

_CFG_CACHE: dict[str, dict[str, Any]] = {}


def get_data_file_path(path: str) -> str:
    """Get absolute path of the data file.

    :param path: Relative path in the data folder.
    :raises GXLFIPValueError: Non existing file path.
    :return: Final absolute path to data file.
    """
    abs_path = os.path.abspath(os.path.join(GXLFIP_DATA_FOLDER, path)).replace("\\", "/")
    if not os.path.exists(abs_path):
        raise GXLFIPValueError(f"The requested data file doesn't exists: {abs_path}")
    return abs_path


def load_db_cfg_file(filename: str) -> dict[str, Any]:
    """Load data configuration file, every file is loaded just once.

    :param filename: Path to the configuration file to load.
    :raises GXLFIPError: Invalid or corrupted configuration file.
    :return: Copy of loaded configuration data.
    """
    abs_path = os.path.abspath(filename)
    if abs_path not in _CFG_CACHE:
        try:
            _CFG_CACHE[abs_path] = load_configuration(abs_path)
        except GXLFIPError as exc:
            raise GXLFIPError(f"Invalid configuration file. {str(exc)}") from exc
    return deepcopy(_CFG_CACHE[abs_path])


def get_schema_file(feature: str) -> dict[str, Any]:
    """Get JSON Schema file for the requested feature.

    :param feature: Name of the feature to get schema for.
    :return: Loaded dictionary containing the JSON Schema file content.
    """
    return load_db_cfg_file(get_data_file_path(os.path.join("jsonschemas", f"sch_{feature}.yaml")))
