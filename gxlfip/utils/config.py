#!/usr/bin/env python
# -*- coding: UTF-8 -*-
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP configuration management utilities."""

import logging
import os
from typing import Any, Optional, Union

from typing_extensions import Self

from gxlfip.exceptions import GXLFIPError, GXLFIPKeyError
from gxlfip.utils.misc import find_file, load_configuration, load_hex_string, value_to_int
from gxlfip.utils.schema_validator import check_config

logger = logging.getLogger(__name__)


class Config(dict):
    """GXLFIP Configuration Manager.

    Dictionary with nested key addressing using path separators, which keeps the
    context of the configuration source used to resolve relative file paths.

    :cvar SEP: Path separator used for nested key addressing in configuration.
    """

    SEP = "/"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.config_dir = os.getcwd()
        self.config_name = ""
        self.search_paths: list[str] = []

    @classmethod
    def create_from_file(cls, file_path: str) -> Self:
        """Create configuration object from file.

        :param file_path: Path to the configuration file to load.
        :return: Configuration object with loaded data and set search paths.
        """
        cfg_abs_path = os.path.abspath(file_path).replace("\\", "/")
        cfg = cls(load_configuration(cfg_abs_path))
        cfg_dir = os.path.dirname(cfg_abs_path)
        cfg.search_paths = [cfg_dir]
        cfg.config_dir = cfg_dir
        cfg.config_name = os.path.basename(cfg_abs_path)
        return cfg

    @classmethod
    def get_path(cls, key: Union[str, int]) -> list:
        """Get keypath in list format.

        :param key: Key to convert - either string path with separators or single integer.
        :return: List of path components as integers or strings.
        """
        ret: list[Union[int, str]] = []

        if isinstance(key, int):
            return [str(key)]
        for k in key.split(cls.SEP):
            try:
                ret.append(value_to_int(k))
            except GXLFIPError:
                ret.append(k)
        return ret

    def get(self, key: str, defaults: Optional[Any] = None) -> Any:
        """Get configuration value with nested key support.

        :param key: Key name including support of key path with '/'.
        :param defaults: Default value in case that item doesn't exist, defaults to None.
        :return: Configuration value or default if key not found.
        """
        try:
            return self.__getitem__(key)
        except GXLFIPError:
            return defaults

    def __getitem__(self, key: str) -> Any:
        def gets(source: Any, key_path: list) -> Any:
            key = key_path.pop(0)
            if isinstance(source, list):
                if not isinstance(key, int):
                    raise GXLFIPError("Invalid key path - from list must be used number as key")
                ret = source[key]
            elif isinstance(source, dict):
                ret = dict.get(source, key)
            else:
                raise GXLFIPError("Invalid configuration key path.")

            if ret is None:
                raise GXLFIPKeyError(f"The {key} doesn't exists in {str(self)}")

            if len(key_path):
                return gets(ret, key_path)

            return ret

        try:
            return gets(self, self.get_path(key))
        except GXLFIPKeyError:
            return gets(self, [key])

    def get_input_file_name(self, key: str) -> str:
        """Get the absolute input file name.

        :param key: Key path to config with input file name.
        :raises GXLFIPError: Cannot find input file for the specified key.
        :return: The absolute path to input file.
        """
        try:
            return find_file(self[key], search_paths=self.search_paths)
        except GXLFIPError as exc:
            raise GXLFIPError(f"Cannot find input file for '{key}': {str(exc)}") from exc

    def get_output_file_name(self, key: str) -> str:
        """Get the absolute output file name.

        Relative paths are resolved against the configuration directory.

        :param key: Key path to config with output file name.
        :return: The absolute path to output file with forward slashes.
        """
        path = self[key]
        if os.path.isabs(path):
            return path
        return str(os.path.abspath(os.path.join(self.config_dir, path))).replace("\\", "/")

    def get_str(self, key: str, default: Optional[str] = None) -> str:
        """Get the key value as string.

        :param key: Key name of the configuration entry.
        :param default: Default value to return if the key doesn't exist in configuration.
        :raises GXLFIPError: If the retrieved value is not a string type.
        :return: Configuration value as string.
        """
        ret = self.get(key, default)
        if not isinstance(ret, str):
            raise GXLFIPError(f"The value is not string at key: {key}")
        return ret

    def load_symmetric_key(
        self,
        key: str,
        expected_size: int,
        default: Optional[bytes] = None,
        name: Optional[str] = "key",
    ) -> bytes:
        """Load symmetric key from configuration.

        The key can be provided as a path to a file with hexadecimal or binary value,
        or directly as a hexadecimal string.

        :param key: Configuration key name to retrieve the symmetric key.
        :param expected_size: Expected size of the key in bytes.
        :param default: Default value to use if the configuration key doesn't exist.
        :param name: Descriptive name for the key/data being loaded.
        :raises GXLFIPError: If the configuration key doesn't exist and no default is provided.
        :return: Symmetric key as bytes.
        """
        ret = self.get(key, default)
        if ret is None:
            raise GXLFIPError(f"The key '{key}' doesn't exists.")
        if isinstance(ret, bytes):
            return ret
        return load_hex_string(
            source=ret, expected_size=expected_size, search_paths=self.search_paths, name=name
        )

    def check(self, schemas: list[dict[str, Any]], check_unknown_props: bool = False) -> None:
        """Check configuration against validation schemas.

        :param schemas: List of validation schemas.
        :param check_unknown_props: If True, check for unknown properties in config
            and print warnings.
        """
        check_config(
            self, schemas, search_paths=self.search_paths, check_unknown_props=check_unknown_props
        )
