#!/usr/bin/env python
# -*- coding: UTF-8 -*-
# Copyright 2021-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GXLFIP schema-based configuration validation utilities.

Validation of configuration data against JSON schemas and generation of commented
YAML configuration templates from the same schemas.
"""

import copy
import io
import logging
import os
import re
from typing import Any, Callable, Optional, Union

import fastjsonschema
from deepmerge import always_merger
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap as CMap

from gxlfip import GXLFIP_SCHEMA_STRICT, GXLFIP_YML_INDENT
from gxlfip.exceptions import GXLFIPError
from gxlfip.utils.ext_enum import ExtEnum
from gxlfip.utils.misc import find_file, wrap_text

logger = logging.getLogger(__name__)


class PropertyRequired(ExtEnum):
    """Property requirement level enumeration for schema validation."""

    REQUIRED = (0, "REQUIRED", "Required")
    CONDITIONALLY_REQUIRED = (1, "CONDITIONALLY_REQUIRED", "Conditionally required")
    OPTIONAL = (2, "OPTIONAL", "Optional")


def _is_hex_number(param: Any) -> bool:
    """Check if the input represents a hexadecimal number.

    :param param: Input value to analyze for hexadecimal format compatibility.
    :return: True if input represents a valid hexadecimal number, False otherwise.
    """
    try:
        if isinstance(param, str):
            if param.startswith("0x"):
                param = param[2:]
        bytes.fromhex(param)
        return True
    except (TypeError, ValueError):
        return False


def _print_validation_fail_reason(
    exc: fastjsonschema.JsonSchemaValueException,
    extra_formatters: Optional[dict[str, Callable[[str], bool]]] = None,
) -> str:
    """Format JSON schema validation failure into human-readable error message.

    :param exc: The JSON schema validation exception to process.
    :param extra_formatters: Optional dictionary of custom format validators for schema validation.
    :return: Formatted error message explaining the validation failure reason.
    """
    message = str(exc)
    if exc.rule == "required":
        missing = filter(lambda x: x not in exc.value.keys(), exc.rule_definition)
        message += f"; Missing field(s): {', '.join(missing)}"
    elif exc.rule == "format":
        if exc.rule_definition == "file":
            message += f"; Non-existing file: {exc.value}"
            message += "; The file must exists even if the key is NOT used in configuration."
        elif exc.rule_definition == "file-or-hex-value":
            message += (
                f"; Value '{exc.value}' is neither a valid hex value nor an existing file path"
                "; The value must be either a valid hex string (e.g. 0x1234ABCD) "
                "or a path to an existing file."
            )
    elif exc.rule in ("anyOf", "oneOf"):
        for rule_def_ix, rule_def in enumerate(exc.rule_definition):
            try:
                validator = fastjsonschema.compile(rule_def, formats=extra_formatters)
                validator(exc.value)
                message += f"\nRule#{rule_def_ix} passed.\n"
            except fastjsonschema.JsonSchemaValueException as _exc:
                message += (
                    f"\nReason of fail for {exc.rule} rule#{rule_def_ix}: "
                    f"\n {_print_validation_fail_reason(_exc, extra_formatters)}\n"
                )
    return message


def check_unknown_properties(config_dict: dict, schema_dict: dict, path: str = "") -> None:
    """Recursively check for unknown properties in configuration against schema.

    :param config_dict: Configuration dictionary to validate
    :param schema_dict: JSON schema dictionary defining allowed properties
    :param path: Current path in the configuration for error reporting
    :raises GXLFIPError: When unknown property is found and strict mode is enabled
    """
    if "properties" not in schema_dict and "patternProperties" not in schema_dict:
        return

    schema_props = schema_dict.get("properties", {})
    pattern_props = schema_dict.get("patternProperties", {})

    for key, value in config_dict.items():
        current_path = f"{path}.{key}" if path else key

        if key in schema_props:
            if isinstance(value, dict) and isinstance(schema_props[key], dict):
                check_unknown_properties(value, schema_props[key], current_path)
            continue

        if any(re.match(pattern, key) for pattern in pattern_props):
            continue

        error_msg = f"Unknown property found in configuration: '{current_path}'"
        if GXLFIP_SCHEMA_STRICT:
            raise GXLFIPError(error_msg)
        logger.warning(error_msg)


def check_config(
    config: dict[str, Any],
    schemas: list[dict[str, Any]],
    extra_formatters: Optional[dict[str, Callable[[str], bool]]] = None,
    search_paths: Optional[list[str]] = None,
    check_unknown_props: bool = False,
) -> None:
    """Check the configuration by provided list of validation schemas.

    The schemas are merged together before validation. Custom formats resolve files
    and directories against the search paths.

    :param config: Configuration dictionary to validate.
    :param schemas: List of JSON schema dictionaries for validation.
    :param extra_formatters: Additional custom format validators for schema validation.
    :param search_paths: List of directory paths to search for files during validation.
    :param check_unknown_props: Whether to check and warn about unknown properties in config.
    :raises GXLFIPError: Invalid validation schema or configuration validation failed.
    """
    custom_formatters: dict[str, Callable[[str], bool]] = {
        "file": lambda x: bool(find_file(x, search_paths=search_paths, raise_exc=False)),
        "file_name": lambda x: os.path.basename(x.replace("\\", "/")) not in ("", None),
        "optional_file": lambda x: not x
        or bool(find_file(x, search_paths=search_paths, raise_exc=False)),
        "file-or-hex-value": lambda x: (
            _is_hex_number(x) or bool(find_file(x, search_paths=search_paths, raise_exc=False))
        ),
    }

    config_to_check = copy.deepcopy(config)

    schema: dict[str, Any] = {}
    for sch in schemas:
        always_merger.merge(schema, copy.deepcopy(sch))
    formats = always_merger.merge(custom_formatters, extra_formatters or {})
    if check_unknown_props:
        check_unknown_properties(config_to_check, schema)

    try:
        validator = fastjsonschema.compile(schema, formats=formats)
    except (TypeError, fastjsonschema.JsonSchemaDefinitionException) as exc:
        raise GXLFIPError(f"Invalid validation schema to check config: {str(exc)}") from exc
    try:
        validator(config_to_check)
    except fastjsonschema.JsonSchemaValueException as exc:
        message = _print_validation_fail_reason(exc, formats)
        raise GXLFIPError(f"Configuration validation failed: {message}") from exc


class CommentedConfig:
    """GXLFIP Configuration Template Generator.

    Generates commented YAML configuration templates from object schemas with
    flat properties.

    :cvar MAX_LINE_LENGTH: Maximum line length for generated comments and formatting.
    """

    MAX_LINE_LENGTH = 120 - 2  # Minus '# '

    def __init__(
        self,
        main_title: str,
        schemas: list[dict[str, Any]],
        note: Optional[str] = None,
    ):
        """Initialize configuration template generator.

        :param main_title: Main title of the generated configuration template.
        :param schemas: List of JSON schema dictionaries to process for template generation.
        :param note: Optional additional note to display after the title section.
        """
        self.main_title = main_title
        self.schemas = schemas
        self.note = note

    def _get_title_block(self, title: str, description: Optional[str] = None) -> str:
        delimiter = "=" * self.MAX_LINE_LENGTH
        ret = delimiter + "\n" + f" == {title} == ".center(self.MAX_LINE_LENGTH) + "\n"
        if description:
            lines = wrap_text(description, self.MAX_LINE_LENGTH).splitlines()
            ret += "\n".join([line.center(self.MAX_LINE_LENGTH) for line in lines])
            ret += "\n"
        ret += delimiter
        return ret

    @staticmethod
    def get_property_optional_required(key: str, block: dict[str, Any]) -> PropertyRequired:
        """Determine if a configuration property is required, optional, or conditionally required.

        :param key: Name of the configuration property to check.
        :param block: JSON schema block containing property definitions and requirements.
        :return: Requirement level of the property.
        """
        if key in block.get("required", []):
            return PropertyRequired.REQUIRED
        for keyword in ("allOf", "anyOf", "oneOf"):
            for option in block.get(keyword, []):
                if key in option.get("required", []):
                    return PropertyRequired.CONDITIONALLY_REQUIRED
        return PropertyRequired.OPTIONAL

    def _add_comment(self, cfg: CMap, schema: dict[str, Any], key: str, required: str) -> None:
        title = schema.get("title", "")
        descr = schema.get("description", "")
        enum_list = schema.get("enum_template", schema.get("enum", []))
        if not title:
            return
        comment = f"===== {title} [{required}] =====".center(self.MAX_LINE_LENGTH, "-")
        if descr:
            comment += wrap_text("\nDescription: " + descr, max_line=self.MAX_LINE_LENGTH)
        if enum_list:
            enum = "Possible options: <" + ", ".join([str(x) for x in enum_list]) + ">"
            comment += wrap_text("\n" + enum, max_line=self.MAX_LINE_LENGTH)
        cfg.yaml_set_comment_before_after_key(key, comment, indent=0)

    def export(self, config: Optional[dict[str, Any]] = None) -> CMap:
        """Export configuration template into CommentedMap.

        :param config: Optional configuration dictionary to be applied to template.
        :raises GXLFIPError: Template generation failed due to processing errors.
        :return: Configuration template as CommentedMap with proper formatting.
        """
        merged: dict[str, Any] = {}
        for schema in self.schemas:
            always_merger.merge(merged, copy.deepcopy(schema))
        if merged.get("type") != "object" or "properties" not in merged:
            raise GXLFIPError("Template generation failed: schema is not an object block")

        cfg = CMap()
        for key, val_p in merged["properties"].items():
            if config is not None:
                value = config.get(key)
                if value is None:
                    continue
            elif val_p.get("skip_in_template", False):
                continue
            elif "template_value" in val_p:
                value = val_p["template_value"]
            else:
                raise GXLFIPError(f"Template generation failed: no template value for {key}")
            cfg[key] = value
            required = self.get_property_optional_required(key, merged).description
            self._add_comment(cfg, val_p, key, required or "")

        if not cfg:
            raise GXLFIPError("Configuration cannot be empty")
        title = f"  {self.main_title}  ".center(self.MAX_LINE_LENGTH, "=") + "\n\n"
        if self.note:
            title += f"\n{' Note '.center(self.MAX_LINE_LENGTH, '-')}\n"
            title += wrap_text(self.note, self.MAX_LINE_LENGTH) + "\n"
        title += self._get_title_block(
            merged.get("title", "General Options"), merged.get("description")
        )
        cfg.yaml_set_start_comment(title)
        return cfg

    def get_template(self) -> str:
        """Export configuration template directly into YAML string format."""
        return self.convert_cm_to_yaml(self.export())

    def get_config(self, config: dict[str, Any]) -> str:
        """Export configuration directly into YAML string format.

        :param config: Configuration dictionary to be exported.
        :return: YAML string representation of the configuration.
        """
        return self.convert_cm_to_yaml(self.export(config))

    @staticmethod
    def convert_cm_to_yaml(config: Union[CMap, dict]) -> str:
        """Convert Commented Map into final YAML string.

        :param config: Configuration in Commented Map format.
        :raises GXLFIPError: If configuration is empty.
        :return: YAML string with configuration ready for file storage.
        """
        if not config:
            raise GXLFIPError("Configuration cannot be empty")
        yaml = YAML(pure=True)
        yaml.indent(sequence=GXLFIP_YML_INDENT * 2, offset=GXLFIP_YML_INDENT)
        yaml.width = 200
        stream = io.StringIO()
        yaml.dump(config, stream)
        return stream.getvalue()
