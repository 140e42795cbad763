#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause
"""Console script for creating and inspecting FIP boot containers."""

import logging
import os
import sys
from typing import Optional

import click

from gxlfip.apps.utils import gxlfip_logger
from gxlfip.apps.utils.common_cli_options import (
    CommandsTreeGroup,
    gxlfip_apps_common_options,
    gxlfip_config_option,
    gxlfip_output_option,
)
from gxlfip.apps.utils.utils import GXLFIPAppError, catch_gxlfip_error, format_raw_data
from gxlfip.cblk.amlcblk import AES_KEY_SIZE, AmlControlBlock
from gxlfip.crypto.symmetric import AES_BLOCK_SIZE
from gxlfip.fip.container import FipContainer, inspect_container
from gxlfip.fip.format import DEFAULT_FIP_FORMAT, FIP_FORMATS, get_fip_format
from gxlfip.utils.config import Config
from gxlfip.utils.misc import get_printable_path, load_binary, load_hex_string, write_file

logger = logging.getLogger(__name__)

_IMAGE_OPTION_TYPE = click.Path(exists=True, dir_okay=False, resolve_path=True)


@click.group(name="gxlfip", no_args_is_help=True, cls=CommandsTreeGroup)
@gxlfip_apps_common_options
def main(log_level: int) -> None:
    """Utility for creating and parsing FIP boot containers."""
    gxlfip_logger.install(level=log_level)


@main.command(name="create", no_args_is_help=True)
@gxlfip_config_option(required=False)
@click.option("--bl2", type=_IMAGE_OPTION_TYPE, help="Path to BL2 (primary stage) image.")
@click.option("--bl30", type=_IMAGE_OPTION_TYPE, help="Path to BL30 image.")
@click.option("--bl31", type=_IMAGE_OPTION_TYPE, help="Path to BL31 image.")
@click.option("--bl32", type=_IMAGE_OPTION_TYPE, help="Path to optional BL32 image.")
@click.option("--bl33", type=_IMAGE_OPTION_TYPE, help="Path to BL33 image.")
@click.option(
    "--aes-key",
    type=str,
    metavar="KEY|FILE",
    help="AES-256 key of the TOC control block as hex string or file. Random if not specified.",
)
@click.option(
    "--aes-iv",
    type=str,
    metavar="IV|FILE",
    help="AES IV of the TOC control block as hex string or file. Random if not specified.",
)
@click.option(
    "--tmp-dir",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory for temporary files, system temporary directory by default.",
)
@gxlfip_output_option(
    required=False, force=True, help="Path to the created container, overrides the config."
)
def create_command(
    config: Optional[str],
    bl2: Optional[str],
    bl30: Optional[str],
    bl31: Optional[str],
    bl32: Optional[str],
    bl33: Optional[str],
    aes_key: Optional[str],
    aes_iv: Optional[str],
    tmp_dir: Optional[str],
    output: Optional[str],
) -> None:
    """Create FIP container from bootloader images.

    Options given together with the configuration file override its values.
    """
    if config:
        cfg = Config.create_from_file(config)
        overrides = {
            "bl2": bl2,
            "bl30": bl30,
            "bl31": bl31,
            "bl32": bl32,
            "bl33": bl33,
            "aes_key": aes_key,
            "aes_iv": aes_iv,
        }
        for key, value in overrides.items():
            if value:
                logger.debug(f"Configuration value '{key}' overridden by command line option")
                cfg[key] = value
        container = FipContainer.load_from_config(cfg, tmp_dir=tmp_dir)
        if not output:
            output = cfg.get_output_file_name("output")
            if os.path.exists(output) and not click.get_current_context().meta.get("force"):
                raise GXLFIPAppError(
                    f"Output file {get_printable_path(output)} already exists. "
                    "Please use --force if you want to overwrite existing files."
                )
    else:
        images = {"--bl2": bl2, "--bl30": bl30, "--bl31": bl31, "--bl33": bl33}
        missing = [name for name, value in images.items() if not value]
        if not output:
            missing.append("--output")
        if missing:
            raise GXLFIPAppError(
                f"Missing option(s) {', '.join(missing)}, or use the configuration file."
            )
        assert bl2 and bl30 and bl31 and bl33
        encryption = AmlControlBlock(
            aes_key=load_hex_string(aes_key, AES_KEY_SIZE, name="AES key") if aes_key else None,
            aes_iv=load_hex_string(aes_iv, AES_BLOCK_SIZE, name="AES IV") if aes_iv else None,
        )
        container = FipContainer(
            bl2=bl2,
            bl30=bl30,
            bl31=bl31,
            bl32=bl32,
            bl33=bl33,
            encryption=encryption,
            tmp_dir=tmp_dir,
        )
    assert output
    os.makedirs(os.path.dirname(output) or ".", exist_ok=True)
    entries = container.build(output)
    for entry in entries:
        click.echo(f" {entry}")
    click.echo(f"Success. (FIP container: {get_printable_path(output)} created.)")


@main.command(name="parse", no_args_is_help=True)
@click.option(
    "-b",
    "--binary",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    required=True,
    help="Path to the FIP container to parse.",
)
@click.option(
    "-f",
    "--format",
    "fip_format",
    type=click.Choice(list(FIP_FORMATS), case_sensitive=False),
    default=DEFAULT_FIP_FORMAT,
    show_default=True,
    help="Layout of the FIP container.",
)
def parse_command(binary: str, fip_format: str) -> None:
    """Parse FIP container and print its table of contents."""
    info = inspect_container(load_binary(binary), get_fip_format(fip_format))
    click.echo(str(info))
    for index, header in info.toc.entry_headers.items():
        click.echo(f"Entry-point header of TOC entry {index}:")
        click.echo(format_raw_data(header, use_hexdump=True))


@main.command(name="get-template", no_args_is_help=True)
@gxlfip_output_option(force=True)
def get_template_command(output: str) -> None:
    """Generate a template configuration of the FIP container."""
    click.echo(f"Generating {get_printable_path(output)} template file.")
    write_file(FipContainer.get_config_template(), output)


@catch_gxlfip_error
def safe_main() -> None:
    """Call the main function."""
    sys.exit(main())  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    safe_main()
