"""
Main CLI entry point for ModUpdater.

This module defines the Click command group and registers all subcommands.
"""

from pathlib import Path
from typing import Optional

import click

from modupdater.cli.context import CliOptions
from modupdater.cli.list_mods import list_mods
from modupdater.cli.update import update
from modupdater.utils.app_info import AppInfo


@click.group()
@click.version_option(version=AppInfo().app_version, prog_name="ModUpdater")
@click.option(
    "--mods-dir",
    "-d",
    type=click.Path(path_type=Path),
    envvar="MODUPDATER_MODS_DIR",
    help="Mods directory. Defaults to mods_folder from settings.json, then the Steam install.",
)
@click.option("--debug", is_flag=True, help="Write debug messages to the log file.")
@click.pass_context
def cli(ctx: click.Context, mods_dir: Optional[Path], debug: bool) -> None:
    """ModUpdater - keep installed SMAPI mods up to date

    Finds every mod with a manifest.json below the mods directory and updates
    it from the source declared in its UpdateKeys.
    """
    ctx.obj = CliOptions(mods_dir=mods_dir, debug=debug)


# Register subcommands
cli.add_command(list_mods)
cli.add_command(update)


if __name__ == "__main__":
    cli()
