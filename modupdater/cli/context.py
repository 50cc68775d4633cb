import platform
import sys
from dataclasses import dataclass
from functools import update_wrapper
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import click
from loguru import logger

from modupdater.models.settings import Settings
from modupdater.utils.exception import SettingsError
from modupdater.utils.logging_setup import setup_logging

STEAM_MODS_SUBPATH = Path("steamapps/common/Stardew Valley/Mods")


@dataclass
class CliOptions:
    """Raw options of the command group, resolved only once a subcommand runs."""

    mods_dir: Optional[Path] = None
    debug: bool = False


@dataclass
class CliContext:
    """State resolved from the group options and shared with subcommands."""

    settings: Settings
    mods_dir: Path


def fail(message: str) -> NoReturn:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def default_mods_dir(system: Optional[str] = None) -> Optional[Path]:
    """
    The mods folder of a default Steam install of the game, or None if unknown.
    """
    system = system or platform.system()
    if system == "Windows":
        return Path(r"C:\Program Files (x86)\Steam") / STEAM_MODS_SUBPATH
    if system in ("Linux", "Darwin"):
        return Path.home() / ".steam/steam" / STEAM_MODS_SUBPATH
    return None


def resolve_context(options: CliOptions) -> CliContext:
    """
    Set up logging, load settings and find the mods directory.

    The mods directory comes from the option (or its environment variable), then
    ``mods_folder`` in the settings, then the default Steam location.
    """
    setup_logging(debug=options.debug)

    try:
        settings = Settings.load()
    except SettingsError as e:
        fail(str(e))

    mods_dir = options.mods_dir
    if mods_dir is None and settings.mods_folder:
        mods_dir = Path(settings.mods_folder)
    if mods_dir is None:
        mods_dir = default_mods_dir()
    if mods_dir is None:
        fail("Could not determine mods directory, please specify with -d <dir>")
    mods_dir = mods_dir.expanduser()
    if not mods_dir.is_dir():
        fail("Invalid mods directory")

    logger.info(f"Using mods directory {mods_dir}")
    return CliContext(settings=settings, mods_dir=mods_dir)


def pass_cli_context(f: Callable[..., Any]) -> Callable[..., Any]:
    """
    Like ``click.pass_obj``, but hands the subcommand a resolved CliContext.

    Resolution happens when the subcommand callback runs, so ``--help`` on a
    subcommand never touches settings, logs or the mods directory.
    """

    def new_func(*args: Any, **kwargs: Any) -> Any:
        ctx = click.get_current_context()
        options = ctx.find_object(CliOptions) or CliOptions()
        return ctx.invoke(f, resolve_context(options), *args, **kwargs)

    return update_wrapper(new_func, f)
