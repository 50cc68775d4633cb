"""
update subcommand: check every installed mod for a newer release and install it.

Version changes go to stdout, one line per updated mod. Everything else
(up-to-date notices, per-mod failures, the final summary) goes to stderr.
"""

from pathlib import Path

import click
from loguru import logger

from modupdater.cli.context import CliContext, fail, pass_cli_context
from modupdater.controllers.update_controller import UpdateController
from modupdater.models.outcome import UpdateOutcome, Updated, UpToDate
from modupdater.models.package import Package
from modupdater.utils.exception import ManifestError
from modupdater.utils.http import get_session
from modupdater.utils.locator import locate_mods
from modupdater.utils.sources.registry import create_clients
from modupdater.utils.update_checker import UpdateChecker


def format_outcome(package: Package, outcome: UpdateOutcome, mods_dir: Path) -> str:
    name = package.display_name(mods_dir)
    if isinstance(outcome, Updated):
        if package.version:
            return f"{name}: {package.version} -> {outcome.new_version}"
        return f"{name}: {outcome.new_version}"
    if isinstance(outcome, UpToDate):
        return f"{name}: Already up to date"
    return f"{name}: {outcome.reason}"


@click.command("update")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Skip the up-to-date checks and reinstall the latest release of every mod.",
)
@pass_cli_context
def update(obj: CliContext, force: bool) -> None:
    """Update every installed mod that has a newer release.

    The previous version of each updated mod is kept in the .old folder next to
    it, and config.json files / config folders are carried over to the new version.
    """
    try:
        packages = locate_mods(obj.mods_dir)
    except (ManifestError, OSError) as e:
        fail(str(e))
    logger.info(f"Found {len(packages)} mod(s) in {obj.mods_dir}")

    session = get_session()
    controller = UpdateController(
        settings=obj.settings,
        clients=create_clients(session, obj.settings),
        checker=UpdateChecker(session, obj.settings),
    )

    def echo_outcome(package: Package, outcome: UpdateOutcome) -> None:
        line = format_outcome(package, outcome, obj.mods_dir)
        click.echo(line, err=not isinstance(outcome, Updated))

    try:
        summary = controller.run(packages, force=force, on_outcome=echo_outcome)
    except Exception as e:
        logger.exception("Update run aborted by an unexpected error")
        fail(f"{e.__class__.__name__}: {e}")
    click.echo(str(summary), err=True)
