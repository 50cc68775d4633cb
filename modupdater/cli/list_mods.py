import click

from modupdater.cli.context import CliContext, fail, pass_cli_context
from modupdater.utils.exception import ManifestError
from modupdater.utils.locator import locate_mods


@click.command("list")
@pass_cli_context
def list_mods(obj: CliContext) -> None:
    """List installed mods with their version and preferred update source."""
    try:
        packages = locate_mods(obj.mods_dir)
    except (ManifestError, OSError) as e:
        fail(str(e))

    for package in packages:
        manifest = package.manifest
        relative_path = package.relative_path(obj.mods_dir)
        if manifest.name:
            click.echo(f"{manifest.name} ({relative_path})")
        else:
            click.echo(str(relative_path))
        if manifest.description:
            click.echo(manifest.description)
        if manifest.author:
            click.echo(f"Author: {manifest.author}")
        if manifest.version:
            click.echo(f"Version: {manifest.version}")
        source = package.preferred_source()
        if source is not None:
            click.echo(f"Source: {source.source}")
        click.echo()
    click.echo(f"{len(packages)} mods found")
