"""
Command-line interface for crate list discovery.

Provides commands for refreshing the crate lists and preparing
working copies of GitHub repositories.
"""

import sys
from pathlib import Path

import click

from cratesync import __version__
from cratesync.core.exceptions import CrateSyncError
from cratesync.utils.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output"
)
@click.option(
    "--log-file",
    type=click.Path(),
    help="Path to log file"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON configuration file"
)
@click.pass_context
def cli(ctx, verbose, log_file, config_path):
    """
    Crate list discovery

    Collect crates from the curated GitHub list, crates.io and a local
    list, and keep local mirrors of GitHub repositories.
    """
    from cratesync.core.config import Config

    ctx.ensure_object(dict)

    try:
        if config_path:
            Config.load_from_file(config_path)
        config = Config.load_from_env()
    except CrateSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    verbose = verbose or config.verbose
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config

    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level, log_file=Path(log_file) if log_file else None)


def _fail(ctx, error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get("verbose"):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@cli.command("update-lists")
@click.option("--github/--no-github", default=None, help="Update the GitHub repositories list")
@click.option("--registry/--no-registry", default=None, help="Update the crates.io list")
@click.option("--local/--no-local", default=None, help="Update the local crates list")
@click.pass_context
def update_lists(ctx, github, registry, local):
    """
    Refresh the stored crate lists.

    Sources run in the order GitHub, crates.io, local. The first
    failing source aborts the update.

    Examples:

        cratesync update-lists

        cratesync update-lists --no-registry
    """
    from cratesync.actions.update_lists import UpdateLists
    from cratesync.storage.backend import JSONCrateStore

    config = ctx.obj["config"]
    action = UpdateLists.from_config(config)
    if github is not None:
        action.github = github
    if registry is not None:
        action.registry = registry
    if local is not None:
        action.local = local

    try:
        store = JSONCrateStore(config.storage)
        total = action.apply(store, config)
    except CrateSyncError as e:
        _fail(ctx, e)

    click.echo(f"Updated lists: {total} crates recorded")


@cli.command()
@click.argument("slug")
@click.argument("dest", type=click.Path(file_okay=False))
@click.pass_context
def prepare(ctx, slug, dest):
    """
    Copy a GitHub repository into DEST through its local mirror.

    SLUG is "org/name"; extra leading path segments are ignored.

    Examples:

        cratesync prepare rust-lang/regex ./work/regex
    """
    from cratesync.crates.models import GitHubRepo
    from cratesync.mirror.manager import MirrorManager

    config = ctx.obj["config"]

    try:
        repo = GitHubRepo.from_slug(slug)
        manager = MirrorManager(config.mirror)
        manager.prepare(repo, Path(dest))
    except CrateSyncError as e:
        _fail(ctx, e)

    click.echo(f"Prepared {repo.slug} in {dest}")


@cli.command("list-crates")
@click.option("--list", "list_name", help="Only show crates from this list")
@click.pass_context
def list_crates(ctx, list_name):
    """List stored crates."""
    from cratesync.storage.backend import JSONCrateStore

    try:
        store = JSONCrateStore(ctx.obj["config"].storage)
    except CrateSyncError as e:
        _fail(ctx, e)

    for record in store.list_crates(list_name):
        click.echo(f"{record.crate.kind:<10} {record.crate}  [{', '.join(sorted(record.lists))}]")


@cli.command("storage-stats")
@click.pass_context
def storage_stats(ctx):
    """Show storage statistics."""
    from cratesync.storage.backend import JSONCrateStore

    try:
        store = JSONCrateStore(ctx.obj["config"].storage)
    except CrateSyncError as e:
        _fail(ctx, e)

    stats = store.get_storage_stats()

    click.echo("Storage Statistics:")
    click.echo("-" * 40)
    click.echo(f"  Stored crates: {stats['crate_count']}")
    for name, count in sorted(stats["per_list"].items()):
        click.echo(f"    {name}: {count}")
    click.echo(f"  Total size: {stats['total_size_mb']:.2f} MB")
    click.echo(f"  Storage dir: {stats['storage_dir']}")


@cli.command()
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="config.json",
    help="Output path for configuration file"
)
def init(output):
    """
    Initialize configuration file.

    Creates a default configuration file that can be customized.
    """
    from cratesync.core.config import Config

    Config.save_to_file(output)
    click.echo(f"Configuration saved to: {output}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
