"""Configuration commands for the booksync CLI.

Commands:
- configure: Save default profile, directories and extensions
- config: Show the effective configuration
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from booksync.cli.config import (
    get_config_file,
    load_config,
    normalize_extension,
    resolve_sync_config,
    save_config,
)
from booksync.cli.profiles import PROFILE_NAMES
from booksync.core.config import ConfigError


@click.command()
@click.option(
    "--profile", "-p", type=click.Choice(PROFILE_NAMES), default=None, help="Default device profile."
)
@click.option(
    "--dest", "destination", type=click.Path(path_type=Path), default=None, help="Default destination."
)
@click.option(
    "--source",
    "-s",
    "sources",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Default source directory (repeatable).",
)
@click.option("--ext", "-e", "extensions", multiple=True, help="Default extension (repeatable).")
@click.option("--clear", is_flag=True, help="Forget all saved settings first.")
def configure(
    profile: str | None,
    destination: Path | None,
    sources: tuple[Path, ...],
    extensions: tuple[str, ...],
    clear: bool,
) -> None:
    """Save default settings used by 'booksync sync'."""
    try:
        config = {} if clear else load_config()
        if profile:
            config["profile"] = profile
        if destination:
            config["destination"] = str(destination.expanduser().resolve())
        if sources:
            config["sources"] = [str(s.expanduser().resolve()) for s in sources]
        if extensions:
            config["extensions"] = [normalize_extension(e) for e in extensions]
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    save_config(config)
    click.echo(f"Saved configuration to {get_config_file()}")


@click.command("config")
@click.option("--profile", "-p", type=click.Choice(PROFILE_NAMES), default=None)
def show_config(profile: str | None) -> None:
    """Show the configuration 'booksync sync' would use."""
    try:
        config = resolve_sync_config(profile=profile)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Config file: {get_config_file()}")
    click.echo(f"Destination: {config.destination}")
    click.echo("Sources:")
    for spec in config.sources:
        click.echo(f"  {spec.path} ({', '.join(sorted(spec.extensions))})")
