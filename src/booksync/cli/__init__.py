"""Command-line interface for booksync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Copy new documents to the e-reader
- configure: Save default settings
- config: Show the effective configuration
"""

from __future__ import annotations

import click

from booksync.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    resolve_sync_config,
    save_config,
)
from booksync.cli.configure import configure, show_config
from booksync.cli.sync import sync


@click.group()
@click.version_option(package_name="booksync")
def cli() -> None:
    """booksync - Copy new documents from local folders to an e-reader."""


cli.add_command(sync)
cli.add_command(configure)
cli.add_command(show_config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "resolve_sync_config",
    "save_config",
]
