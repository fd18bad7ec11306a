"""Sync command for the booksync CLI.

Commands:
- sync: Copy new documents from the source directories to the destination
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import click

from booksync.cli.config import resolve_sync_config
from booksync.cli.profiles import PROFILE_NAMES
from booksync.core.config import ConfigError
from booksync.sync.discovery import FILE_STREAM_BOUND


class EchoHandler(logging.Handler):
    """Logging handler that writes through click.echo.

    Warnings and errors go to stderr, everything else to stdout. Shares a
    lock with the stat/error reporters so lines never interleave.
    """

    def __init__(self, lock: threading.Lock) -> None:
        super().__init__()
        self._lock = lock

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            with self._lock:
                click.echo(msg, err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure_logging(lock: threading.Lock, verbose: bool, quiet: bool) -> None:
    """Install the CLI handler on the booksync logger."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = EchoHandler(lock)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)

    booksync_logger = logging.getLogger("booksync")
    for existing in booksync_logger.handlers[:]:
        booksync_logger.removeHandler(existing)
    booksync_logger.addHandler(handler)
    booksync_logger.setLevel(level)
    booksync_logger.propagate = False


@click.command()
@click.option(
    "--profile",
    "-p",
    type=click.Choice(PROFILE_NAMES),
    default=None,
    help="Device profile providing default directories and extensions.",
)
@click.option(
    "--dest",
    "destination",
    type=click.Path(path_type=Path),
    default=None,
    help="Destination directory, e.g. where the e-reader is mounted.",
)
@click.option(
    "--source",
    "-s",
    "sources",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Source directory containing documents (repeatable).",
)
@click.option(
    "--ext",
    "-e",
    "extensions",
    multiple=True,
    help="File extension to synchronize, e.g. .pdf (repeatable).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Only report where files would be copied, rather than copying them.",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=None,
    help="Limit the number of concurrent copies (default: no limit).",
)
@click.option(
    "--file-buffer",
    type=click.IntRange(min=0),
    default=FILE_STREAM_BOUND,
    show_default=True,
    help="Number of discovered files buffered ahead of the copy workers (0 = no limit).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show statistics and errors.")
def sync(
    profile: str | None,
    destination: Path | None,
    sources: tuple[Path, ...],
    extensions: tuple[str, ...],
    dry_run: bool,
    max_workers: int | None,
    file_buffer: int,
    verbose: bool,
    quiet: bool,
) -> None:
    """Copy new documents to the destination directory.

    Files whose name already exists at the destination are left alone.
    Exits with status 1 if any file could not be read or copied.
    """
    from booksync.sync import ResultAggregator, Stat, SyncError, SyncPipeline

    output_lock = threading.Lock()
    configure_logging(output_lock, verbose, quiet)

    try:
        config = resolve_sync_config(
            profile=profile,
            destination=destination,
            sources=sources,
            extensions=extensions,
            dry_run=dry_run,
            max_workers=max_workers,
            file_buffer=file_buffer,
        )
        config.validate()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    def on_stat(stat: Stat) -> None:
        with output_lock:
            click.echo(str(stat))

    def on_error(error: SyncError) -> None:
        with output_lock:
            click.echo(str(error), err=True)

    pipeline = SyncPipeline.from_config(config)
    report = ResultAggregator(on_stat=on_stat, on_error=on_error).collect(pipeline)

    if not report.succeeded:
        click.echo(f"Finished with {len(report.errors)} error(s)", err=True)
        sys.exit(report.exit_code)
