"""Shared configuration classes for booksync.

This module defines the validated configuration handed to the sync pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from booksync.sync.discovery import FILE_STREAM_BOUND
from booksync.sync.types import SourceSpec


class ConfigError(Exception):
    """Invalid or inconsistent configuration."""


@dataclass
class SyncConfig:
    """Configuration for one sync run.

    Attributes:
        sources: Source directories and the extensions they contribute.
        destination: Directory receiving the copies (e.g. a mounted e-reader).
        dry_run: Report what would be copied without copying.
        max_workers: Copy concurrency limit (None = one thread per file).
        file_buffer: Bound of the discovered-file stream.
    """

    sources: list[SourceSpec]
    destination: Path
    dry_run: bool = False
    max_workers: int | None = None
    file_buffer: int = FILE_STREAM_BOUND
    destination_hint: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        """Normalize the destination path."""
        self.destination = Path(self.destination).expanduser()

    def validate(self) -> None:
        """Check that every configured directory is usable.

        Raises:
            ConfigError: If the destination or a source is missing or not a
                directory, a source is listed twice, or a limit is invalid.
        """
        if not self.destination.is_dir():
            hint = f"; {self.destination_hint}" if self.destination_hint else ""
            raise ConfigError(f"the destination directory {self.destination} does not exist{hint}")

        if not self.sources:
            raise ConfigError("no source directories configured")

        seen: set[Path] = set()
        for spec in self.sources:
            if not spec.path.is_dir():
                raise ConfigError(f"the source directory {spec.path} does not exist")
            if not spec.extensions:
                raise ConfigError(f"no extensions configured for {spec.path}")
            resolved = spec.path.resolve()
            if resolved in seen:
                raise ConfigError(f"duplicate source document directory: {spec.path}")
            seen.add(resolved)

        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError("max workers must be at least 1")
        if self.file_buffer < 0:
            raise ConfigError("file buffer must not be negative")
