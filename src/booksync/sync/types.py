"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, DiscoveryError, CopyError: Exception classes
- SourceSpec: A source directory and the extensions it contributes
- CopyTask, CopyOutcome, CopyResult: Copy worker input and output
- CopyCounts: Final aggregate counts of a copy run
- Stat: A labelled count sent on the statistics stream
- PipelineState: Phases of the sync pipeline
- AtomicCounter: Thread-safe monotonic counter
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from enum import IntEnum, auto
from pathlib import Path


class SyncError(Exception):
    """Base exception for sync errors."""


class DiscoveryError(SyncError):
    """Failed to visit an entry while walking a source directory.

    Attributes:
        path: Path of the entry (or directory) that could not be read.
        cause: The underlying OS error, if any.
    """

    def __init__(self, path: str | Path, cause: BaseException | None = None) -> None:
        self.path = Path(path)
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"could not read {self.path}{detail}")


class CopyError(SyncError):
    """Failed to copy a discovered file to the destination.

    Attributes:
        source: Source file path.
        destination: Destination file path.
        cause: The underlying error, if any.
    """

    def __init__(
        self,
        source: str | Path,
        destination: str | Path,
        cause: BaseException | None = None,
    ) -> None:
        self.source = Path(source)
        self.destination = Path(destination)
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"could not copy {self.source} to {self.destination}{detail}")


@dataclass(frozen=True)
class SourceSpec:
    """A source directory to discover documents in.

    Attributes:
        path: Root directory to walk.
        category: Human-readable label for the discovery statistic.
        extensions: Extensions to match, with the leading dot (e.g. ".pdf").
    """

    path: Path
    category: str
    extensions: frozenset[str]

    @classmethod
    def create(
        cls,
        path: str | Path,
        extensions: list[str] | set[str] | frozenset[str] | tuple[str, ...],
        category: str | None = None,
    ) -> SourceSpec:
        """Create a SourceSpec with the default category label.

        Args:
            path: Root directory to walk.
            extensions: Extensions to match, with the leading dot.
            category: Optional label; defaults to "found documents in the
                <path> directory".

        Returns:
            A new SourceSpec instance.
        """
        path = Path(path)
        return cls(
            path=path,
            category=category or f"found documents in the {path} directory",
            extensions=frozenset(extensions),
        )


@dataclass(frozen=True)
class CopyTask:
    """A single discovered file to copy into the destination directory."""

    source: Path
    destination: Path
    dry_run: bool = False

    @property
    def destination_path(self) -> Path:
        """Destination file path, named after the source's base name."""
        return self.destination / os.path.basename(self.source)


class CopyOutcome(IntEnum):
    """Terminal result of a copy attempt."""

    COPIED = auto()
    SKIPPED = auto()
    FAILED = auto()


@dataclass
class CopyResult:
    """Result of one copy worker execution.

    Attributes:
        task: The task that was executed.
        outcome: What happened to the file.
        error: The error when outcome is FAILED.
    """

    task: CopyTask
    outcome: CopyOutcome
    error: SyncError | None = None

    @property
    def failed(self) -> bool:
        """Check if the copy failed."""
        return self.outcome == CopyOutcome.FAILED


@dataclass
class CopyCounts:
    """Final counts of a copy run."""

    skipped: int = 0
    copied: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        """Number of files that reached a terminal outcome."""
        return self.skipped + self.copied + self.failed


@dataclass(frozen=True)
class Stat:
    """A labelled count reported on the statistics stream."""

    category: str
    count: int

    def __str__(self) -> str:
        return f"{self.category}: {self.count}"


class PipelineState(IntEnum):
    """Phase of the sync pipeline."""

    IDLE = auto()
    DISCOVERING = auto()
    COPYING = auto()
    FINALIZING = auto()
    DONE = auto()


@dataclass
class AtomicCounter:
    """Counter that can be incremented from many threads."""

    _value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, amount: int = 1) -> int:
        """Add to the counter and return the new value."""
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        """Current counter value."""
        with self._lock:
            return self._value
