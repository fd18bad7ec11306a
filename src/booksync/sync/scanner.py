"""Directory scanner for discovering documents in one source tree.

This module provides:
- DirectoryScanner: Walks a SourceSpec's directory and emits matching files

The scanner is best effort. Unreadable directories and entries are reported
on the error stream and the walk carries on with their siblings. Symbolic
links are never followed and never emitted.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from booksync.sync.matcher import matches
from booksync.sync.types import DiscoveryError, SourceSpec, Stat, SyncError

if TYPE_CHECKING:
    from booksync.sync.stream import CompletionBarrier, Stream

logger = logging.getLogger(__name__)


class DirectoryScanner:
    """Scans one source directory tree for matching files.

    Usage:
        scanner = DirectoryScanner(spec, files, errors, stats, barrier)
        scanner.scan()  # usually as a thread target
    """

    def __init__(
        self,
        spec: SourceSpec,
        files: Stream[Path],
        errors: Stream[SyncError],
        stats: Stream[Stat],
        barrier: CompletionBarrier | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            spec: Source directory and extensions to match.
            files: Shared stream receiving matching file paths.
            errors: Error stream for per-entry failures.
            stats: Statistics stream receiving the discovery count.
            barrier: Optional barrier signalled once the scan finishes.
        """
        self._spec = spec
        self._files = files
        self._errors = errors
        self._stats = stats
        self._barrier = barrier
        self._count = 0

    @property
    def count(self) -> int:
        """Get the number of matching files emitted so far."""
        return self._count

    def scan(self) -> int:
        """Walk the source tree and emit every matching regular file.

        Always emits exactly one Stat and signals the barrier, even when the
        walk fails.

        Returns:
            Number of matching files emitted.
        """
        root = self._spec.path
        logger.debug(f"Scanning {root} for {sorted(self._spec.extensions)}")
        try:
            self._walk(root)
        except Exception as e:
            logger.exception(f"Unexpected error while scanning {root}")
            self._errors.put(DiscoveryError(root, e))
        finally:
            self._stats.put(Stat(category=self._spec.category, count=self._count))
            logger.debug(f"Finished scanning {root}: {self._count} matches")
            if self._barrier is not None:
                self._barrier.done()
        return self._count

    def _walk(self, root: Path) -> None:
        for dirpath, _dirnames, filenames in os.walk(
            root, onerror=self._on_walk_error, followlinks=False
        ):
            for filename in filenames:
                file_path = os.path.join(dirpath, filename)
                try:
                    mode = os.lstat(file_path).st_mode
                except OSError as e:
                    self._report(file_path, e)
                    continue

                # Symlinks and special files are never synced
                if not stat.S_ISREG(mode):
                    if stat.S_ISLNK(mode):
                        logger.debug(f"Not following symlink: {file_path}")
                    continue

                if matches(filename, self._spec.extensions):
                    self._files.put(Path(file_path))
                    self._count += 1

    def _on_walk_error(self, error: OSError) -> None:
        self._report(error.filename or self._spec.path, error)

    def _report(self, path: str | Path, error: OSError) -> None:
        logger.debug(f"Cannot read {path}: {error}")
        self._errors.put(DiscoveryError(path, error))


def scan(
    spec: SourceSpec,
    files: Stream[Path],
    errors: Stream[SyncError],
    stats: Stream[Stat],
    barrier: CompletionBarrier | None = None,
) -> int:
    """Scan a single source tree. See DirectoryScanner.scan()."""
    return DirectoryScanner(spec, files, errors, stats, barrier).scan()
