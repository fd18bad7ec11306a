"""Discovery coordinator: concurrent scanning of every source directory.

Architecture:
    DirectoryScanner (one thread per SourceSpec)
        -> shared file stream
        <- closer thread (waits on the CompletionBarrier, then closes)

The closer thread is the only code that closes the file stream. Scanners are
registered on the barrier before they start, so the barrier cannot be
satisfied while a scanner is still pending launch.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from booksync.sync.scanner import DirectoryScanner
from booksync.sync.stream import CompletionBarrier, Stream

if TYPE_CHECKING:
    from collections.abc import Sequence

    from booksync.sync.types import SourceSpec, Stat, SyncError

logger = logging.getLogger(__name__)

# Number of discovered paths buffered between scanners and copy workers
FILE_STREAM_BOUND = 128


class DiscoveryCoordinator:
    """Runs one DirectoryScanner per source concurrently.

    Usage:
        discovery = DiscoveryCoordinator(sources, errors, stats)
        for path in discovery.discover():
            ...
    """

    def __init__(
        self,
        sources: Sequence[SourceSpec],
        errors: Stream[SyncError],
        stats: Stream[Stat],
        buffer_size: int = FILE_STREAM_BOUND,
    ) -> None:
        """Initialize the coordinator.

        Args:
            sources: Source directories to scan.
            errors: Error stream shared with the scanners.
            stats: Statistics stream shared with the scanners.
            buffer_size: Bound of the file stream (0 = unbounded).
        """
        self._sources = list(sources)
        self._errors = errors
        self._stats = stats
        self._buffer_size = buffer_size
        self._barrier = CompletionBarrier()
        self._threads: list[threading.Thread] = []
        self._closer: threading.Thread | None = None

    @property
    def barrier(self) -> CompletionBarrier:
        """Get the completion barrier for the scanners."""
        return self._barrier

    def discover(self) -> Stream[Path]:
        """Start every scanner and return the shared file stream.

        The stream is closed once all scanners have finished.

        Raises:
            RuntimeError: If discovery was already started.
        """
        if self._closer is not None:
            raise RuntimeError("Discovery already started")

        files: Stream[Path] = Stream(maxsize=self._buffer_size, name="files")

        # Register every scanner before any of them can finish
        self._barrier.add(len(self._sources))

        for i, spec in enumerate(self._sources):
            scanner = DirectoryScanner(
                spec, files, self._errors, self._stats, self._barrier
            )
            thread = threading.Thread(
                target=scanner.scan,
                name=f"Scanner-{i}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        def close_when_done() -> None:
            self._barrier.wait()
            files.close()
            logger.debug(f"Discovery finished for {len(self._sources)} source(s)")

        self._closer = threading.Thread(
            target=close_when_done, name="DiscoveryCloser", daemon=True
        )
        self._closer.start()
        logger.info(f"Discovery started for {len(self._sources)} source(s)")
        return files

    def join(self, timeout: float | None = None) -> None:
        """Wait for every scanner and the closer thread to exit."""
        for thread in self._threads:
            thread.join(timeout=timeout)
        if self._closer is not None:
            self._closer.join(timeout=timeout)
