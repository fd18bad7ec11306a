"""Sync pipeline: wires discovery into copying and owns the output streams.

Phases:
    DISCOVERING -> COPYING -> FINALIZING -> DONE

Discovery and copying are pipelined: copy workers start as soon as the
first file is discovered. The pipeline stays in DISCOVERING until the file
stream is closed, then in COPYING until every copy worker has joined.
FINALIZING emits the aggregate skipped and copied stats (in that order),
then closes the statistics stream and the error stream.

Callers must drain `stats` and `errors` while the pipeline runs; see
booksync.sync.results.ResultAggregator.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from booksync.sync.coordinator import CopyCoordinator
from booksync.sync.discovery import FILE_STREAM_BOUND, DiscoveryCoordinator
from booksync.sync.stream import Stream
from booksync.sync.types import CopyCounts, PipelineState, Stat, SyncError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from booksync.core.config import SyncConfig
    from booksync.sync.types import SourceSpec

logger = logging.getLogger(__name__)

SKIPPED_CATEGORY = "documents not copied because they already existed on the destination"
COPIED_CATEGORY = "documents copied"
DRY_RUN_COPIED_CATEGORY = "documents that would be copied"


class SyncPipeline:
    """Discovers documents in the sources and copies new ones to the destination.

    Usage:
        pipeline = SyncPipeline(sources, destination, dry_run=True)
        pipeline.start()
        # drain pipeline.stats and pipeline.errors concurrently
        pipeline.join()
    """

    def __init__(
        self,
        sources: Sequence[SourceSpec],
        destination: Path,
        dry_run: bool = False,
        max_workers: int | None = None,
        file_buffer: int = FILE_STREAM_BOUND,
    ) -> None:
        """Initialize the pipeline.

        Args:
            sources: Validated source directories.
            destination: Validated destination directory.
            dry_run: Report what would be copied without copying.
            max_workers: Copy concurrency limit (None = one thread per file).
            file_buffer: Bound of the discovered-file stream.
        """
        self._sources = list(sources)
        self._destination = Path(destination)
        self._dry_run = dry_run
        self._max_workers = max_workers
        self._file_buffer = file_buffer

        self.errors: Stream[SyncError] = Stream(name="errors")
        self.stats: Stream[Stat] = Stream(name="stats")

        self._state = PipelineState.IDLE
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._counts: CopyCounts | None = None

    @classmethod
    def from_config(cls, config: SyncConfig) -> SyncPipeline:
        """Create a pipeline from a validated SyncConfig."""
        return cls(
            sources=config.sources,
            destination=config.destination,
            dry_run=config.dry_run,
            max_workers=config.max_workers,
            file_buffer=config.file_buffer,
        )

    @property
    def state(self) -> PipelineState:
        """Get the current phase."""
        return self._state

    @property
    def counts(self) -> CopyCounts | None:
        """Get final copy counts, once the pipeline is done."""
        return self._counts

    @property
    def dry_run(self) -> bool:
        """Check if the pipeline only simulates copies."""
        return self._dry_run

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        logger.debug(f"Sync pipeline: {state.name}")

    def start(self) -> None:
        """Run the pipeline in a background thread."""
        self._claim()
        self._thread = threading.Thread(
            target=self._run, name="SyncPipeline", daemon=True
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait for a pipeline started with start() to finish."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self) -> CopyCounts:
        """Run the pipeline in the calling thread.

        The output streams are unbounded, so they may be drained afterwards.

        Returns:
            Final copy counts.
        """
        self._claim()
        return self._run()

    def _claim(self) -> None:
        with self._lock:
            if self._state != PipelineState.IDLE:
                raise RuntimeError("Sync pipeline can only run once")
            self._set_state(PipelineState.DISCOVERING)

    def _run(self) -> CopyCounts:
        counts = CopyCounts()
        try:
            discovery = DiscoveryCoordinator(
                self._sources, self.errors, self.stats, buffer_size=self._file_buffer
            )
            files = discovery.discover()

            copier = CopyCoordinator(
                self._destination,
                dry_run=self._dry_run,
                errors=self.errors,
                max_workers=self._max_workers,
            )
            counts = copier.copy_all(self._until_discovered(files))
            discovery.join()

            self._set_state(PipelineState.FINALIZING)
            self.stats.put(Stat(category=SKIPPED_CATEGORY, count=counts.skipped))
            copied_category = DRY_RUN_COPIED_CATEGORY if self._dry_run else COPIED_CATEGORY
            self.stats.put(Stat(category=copied_category, count=counts.copied))
        except Exception as e:
            logger.exception("Sync pipeline failed")
            self.errors.put(SyncError(f"sync pipeline failed: {e}"))
        finally:
            self._counts = counts
            self.stats.close()
            self.errors.close()
            self._set_state(PipelineState.DONE)

        logger.info(
            f"Sync finished: {counts.copied} copied, {counts.skipped} skipped, "
            f"{counts.failed} failed"
        )
        return counts

    def _until_discovered(self, files: Iterable[Path]) -> Iterator[Path]:
        yield from files
        self._set_state(PipelineState.COPYING)
