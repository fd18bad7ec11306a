"""Result aggregation for sync pipeline runs.

This module provides:
- SyncReport: Stats and errors observed over a whole run
- ResultAggregator: Drains a pipeline's stats and error streams
- sync: Convenience function running a pipeline to completion
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from booksync.sync.discovery import FILE_STREAM_BOUND
from booksync.sync.pipeline import SyncPipeline
from booksync.sync.types import PipelineState, Stat, SyncError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from booksync.sync.types import SourceSpec

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Everything a pipeline reported during one run."""

    stats: list[Stat] = field(default_factory=list)
    errors: list[SyncError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """A run succeeds only if no error was observed."""
        return not self.errors

    @property
    def exit_code(self) -> int:
        """Process exit status for this run."""
        return 0 if self.succeeded else 1

    def count(self, category: str) -> int | None:
        """Get the count of the first stat with the given category."""
        for stat in self.stats:
            if stat.category == category:
                return stat.count
        return None


class ResultAggregator:
    """Drains the output streams of a SyncPipeline.

    Stats are drained on a helper thread and errors on the calling thread,
    so neither stream can hold up the other. Callbacks fire as items
    arrive, before the run is over.
    """

    def __init__(
        self,
        on_stat: Callable[[Stat], None] | None = None,
        on_error: Callable[[SyncError], None] | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            on_stat: Called for every stat as it arrives.
            on_error: Called for every error as it arrives.
        """
        self._on_stat = on_stat
        self._on_error = on_error

    def collect(self, pipeline: SyncPipeline) -> SyncReport:
        """Start the pipeline if needed and drain it to completion.

        Returns:
            The report of the whole run.
        """
        report = SyncReport()

        if pipeline.state == PipelineState.IDLE:
            pipeline.start()

        def drain_stats() -> None:
            for stat in pipeline.stats:
                report.stats.append(stat)
                if self._on_stat:
                    self._on_stat(stat)

        stats_thread = threading.Thread(
            target=drain_stats, name="StatsCollector", daemon=True
        )
        stats_thread.start()

        for error in pipeline.errors:
            report.errors.append(error)
            if self._on_error:
                self._on_error(error)

        stats_thread.join()
        pipeline.join()
        return report


def sync(
    sources: Sequence[SourceSpec],
    destination: Path,
    dry_run: bool = False,
    max_workers: int | None = None,
    file_buffer: int = FILE_STREAM_BOUND,
    on_stat: Callable[[Stat], None] | None = None,
    on_error: Callable[[SyncError], None] | None = None,
) -> SyncReport:
    """Run a sync pipeline to completion.

    Args:
        sources: Validated source directories.
        destination: Validated destination directory.
        dry_run: Report what would be copied without copying.
        max_workers: Copy concurrency limit (None = one thread per file).
        file_buffer: Bound of the discovered-file stream.
        on_stat: Called for every stat as it arrives.
        on_error: Called for every error as it arrives.

    Returns:
        The report of the run.
    """
    pipeline = SyncPipeline(
        sources,
        destination,
        dry_run=dry_run,
        max_workers=max_workers,
        file_buffer=file_buffer,
    )
    return ResultAggregator(on_stat=on_stat, on_error=on_error).collect(pipeline)
