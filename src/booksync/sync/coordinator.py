"""Copy coordinator: fans discovered files out to copy workers.

This module provides:
- CopyCoordinator: Consumes the file stream, runs one CopyWorker per file,
  folds each outcome into the skipped/copied counters and forwards failures
  to the error stream

By default every discovered file gets its own thread, launched as soon as
the file arrives. With max_workers set, files are submitted to a bounded
CopyWorkerPool instead. Both modes produce the same counts.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from booksync.sync.stream import CompletionBarrier
from booksync.sync.types import (
    AtomicCounter,
    CopyCounts,
    CopyError,
    CopyOutcome,
    CopyResult,
    CopyTask,
    SyncError,
)
from booksync.sync.workers import CopyWorker, CopyWorkerPool, execute_task

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from booksync.sync.stream import Stream

logger = logging.getLogger(__name__)


class CopyCoordinator:
    """Runs copy workers for every file of a stream.

    Usage:
        coordinator = CopyCoordinator(destination, dry_run=False, errors=errors)
        counts = coordinator.copy_all(files)
    """

    def __init__(
        self,
        destination: Path,
        dry_run: bool,
        errors: Stream[SyncError],
        max_workers: int | None = None,
        worker: CopyWorker | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            destination: Directory receiving the copies.
            dry_run: Only report what would be copied.
            errors: Error stream receiving copy failures.
            max_workers: Concurrency limit (None = one thread per file).
            worker: CopyWorker to execute tasks with.
        """
        self._destination = Path(destination)
        self._dry_run = dry_run
        self._errors = errors
        self._max_workers = max_workers
        self._worker = worker or CopyWorker()

    def copy_all(self, files: Iterable[Path]) -> CopyCounts:
        """Copy every file of the stream and wait for all workers.

        Args:
            files: Discovered files; iteration ends when discovery is done.

        Returns:
            Final counts. FAILED outcomes are counted in `failed` only.
        """
        skipped = AtomicCounter()
        copied = AtomicCounter()
        failed = AtomicCounter()

        def record(result: CopyResult) -> None:
            try:
                if result.outcome == CopyOutcome.SKIPPED:
                    skipped.increment()
                elif result.outcome == CopyOutcome.COPIED:
                    copied.increment()
                else:
                    self._errors.put(
                        result.error
                        or CopyError(result.task.source, result.task.destination_path)
                    )
                    failed.increment()
            except Exception as e:
                # A result that cannot be counted must still fail the run
                logger.exception(f"Could not record copy result for {result.task.source}")
                self._errors.put(
                    SyncError(f"could not record copy result for {result.task.source}: {e}")
                )

        if self._max_workers is None:
            launched = self._run_unbounded(files, record)
        else:
            launched = self._run_pooled(files, record)

        counts = CopyCounts(
            skipped=skipped.value, copied=copied.value, failed=failed.value
        )
        logger.debug(
            f"Copy finished: {launched} file(s), skipped={counts.skipped}, "
            f"copied={counts.copied}, failed={counts.failed}"
        )
        return counts

    def _task_for(self, source: Path) -> CopyTask:
        return CopyTask(source=source, destination=self._destination, dry_run=self._dry_run)

    def _run_unbounded(
        self, files: Iterable[Path], record: Callable[[CopyResult], None]
    ) -> int:
        barrier = CompletionBarrier()
        launched = 0

        def run(task: CopyTask) -> None:
            try:
                record(execute_task(self._worker, task))
            finally:
                barrier.done()

        for source in files:
            task = self._task_for(source)
            barrier.add()
            threading.Thread(
                target=run, args=(task,), name=f"CopyWorker-{launched}", daemon=True
            ).start()
            launched += 1

        barrier.wait()
        return launched

    def _run_pooled(
        self, files: Iterable[Path], record: Callable[[CopyResult], None]
    ) -> int:
        pool = CopyWorkerPool(max_workers=self._max_workers, worker=self._worker)
        pool.start()
        launched = 0
        try:
            for source in files:
                pool.submit(self._task_for(source), on_complete=record)
                launched += 1
        finally:
            pool.stop()
        return launched
