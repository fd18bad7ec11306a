"""Bounded worker pool for copy tasks.

This module provides:
- CopyWorkerPool: Fixed number of threads consuming a bounded task queue
- PoolState: Lifecycle state of the pool

Used by the CopyCoordinator when a concurrency limit is configured, in place
of one thread per discovered file.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from booksync.sync.workers.copy_worker import CopyWorker, execute_task

if TYPE_CHECKING:
    from collections.abc import Callable

    from booksync.sync.types import CopyResult, CopyTask

logger = logging.getLogger(__name__)


class PoolState(Enum):
    """State of the worker pool."""

    STOPPED = auto()
    RUNNING = auto()
    STOPPING = auto()


@dataclass
class PoolItem:
    """A queued copy task and its completion callback."""

    task: CopyTask
    on_complete: Callable[[CopyResult], None]


class CopyWorkerPool:
    """Pool of threads executing CopyTasks.

    Usage:
        pool = CopyWorkerPool(max_workers=4)
        pool.start()
        pool.submit(task, on_complete=callback)
        pool.stop()  # processes everything submitted, then joins
    """

    def __init__(
        self,
        max_workers: int | None = None,
        worker: CopyWorker | None = None,
    ) -> None:
        """Initialize the worker pool.

        Args:
            max_workers: Number of worker threads. Defaults to CPU count.
            worker: CopyWorker to execute tasks with (stateless, shared).
        """
        self._max_workers = max_workers or max(os.cpu_count() or 4, 2)
        self._worker = worker or CopyWorker()

        self._pool_state = PoolState.STOPPED
        self._lock = threading.Lock()

        # Bounded so submitters block instead of buffering the whole tree
        self._task_queue: queue.Queue[PoolItem | None] = queue.Queue(
            maxsize=self._max_workers * 2
        )
        self._workers: list[threading.Thread] = []
        self._completed_count = 0

    @property
    def state(self) -> PoolState:
        """Get current pool state."""
        return self._pool_state

    @property
    def max_workers(self) -> int:
        """Get the number of worker threads."""
        return self._max_workers

    @property
    def completed_count(self) -> int:
        """Get number of tasks that produced a result."""
        with self._lock:
            return self._completed_count

    def start(self) -> None:
        """Start the worker threads."""
        with self._lock:
            if self._pool_state != PoolState.STOPPED:
                logger.warning("Worker pool already running")
                return

            self._pool_state = PoolState.RUNNING
            for i in range(self._max_workers):
                thread = threading.Thread(
                    target=self._worker_loop,
                    name=f"CopyWorkerPool-{i}",
                    daemon=True,
                )
                thread.start()
                self._workers.append(thread)

        logger.debug(f"Worker pool started with {self._max_workers} workers")

    def submit(
        self, task: CopyTask, on_complete: Callable[[CopyResult], None]
    ) -> bool:
        """Queue a task, blocking while the queue is full.

        Returns:
            True if the task was queued, False if the pool is not running.
        """
        if self._pool_state != PoolState.RUNNING:
            logger.warning("Cannot submit task: pool not running")
            return False

        self._task_queue.put(PoolItem(task=task, on_complete=on_complete))
        return True

    def stop(self) -> None:
        """Finish every queued task, then stop the worker threads."""
        with self._lock:
            if self._pool_state != PoolState.RUNNING:
                return
            self._pool_state = PoolState.STOPPING

        # One poison pill per worker, queued behind the real tasks
        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join()

        with self._lock:
            self._pool_state = PoolState.STOPPED
            self._workers.clear()
        logger.debug("Worker pool stopped")

    def _worker_loop(self) -> None:
        """Main loop for worker threads."""
        while True:
            item = self._task_queue.get()
            if item is None:
                break

            result = execute_task(self._worker, item.task)
            with self._lock:
                self._completed_count += 1
            try:
                item.on_complete(result)
            except Exception:
                logger.exception(f"Completion callback failed for {item.task.source}")
