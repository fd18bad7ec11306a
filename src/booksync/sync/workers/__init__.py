"""Workers for copy operations.

This package provides:
- CopyWorker: Copies, skips or simulates copying a single file
- CopyWorkerPool: Bounded pool of threads running CopyWorkers

Usage:
    from booksync.sync.workers import CopyWorkerPool

    pool = CopyWorkerPool(max_workers=4)
    pool.start()
    pool.submit(task, on_complete=callback)
    pool.stop()
"""

from booksync.sync.workers.copy_worker import (
    COPY_CHUNK_SIZE,
    DEST_FILE_MODE,
    CopyWorker,
    execute_task,
)
from booksync.sync.workers.pool import CopyWorkerPool, PoolItem, PoolState

__all__ = [
    # Worker
    "COPY_CHUNK_SIZE",
    "DEST_FILE_MODE",
    "CopyWorker",
    "execute_task",
    # Pool
    "CopyWorkerPool",
    "PoolItem",
    "PoolState",
]
