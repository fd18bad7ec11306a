"""Copy worker: copies one discovered file into the destination directory.

Each execution produces exactly one CopyResult:
- SKIPPED: a file with the same base name is already at the destination
- COPIED: the bytes were copied, or would be in dry-run mode
- FAILED: opening, creating or streaming failed; the error is attached

The destination is created with O_EXCL, so two workers racing on the same
base name can both pass the existence check but only one of them writes.
The other gets FAILED instead of overwriting.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from typing import TYPE_CHECKING

from booksync.sync.types import CopyError, CopyOutcome, CopyResult, CopyTask

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Permissions for newly created destination files (before umask)
DEST_FILE_MODE = 0o644

COPY_CHUNK_SIZE = 1024 * 1024


def _create_exclusive(path: str, flags: int) -> int:
    return os.open(path, flags | os.O_CREAT | os.O_EXCL, DEST_FILE_MODE)


class CopyWorker:
    """Executes CopyTasks. Never retries.

    Usage:
        worker = CopyWorker()
        result = worker.execute(CopyTask(source, destination, dry_run=False))
    """

    worker_type = "copy"

    def __init__(self, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        """Initialize the worker.

        Args:
            chunk_size: Read size used while streaming bytes.
        """
        self._chunk_size = chunk_size

    def execute(self, task: CopyTask) -> CopyResult:
        """Copy, skip or simulate copying a single file.

        Args:
            task: The file to copy and where to.

        Returns:
            Exactly one CopyResult for the task.
        """
        dest_path = task.destination_path

        if os.path.lexists(dest_path):
            logger.info(
                f"{dest_path} already exists on the destination; will not copy {task.source}"
            )
            return CopyResult(task=task, outcome=CopyOutcome.SKIPPED)

        if task.dry_run:
            logger.info(f"Dry run: would copy {task.source} to {dest_path}")
            return CopyResult(task=task, outcome=CopyOutcome.COPIED)

        start_time = time.monotonic()
        try:
            self._copy(task.source, dest_path)
        except OSError as e:
            logger.debug(f"{self.worker_type} worker failed: {task.source}: {e}")
            return CopyResult(
                task=task,
                outcome=CopyOutcome.FAILED,
                error=CopyError(task.source, dest_path, e),
            )
        except Exception as e:
            logger.exception(f"Unexpected error copying {task.source}")
            return CopyResult(
                task=task,
                outcome=CopyOutcome.FAILED,
                error=CopyError(task.source, dest_path, e),
            )

        elapsed = time.monotonic() - start_time
        logger.info(f"Copied {task.source} to {dest_path}")
        logger.debug(f"Copy of {task.source} took {elapsed:.2f}s")
        return CopyResult(task=task, outcome=CopyOutcome.COPIED)

    def _copy(self, source: Path, dest_path: Path) -> None:
        with open(source, "rb") as src:
            # Fails with FileExistsError if another worker created it first
            dest = open(dest_path, "xb", opener=_create_exclusive)
            try:
                with dest:
                    shutil.copyfileobj(src, dest, self._chunk_size)
            except Exception:
                self._remove_partial(dest_path)
                raise

    def _remove_partial(self, dest_path: Path) -> None:
        try:
            os.remove(dest_path)
        except OSError as e:
            logger.warning(f"Could not remove partial copy {dest_path}: {e}")


def execute_task(worker: CopyWorker, task: CopyTask) -> CopyResult:
    """Run a worker on a task, turning an escaped exception into FAILED.

    Keeps the one-result-per-task guarantee for CopyWorker subclasses whose
    execute() raises instead of returning a result.
    """
    try:
        return worker.execute(task)
    except Exception as e:
        logger.exception(f"{worker.worker_type} worker raised while handling {task.source}")
        return CopyResult(
            task=task,
            outcome=CopyOutcome.FAILED,
            error=CopyError(task.source, task.destination_path, e),
        )
