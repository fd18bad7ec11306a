"""Discovery and copy pipeline.

Architecture:
    DirectoryScanner (per source) → file Stream → CopyCoordinator → CopyWorker
                                                                  ↘ counters
    SyncPipeline owns the errors and stats streams; ResultAggregator drains them.

Components:
- **matches**: Extension predicate used by the scanners
- **DirectoryScanner**: Walks one source tree without following symlinks
- **DiscoveryCoordinator**: Runs the scanners, closes the file stream once
- **CopyWorker**: Copies, skips or simulates copying a single file
- **CopyCoordinator**: One worker per discovered file, or a bounded pool
- **SyncPipeline**: DISCOVERING → COPYING → FINALIZING → DONE
- **ResultAggregator**: Collects stats and errors into a SyncReport
"""

from booksync.sync.coordinator import CopyCoordinator
from booksync.sync.discovery import FILE_STREAM_BOUND, DiscoveryCoordinator
from booksync.sync.matcher import file_extension, matches
from booksync.sync.pipeline import (
    COPIED_CATEGORY,
    DRY_RUN_COPIED_CATEGORY,
    SKIPPED_CATEGORY,
    SyncPipeline,
)
from booksync.sync.results import ResultAggregator, SyncReport, sync
from booksync.sync.scanner import DirectoryScanner, scan
from booksync.sync.stream import CompletionBarrier, Stream, StreamClosedError
from booksync.sync.types import (
    AtomicCounter,
    CopyCounts,
    CopyError,
    CopyOutcome,
    CopyResult,
    CopyTask,
    DiscoveryError,
    PipelineState,
    SourceSpec,
    Stat,
    SyncError,
)
from booksync.sync.workers import CopyWorker, CopyWorkerPool

__all__ = [
    # Matching and discovery
    "DirectoryScanner",
    "DiscoveryCoordinator",
    "FILE_STREAM_BOUND",
    "file_extension",
    "matches",
    "scan",
    # Copying
    "CopyCoordinator",
    "CopyWorker",
    "CopyWorkerPool",
    # Pipeline
    "COPIED_CATEGORY",
    "DRY_RUN_COPIED_CATEGORY",
    "SKIPPED_CATEGORY",
    "ResultAggregator",
    "SyncPipeline",
    "SyncReport",
    "sync",
    # Streams
    "CompletionBarrier",
    "Stream",
    "StreamClosedError",
    # Types
    "AtomicCounter",
    "CopyCounts",
    "CopyError",
    "CopyOutcome",
    "CopyResult",
    "CopyTask",
    "DiscoveryError",
    "PipelineState",
    "SourceSpec",
    "Stat",
    "SyncError",
]
