"""Tests for the copy worker."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from booksync.sync.types import CopyError, CopyOutcome, CopyTask
from booksync.sync.workers import CopyWorker


@pytest.fixture
def worker() -> CopyWorker:
    """Create a copy worker."""
    return CopyWorker()


@pytest.fixture
def book(source_dir: Path) -> Path:
    """Create a source document."""
    path = source_dir / "novel.epub"
    path.write_bytes(b"chapter one" * 1000)
    return path


class TestCopyTask:
    """Tests for CopyTask."""

    def test_destination_path_uses_basename(self, tmp_path: Path) -> None:
        """Destination is flat: only the source's base name is kept."""
        task = CopyTask(source=tmp_path / "a" / "b" / "c.pdf", destination=tmp_path / "dest")
        assert task.destination_path == tmp_path / "dest" / "c.pdf"


class TestCopyWorker:
    """Tests for CopyWorker."""

    def test_worker_type(self, worker: CopyWorker) -> None:
        """Should return correct worker type."""
        assert worker.worker_type == "copy"

    def test_copies_bytes(self, worker: CopyWorker, book: Path, dest_dir: Path) -> None:
        """Should copy the file byte for byte."""
        result = worker.execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.COPIED
        assert result.error is None
        assert (dest_dir / "novel.epub").read_bytes() == book.read_bytes()

    def test_copy_uses_small_chunks(self, book: Path, dest_dir: Path) -> None:
        """Streaming in small chunks should still copy everything."""
        result = CopyWorker(chunk_size=7).execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.COPIED
        assert (dest_dir / "novel.epub").read_bytes() == book.read_bytes()

    def test_new_file_is_not_executable(
        self, worker: CopyWorker, book: Path, dest_dir: Path
    ) -> None:
        """Copies are created with safe default permissions."""
        book.chmod(0o755)
        worker.execute(CopyTask(source=book, destination=dest_dir))

        mode = (dest_dir / "novel.epub").stat().st_mode
        assert mode & 0o111 == 0

    def test_skips_existing(self, worker: CopyWorker, book: Path, dest_dir: Path) -> None:
        """An existing destination file should be left untouched."""
        existing = dest_dir / "novel.epub"
        existing.write_bytes(b"already here")

        result = worker.execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.SKIPPED
        assert existing.read_bytes() == b"already here"

    def test_skips_dangling_symlink_at_destination(
        self, worker: CopyWorker, book: Path, dest_dir: Path
    ) -> None:
        """A dangling symlink at the destination counts as present."""
        os.symlink(dest_dir / "nowhere", dest_dir / "novel.epub")

        result = worker.execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.SKIPPED

    def test_dry_run_does_not_write(
        self, worker: CopyWorker, book: Path, dest_dir: Path
    ) -> None:
        """Dry run reports a copy without touching the destination."""
        result = worker.execute(CopyTask(source=book, destination=dest_dir, dry_run=True))

        assert result.outcome == CopyOutcome.COPIED
        assert list(dest_dir.iterdir()) == []

    def test_dry_run_still_skips_existing(
        self, worker: CopyWorker, book: Path, dest_dir: Path
    ) -> None:
        """Dry run still reports existing files as skipped."""
        (dest_dir / "novel.epub").write_bytes(b"old")

        result = worker.execute(CopyTask(source=book, destination=dest_dir, dry_run=True))

        assert result.outcome == CopyOutcome.SKIPPED

    def test_dry_run_logs_intent(
        self,
        worker: CopyWorker,
        book: Path,
        dest_dir: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Dry run should log where the file would be copied."""
        with caplog.at_level("INFO", logger="booksync"):
            worker.execute(CopyTask(source=book, destination=dest_dir, dry_run=True))

        assert "would copy" in caplog.text
        assert str(dest_dir / "novel.epub") in caplog.text

    def test_missing_source_fails(
        self, worker: CopyWorker, source_dir: Path, dest_dir: Path
    ) -> None:
        """A source that cannot be opened yields FAILED and no destination file."""
        result = worker.execute(CopyTask(source=source_dir / "gone.pdf", destination=dest_dir))

        assert result.outcome == CopyOutcome.FAILED
        assert result.failed is True
        assert isinstance(result.error, CopyError)
        assert isinstance(result.error.cause, FileNotFoundError)
        assert not (dest_dir / "gone.pdf").exists()

    def test_missing_destination_dir_fails(
        self, worker: CopyWorker, book: Path, tmp_path: Path
    ) -> None:
        """A destination that cannot be created yields FAILED."""
        result = worker.execute(CopyTask(source=book, destination=tmp_path / "unplugged"))

        assert result.outcome == CopyOutcome.FAILED
        assert isinstance(result.error, CopyError)

    def test_exclusive_create_loses_race(
        self,
        worker: CopyWorker,
        book: Path,
        dest_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """If another worker creates the file after the check, this one fails."""
        winner = dest_dir / "novel.epub"
        winner.write_bytes(b"written by the other worker")
        # Simulate both workers passing the existence check
        monkeypatch.setattr(os.path, "lexists", lambda path: False)

        result = worker.execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.FAILED
        assert isinstance(result.error.cause, FileExistsError)
        assert winner.read_bytes() == b"written by the other worker"

    def test_failed_stream_removes_partial_copy(
        self,
        worker: CopyWorker,
        book: Path,
        dest_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A copy interrupted mid-stream leaves no partial file behind."""

        def broken_copy(src, dst, length=0):  # type: ignore[no-untyped-def]
            dst.write(src.read(10))
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(shutil, "copyfileobj", broken_copy)

        result = worker.execute(CopyTask(source=book, destination=dest_dir))

        assert result.outcome == CopyOutcome.FAILED
        assert "No space left" in str(result.error)
        assert not (dest_dir / "novel.epub").exists()
