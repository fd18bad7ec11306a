"""Tests for the sync pipeline and result aggregation."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from booksync.core.config import SyncConfig
from booksync.sync.pipeline import (
    COPIED_CATEGORY,
    DRY_RUN_COPIED_CATEGORY,
    SKIPPED_CATEGORY,
    SyncPipeline,
)
from booksync.sync.results import ResultAggregator, SyncReport, sync
from booksync.sync.types import (
    CopyCounts,
    CopyResult,
    CopyTask,
    PipelineState,
    SourceSpec,
    Stat,
    SyncError,
)
from booksync.sync.workers import CopyWorker


def make_sources(tmp_path: Path, layout: dict[str, list[str]]) -> list[SourceSpec]:
    sources = []
    for dirname, names in layout.items():
        root = tmp_path / dirname
        root.mkdir()
        for name in names:
            (root / name).write_bytes(f"{dirname}/{name}".encode())
        sources.append(SourceSpec.create(root, {".pdf", ".epub"}, category=dirname))
    return sources


class TestSyncPipeline:
    """Tests for SyncPipeline."""

    def test_run_copies_and_reports(self, tmp_path: Path, dest_dir: Path) -> None:
        """run() should copy new files and emit per-source then final stats."""
        sources = make_sources(tmp_path, {"one": ["a.pdf", "b.txt"], "two": ["c.epub"]})
        pipeline = SyncPipeline(sources, dest_dir)

        counts = pipeline.run()

        assert counts == CopyCounts(skipped=0, copied=2, failed=0)
        stats = list(pipeline.stats)
        assert sorted(stats[:2], key=lambda s: s.category) == [
            Stat("one", 1),
            Stat("two", 1),
        ]
        assert stats[2:] == [Stat(SKIPPED_CATEGORY, 0), Stat(COPIED_CATEGORY, 2)]
        assert list(pipeline.errors) == []

    def test_dry_run_label(self, tmp_path: Path, dest_dir: Path) -> None:
        """Dry run reports the would-copy category."""
        sources = make_sources(tmp_path, {"one": ["a.pdf"]})
        pipeline = SyncPipeline(sources, dest_dir, dry_run=True)

        pipeline.run()

        stats = list(pipeline.stats)
        assert stats[-1] == Stat(DRY_RUN_COPIED_CATEGORY, 1)
        assert list(dest_dir.iterdir()) == []

    def test_state_transitions(self, tmp_path: Path, dest_dir: Path) -> None:
        """The pipeline goes from IDLE to DONE and closes its streams."""
        pipeline = SyncPipeline(make_sources(tmp_path, {"one": ["a.pdf"]}), dest_dir)
        assert pipeline.state == PipelineState.IDLE
        assert pipeline.counts is None

        pipeline.run()

        assert pipeline.state == PipelineState.DONE
        assert pipeline.stats.closed is True
        assert pipeline.errors.closed is True
        assert pipeline.counts == CopyCounts(copied=1)

    def test_phase_order(
        self, tmp_path: Path, dest_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Phases run DISCOVERING, COPYING, FINALIZING, DONE, each exactly once."""
        states: list[PipelineState] = []
        real_set_state = SyncPipeline._set_state

        def recording_set_state(self: SyncPipeline, state: PipelineState) -> None:
            states.append(state)
            real_set_state(self, state)

        monkeypatch.setattr(SyncPipeline, "_set_state", recording_set_state)
        sources = make_sources(tmp_path, {"one": ["a.pdf", "b.epub"], "two": ["c.pdf"]})

        SyncPipeline(sources, dest_dir).run()

        assert states == [
            PipelineState.DISCOVERING,
            PipelineState.COPYING,
            PipelineState.FINALIZING,
            PipelineState.DONE,
        ]

    def test_runs_only_once(self, tmp_path: Path, dest_dir: Path) -> None:
        """A pipeline cannot be reused."""
        pipeline = SyncPipeline(make_sources(tmp_path, {"one": []}), dest_dir)
        pipeline.run()
        with pytest.raises(RuntimeError):
            pipeline.run()
        with pytest.raises(RuntimeError):
            pipeline.start()

    def test_errors_do_not_stop_the_run(self, tmp_path: Path, dest_dir: Path) -> None:
        """A missing source is reported while other sources still sync."""
        sources = make_sources(tmp_path, {"one": ["a.pdf"]})
        sources.append(SourceSpec.create(tmp_path / "missing", {".pdf"}, category="missing"))
        pipeline = SyncPipeline(sources, dest_dir)

        counts = pipeline.run()

        assert counts.copied == 1
        errors = list(pipeline.errors)
        assert len(errors) == 1
        assert (dest_dir / "a.pdf").exists()

    def test_final_stats_follow_source_stats(self, tmp_path: Path, dest_dir: Path) -> None:
        """Aggregate stats are always last, skipped before copied."""
        layout = {f"src{i}": [f"{i}-{j}.pdf" for j in range(10)] for i in range(5)}
        pipeline = SyncPipeline(make_sources(tmp_path, layout), dest_dir, file_buffer=1)

        pipeline.run()

        categories = [s.category for s in pipeline.stats]
        assert sorted(categories[:5]) == sorted(layout)
        assert categories[5:] == [SKIPPED_CATEGORY, COPIED_CATEGORY]

    def test_from_config(self, tmp_path: Path, dest_dir: Path) -> None:
        """A pipeline can be built from a SyncConfig."""
        config = SyncConfig(
            sources=make_sources(tmp_path, {"one": ["a.pdf"]}),
            destination=dest_dir,
            dry_run=True,
            max_workers=2,
        )
        pipeline = SyncPipeline.from_config(config)

        assert pipeline.dry_run is True
        assert pipeline.run().copied == 1
        assert list(dest_dir.iterdir()) == []


class TestResultAggregator:
    """Tests for ResultAggregator and sync()."""

    def test_collect_starts_and_drains(self, tmp_path: Path, dest_dir: Path) -> None:
        """collect() runs the pipeline and gathers everything it reported."""
        pipeline = SyncPipeline(make_sources(tmp_path, {"one": ["a.pdf", "b.pdf"]}), dest_dir)

        report = ResultAggregator().collect(pipeline)

        assert pipeline.state == PipelineState.DONE
        assert report.succeeded is True
        assert report.exit_code == 0
        assert report.count("one") == 2
        assert report.count(COPIED_CATEGORY) == 2
        assert report.count(SKIPPED_CATEGORY) == 0

    def test_callbacks_fire_as_items_arrive(self, tmp_path: Path, dest_dir: Path) -> None:
        """Callbacks receive every stat and error."""
        sources = make_sources(tmp_path, {"one": ["a.pdf"]})
        sources.append(SourceSpec.create(tmp_path / "missing", {".pdf"}))
        seen_stats: list[Stat] = []
        seen_errors: list[SyncError] = []
        lock = threading.Lock()

        def on_stat(stat: Stat) -> None:
            with lock:
                seen_stats.append(stat)

        def on_error(error: SyncError) -> None:
            with lock:
                seen_errors.append(error)

        report = sync(sources, dest_dir, on_stat=on_stat, on_error=on_error)

        assert seen_stats == report.stats
        assert seen_errors == report.errors
        assert len(seen_errors) == 1
        assert report.succeeded is False
        assert report.exit_code == 1

    def test_errors_observed_before_done(
        self, tmp_path: Path, dest_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Errors reach the caller while the run is still in progress."""
        error_seen = threading.Event()

        class GatedWorker(CopyWorker):
            """Holds every copy until the caller has seen an error."""

            def execute(self, task: CopyTask) -> CopyResult:
                error_seen.wait(timeout=10.0)
                return super().execute(task)

        monkeypatch.setattr("booksync.sync.coordinator.CopyWorker", GatedWorker)
        sources = make_sources(tmp_path, {"one": ["a.pdf", "b.pdf"]})
        sources.append(SourceSpec.create(tmp_path / "missing", {".pdf"}))
        pipeline = SyncPipeline(sources, dest_dir)
        states_at_error: list[PipelineState] = []

        def on_error(error: SyncError) -> None:
            states_at_error.append(pipeline.state)
            error_seen.set()

        report = ResultAggregator(on_error=on_error).collect(pipeline)

        assert len(states_at_error) == 1
        assert states_at_error[0] in (PipelineState.DISCOVERING, PipelineState.COPYING)
        assert report.count(COPIED_CATEGORY) == 2

    def test_collect_started_pipeline(self, tmp_path: Path, dest_dir: Path) -> None:
        """collect() also accepts a pipeline that was already started."""
        pipeline = SyncPipeline(make_sources(tmp_path, {"one": ["a.pdf"]}), dest_dir)
        pipeline.start()

        report = ResultAggregator().collect(pipeline)

        assert report.count(COPIED_CATEGORY) == 1


class TestSyncReport:
    """Tests for SyncReport."""

    def test_empty_report_succeeds(self) -> None:
        """No errors means success."""
        report = SyncReport()
        assert report.succeeded is True
        assert report.exit_code == 0

    def test_count_missing_category(self) -> None:
        """count() returns None for unknown categories."""
        assert SyncReport(stats=[Stat("x", 1)]).count("y") is None

    def test_stat_str(self) -> None:
        """Stats render as 'category: count'."""
        assert str(Stat("documents copied", 3)) == "documents copied: 3"
