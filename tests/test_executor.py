"""Tests for the task executor: the incremental build pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import T1, T2, FakeConverter, set_mtime
from mdb_core.build import BuildReport, TaskExecutor
from mdb_core.config.models import RuntimeConfig, Task
from mdb_core.errors import (
    ConversionFailedError,
    MissingExtensionError,
    ReferenceDocNotFoundError,
    SourceAccessError,
)
from mdb_core.freshness import RebuildReason
from mdb_core.snapshot import Snapshot, load_snapshot


def _docx_dir(project: Path) -> Path:
    return project / "pub" / "src" / "docx"


class RecordingReporter:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def built(self, task, target):
        self.events.append(("built", target.output))

    def skipped(self, task, target):
        self.events.append(("skipped", target.output))

    def pending(self, task, target, reason):
        self.events.append((f"pending:{reason}", target.output))


# ── Scenarios ────────────────────────────────────────────────────────


def test_first_build_converts_and_records_snapshot(project, make_runtime, fake_converter):
    """Scenario A: no prior snapshot, no artifact."""
    report = TaskExecutor(make_runtime("book.docx"), fake_converter).run()

    assert report.built == ["book.docx"]
    [call] = fake_converter.calls
    assert call["inputs"] == ["a.md"]
    assert call["output"] == _docx_dir(project) / "book.docx"
    assert call["cwd"] == project / "src"
    assert call["reference_doc"] is None
    assert load_snapshot(_docx_dir(project) / ".snapshot") == Snapshot.from_pairs(
        [("a.md", T1)]
    )


def test_unchanged_rerun_skips(project, make_runtime, fake_converter):
    """Scenario B: second run with no source changes converts nothing."""
    runtime = make_runtime("book.docx")
    TaskExecutor(runtime, fake_converter).run()

    report = TaskExecutor(runtime, fake_converter).run()

    assert len(fake_converter.calls) == 1
    assert report.built == []
    assert report.skipped == ["book.docx"]


def test_modified_source_rebuilds(project, make_runtime, fake_converter):
    """Scenario C: a.md touched after the first build."""
    runtime = make_runtime("book.docx")
    TaskExecutor(runtime, fake_converter).run()
    set_mtime(project / "src" / "a.md", T2)

    report = TaskExecutor(runtime, fake_converter).run()

    assert report.built == ["book.docx"]
    assert len(fake_converter.calls) == 2
    assert load_snapshot(_docx_dir(project) / ".snapshot") == Snapshot.from_pairs(
        [("a.md", T2)]
    )


def test_deleted_artifact_rebuilds(project, make_runtime, fake_converter):
    """Scenario D: artifact removed out-of-band, snapshot still matches."""
    runtime = make_runtime("book.docx")
    TaskExecutor(runtime, fake_converter).run()
    (_docx_dir(project) / "book.docx").unlink()

    report = TaskExecutor(runtime, fake_converter).run()

    assert report.built == ["book.docx"]
    assert (_docx_dir(project) / "book.docx").is_file()


def test_failed_conversion_keeps_previous_snapshot(project, make_runtime, fake_converter):
    """Scenario E: converter exits non-zero after an earlier good build."""
    runtime = make_runtime("book.docx")
    TaskExecutor(runtime, fake_converter).run()
    sidecar = _docx_dir(project) / ".snapshot"
    before = sidecar.read_text()
    set_mtime(project / "src" / "a.md", T2)

    failing = FakeConverter(returncode=1, stderr="pandoc: could not parse a.md\n")
    with pytest.raises(ConversionFailedError) as exc_info:
        TaskExecutor(runtime, failing).run()

    assert exc_info.value.output == "book.docx"
    assert exc_info.value.returncode == 1
    assert exc_info.value.exit_code == 1
    assert "could not parse" in exc_info.value.stderr
    assert sidecar.read_text() == before


def test_failed_first_build_writes_no_snapshot(project, make_runtime):
    failing = FakeConverter(returncode=2)
    with pytest.raises(ConversionFailedError):
        TaskExecutor(make_runtime("book.docx"), failing).run()
    assert not (_docx_dir(project) / ".snapshot").exists()


def test_output_without_extension_fails_before_converting(project, make_runtime, fake_converter):
    """Scenario F: 'report' has no extension."""
    runtime = make_runtime("book.docx", "report")
    with pytest.raises(MissingExtensionError):
        TaskExecutor(runtime, fake_converter).run()
    assert fake_converter.calls == []


# ── Ordering and failure propagation ────────────────────────────────


def test_failure_aborts_remaining_outputs_and_tasks(project, fake_converter):
    (project / "other").mkdir()
    (project / "other" / "b.md").write_text("b")

    class FailOnPdf(FakeConverter):
        def convert(self, inputs, output, **kwargs):
            self.returncode = 1 if Path(output).suffix == ".pdf" else 0
            return super().convert(inputs, output, **kwargs)

    converter = FailOnPdf()
    runtime = RuntimeConfig(
        cwd=project,
        out_directory=project / "pub",
        tasks=(
            Task(source=Path("src"), outputs=("book.docx", "book.pdf", "book.epub")),
            Task(source=Path("other"), outputs=("other.docx",)),
        ),
    )

    with pytest.raises(ConversionFailedError) as exc_info:
        TaskExecutor(runtime, converter).run()

    assert exc_info.value.output == "book.pdf"
    assert [c["output"].name for c in converter.calls] == ["book.docx", "book.pdf"]
    # The output built before the failure keeps its snapshot
    assert (_docx_dir(project) / ".snapshot").is_file()
    assert not (project / "pub" / "src" / "pdf" / ".snapshot").exists()


def test_outputs_built_in_declared_order(project, make_runtime, fake_converter):
    reporter = RecordingReporter()
    TaskExecutor(
        make_runtime("book.pdf", "book.docx", "book.epub"), fake_converter, reporter
    ).run()
    assert reporter.events == [
        ("built", "book.pdf"),
        ("built", "book.docx"),
        ("built", "book.epub"),
    ]


def test_inputs_sorted_by_path(project, make_runtime, fake_converter):
    for name in ("c.md", "b.md"):
        (project / "src" / name).write_text(name)
    (project / "src" / "images").mkdir()

    TaskExecutor(make_runtime("book.docx"), fake_converter).run()

    assert fake_converter.calls[0]["inputs"] == ["a.md", "b.md", "c.md"]


def test_outputs_sharing_extension_share_snapshot(project, make_runtime, fake_converter):
    runtime = make_runtime("book.docx", "notes.docx")
    TaskExecutor(runtime, fake_converter).run()
    assert len(fake_converter.calls) == 2
    assert sorted(p.name for p in _docx_dir(project).iterdir()) == [
        ".snapshot",
        "book.docx",
        "notes.docx",
    ]

    report = TaskExecutor(runtime, fake_converter).run()
    assert report.skipped == ["book.docx", "notes.docx"]


def test_report_merges_across_tasks(project, fake_converter):
    (project / "other").mkdir()
    (project / "other" / "b.md").write_text("b")
    runtime = RuntimeConfig(
        cwd=project,
        out_directory=project / "pub",
        tasks=(
            Task(source=Path("src"), outputs=("book.docx",)),
            Task(source=Path("other"), outputs=("other.docx",)),
        ),
    )
    report = TaskExecutor(runtime, fake_converter).run()
    assert report.built == ["book.docx", "other.docx"]
    assert report.skipped == []
    assert (project / "pub" / "other" / "docx" / "other.docx").is_file()


def test_task_without_outputs_is_noop(project, make_runtime, fake_converter):
    report = TaskExecutor(make_runtime(), fake_converter).run()
    assert report.model_dump() == BuildReport().model_dump()
    assert fake_converter.calls == []


# ── Options ──────────────────────────────────────────────────────────


def test_force_rebuilds_fresh_outputs(project, make_runtime, fake_converter):
    runtime = make_runtime("book.docx")
    TaskExecutor(runtime, fake_converter).run()

    report = TaskExecutor(runtime, fake_converter, force=True).run()

    assert report.built == ["book.docx"]
    assert len(fake_converter.calls) == 2


def test_dry_run_has_no_side_effects(project, make_runtime, fake_converter):
    reporter = RecordingReporter()
    report = TaskExecutor(
        make_runtime("book.docx"), fake_converter, reporter, dry_run=True
    ).run()

    assert report.pending == ["book.docx"]
    assert reporter.events == [(f"pending:{RebuildReason.MISSING_ARTIFACT}", "book.docx")]
    assert fake_converter.calls == []
    assert not (project / "pub").exists()


def test_reference_doc_passed_to_converter(project, make_runtime, fake_converter):
    style = project / "style.docx"
    style.write_bytes(b"docx")
    runtime = make_runtime("book.docx", reference_doc=Path("style.docx"))

    TaskExecutor(runtime, fake_converter).run()

    assert fake_converter.calls[0]["reference_doc"] == style


def test_conventional_reference_doc_used(project, make_runtime, fake_converter):
    (project / "reference.docx").write_bytes(b"docx")
    TaskExecutor(make_runtime("book.docx"), fake_converter).run()
    assert fake_converter.calls[0]["reference_doc"] == project / "reference.docx"


def test_missing_explicit_reference_doc_fails_before_work(project, make_runtime, fake_converter):
    runtime = make_runtime("book.docx", reference_doc=Path("style.docx"))
    with pytest.raises(ReferenceDocNotFoundError):
        TaskExecutor(runtime, fake_converter).run()
    assert fake_converter.calls == []
    assert not (project / "pub").exists()


def test_missing_source_directory(project, make_runtime, fake_converter):
    runtime = make_runtime("book.docx", source="missing")
    with pytest.raises(SourceAccessError) as exc_info:
        TaskExecutor(runtime, fake_converter).run()
    assert exc_info.value.path == project / "missing"


def test_corrupt_snapshot_is_fatal(project, make_runtime, fake_converter):
    from mdb_core.errors import SnapshotCorruptError

    docx = _docx_dir(project)
    docx.mkdir(parents=True)
    (docx / "book.docx").write_text("old")
    (docx / ".snapshot").write_text("{not: [valid")

    with pytest.raises(SnapshotCorruptError):
        TaskExecutor(make_runtime("book.docx"), fake_converter).run()
    assert fake_converter.calls == []


def test_default_converter_is_pandoc(make_runtime):
    from mdb_core.converter import PandocConverter

    executor = TaskExecutor(make_runtime("book.docx"))
    assert isinstance(executor.converter, PandocConverter)
