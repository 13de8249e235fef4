"""Per-task build pipeline: scan, decide, convert, record."""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from mdb_core.build.reference import resolve_reference_doc
from mdb_core.config.models import RuntimeConfig, Task
from mdb_core.converter import Converter, PandocConverter
from mdb_core.errors import ConversionFailedError, SourceAccessError
from mdb_core.freshness.checker import RebuildReason, rebuild_reason
from mdb_core.freshness.targets import OutputTarget, resolve_target
from mdb_core.snapshot import load_snapshot, save_snapshot, scan_directory

logger = logging.getLogger(__name__)


class BuildReporter(Protocol):
    """Receives per-output progress as the build runs."""

    def built(self, task: Task, target: OutputTarget) -> None: ...

    def skipped(self, task: Task, target: OutputTarget) -> None: ...

    def pending(self, task: Task, target: OutputTarget, reason: RebuildReason) -> None: ...


class BuildReport(BaseModel):
    """Outputs handled during a run, in processing order."""

    built: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    pending: list[str] = Field(default_factory=list)

    def merge(self, other: BuildReport) -> None:
        self.built.extend(other.built)
        self.skipped.extend(other.skipped)
        self.pending.extend(other.pending)


class TaskExecutor:
    """Builds the stale outputs of every configured task, one at a time.

    A snapshot is written only after its conversion succeeded; the first
    failed conversion raises ``ConversionFailedError`` and stops the run.
    With ``dry_run`` nothing is converted, written, or created.
    """

    def __init__(
        self,
        runtime: RuntimeConfig,
        converter: Converter | None = None,
        reporter: BuildReporter | None = None,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.runtime = runtime
        self.converter = converter or PandocConverter(runtime.converter)
        self.reporter = reporter
        self.force = force
        self.dry_run = dry_run

    @cached_property
    def reference_doc(self) -> Path | None:
        return resolve_reference_doc(self.runtime.cwd, self.runtime.reference_doc)

    def run(self) -> BuildReport:
        """Build every task in declaration order."""
        # Surface a missing explicit reference doc before any work is done.
        _ = self.reference_doc
        report = BuildReport()
        for task in self.runtime.tasks:
            report.merge(self.run_task(task))
        return report

    def run_task(self, task: Task) -> BuildReport:
        report = BuildReport()
        if not task.outputs:
            logger.warning("Task %s requests no outputs", task.source)
            return report

        source_dir = self.runtime.source_dir(task)
        snapshot = scan_directory(source_dir, strict=self.runtime.strict_scan)
        build_path = self.runtime.build_path(task)
        # Resolve every target first so a bad output name fails before any conversion.
        targets = [resolve_target(build_path, output) for output in task.outputs]
        logger.debug(
            "Task %s: %d source file(s), %d output(s)",
            task.source,
            len(snapshot),
            len(targets),
        )

        for target in targets:
            if not self.dry_run:
                self._ensure_directory(target.directory)

            if self.force:
                reason = RebuildReason.FORCED
            else:
                reason = rebuild_reason(
                    load_snapshot(target.sidecar), snapshot, target.artifact.exists()
                )

            if reason is RebuildReason.UP_TO_DATE:
                logger.debug("%s is up to date", target.output)
                report.skipped.append(target.output)
                if self.reporter is not None:
                    self.reporter.skipped(task, target)
                continue

            logger.debug("Rebuilding %s (%s)", target.output, reason)
            if self.dry_run:
                report.pending.append(target.output)
                if self.reporter is not None:
                    self.reporter.pending(task, target, reason)
                continue

            result = self.converter.convert(
                snapshot.paths,
                target.artifact,
                reference_doc=self.reference_doc,
                cwd=source_dir,
            )
            if not result.ok:
                raise ConversionFailedError(target.output, result.returncode, result.stderr)

            report.built.append(target.output)
            if self.reporter is not None:
                self.reporter.built(task, target)
            save_snapshot(target.sidecar, snapshot)

        return report

    @staticmethod
    def _ensure_directory(directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SourceAccessError(directory, e) from e
