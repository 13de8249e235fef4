"""Staleness decisions for task outputs."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel

from mdb_core.config.models import RuntimeConfig, Task
from mdb_core.freshness.targets import resolve_target
from mdb_core.snapshot import Snapshot, load_snapshot, scan_directory

logger = logging.getLogger(__name__)


class RebuildReason(StrEnum):
    MISSING_ARTIFACT = "missing-artifact"
    NO_SNAPSHOT = "no-snapshot"
    SOURCES_CHANGED = "sources-changed"
    FORCED = "forced"
    UP_TO_DATE = "up-to-date"


def rebuild_reason(
    prior: Snapshot | None,
    current: Snapshot,
    artifact_exists: bool,
) -> RebuildReason:
    """Classify an output, checking in order: artifact, prior snapshot, equality."""
    if not artifact_exists:
        return RebuildReason.MISSING_ARTIFACT
    if prior is None:
        return RebuildReason.NO_SNAPSHOT
    if current != prior:
        return RebuildReason.SOURCES_CHANGED
    return RebuildReason.UP_TO_DATE


def should_rebuild(
    prior: Snapshot | None,
    current: Snapshot,
    artifact_exists: bool,
) -> bool:
    """True unless the artifact exists and its recorded snapshot matches."""
    return rebuild_reason(prior, current, artifact_exists) is not RebuildReason.UP_TO_DATE


class OutputStatus(BaseModel):
    """Freshness of one output of one task."""

    source: str
    output: str
    artifact: Path
    reason: RebuildReason

    @property
    def stale(self) -> bool:
        return self.reason is not RebuildReason.UP_TO_DATE


def check_task(task: Task, runtime: RuntimeConfig) -> list[OutputStatus]:
    """Report every output of *task* without building or writing anything."""
    current = scan_directory(runtime.source_dir(task), strict=runtime.strict_scan)
    build_path = runtime.build_path(task)
    statuses: list[OutputStatus] = []
    for output in task.outputs:
        target = resolve_target(build_path, output)
        reason = rebuild_reason(
            load_snapshot(target.sidecar), current, target.artifact.exists()
        )
        statuses.append(
            OutputStatus(
                source=str(task.source),
                output=output,
                artifact=target.artifact,
                reason=reason,
            )
        )
        logger.debug("%s -> %s: %s", task.source, output, reason)
    return statuses


def check_all(runtime: RuntimeConfig) -> list[OutputStatus]:
    statuses: list[OutputStatus] = []
    for task in runtime.tasks:
        statuses.extend(check_task(task, runtime))
    return statuses
