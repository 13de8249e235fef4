"""Freshness tracking: target locations, staleness decisions, and watching."""

from mdb_core.freshness.checker import (
    OutputStatus,
    RebuildReason,
    check_all,
    check_task,
    rebuild_reason,
    should_rebuild,
)
from mdb_core.freshness.targets import OutputTarget, resolve_target
from mdb_core.freshness.watcher import SourceWatcher

__all__ = [
    "OutputStatus",
    "OutputTarget",
    "RebuildReason",
    "SourceWatcher",
    "check_all",
    "check_task",
    "rebuild_reason",
    "resolve_target",
    "should_rebuild",
]
