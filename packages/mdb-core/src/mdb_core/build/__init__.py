"""Task execution: the incremental build pipeline."""

from mdb_core.build.executor import BuildReport, BuildReporter, TaskExecutor
from mdb_core.build.reference import CONVENTIONAL_REFERENCE_DOC, resolve_reference_doc

__all__ = [
    "BuildReport",
    "BuildReporter",
    "CONVENTIONAL_REFERENCE_DOC",
    "TaskExecutor",
    "resolve_reference_doc",
]
