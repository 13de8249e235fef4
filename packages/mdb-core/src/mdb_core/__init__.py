"""mdb core - incremental document builds driven by directory snapshots."""

from mdb_core.build import BuildReport, TaskExecutor, resolve_reference_doc
from mdb_core.config import MdbConfig, RuntimeConfig, Task, load_config
from mdb_core.converter import ConversionResult, PandocConverter
from mdb_core.errors import MdbError
from mdb_core.freshness import check_all, should_rebuild
from mdb_core.snapshot import Snapshot, load_snapshot, save_snapshot, scan_directory

__version__ = "0.1.0"

__all__ = [
    "BuildReport",
    "ConversionResult",
    "MdbConfig",
    "MdbError",
    "PandocConverter",
    "RuntimeConfig",
    "Snapshot",
    "Task",
    "TaskExecutor",
    "check_all",
    "load_config",
    "load_snapshot",
    "resolve_reference_doc",
    "save_snapshot",
    "scan_directory",
    "should_rebuild",
]
