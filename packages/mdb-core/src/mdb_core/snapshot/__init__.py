"""Directory snapshots: scanning, comparison and sidecar persistence."""

from mdb_core.snapshot.models import Snapshot, SnapshotEntry, timestamp_from_ns
from mdb_core.snapshot.scanner import scan_directory
from mdb_core.snapshot.store import (
    SNAPSHOT_FILE_NAME,
    dump_snapshot,
    load_snapshot,
    parse_snapshot,
    save_snapshot,
    sidecar_path,
)

__all__ = [
    "SNAPSHOT_FILE_NAME",
    "Snapshot",
    "SnapshotEntry",
    "dump_snapshot",
    "load_snapshot",
    "parse_snapshot",
    "save_snapshot",
    "scan_directory",
    "sidecar_path",
    "timestamp_from_ns",
]
