"""Snapshot sidecar persistence (YAML)."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import ValidationError

from mdb_core.errors import SnapshotCorruptError, SourceAccessError
from mdb_core.snapshot.models import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_FILE_NAME = ".snapshot"


def sidecar_path(target_dir: Path) -> Path:
    """Where the snapshot for a target directory lives."""
    return target_dir / SNAPSHOT_FILE_NAME


def dump_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to YAML text."""
    data = [
        {"path": e.path, "modified": e.modified.isoformat()}
        for e in snapshot.entries
    ]
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def parse_snapshot(text: str, source: Path | str = "<string>") -> Snapshot:
    """Parse YAML text produced by ``dump_snapshot``.

    Raises SnapshotCorruptError for anything that is not a valid list of
    ``{path, modified}`` mappings.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SnapshotCorruptError(source, f"invalid YAML: {e}") from e

    if not isinstance(data, list):
        raise SnapshotCorruptError(
            source, f"expected a list of entries, got {type(data).__name__}"
        )
    try:
        return Snapshot.model_validate({"entries": data})
    except ValidationError as e:
        raise SnapshotCorruptError(source, str(e)) from e


def load_snapshot(path: Path) -> Snapshot | None:
    """Load the sidecar at *path*, or None when there is no prior build."""
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SourceAccessError(path, e) from e
    return parse_snapshot(text, path)


def save_snapshot(path: Path, snapshot: Snapshot) -> None:
    """Atomically replace the sidecar at *path* with *snapshot*."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(dump_snapshot(snapshot))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise SourceAccessError(path, e) from e
    logger.debug("Saved snapshot (%d file(s)) to %s", len(snapshot), path)
