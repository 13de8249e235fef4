"""Non-recursive directory scanning into a Snapshot."""

from __future__ import annotations

import logging
import stat
from pathlib import Path

from mdb_core.errors import SourceAccessError
from mdb_core.snapshot.models import Snapshot, SnapshotEntry, timestamp_from_ns

logger = logging.getLogger(__name__)


def scan_directory(directory: Path, *, strict: bool = False) -> Snapshot:
    """Fingerprint the regular files directly inside *directory*.

    Subdirectories and other entry kinds are ignored. Entries whose
    metadata cannot be read are skipped with a warning, or raise
    ``SourceAccessError`` when *strict* is set. Only a failure to list the
    directory itself is always an error.
    """
    try:
        children = list(directory.iterdir())
    except OSError as e:
        raise SourceAccessError(directory, e) from e

    entries: list[SnapshotEntry] = []
    for child in children:
        try:
            st = child.stat()
        except OSError as e:
            if strict:
                raise SourceAccessError(child, e) from e
            logger.warning("Skipping unreadable entry %s: %s", child, e)
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        entries.append(
            SnapshotEntry(path=child.name, modified=timestamp_from_ns(st.st_mtime_ns))
        )

    snapshot = Snapshot(entries=tuple(entries))
    logger.debug("Scanned %s: %d file(s)", directory, len(snapshot))
    return snapshot
