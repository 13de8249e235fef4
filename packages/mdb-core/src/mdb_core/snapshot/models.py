"""Data models for directory snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator


def timestamp_from_ns(mtime_ns: int) -> datetime:
    """Convert an ``st_mtime_ns`` value to an aware UTC datetime.

    Integer arithmetic keeps the result identical across repeated scans of
    an unchanged file (microsecond precision).
    """
    seconds, nanos = divmod(mtime_ns, 1_000_000_000)
    return datetime.fromtimestamp(seconds, UTC).replace(microsecond=nanos // 1000)


class SnapshotEntry(BaseModel):
    """One regular file and its last-modified time."""

    model_config = ConfigDict(frozen=True)

    path: str
    modified: datetime

    @field_validator("modified")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Snapshot(BaseModel):
    """Sorted fingerprint of a directory's regular files.

    Entries are always ordered by path and paths are unique, so two
    snapshots compare equal exactly when they describe the same files with
    the same modification times.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[SnapshotEntry, ...] = ()

    @field_validator("entries")
    @classmethod
    def _sorted_unique(
        cls, value: tuple[SnapshotEntry, ...]
    ) -> tuple[SnapshotEntry, ...]:
        ordered = tuple(sorted(value, key=lambda e: e.path))
        for prev, cur in zip(ordered, ordered[1:]):
            if prev.path == cur.path:
                raise ValueError(f"duplicate path in snapshot: {cur.path!r}")
        return ordered

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, datetime]]) -> Snapshot:
        return cls(entries=tuple(SnapshotEntry(path=p, modified=m) for p, m in pairs))

    @property
    def paths(self) -> list[str]:
        """File paths in sorted order."""
        return [e.path for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
