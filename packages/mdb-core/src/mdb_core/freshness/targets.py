"""Where each requested output is written, keyed on its extension."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mdb_core.errors import MissingExtensionError
from mdb_core.snapshot.store import sidecar_path


@dataclass(frozen=True)
class OutputTarget:
    """Resolved locations for one requested output.

    Outputs sharing an extension within a task share ``directory`` and
    therefore one snapshot sidecar.
    """

    output: str
    directory: Path
    artifact: Path

    @property
    def sidecar(self) -> Path:
        return sidecar_path(self.directory)


def resolve_target(build_path: Path, output: str) -> OutputTarget:
    """Map ``book.docx`` to ``<build_path>/docx/book.docx``."""
    name = Path(output).name
    extension = Path(name).suffix.lstrip(".")
    if not extension:
        raise MissingExtensionError(output)
    directory = build_path / extension
    return OutputTarget(output=output, directory=directory, artifact=directory / name)
