"""Shared test fixtures for mdb."""

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

from mdb_core.config.models import RuntimeConfig, Task
from mdb_core.converter.models import ConversionResult

T1 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
T2 = datetime(2024, 1, 2, 8, 30, 0, tzinfo=UTC)


def set_mtime(path: Path, when: datetime) -> None:
    """Pin a file's modification time so snapshots are deterministic."""
    ts = when.timestamp()
    os.utime(path, (ts, ts))


class FakeConverter:
    """Records invocations; writes the output file when it succeeds."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.calls: list[dict] = []

    def convert(self, inputs, output, *, reference_doc=None, cwd=None):
        self.calls.append(
            {
                "inputs": list(inputs),
                "output": Path(output),
                "reference_doc": reference_doc,
                "cwd": cwd,
            }
        )
        if self.returncode == 0:
            Path(output).write_text("rendered")
        return ConversionResult(
            command=["fake", *inputs, "-o", str(output)],
            returncode=self.returncode,
            stderr=self.stderr,
        )


@pytest.fixture
def project(tmp_path):
    """A working directory with src/a.md modified at T1."""
    src = tmp_path / "src"
    src.mkdir()
    doc = src / "a.md"
    doc.write_text("# Chapter one\n")
    set_mtime(doc, T1)
    return tmp_path


@pytest.fixture
def make_runtime(project):
    def _make(*outputs: str, source: str = "src", **kwargs) -> RuntimeConfig:
        return RuntimeConfig(
            cwd=project,
            out_directory=project / "pub",
            tasks=(Task(source=Path(source), outputs=tuple(outputs)),),
            **kwargs,
        )

    return _make


@pytest.fixture
def fake_converter():
    return FakeConverter()
