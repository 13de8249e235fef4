from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OUT_DIRECTORY = "pub"
DEFAULT_SOURCE = "src"
ROOT_IDENTIFIER = "root"


class ConverterConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    command: str = "pandoc"
    extra_args: list[str] = Field(default_factory=list)
    output_flag: str = "-o"
    reference_doc_flag: str = "--reference-doc"


class TaskConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    outputs: list[str] = Field(default_factory=list)


class MdbConfig(BaseModel):
    """Contents of ``mdb.toml``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    out_directory: str | None = None
    reference_doc: str | None = None
    tasks: list[TaskConfig] = Field(default_factory=list, alias="task")
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    strict_scan: bool = False


class Task(BaseModel):
    """One source directory and the outputs to render from it."""

    model_config = ConfigDict(frozen=True)

    source: Path
    outputs: tuple[str, ...] = ()


class RuntimeConfig(BaseModel):
    """Fully resolved, immutable settings for one run."""

    model_config = ConfigDict(frozen=True)

    cwd: Path
    out_directory: Path
    reference_doc: Path | None = None
    tasks: tuple[Task, ...] = ()
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    strict_scan: bool = False

    def source_dir(self, task: Task) -> Path:
        return self.cwd / task.source

    def identifier(self, task: Task) -> Path:
        """Relative name of *task* under the output root."""
        if task.source.is_absolute() or ".." in task.source.parts:
            return Path(self.source_dir(task).resolve().name or ROOT_IDENTIFIER)
        return task.source

    def build_path(self, task: Task) -> Path:
        return self.out_directory / self.identifier(task)
