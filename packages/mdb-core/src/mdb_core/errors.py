"""Exception hierarchy for build failures.

Every error carries the process exit code the command line should use.
"""

from __future__ import annotations

from pathlib import Path


class MdbError(Exception):
    """Base class for all build errors."""

    exit_code: int = 1


class ConfigError(MdbError):
    """Settings file is malformed, invalid, or explicitly given but missing."""

    exit_code = 2


class SourceAccessError(MdbError):
    """A source or build directory cannot be read or written."""

    def __init__(self, path: Path | str, cause: Exception | None = None) -> None:
        self.path = Path(path)
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot access {self.path}{detail}")
        if cause is not None:
            self.__cause__ = cause


class SnapshotCorruptError(MdbError):
    """A snapshot sidecar exists but cannot be parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Corrupt snapshot {self.path}: {reason}")


class MissingExtensionError(MdbError):
    """A requested output name has no file extension."""

    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__(
            f"Output '{output}' has no file extension; "
            "the extension selects the target format"
        )


class ReferenceDocNotFoundError(MdbError):
    """An explicitly configured reference document does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Reference document not found: {self.path}")


class ConverterNotFoundError(MdbError):
    """The converter executable could not be launched."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Converter executable not found: {command}")


class ConversionFailedError(MdbError):
    """The converter exited with a non-zero status."""

    def __init__(self, output: str, returncode: int, stderr: str) -> None:
        self.output = output
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Failed to build {output} (exit {returncode})")
