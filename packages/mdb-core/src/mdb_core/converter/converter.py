"""External document converter invoked as a blocking subprocess."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from mdb_core.config.models import ConverterConfig
from mdb_core.converter.models import ConversionResult
from mdb_core.errors import ConverterNotFoundError

logger = logging.getLogger(__name__)


def _as_operand(name: str) -> str:
    # A leading dash would be parsed as an option
    if name.startswith("-"):
        return f"./{name}"
    return name


class Converter(Protocol):
    """Anything that can render a set of inputs into one output file."""

    def convert(
        self,
        inputs: Sequence[str],
        output: Path,
        *,
        reference_doc: Path | None = None,
        cwd: Path | None = None,
    ) -> ConversionResult:
        ...


class PandocConverter:
    """Runs pandoc (or a compatible command) once per output."""

    def __init__(self, config: ConverterConfig | None = None) -> None:
        self._config = config or ConverterConfig()

    def build_command(
        self,
        inputs: Sequence[str],
        output: Path,
        reference_doc: Path | None = None,
    ) -> list[str]:
        cfg = self._config
        operands = [_as_operand(name) for name in inputs]
        cmd = [cfg.command, *cfg.extra_args, *operands, cfg.output_flag, str(output)]
        if reference_doc is not None:
            cmd += [cfg.reference_doc_flag, str(reference_doc)]
        return cmd

    def convert(
        self,
        inputs: Sequence[str],
        output: Path,
        *,
        reference_doc: Path | None = None,
        cwd: Path | None = None,
    ) -> ConversionResult:
        """Run the converter and capture its exit status and output.

        Never raises for a non-zero exit; callers inspect ``result.ok``.
        Stdin is closed so a converter given no inputs cannot block.
        """
        cmd = self.build_command(inputs, output, reference_doc)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ConverterNotFoundError(self._config.command) from e

        if proc.returncode != 0:
            logger.debug(
                "%s exited %d: %s",
                self._config.command,
                proc.returncode,
                proc.stderr[:200],
            )
        return ConversionResult(
            command=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
