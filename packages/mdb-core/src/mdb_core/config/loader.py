"""TOML config loading, CLI option merging and runtime resolution."""

from __future__ import annotations

import logging
import os
import re
import tomllib
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from mdb_core.errors import ConfigError

from .models import (
    DEFAULT_OUT_DIRECTORY,
    DEFAULT_SOURCE,
    MdbConfig,
    RuntimeConfig,
    Task,
    TaskConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "mdb.toml"


def load_config(cwd: Path, cli_path: str | Path | None = None) -> MdbConfig:
    """Load ``mdb.toml`` from *cwd*, or the explicit *cli_path*.

    A missing conventional file yields defaults; a missing explicit file
    is an error.
    """
    if cli_path is not None:
        path = cwd / Path(cli_path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
    else:
        path = cwd / CONFIG_FILE_NAME
        if not path.is_file():
            logger.debug("No %s in %s, using defaults", CONFIG_FILE_NAME, cwd)
            return MdbConfig()

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    raw = _expand_env_vars(raw)
    try:
        config = MdbConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e
    logger.debug("Loaded %s (%d task(s))", path, len(config.tasks))
    return config


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def merge_options(
    config: MdbConfig,
    *,
    source: str | None = None,
    outputs: Sequence[str] = (),
    out_directory: str | None = None,
    reference_doc: str | None = None,
) -> MdbConfig:
    """Let command-line values override the file configuration.

    An explicit *source* replaces every configured task. Otherwise the
    configured tasks are kept (or the conventional ``src`` task used when
    none are configured), and a non-empty *outputs* replaces each task's
    output list.
    """
    outputs = list(outputs)
    if source is not None:
        tasks = [TaskConfig(source=source, outputs=outputs)]
    elif not config.tasks:
        tasks = [TaskConfig(source=DEFAULT_SOURCE, outputs=outputs)]
    elif outputs:
        tasks = [t.model_copy(update={"outputs": outputs}) for t in config.tasks]
    else:
        tasks = list(config.tasks)

    return config.model_copy(
        update={
            "out_directory": out_directory or config.out_directory,
            "reference_doc": reference_doc or config.reference_doc,
            "tasks": tasks,
        }
    )


def resolve_runtime(config: MdbConfig, cwd: Path) -> RuntimeConfig:
    """Freeze a merged config into absolute runtime settings."""
    cwd = cwd.resolve()
    return RuntimeConfig(
        cwd=cwd,
        out_directory=cwd / (config.out_directory or DEFAULT_OUT_DIRECTORY),
        reference_doc=cwd / config.reference_doc if config.reference_doc else None,
        tasks=tuple(
            Task(source=Path(t.source), outputs=tuple(t.outputs)) for t in config.tasks
        ),
        converter=config.converter,
        strict_scan=config.strict_scan,
    )


# Default TOML template for `mdb config init`
DEFAULT_CONFIG_TEMPLATE = """\
# mdb.toml

# Generated outputs land in <out_directory>/<source>/<extension>/
out_directory = "pub"

# Styling template handed to the converter. When unset, reference.docx
# in this directory is used if present.
# reference_doc = "style.docx"

log_level = "info"             # debug | info | warn | error

# Fail instead of skipping source entries whose metadata cannot be read
strict_scan = false

[converter]
command = "pandoc"
extra_args = []
output_flag = "-o"
reference_doc_flag = "--reference-doc"

[[task]]
source = "src"
outputs = ["book.docx"]
"""
