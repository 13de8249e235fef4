"""Locate the optional styling template passed to the converter."""

from __future__ import annotations

import logging
from pathlib import Path

from mdb_core.errors import ReferenceDocNotFoundError

logger = logging.getLogger(__name__)

CONVENTIONAL_REFERENCE_DOC = "reference.docx"


def resolve_reference_doc(cwd: Path, explicit: Path | None = None) -> Path | None:
    """Return the reference document to use, if any.

    An explicit path must exist. Without one, ``reference.docx`` in *cwd*
    is used when present.
    """
    if explicit is not None:
        path = cwd / explicit
        if not path.is_file():
            raise ReferenceDocNotFoundError(path)
        return path

    fallback = cwd / CONVENTIONAL_REFERENCE_DOC
    if fallback.is_file():
        logger.debug("Using conventional reference document %s", fallback)
        return fallback
    return None
