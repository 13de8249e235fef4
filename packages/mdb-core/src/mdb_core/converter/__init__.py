"""Converter subsystem: shells out to pandoc."""

from mdb_core.converter.converter import Converter, PandocConverter
from mdb_core.converter.models import ConversionResult

__all__ = [
    "ConversionResult",
    "Converter",
    "PandocConverter",
]
