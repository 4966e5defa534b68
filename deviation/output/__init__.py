"""Ingestion line output module."""

from deviation.output.formatter import format_line, format_result
from deviation.output.writer import LineWriter

__all__ = [
    "LineWriter",
    "format_line",
    "format_result",
]
