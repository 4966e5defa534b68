"""Serialized line writer for the output sink."""

import threading
from typing import TextIO

from deviation.models.comparison import ComparisonResult
from deviation.output.formatter import format_result


class LineWriter:
    """Thread-safe, append-only writer of ingestion lines.

    The sink is opened and closed by the caller; this writer only writes
    and flushes. Each line is written under a lock so concurrent
    comparisons never interleave partial lines.
    """

    def __init__(self, sink: TextIO) -> None:
        self._sink = sink
        self._lock = threading.Lock()
        self._count = 0

    @property
    def count(self) -> int:
        """Number of lines written so far."""
        return self._count

    def write_line(self, line: str) -> None:
        with self._lock:
            self._sink.write(line)
            self._sink.flush()
            self._count += 1

    def write_result(self, result: ComparisonResult) -> bool:
        """Write the result's line if it carries a deviation.

        Returns:
            True if a line was written
        """
        if not result.is_emittable:
            return False
        self.write_line(format_result(result))
        return True
