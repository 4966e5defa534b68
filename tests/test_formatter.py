"""Tests for ingestion line rendering and the line writer."""

import io
import math
from concurrent.futures import ThreadPoolExecutor

from deviation.models import ComparisonResult
from deviation.output import LineWriter, format_line, format_result


def _result(deviation: float, host: str = "web1") -> ComparisonResult:
    return ComparisonResult(
        host_name=host,
        item_key="cpu.load",
        postfix=".avg",
        timestamp=1700000000,
        deviation=deviation,
    )


class TestFormatLine:
    """Tests for format_line."""

    def test_line_layout(self) -> None:
        line = format_line("web1", "cpu.load", ".avg", 1700000000, 3.25)
        assert line == '"web1" cpu.load.avg 1700000000 3.250000\n'

    def test_negative_deviation_and_empty_postfix(self) -> None:
        line = format_line("db1", "net.if.in[eth0]", "", 1700000000, -0.5)
        assert line == '"db1" net.if.in[eth0] 1700000000 -0.500000\n'

    def test_host_with_spaces_is_quoted_verbatim(self) -> None:
        line = format_line("web server 1", "cpu.load", ".wow", 1, 0.0)
        assert line == '"web server 1" cpu.load.wow 1 0.000000\n'

    def test_large_value_is_not_scientific(self) -> None:
        line = format_line("h", "k", "", 1, 12345678.9)
        assert line == '"h" k 1 12345678.900000\n'

    def test_format_result(self) -> None:
        assert format_result(_result(2.0)) == '"web1" cpu.load.avg 1700000000 2.000000\n'


class TestLineWriter:
    """Tests for LineWriter."""

    def test_writes_emittable_results(self) -> None:
        sink = io.StringIO()
        writer = LineWriter(sink)

        assert writer.write_result(_result(1.5))

        assert sink.getvalue() == '"web1" cpu.load.avg 1700000000 1.500000\n'
        assert writer.count == 1

    def test_nan_deviation_writes_nothing(self) -> None:
        sink = io.StringIO()
        writer = LineWriter(sink)

        assert not writer.write_result(_result(math.nan))

        assert sink.getvalue() == ""
        assert writer.count == 0

    def test_concurrent_writes_do_not_interleave(self) -> None:
        sink = io.StringIO()
        writer = LineWriter(sink)
        results = [_result(float(i), host=f"host{i}") for i in range(200)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(writer.write_result, results))

        lines = sink.getvalue().splitlines(keepends=True)
        assert writer.count == 200
        assert sorted(lines) == sorted(format_result(r) for r in results)
