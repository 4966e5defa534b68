"""One discovery-and-comparison pass."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, TextIO

from deviation.baselines.registry import CalculatorRegistry
from deviation.config.run_config import RunConfiguration
from deviation.config.settings import Settings, get_settings
from deviation.discovery.pipeline import discover
from deviation.features.zabbix_reader import MonitoringReader
from deviation.models.catalog import DiscoveryResult, ResolvedItem
from deviation.models.comparison import ComparisonResult
from deviation.output.writer import LineWriter

logger = logging.getLogger("deviation.runner")


@dataclass
class RunReport:
    """Summary of a pass: what was found, emitted and skipped."""

    discovery: DiscoveryResult
    results: list[ComparisonResult] = field(default_factory=list)
    emitted: int = 0
    skipped: int = 0
    expired: int = 0

    @property
    def complete(self) -> bool:
        """True when every resolved item produced a line."""
        return self.skipped == 0 and self.expired == 0


def run(
    configuration: RunConfiguration,
    reader: MonitoringReader,
    sink: TextIO,
    settings: Settings | None = None,
    clock: Callable[[], float] | None = None,
) -> RunReport:
    """Discover items, compare each one and write ingestion lines to ``sink``.

    Discovery finishes (catalogs frozen) before any comparison starts.
    Items without a current sample are skipped with a warning; an
    exceeded run deadline skips the remaining items.

    Raises:
        ConfigurationError: If discovery cannot proceed (see discover())
    """
    settings = settings or get_settings()
    clock = clock or time.time
    started = time.monotonic()
    deadline = (
        started + settings.run_deadline_seconds
        if settings.run_deadline_seconds is not None
        else None
    )

    discovery = discover(configuration, reader)
    report = RunReport(discovery=discovery)
    registry = CalculatorRegistry(reader, settings, clock=clock)
    writer = LineWriter(sink)

    def compare(resolved: ResolvedItem) -> ComparisonResult | None:
        if deadline is not None and time.monotonic() > deadline:
            logger.warning("run deadline exceeded, skipping item %s", resolved.item.item_id)
            return None
        algorithm = configuration.items[resolved.config_index].algorithm
        result = registry.evaluate(resolved, algorithm)
        if writer.write_result(result):
            return result
        if result.has_current:
            reason = f"no historical samples in {algorithm.weeks} weeks"
        else:
            reason = "no current value"
        logger.warning(
            "skipping %s %s%s: %s",
            resolved.host_name,
            resolved.item.key,
            resolved.postfix,
            reason,
        )
        return result

    items = discovery.items
    if settings.max_workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
            outcomes = list(pool.map(compare, items))
    else:
        outcomes = [compare(resolved) for resolved in items]

    for outcome in outcomes:
        if outcome is None:
            report.expired += 1
            continue
        report.results.append(outcome)
        if outcome.is_emittable:
            report.emitted += 1
        else:
            report.skipped += 1

    logger.info(
        "run finished in %.1f s: %d lines, %d skipped, %d expired",
        time.monotonic() - started,
        report.emitted,
        report.skipped,
        report.expired,
    )
    return report
