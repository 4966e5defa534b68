"""Week-over-week baseline deviation."""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Sequence

from deviation.baselines.interface import DeviationCalculator
from deviation.baselines.sampler import fetch_window, select_closest
from deviation.config.run_config import AlgorithmKind, PastWeeksAlgorithm
from deviation.features.zabbix_reader import MonitoringReader, QueryError
from deviation.models.catalog import ResolvedItem
from deviation.models.comparison import ComparisonResult
from deviation.models.entities import ItemRecord
from deviation.models.sample import Sample

logger = logging.getLogger("deviation.week_over_week")

ONE_WEEK_SECONDS = 7 * 24 * 3600


@dataclass(frozen=True)
class WeekOverWeekOutcome:
    """Raw outcome of one week-over-week comparison."""

    deviation: float
    timestamp: int
    current_value: float = math.nan
    historical_values: tuple[float, ...] = ()

    @property
    def historical_mean(self) -> float:
        return compute_mean(self.historical_values)


def compute_mean(values: Sequence[float]) -> float:
    """Arithmetic mean of the values present; NaN for an empty sequence."""
    if not values:
        return math.nan
    return sum(values) / len(values)


def week_anchors(anchor: int, weeks: int) -> list[int]:
    """Instants exactly 1..weeks weeks before ``anchor``."""
    return [anchor - i * ONE_WEEK_SECONDS for i in range(1, weeks + 1)]


class WeekOverWeekCalculator(DeviationCalculator):
    """Compares an item's current sample with the same time of day in prior weeks.

    Algorithm:
    1. Fetch a window around now and take the sample closest to now
    2. Anchor on that sample's clock, not on wall-clock time
    3. For each of the prior weeks pick the sample closest to the anchor
       minus whole weeks; weeks without a usable sample are left out
    4. Return current value minus the mean of the historical values

    The historical fetches do not depend on each other, so they are
    issued through a bounded thread pool when ``max_workers`` > 1.
    Results are collected by week index, so the outcome does not depend
    on the pool size.
    """

    _ALGORITHM_VERSION = "1.0.0"

    def __init__(
        self,
        reader: MonitoringReader,
        max_workers: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the calculator.

        Args:
            reader: Query capability used for history lookups
            max_workers: Concurrent history queries per comparison
            clock: Source of the current time in epoch seconds
        """
        self._reader = reader
        self._max_workers = max(1, max_workers)
        self._clock = clock

    @property
    def kind(self) -> AlgorithmKind:
        return AlgorithmKind.PAST_WEEKS

    @property
    def algorithm_version(self) -> str:
        return self._ALGORITHM_VERSION

    def _closest_in_window(self, item: ItemRecord, instant: int, half_width: int) -> Sample | None:
        return select_closest(instant, fetch_window(self._reader, item, instant, half_width))

    def _historical_value(self, item: ItemRecord, anchor: int, half_width: int) -> float | None:
        try:
            sample = self._closest_in_window(item, anchor, half_width)
        except QueryError as exc:
            logger.error("history query failed for item %s at %d: %s", item.item_id, anchor, exc)
            return None
        if sample is None:
            logger.info("no historic value for item %s near %d", item.item_id, anchor)
            return None
        value = sample.numeric_value()
        if value is None:
            logger.warning(
                "ignoring non-numeric historic value %r of item %s", sample.value, item.item_id
            )
            return None
        logger.debug("historic value %s of item %s at %s", value, item.item_id, sample.when)
        return value

    def compare(self, item: ItemRecord, weeks: int, half_width: int) -> WeekOverWeekOutcome:
        """Compute (current - mean of prior weeks, current sample clock).

        Returns a NaN deviation stamped with now when no usable current
        sample exists.
        """
        now = int(self._clock())
        try:
            current = self._closest_in_window(item, now, half_width)
        except QueryError as exc:
            logger.error("history query failed for item %s: %s", item.item_id, exc)
            current = None

        current_value = current.numeric_value() if current is not None else None
        if current is None or current_value is None:
            logger.warning(
                "no current value for item %s within %d s of %d", item.item_id, half_width, now
            )
            return WeekOverWeekOutcome(deviation=math.nan, timestamp=now)

        logger.info("current value %s of item %s at %s", current_value, item.item_id, current.when)

        anchors = week_anchors(current.clock, weeks)
        if self._max_workers > 1 and len(anchors) > 1:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(anchors))) as pool:
                found = list(
                    pool.map(lambda anchor: self._historical_value(item, anchor, half_width), anchors)
                )
        else:
            found = [self._historical_value(item, anchor, half_width) for anchor in anchors]

        historical = tuple(value for value in found if value is not None)
        mean = compute_mean(historical)
        logger.info(
            "item %s: current %s, average %s over %d of %d weeks, difference %s",
            item.item_id,
            current_value,
            mean,
            len(historical),
            weeks,
            current_value - mean,
        )
        return WeekOverWeekOutcome(
            deviation=current_value - mean,
            timestamp=current.clock,
            current_value=current_value,
            historical_values=historical,
        )

    def evaluate(
        self,
        resolved: ResolvedItem,
        algorithm: PastWeeksAlgorithm,
    ) -> ComparisonResult:
        outcome = self.compare(resolved.item, algorithm.weeks, algorithm.half_width)
        return ComparisonResult(
            host_name=resolved.host_name,
            item_key=resolved.item.key,
            postfix=resolved.postfix,
            timestamp=outcome.timestamp,
            deviation=outcome.deviation,
            item_id=resolved.item.item_id,
            current_value=outcome.current_value,
            historical_mean=outcome.historical_mean,
            historical_count=len(outcome.historical_values),
            metadata={
                "algorithm": self.kind.value,
                "algorithm_version": self.algorithm_version,
                "weeks": algorithm.weeks,
                "window": algorithm.window,
            },
        )
