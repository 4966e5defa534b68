"""Sample retrieval and closest-match selection."""

from typing import Sequence

from deviation.features.zabbix_reader import MonitoringReader
from deviation.models.entities import ItemRecord
from deviation.models.sample import Sample, TimeWindow

# Candidates further than this from the target are never selected
MAX_MATCH_DISTANCE_SECONDS = 365 * 24 * 3600


def fetch_window(
    reader: MonitoringReader,
    item: ItemRecord,
    instant: int,
    half_width: int,
) -> list[Sample]:
    """Fetch the item's samples within [instant - half_width, instant + half_width].

    Returns an empty list when the item has no samples in range. Query
    failures propagate as QueryError.
    """
    window = TimeWindow(instant=int(instant), half_width=int(half_width))
    return reader.query_history(item.item_id, item.value_type, window.start, window.end)


def select_closest(target: int, samples: Sequence[Sample]) -> Sample | None:
    """Pick the sample nearest to ``target``.

    A candidate only replaces the current best when it is strictly
    closer, so the first of several equidistant samples wins. Returns
    None when no sample is within MAX_MATCH_DISTANCE_SECONDS.
    """
    best: Sample | None = None
    best_distance = MAX_MATCH_DISTANCE_SECONDS
    for sample in samples:
        distance = abs(target - sample.clock)
        if distance < best_distance:
            best = sample
            best_distance = distance
    return best
