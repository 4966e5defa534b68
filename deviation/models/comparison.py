"""Comparison result models."""

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ComparisonResult:
    """Deviation of one item's current sample from its historical mean.

    ``deviation`` is NaN when the item had no usable current sample;
    such results are never rendered as ingestion lines.
    """

    host_name: str
    item_key: str
    postfix: str
    timestamp: int
    deviation: float

    # Optional context for explainability
    item_id: str = ""
    current_value: float = math.nan
    historical_mean: float = math.nan
    historical_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_current(self) -> bool:
        return not math.isnan(self.current_value)

    @property
    def is_emittable(self) -> bool:
        """A line is only produced for a real deviation value."""
        return not math.isnan(self.deviation)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""

        def _number(value: float) -> float | None:
            return None if math.isnan(value) else value

        return {
            "host_name": self.host_name,
            "item_key": self.item_key,
            "postfix": self.postfix,
            "item_id": self.item_id,
            "timestamp": self.timestamp,
            "deviation": _number(self.deviation),
            "current_value": _number(self.current_value),
            "historical_mean": _number(self.historical_mean),
            "historical_count": self.historical_count,
            "metadata": self.metadata,
        }
