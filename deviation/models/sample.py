"""History sample and time window models."""

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Sample:
    """One timestamped observation of an item, as returned by history.get.

    The value stays a decimal string; parsing happens where it is used.
    """

    item_id: str
    value: str
    clock: int  # seconds since epoch
    ns: int = 0

    def numeric_value(self) -> float | None:
        """Parse the value, returning None when it is not a number."""
        try:
            return float(self.value)
        except (TypeError, ValueError):
            return None

    @property
    def when(self) -> datetime:
        return datetime.fromtimestamp(self.clock + self.ns / 1e9, tz=timezone.utc)


@dataclass(frozen=True)
class TimeWindow:
    """Symmetric interval [instant - half_width, instant + half_width]."""

    instant: int
    half_width: int

    def __post_init__(self) -> None:
        """Validate time window constraints."""
        if self.half_width < 0:
            raise ValueError("Time window half width cannot be negative")

    @property
    def start(self) -> int:
        return self.instant - self.half_width

    @property
    def end(self) -> int:
        return self.instant + self.half_width

    def contains(self, clock: int) -> bool:
        return self.start <= clock <= self.end
