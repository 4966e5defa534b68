"""Calculator registry dispatching configured algorithms to implementations."""

from typing import Callable

from deviation.baselines.interface import DeviationCalculator
from deviation.baselines.week_over_week import WeekOverWeekCalculator
from deviation.config.run_config import AlgorithmKind, ConfigurationError, PastWeeksAlgorithm
from deviation.config.settings import Settings, get_settings
from deviation.features.zabbix_reader import MonitoringReader
from deviation.models.catalog import ResolvedItem
from deviation.models.comparison import ComparisonResult


class CalculatorRegistry:
    """Registry of deviation calculators keyed by algorithm kind.

    Every AlgorithmKind has a default calculator; evaluating an item
    whose algorithm has no registered calculator is a configuration error.
    """

    def __init__(
        self,
        reader: MonitoringReader,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the registry with the default calculators."""
        self._settings = settings or get_settings()
        self._calculators: dict[AlgorithmKind, DeviationCalculator] = {}
        self._initialize_default_calculators(reader, clock)

    def _initialize_default_calculators(
        self, reader: MonitoringReader, clock: Callable[[], float] | None
    ) -> None:
        kwargs = {"clock": clock} if clock is not None else {}
        self._calculators[AlgorithmKind.PAST_WEEKS] = WeekOverWeekCalculator(
            reader, max_workers=self._settings.history_workers, **kwargs
        )

    def get_calculator(self, kind: AlgorithmKind) -> DeviationCalculator | None:
        return self._calculators.get(kind)

    def register_calculator(self, kind: AlgorithmKind, calculator: DeviationCalculator) -> None:
        """Register a custom calculator.

        Args:
            kind: Algorithm kind this calculator handles
            calculator: The calculator instance
        """
        if calculator.kind != kind:
            raise ValueError(
                f"Calculator kind {calculator.kind} does not match "
                f"registration kind {kind}"
            )
        self._calculators[kind] = calculator

    def list_kinds(self) -> list[AlgorithmKind]:
        return list(self._calculators.keys())

    def evaluate(self, resolved: ResolvedItem, algorithm: PastWeeksAlgorithm) -> ComparisonResult:
        """Run the calculator configured for this item's algorithm."""
        calculator = self._calculators.get(algorithm.kind)
        if calculator is None:
            raise ConfigurationError(f"no calculator registered for {algorithm.kind.value}")
        return calculator.evaluate(resolved, algorithm)
