"""Interface for deviation calculators."""

from abc import ABC, abstractmethod

from deviation.config.run_config import AlgorithmKind, PastWeeksAlgorithm
from deviation.models.comparison import ComparisonResult
from deviation.models.catalog import ResolvedItem


class DeviationCalculator(ABC):
    """Abstract interface for per-item deviation algorithms.

    Implementations must be:
    - Non-fatal: missing data yields a NaN deviation, never an exception
    - Versioned: Algorithm version must be tracked
    """

    @property
    @abstractmethod
    def kind(self) -> AlgorithmKind:
        """Get the algorithm kind this calculator implements."""
        ...

    @property
    @abstractmethod
    def algorithm_version(self) -> str:
        """Get the algorithm version for this calculator."""
        ...

    @abstractmethod
    def evaluate(
        self,
        resolved: ResolvedItem,
        algorithm: PastWeeksAlgorithm,
    ) -> ComparisonResult:
        """Compute the comparison result for one resolved item.

        Args:
            resolved: Item to compare together with its host name and postfix
            algorithm: Parameters of the configured algorithm

        Returns:
            Comparison result; its deviation is NaN without a current sample
        """
        ...
