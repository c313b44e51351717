
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import ConfigurationError
from ..models.document import RetrievalResult

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """Base class for post-ranking strategies.

    Strategies receive results sorted by descending score and may only drop
    results, never reorder them.
    """

    @abstractmethod
    def apply(self, query: str, results: list[RetrievalResult]) -> list[RetrievalResult]:
        """Apply strategy to results."""
        ...


class ScoreGapStrategy(ScoringStrategy):
    """Drop results trailing the best match by more than a fixed score gap.

    Overlap scores are already normalized to (0, 1], so the gap is measured
    in the same units: with ``max_gap=0.25`` a top hit matching every query
    term keeps only chunks matching at least three quarters of them.
    """

    def __init__(self, max_gap: Optional[float] = None):
        """Initialize strategy.

        Args:
            max_gap: Largest allowed distance below the top score; None disables.
        """
        if max_gap is not None and not 0.0 <= max_gap <= 1.0:
            raise ConfigurationError(
                f"max_gap must be in [0, 1], got {max_gap}", {"max_gap": max_gap}
            )
        self._max_gap = max_gap

    def apply(self, query: str, results: list[RetrievalResult]) -> list[RetrievalResult]:
        """Keep results within the gap of the top score."""
        if not results or self._max_gap is None:
            return results

        floor = results[0].score - self._max_gap
        kept = [r for r in results if r.score >= floor]

        if len(kept) < len(results):
            logger.debug(
                f"Score gap {self._max_gap:.2f} below top {results[0].score:.2f}: "
                f"kept {len(kept)} of {len(results)}"
            )

        return kept


class SourceDiversityStrategy(ScoringStrategy):
    """Cap the number of chunks returned from any single source."""

    def __init__(self, max_per_source: Optional[int] = None):
        """Initialize strategy.

        Args:
            max_per_source: Chunks kept per source; None disables.
        """
        if max_per_source is not None and max_per_source < 1:
            raise ConfigurationError(
                f"max_per_source must be >= 1, got {max_per_source}"
            )
        self._max_per_source = max_per_source

    def apply(self, query: str, results: list[RetrievalResult]) -> list[RetrievalResult]:
        """Keep the best-ranked chunks of each source."""
        if self._max_per_source is None:
            return results

        seen: dict[str, int] = {}
        kept = []
        for result in results:
            count = seen.get(result.source_id, 0)
            if count < self._max_per_source:
                kept.append(result)
            seen[result.source_id] = count + 1

        if len(kept) < len(results):
            logger.info(
                f"Source cap: {len(results)} → {len(kept)} "
                f"(max {self._max_per_source} per source)"
            )

        return kept
