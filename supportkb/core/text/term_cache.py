import logging
from collections import OrderedDict

from ..exceptions import ConfigurationError
from .tokenizer import extract_terms

logger = logging.getLogger(__name__)


class TermCache:
    """LRU memoization of :func:`extract_terms`, keyed by the exact text.

    Not safe for concurrent mutation; give each worker its own instance.
    """

    def __init__(self, capacity: int = 1000):
        """Initialize cache.

        Args:
            capacity: Maximum number of cached texts.
        """
        if capacity < 1:
            raise ConfigurationError(
                f"Term cache capacity must be >= 1, got {capacity}",
                {"capacity": capacity},
            )
        self._capacity = capacity
        self._entries: OrderedDict[str, frozenset[str]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def get_terms(self, text: str) -> frozenset[str]:
        """Return terms for text, computing them on a miss."""
        terms = self._entries.get(text)
        if terms is not None:
            self._entries.move_to_end(text)
            self.hits += 1
            return terms

        self.misses += 1
        terms = extract_terms(text)
        self._entries[text] = terms
        if len(self._entries) > self._capacity:
            self._entries.popitem(last=False)
        return terms

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        logger.debug("Term cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries
