"""Search service - term-overlap retrieval over a built index."""

import logging
from typing import Optional

from ..exceptions import ConfigurationError
from ..models.document import RetrievalResult, SearchResponse
from ..models.index import RetrievalIndex
from ..protocols.ticket import TicketProtocol
from ..strategies.scoring import ScoringStrategy
from ..text.term_cache import TermCache
from ..text.tokenizer import extract_terms

logger = logging.getLogger(__name__)

TICKET_QUERY_LIMIT = 500


def _check_limits(top_k: int, min_score: float) -> None:
    if top_k < 0:
        raise ConfigurationError(f"top_k must be >= 0, got {top_k}")
    if not 0.0 <= min_score <= 1.0:
        raise ConfigurationError(f"min_score must be in [0, 1], got {min_score}")


def search(
    index: RetrievalIndex,
    query: str,
    top_k: int = 5,
    min_score: float = 0.1,
    term_cache: Optional[TermCache] = None,
) -> list[RetrievalResult]:
    """Rank chunks by the share of query terms they contain.

    A chunk scores the number of distinct query terms it contains divided
    by the number of distinct query terms. Ties keep index order.

    Args:
        index: Retrieval index.
        query: Free-text query.
        top_k: Maximum number of results.
        min_score: Minimum normalized score.
        term_cache: Optional term cache.

    Returns:
        Results sorted by descending score.
    """
    _check_limits(top_k, min_score)

    query_terms = term_cache.get_terms(query) if term_cache is not None else extract_terms(query)
    if not query_terms:
        return []

    hits: dict[int, int] = {}
    for term in query_terms:
        for position in index.postings(term):
            hits[position] = hits.get(position, 0) + 1

    total = len(query_terms)
    results = [
        RetrievalResult(chunk=index.chunks[position], score=count / total)
        for position, count in sorted(hits.items())
        if count / total >= min_score
    ]
    results.sort(key=lambda r: r.score, reverse=True)

    return results[:top_k]


def ticket_query(subject: str, body: str, limit: int = TICKET_QUERY_LIMIT) -> str:
    """Query text for a ticket: subject and body, truncated."""
    return f"{subject} {body}"[:limit]


def retrieve_for_ticket(
    index: RetrievalIndex,
    subject: str,
    body: str,
    top_k: int = 5,
    min_score: float = 0.1,
    term_cache: Optional[TermCache] = None,
) -> list[RetrievalResult]:
    """Search with a ticket's subject and body as the query."""
    return search(index, ticket_query(subject, body), top_k, min_score, term_cache)


class SearchService:
    """Search service over one index with post-ranking strategies."""

    def __init__(
        self,
        index: RetrievalIndex,
        term_cache: Optional[TermCache] = None,
        top_k: int = 5,
        min_score: float = 0.1,
        strategies: list[ScoringStrategy] | None = None,
        ticket_query_limit: int = TICKET_QUERY_LIMIT,
    ):
        """Initialize search service.

        Args:
            index: Retrieval index.
            term_cache: Term cache for query tokenization.
            top_k: Number of results to return.
            min_score: Minimum normalized score.
            strategies: Post-ranking strategies, applied in order.
            ticket_query_limit: Characters of ticket text used as query.
        """
        _check_limits(top_k, min_score)
        self._index = index
        self._term_cache = term_cache
        self._top_k = top_k
        self._min_score = min_score
        self._strategies = strategies or []
        self._ticket_query_limit = ticket_query_limit

    @property
    def index(self) -> RetrievalIndex:
        return self._index

    def search(self, query: str, top_k: Optional[int] = None) -> SearchResponse:
        """Search the index.

        Args:
            query: Search query.
            top_k: Override number of results.

        Returns:
            Search response with results and sources.
        """
        top_k = self._top_k if top_k is None else top_k

        if top_k < 0:
            raise ConfigurationError(f"top_k must be >= 0, got {top_k}")

        # Rank every candidate; strategies filter before the top-k cut
        results = search(
            self._index,
            query,
            top_k=self._index.chunk_count,
            min_score=self._min_score,
            term_cache=self._term_cache,
        )

        for strategy in self._strategies:
            results = strategy.apply(query, results)

        results = results[:top_k]

        logger.info(f"Search: returned {len(results)}/{top_k} chunks for '{query[:50]}'")

        return SearchResponse(
            query=query,
            results=results,
            sources=self._get_unique_sources(results),
        )

    def search_ticket(self, ticket: TicketProtocol, top_k: Optional[int] = None) -> SearchResponse:
        """Search with a ticket's subject and body."""
        query = ticket_query(ticket.subject, ticket.body, self._ticket_query_limit)
        return self.search(query, top_k)

    def _get_unique_sources(self, results: list[RetrievalResult]) -> list[str]:
        """Get unique source IDs in rank order."""
        seen = set()
        sources = []
        for r in results:
            if r.source_id not in seen:
                seen.add(r.source_id)
                sources.append(r.source_id)
        return sources
