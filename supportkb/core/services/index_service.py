"""Index service - inverted term index over source chunks."""

import logging
from types import MappingProxyType
from typing import Iterable, Optional

from ..models.document import Chunk, Source
from ..models.index import RetrievalIndex
from ..text.term_cache import TermCache
from ..text.tokenizer import extract_terms

logger = logging.getLogger(__name__)


def build_index(
    tenant_id: str,
    project_id: str,
    sources: Iterable[Source],
    term_cache: Optional[TermCache] = None,
) -> RetrievalIndex:
    """Build a retrieval index from sources.

    Sources sharing an ID are replaced by the later one, which keeps the
    position of the first. Chunks are appended in source order, and each
    chunk's position is added to the posting set of every term it contains.

    Args:
        tenant_id: Tenant ID.
        project_id: Project ID.
        sources: Sources in the order their chunks should be indexed.
        term_cache: Optional term cache shared with the search side.

    Returns:
        Read-only retrieval index.
    """
    get_terms = term_cache.get_terms if term_cache is not None else extract_terms

    by_id: dict[str, Source] = {}
    for source in sources:
        if source.id in by_id:
            logger.debug(f"Replacing re-ingested source {source.id}")
        by_id[source.id] = source

    chunks: list[Chunk] = []
    postings: dict[str, set[int]] = {}

    for source in by_id.values():
        for chunk in source.chunks:
            position = len(chunks)
            chunks.append(chunk)
            for term in get_terms(chunk.content):
                postings.setdefault(term, set()).add(position)

    logger.info(
        f"Index built for {tenant_id}/{project_id}: "
        f"{len(by_id)} sources, {len(chunks)} chunks, {len(postings)} terms"
    )

    return RetrievalIndex(
        tenant_id=tenant_id,
        project_id=project_id,
        sources=MappingProxyType(by_id),
        chunks=tuple(chunks),
        term_index=MappingProxyType(
            {term: frozenset(positions) for term, positions in postings.items()}
        ),
    )


class IndexService:
    """Builds indexes for one tenant/project with a shared term cache."""

    def __init__(self, tenant_id: str, project_id: str, term_cache: Optional[TermCache] = None):
        self._tenant_id = tenant_id
        self._project_id = project_id
        self._term_cache = term_cache

    def build(self, sources: Iterable[Source]) -> RetrievalIndex:
        return build_index(self._tenant_id, self._project_id, sources, self._term_cache)
