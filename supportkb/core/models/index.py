"""Retrieval index model."""
from dataclasses import dataclass
from typing import Mapping

from .document import Chunk, Source


@dataclass(frozen=True)
class RetrievalIndex:
    """In-memory inverted index over the chunks of a tenant/project.

    Chunk positions (indices into ``chunks``) are the posting-set elements
    of ``term_index``. Built once by the index service and read-only after.
    """
    tenant_id: str
    project_id: str
    sources: Mapping[str, Source]
    chunks: tuple[Chunk, ...]
    term_index: Mapping[str, frozenset[int]]

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def term_count(self) -> int:
        return len(self.term_index)

    def postings(self, term: str) -> frozenset[int]:
        """Chunk positions containing the term."""
        return self.term_index.get(term, frozenset())
