"""Domain models."""
from .document import (
    Chunk,
    RetrievalResult,
    SearchResponse,
    Source,
    SourceType,
    dump_sources,
    validate_sources,
)
from .index import RetrievalIndex

__all__ = [
    "Chunk",
    "RetrievalIndex",
    "RetrievalResult",
    "SearchResponse",
    "Source",
    "SourceType",
    "dump_sources",
    "validate_sources",
]
