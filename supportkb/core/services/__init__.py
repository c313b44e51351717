"""Core business services."""
from .ingest_service import IngestService, ingest_directory, ingest_file
from .index_service import IndexService, build_index
from .search_service import SearchService, retrieve_for_ticket, search

__all__ = [
    "IngestService",
    "IndexService",
    "SearchService",
    "build_index",
    "ingest_directory",
    "ingest_file",
    "retrieve_for_ticket",
    "search",
]
