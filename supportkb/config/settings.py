
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    docs_path: str = "./docs"
    tenant_id: str = "default"
    project_id: str = "default"
    kb_sources_path: str = "./kb_sources.json"

    # Chunking
    chunk_max_size: int = 1000
    chunk_min_size: int = 100
    chunk_overlap: int = 50

    # Ingestion
    ingest_concurrency: int = 10
    # None means the ingest service defaults (common document types,
    # build/dependency/VCS directories excluded)
    ingest_include_patterns: Optional[list[str]] = None
    ingest_exclude_patterns: Optional[list[str]] = None

    # Retrieval
    term_cache_size: int = 1000
    rag_top_k: int = 5
    rag_min_score: float = 0.1
    rag_max_score_gap: Optional[float] = None
    rag_max_per_source: Optional[int] = None
    ticket_query_limit: int = 500

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
