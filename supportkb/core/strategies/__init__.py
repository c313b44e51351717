"""Chunking and scoring strategies."""
from .chunking import ChunkingOptions, chunk_for_type, chunk_markdown, chunk_text
from .scoring import ScoreGapStrategy, ScoringStrategy, SourceDiversityStrategy

__all__ = [
    "ChunkingOptions",
    "chunk_for_type",
    "chunk_markdown",
    "chunk_text",
    "ScoreGapStrategy",
    "ScoringStrategy",
    "SourceDiversityStrategy",
]
