"""Tokenization and term caching."""
from .term_cache import TermCache
from .tokenizer import STOP_WORDS, extract_terms

__all__ = [
    "STOP_WORDS",
    "TermCache",
    "extract_terms",
]
