"""Knowledge-base exceptions."""
from pathlib import Path
from typing import Optional


class KnowledgeBaseError(Exception):
    """Base exception for knowledge-base errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(KnowledgeBaseError):
    """Invalid chunking, cache or search configuration."""


class DocumentLoadError(KnowledgeBaseError):
    """A document could not be read or decoded."""

    def __init__(self, path: Path | str, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}", {"path": self.path})


class SourceValidationError(KnowledgeBaseError):
    """Serialized sources do not match the Source schema."""
