"""Document domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter, ValidationError

from ..exceptions import SourceValidationError


class SourceType(str, Enum):
    """Document class, decided by file extension."""
    MARKDOWN = "markdown"
    MDX = "mdx"
    HTML = "html"
    TEXT = "text"
    JSON = "json"
    PDF = "pdf"
    DOCX = "docx"

    @property
    def is_structured(self) -> bool:
        """Whether the heading-aware chunker applies.

        DOCX counts as structured since its loader renders heading styles
        as markdown headings.
        """
        return self in (SourceType.MARKDOWN, SourceType.MDX, SourceType.DOCX)


class Chunk(BaseModel):
    """Contiguous excerpt of a source."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    source_id: str
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    heading_path: tuple[str, ...] = ()
    metadata: dict[str, JsonValue] = Field(default_factory=dict)


class Source(BaseModel):
    """One ingested document with its chunks."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    id: str = Field(min_length=1)
    type: SourceType
    title: str = Field(min_length=1)
    content: str
    file_path: Optional[str] = None
    url: Optional[str] = None
    chunks: tuple[Chunk, ...] = ()
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    ingested_at: datetime


_SOURCES_ADAPTER = TypeAdapter(list[Source])


def validate_sources(data: object) -> list[Source]:
    """Validate serialized sources (a list or a single object).

    Raises:
        SourceValidationError: If the payload does not match the schema.
    """
    payload = data if isinstance(data, list) else [data]
    try:
        return _SOURCES_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise SourceValidationError(
            f"Invalid source payload: {e.error_count()} error(s)",
            {"errors": e.errors(include_url=False)},
        ) from e


def dump_sources(sources: list[Source]) -> bytes:
    """Serialize sources to JSON."""
    return _SOURCES_ADAPTER.dump_json(sources, indent=2)


@dataclass
class RetrievalResult:
    """Ranked chunk with normalized overlap score."""
    chunk: Chunk
    score: float

    @property
    def source_id(self) -> str:
        return self.chunk.source_id


@dataclass
class SearchResponse:
    """Search response for presentation layer."""
    query: str
    results: list[RetrievalResult] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
