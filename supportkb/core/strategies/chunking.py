"""Chunking strategies: heading-aware markdown and sentence-based plain text."""

import logging
import math
import re
from bisect import bisect_left
from dataclasses import dataclass
from typing import NamedTuple, Optional

from ..exceptions import ConfigurationError
from ..models.document import Chunk, SourceType

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_SENTENCE_RE = re.compile(r"[^.!?]+(?:[.!?]+|$)")

# Sentence-chunker overlap is expressed in characters; one sentence per this many.
CHARS_PER_OVERLAP_SENTENCE = 50


@dataclass(frozen=True)
class ChunkingOptions:
    """Chunk size limits in characters; markdown overlap is in lines."""
    max_chunk_size: int = 1000
    min_chunk_size: int = 100
    overlap: int = 50

    def __post_init__(self) -> None:
        if self.max_chunk_size <= 0:
            raise ConfigurationError(
                f"max_chunk_size must be > 0, got {self.max_chunk_size}"
            )
        if self.min_chunk_size < 0:
            raise ConfigurationError(
                f"min_chunk_size must be >= 0, got {self.min_chunk_size}"
            )
        if self.overlap < 0:
            raise ConfigurationError(f"overlap must be >= 0, got {self.overlap}")
        if self.min_chunk_size >= self.max_chunk_size:
            raise ConfigurationError(
                "min_chunk_size must be smaller than max_chunk_size",
                {
                    "min_chunk_size": self.min_chunk_size,
                    "max_chunk_size": self.max_chunk_size,
                },
            )

    @classmethod
    def from_settings(cls, settings) -> "ChunkingOptions":
        return cls(
            max_chunk_size=settings.chunk_max_size,
            min_chunk_size=settings.chunk_min_size,
            overlap=settings.chunk_overlap,
        )


DEFAULT_CHUNKING_OPTIONS = ChunkingOptions()


def _counts(text: str) -> dict:
    return {"char_count": len(text), "word_count": len(text.split())}


def _make_chunk(
    source_id: str,
    index: int,
    text: str,
    start_line: int,
    end_line: int,
    heading_path: tuple[str, ...] = (),
) -> Chunk:
    return Chunk(
        id=f"{source_id}_chunk_{index}",
        content=text,
        source_id=source_id,
        start_line=start_line,
        end_line=end_line,
        heading_path=heading_path,
        metadata=_counts(text),
    )


def _merge_into(chunk: Chunk, text: str, end_line: int, separator: str) -> Chunk:
    content = chunk.content + separator + text
    return chunk.model_copy(
        update={
            "content": content,
            "end_line": max(chunk.end_line, end_line),
            "metadata": {**chunk.metadata, **_counts(content)},
        }
    )


class _MarkdownChunker:
    """Single-pass scanner over markdown lines.

    Keeps a stack of ``(level, label)`` for the active headings. A heading
    flushes the buffer before the stack changes, so every emitted chunk is
    stamped with the path that was active when it opened. Every flush seeds
    the next buffer with the trailing overlap lines; the heading line that
    triggered it follows the seed.
    """

    def __init__(self, source_id: str, options: ChunkingOptions):
        self._source_id = source_id
        self._options = options
        self._chunks: list[Chunk] = []
        self._stack: list[tuple[int, str]] = []
        self._buffer: list[str] = []
        self._buffer_length = 0
        self._start = 0  # 0-based index of the first buffered line
        self._seeded = 0  # leading buffered lines already emitted as overlap

    @property
    def heading_path(self) -> tuple[str, ...]:
        return tuple(label for _, label in self._stack)

    def run(self, content: str) -> list[Chunk]:
        for lineno, line in enumerate(content.split("\n")):
            match = HEADING_RE.match(line)
            if match:
                self._on_heading(lineno, line, len(match.group(1)), match.group(2).strip())
            else:
                self._on_body(lineno, line)
        self._flush(keep_overlap=False)
        return self._chunks

    def _on_heading(self, lineno: int, line: str, level: int, label: str) -> None:
        self._flush(keep_overlap=True)

        while self._stack and self._stack[-1][0] >= level:
            self._stack.pop()
        self._stack.append((level, label))

        if not self._buffer:
            self._start = lineno
        self._append(line)

    def _on_body(self, lineno: int, line: str) -> None:
        if not self._buffer:
            self._start = lineno
        self._append(line)
        if self._buffer_length >= self._options.max_chunk_size:
            self._flush(keep_overlap=True)

    def _append(self, line: str) -> None:
        if self._buffer:
            self._buffer_length += 1
        self._buffer.append(line)
        self._buffer_length += len(line)

    def _reset(self, seed: list[str], start: int) -> None:
        self._buffer = seed
        self._buffer_length = len("\n".join(seed))
        self._start = start
        self._seeded = len(seed)

    def _flush(self, keep_overlap: bool) -> None:
        buffer, start, seeded = self._buffer, self._start, self._seeded
        self._reset([], start)

        fresh = "\n".join(buffer[seeded:]).strip()
        if not fresh:
            # nothing new since the last seed; keep carrying it
            if keep_overlap and seeded:
                self._reset(buffer, start)
            return

        text = "\n".join(buffer).strip()
        filled = [i for i, line in enumerate(buffer) if line.strip()]
        start_line = start + filled[0] + 1
        end_line = start + filled[-1] + 1

        if len(text) < self._options.min_chunk_size and self._chunks:
            self._chunks[-1] = _merge_into(self._chunks[-1], fresh, end_line, "\n")
        else:
            self._chunks.append(
                _make_chunk(
                    self._source_id,
                    len(self._chunks),
                    text,
                    start_line,
                    end_line,
                    self.heading_path,
                )
            )

        if keep_overlap:
            seed = self._overlap_seed(buffer)
            self._reset(seed, start + len(buffer) - len(seed))

    def _overlap_seed(self, lines: list[str]) -> list[str]:
        """Trailing lines carried into the next chunk.

        Never the whole buffer, and under half the maximum chunk size, so
        every following chunk still makes progress through the document.
        """
        limit = min(self._options.overlap, len(lines) - 1)
        budget = self._options.max_chunk_size // 2
        seed: list[str] = []
        size = 0
        for line in reversed(lines):
            if len(seed) >= limit or size + len(line) + 1 > budget:
                break
            seed.append(line)
            size += len(line) + 1
        seed.reverse()
        return seed


def chunk_markdown(
    content: str,
    source_id: str,
    options: Optional[ChunkingOptions] = None,
) -> list[Chunk]:
    """Split a markdown document at headings and size limits.

    Args:
        content: Markdown text.
        source_id: Owning source ID, used for chunk IDs.
        options: Chunking options.

    Returns:
        Ordered chunks; empty for blank input.
    """
    if not content or not content.strip():
        return []
    chunks = _MarkdownChunker(source_id, options or DEFAULT_CHUNKING_OPTIONS).run(content)
    logger.debug(f"Markdown chunking: {source_id} -> {len(chunks)} chunks")
    return chunks


class _Sentence(NamedTuple):
    text: str
    start: int
    end: int


def _split_sentences(content: str) -> list[_Sentence]:
    sentences = []
    for match in _SENTENCE_RE.finditer(content):
        raw = match.group()
        text = raw.strip()
        if not text:
            continue
        start = match.start() + (len(raw) - len(raw.lstrip()))
        sentences.append(_Sentence(text, start, start + len(text)))

    if not sentences:
        text = content.strip()
        start = content.index(text)
        sentences.append(_Sentence(text, start, start + len(text)))
    return sentences


def chunk_text(
    content: str,
    source_id: str,
    options: Optional[ChunkingOptions] = None,
) -> list[Chunk]:
    """Split plain text into sentence-aligned chunks.

    Args:
        content: Plain text.
        source_id: Owning source ID, used for chunk IDs.
        options: Chunking options.

    Returns:
        Ordered chunks; at least one for non-blank input.
    """
    if not content or not content.strip():
        return []

    options = options or DEFAULT_CHUNKING_OPTIONS
    newlines = [i for i, char in enumerate(content) if char == "\n"]

    def line_of(offset: int) -> int:
        return bisect_left(newlines, offset) + 1

    chunks: list[Chunk] = []

    def emit(sentences: list[_Sentence]) -> None:
        text = " ".join(s.text for s in sentences)
        chunks.append(
            _make_chunk(
                source_id,
                len(chunks),
                text,
                line_of(sentences[0].start),
                line_of(sentences[-1].end - 1),
            )
        )

    overlap_sentences = math.ceil(options.overlap / CHARS_PER_OVERLAP_SENTENCE)
    buffer: list[_Sentence] = []
    length = 0
    seeded = 0

    for sentence in _split_sentences(content):
        if buffer and length + 1 + len(sentence.text) > options.max_chunk_size:
            emit(buffer)
            keep = min(overlap_sentences, len(buffer) - 1)
            buffer = buffer[len(buffer) - keep:] if keep else []
            length = len(" ".join(s.text for s in buffer))
            seeded = len(buffer)

        if buffer:
            length += 1
        buffer.append(sentence)
        length += len(sentence.text)

    if len(buffer) > seeded:
        if length >= options.min_chunk_size or not chunks:
            emit(buffer)
        else:
            fresh = buffer[seeded:]
            chunks[-1] = _merge_into(
                chunks[-1],
                " ".join(s.text for s in fresh),
                line_of(fresh[-1].end - 1),
                " ",
            )

    logger.debug(f"Text chunking: {source_id} -> {len(chunks)} chunks")
    return chunks


def chunk_for_type(
    source_type: SourceType,
    content: str,
    source_id: str,
    options: Optional[ChunkingOptions] = None,
) -> list[Chunk]:
    """Chunk content with the strategy matching its document type."""
    if source_type.is_structured:
        return chunk_markdown(content, source_id, options)
    return chunk_text(content, source_id, options)
