"""Ingest service - turns document files into chunked sources."""

import asyncio
import base64
import logging
import re
from datetime import datetime, timezone
from fnmatch import fnmatch
from pathlib import Path
from typing import Optional, Sequence

from ..exceptions import ConfigurationError
from ..models.document import Source, SourceType
from ..protocols.loader import DocumentLoaderProtocol
from ..strategies.chunking import ChunkingOptions, chunk_for_type

logger = logging.getLogger(__name__)

EXTENSION_TYPES: dict[str, SourceType] = {
    ".md": SourceType.MARKDOWN,
    ".markdown": SourceType.MARKDOWN,
    ".mdx": SourceType.MDX,
    ".html": SourceType.HTML,
    ".htm": SourceType.HTML,
    ".txt": SourceType.TEXT,
    ".json": SourceType.JSON,
    ".pdf": SourceType.PDF,
    ".docx": SourceType.DOCX,
}

DEFAULT_INCLUDE_PATTERNS = (
    "**/*.md",
    "**/*.mdx",
    "**/*.html",
    "**/*.htm",
    "**/*.txt",
    "**/*.json",
    "**/*.pdf",
    "**/*.docx",
)
DEFAULT_EXCLUDE_PATTERNS = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/.venv/**",
    "**/__pycache__/**",
)
DEFAULT_CONCURRENCY = 10

_H1_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_TITLE_TAG_RE = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)


def _default_loader() -> DocumentLoaderProtocol:
    from supportkb.infrastructure.document_loaders import CompositeLoader

    return CompositeLoader()


def detect_type(file_path: Path) -> SourceType:
    """Classify a document by extension; unknown extensions are plain text."""
    return EXTENSION_TYPES.get(file_path.suffix.lower(), SourceType.TEXT)


def extract_title(content: str, file_path: Path) -> str:
    """First level-1 heading, else the <title> tag, else the file stem."""
    match = _H1_RE.search(content)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _TITLE_TAG_RE.search(content)
    if match and match.group(1).strip():
        return match.group(1).strip()

    return file_path.stem or file_path.name


def make_source_id(tenant_id: str, project_id: str, file_path: Path | str) -> str:
    """Stable source ID from tenant, project and file path."""
    encoded = base64.urlsafe_b64encode(str(file_path).encode("utf-8")).decode("ascii")
    return f"kb_{tenant_id}_{project_id}_{encoded.rstrip('=')}"


def ingest_file(
    file_path: Path | str,
    tenant_id: str,
    project_id: str,
    chunking: Optional[ChunkingOptions] = None,
    loader: Optional[DocumentLoaderProtocol] = None,
) -> Source:
    """Load, classify and chunk one document.

    Args:
        file_path: Document path.
        tenant_id: Tenant ID.
        project_id: Project ID.
        chunking: Chunking options.
        loader: Document loader (composite loader by default).

    Returns:
        Ingested source.

    Raises:
        DocumentLoadError: If the file cannot be read.
    """
    path = Path(file_path)
    loader = loader or _default_loader()

    content = loader.load(path)
    source_type = detect_type(path)
    source_id = make_source_id(tenant_id, project_id, path)
    chunks = chunk_for_type(source_type, content, source_id, chunking)

    return Source(
        tenant_id=tenant_id,
        project_id=project_id,
        id=source_id,
        type=source_type,
        title=extract_title(content, path),
        content=content,
        file_path=str(path),
        chunks=tuple(chunks),
        metadata={
            "original_path": str(path),
            "file_size": path.stat().st_size,
            "chunk_count": len(chunks),
        },
        ingested_at=datetime.now(timezone.utc),
    )


def _is_excluded(relative: Path, patterns: Sequence[str]) -> bool:
    posix = relative.as_posix()
    return any(fnmatch(posix, p) or fnmatch(f"/{posix}", p) for p in patterns)


def discover_files(
    root: Path | str,
    include_patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
) -> list[Path]:
    """Resolve include globs minus exclude globs to a sorted file list.

    Args:
        root: Directory to scan, or a single file.
        include_patterns: Glob patterns relative to root.
        exclude_patterns: Glob patterns of relative paths to skip.

    Returns:
        Deduplicated, sorted file paths.
    """
    root = Path(root).resolve()
    if not root.exists():
        raise FileNotFoundError(f"Source path not found: {root}")
    if root.is_file():
        return [root]

    includes = DEFAULT_INCLUDE_PATTERNS if include_patterns is None else include_patterns
    excludes = DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns

    files: set[Path] = set()
    for pattern in includes:
        for path in root.glob(pattern):
            if path.is_file() and not _is_excluded(path.relative_to(root), excludes):
                files.add(path)

    return sorted(files)


async def ingest_directory(
    root: Path | str,
    tenant_id: str,
    project_id: str,
    *,
    include_patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    chunking: Optional[ChunkingOptions] = None,
    loader: Optional[DocumentLoaderProtocol] = None,
) -> list[Source]:
    """Ingest every matching file under root in fixed-size concurrent batches.

    Each batch runs its files in worker threads and completes before the
    next batch starts. A failing file is logged and skipped; it never
    cancels the other files.

    Args:
        root: Directory to scan, or a single file.
        tenant_id: Tenant ID.
        project_id: Project ID.
        include_patterns: Glob patterns relative to root.
        exclude_patterns: Glob patterns of relative paths to skip.
        concurrency: Files per batch.
        chunking: Chunking options.
        loader: Document loader shared by all files.

    Returns:
        Sources for the files that ingested successfully, in discovery order.
    """
    if concurrency < 1:
        raise ConfigurationError(
            f"concurrency must be >= 1, got {concurrency}",
            {"concurrency": concurrency},
        )

    files = discover_files(root, include_patterns, exclude_patterns)
    loader = loader or _default_loader()

    sources: list[Source] = []
    failed = 0

    for i in range(0, len(files), concurrency):
        batch = files[i : i + concurrency]
        results = await asyncio.gather(
            *(
                asyncio.to_thread(ingest_file, path, tenant_id, project_id, chunking, loader)
                for path in batch
            ),
            return_exceptions=True,
        )

        for path, result in zip(batch, results):
            if isinstance(result, Exception):
                failed += 1
                logger.error(f"Failed to ingest {path}: {result}")
            elif isinstance(result, BaseException):
                raise result
            else:
                sources.append(result)

        logger.info(f"Ingested batch: {i + len(batch)}/{len(files)} files")

    logger.info(
        f"Ingestion complete: {len(sources)} sources, "
        f"{sum(len(s.chunks) for s in sources)} chunks, {failed} failed"
    )
    return sources


class IngestService:
    """Service for ingesting a documents folder into sources."""

    def __init__(
        self,
        docs_path: str = "./docs",
        tenant_id: str = "default",
        project_id: str = "default",
        chunking: Optional[ChunkingOptions] = None,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        loader: Optional[DocumentLoaderProtocol] = None,
    ):
        """Initialize ingest service.

        Args:
            docs_path: Path to documents folder.
            tenant_id: Tenant ID stamped on sources.
            project_id: Project ID stamped on sources.
            chunking: Chunking options.
            include_patterns: Glob patterns to include.
            exclude_patterns: Glob patterns to exclude.
            concurrency: Files ingested per batch.
            loader: Document loader.
        """
        if concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {concurrency}")

        self._docs_path = Path(docs_path)
        self._tenant_id = tenant_id
        self._project_id = project_id
        self._chunking = chunking
        self._include_patterns = include_patterns
        self._exclude_patterns = exclude_patterns
        self._concurrency = concurrency

        self._loader: Optional[DocumentLoaderProtocol] = loader

    @property
    def loader(self) -> DocumentLoaderProtocol:
        """Lazy load document loader."""
        if self._loader is None:
            self._loader = _default_loader()
        return self._loader

    def ingest_file(self, file_path: Path | str) -> Source:
        """Ingest a single document."""
        return ingest_file(
            file_path,
            self._tenant_id,
            self._project_id,
            chunking=self._chunking,
            loader=self.loader,
        )

    async def arun(
        self, path: Optional[Path | str] = None, concurrency: Optional[int] = None
    ) -> list[Source]:
        """Ingest the docs folder (or another path).

        Args:
            path: Override documents path.
            concurrency: Override batch size.

        Returns:
            Ingested sources.
        """
        root = Path(path) if path is not None else self._docs_path
        logger.info(f"Ingesting {root} for {self._tenant_id}/{self._project_id}")
        return await ingest_directory(
            root,
            self._tenant_id,
            self._project_id,
            include_patterns=self._include_patterns,
            exclude_patterns=self._exclude_patterns,
            concurrency=concurrency or self._concurrency,
            chunking=self._chunking,
            loader=self.loader,
        )

    def run(
        self, path: Optional[Path | str] = None, concurrency: Optional[int] = None
    ) -> list[Source]:
        """Blocking variant of :meth:`arun`."""
        return asyncio.run(self.arun(path, concurrency))
