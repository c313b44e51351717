from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from supportkb.core.models.document import Chunk, Source, SourceType
from tests.sample_docs import FAQ_TXT, GUIDE_MD


@pytest.fixture
def make_source() -> Callable[..., Source]:
    def _make(
        source_id: str,
        contents: list[str],
        tenant_id: str = "t1",
        project_id: str = "p1",
    ) -> Source:
        chunks = tuple(
            Chunk(
                id=f"{source_id}_chunk_{i}",
                content=content,
                source_id=source_id,
                start_line=i + 1,
                end_line=i + 1,
            )
            for i, content in enumerate(contents)
        )
        return Source(
            tenant_id=tenant_id,
            project_id=project_id,
            id=source_id,
            type=SourceType.MARKDOWN,
            title=source_id,
            content="\n".join(contents),
            chunks=chunks,
            ingested_at=datetime.now(timezone.utc),
        )

    return _make


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    root = tmp_path / "kb"
    root.mkdir()
    (root / "guide.md").write_text(GUIDE_MD, encoding="utf-8")
    (root / "faq.txt").write_text(FAQ_TXT, encoding="utf-8")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "vendor.md").write_text("# Vendor\nignored", encoding="utf-8")
    return root
