import pytest

from supportkb.core.exceptions import ConfigurationError
from supportkb.core.models.document import SourceType
from supportkb.core.strategies.chunking import (
    ChunkingOptions,
    chunk_for_type,
    chunk_markdown,
    chunk_text,
)

SECTIONED_MD = """# Title
Some intro text here that is long enough to not be merged with the next chunk because it exceeds the minimum chunk size.

## Section 1
Content for section 1 that is also long enough to stand alone as its own chunk without being merged.
More content here to ensure this section is sufficiently long.

## Section 2
Content for section 2 that meets the minimum length requirements and will not be merged with any other chunk.
"""

NESTED_MD = """# Main
Introduction content that is sufficiently long to meet the minimum chunk size requirement of the chunker.

## Sub 1
Subsection content that is long enough to stand on its own without triggering the merge behavior at all.

### Deep 1
Deep section content here with enough text to exceed the minimum chunk size threshold of one hundred.

## Sub 2
More content here that is also long enough to be its own chunk and not merged with previous sections.
"""

NO_OVERLAP = ChunkingOptions(overlap=0)


def _numbered_lines(count: int) -> str:
    return "\n".join(f"line {i:02d} with some filler words here" for i in range(count))


def test_chunk_markdown_splits_at_headings() -> None:
    chunks = chunk_markdown(SECTIONED_MD, "doc", NO_OVERLAP)

    assert [c.heading_path for c in chunks] == [
        ("Title",),
        ("Title", "Section 1"),
        ("Title", "Section 2"),
    ]
    assert [c.id for c in chunks] == ["doc_chunk_0", "doc_chunk_1", "doc_chunk_2"]
    assert all(c.source_id == "doc" for c in chunks)
    assert chunks[1].content.startswith("## Section 1")


def test_chunk_markdown_line_bounds_are_one_based_inclusive() -> None:
    chunks = chunk_markdown(SECTIONED_MD, "doc", NO_OVERLAP)

    assert [(c.start_line, c.end_line) for c in chunks] == [(1, 2), (4, 6), (8, 9)]


def test_chunk_markdown_preserves_heading_hierarchy() -> None:
    chunks = chunk_markdown(NESTED_MD, "doc")
    paths = [c.heading_path for c in chunks]

    assert ("Main", "Sub 1", "Deep 1") in paths
    assert paths[-1] == ("Main", "Sub 2")


def test_chunk_markdown_higher_heading_pops_deeper_levels() -> None:
    body = "x" * 120
    content = f"# A\n{body}\n### C\n{body}\n# B\n{body}\n"

    chunks = chunk_markdown(content, "doc")

    assert [c.heading_path for c in chunks] == [("A",), ("A", "C"), ("B",)]


def test_chunk_markdown_merges_small_chunk_into_previous() -> None:
    intro = "This guide explains the account settings page in detail, including every toggle and every field shown."
    content = f"# Guide\n{intro}\n## Short\nTiny note here.\n"

    chunks = chunk_markdown(content, "doc", ChunkingOptions(min_chunk_size=100, overlap=0))

    assert len(chunks) == 1
    assert chunks[0].heading_path == ("Guide",)
    assert chunks[0].content.endswith("## Short\nTiny note here.")
    assert chunks[0].end_line == 4
    assert chunks[0].metadata["char_count"] == len(chunks[0].content)
    assert chunks[0].metadata["word_count"] == len(chunks[0].content.split())


def test_chunk_markdown_keeps_small_first_chunk() -> None:
    chunks = chunk_markdown("## Short\nTiny note.", "doc", ChunkingOptions(min_chunk_size=100))

    assert len(chunks) == 1
    assert chunks[0].content == "## Short\nTiny note."


def test_chunk_markdown_respects_max_chunk_size() -> None:
    options = ChunkingOptions(max_chunk_size=200, min_chunk_size=20, overlap=0)

    chunks = chunk_markdown(_numbered_lines(30), "doc", options)

    assert len(chunks) == 5
    assert [c.start_line for c in chunks] == [1, 7, 13, 19, 25]
    assert [c.end_line for c in chunks] == [6, 12, 18, 24, 30]
    assert all(len(c.content) < 200 + 40 for c in chunks)


def test_chunk_markdown_carries_overlap_lines() -> None:
    options = ChunkingOptions(max_chunk_size=200, min_chunk_size=20, overlap=2)

    chunks = chunk_markdown(_numbered_lines(30), "doc", options)

    assert chunks[0].end_line == 6
    assert chunks[1].start_line == 5
    assert chunks[1].content.startswith("line 04")
    assert chunks[-1].end_line == 30
    assert len(chunks) == 7


def test_chunk_markdown_carries_overlap_across_headings() -> None:
    first = "alpha first body line."
    second = "alpha second body line."
    body = "beta body line with enough text."
    options = ChunkingOptions(min_chunk_size=10, overlap=1)

    chunks = chunk_markdown(f"# A\n{first}\n{second}\n# B\n{body}", "doc", options)

    assert len(chunks) == 2
    assert chunks[1].content == f"{second}\n# B\n{body}"
    assert chunks[1].heading_path == ("B",)
    assert (chunks[1].start_line, chunks[1].end_line) == (3, 5)


def test_chunk_markdown_counts_only_newline_breaks() -> None:
    content = "# Title\nfirst\x0cpart of line two still two\nlast line"

    chunks = chunk_markdown(content, "doc")

    assert (chunks[0].start_line, chunks[0].end_line) == (1, 3)


def test_chunk_markdown_covers_every_body_line() -> None:
    for content in (SECTIONED_MD, NESTED_MD, _numbered_lines(40)):
        chunks = chunk_markdown(content, "doc", ChunkingOptions(max_chunk_size=150, min_chunk_size=50, overlap=1))
        joined = "\n".join(c.content for c in chunks)

        for line in content.splitlines():
            if line.strip() and not line.startswith("#"):
                assert line.strip() in joined


def test_chunk_markdown_empty_content() -> None:
    assert chunk_markdown("", "doc") == []
    assert chunk_markdown("   \n\t\n", "doc") == []


def test_chunk_text_single_sentence() -> None:
    content = "This is a single sentence."

    chunks = chunk_text(content, "doc")

    assert len(chunks) == 1
    assert chunks[0].content == content
    assert chunks[0].heading_path == ()
    assert (chunks[0].start_line, chunks[0].end_line) == (1, 1)


def test_chunk_text_splits_by_sentences() -> None:
    options = ChunkingOptions(max_chunk_size=20, min_chunk_size=5, overlap=0)

    chunks = chunk_text("First sentence. Second sentence. Third sentence.", "doc", options)

    assert [c.content for c in chunks] == [
        "First sentence.",
        "Second sentence.",
        "Third sentence.",
    ]


def test_chunk_text_seeds_overlap_sentences() -> None:
    options = ChunkingOptions(max_chunk_size=40, min_chunk_size=5, overlap=50)

    chunks = chunk_text("First sentence. Second sentence. Third sentence.", "doc", options)

    assert [c.content for c in chunks] == [
        "First sentence. Second sentence.",
        "Second sentence. Third sentence.",
    ]


def test_chunk_text_merges_short_tail_into_previous_chunk() -> None:
    options = ChunkingOptions(max_chunk_size=40, min_chunk_size=30, overlap=0)
    content = (
        "Alpha beta gamma delta epsilon. "
        "Zeta eta theta iota kappa lambda. "
        "Mu nu xi omicron pi."
    )

    chunks = chunk_text(content, "doc", options)

    assert len(chunks) == 2
    assert chunks[1].content == "Zeta eta theta iota kappa lambda. Mu nu xi omicron pi."
    assert chunks[1].metadata["char_count"] == len(chunks[1].content)


def test_chunk_text_without_punctuation_is_one_sentence() -> None:
    chunks = chunk_text("just some words without punctuation", "doc")

    assert [c.content for c in chunks] == ["just some words without punctuation"]


def test_chunk_text_keeps_trailing_fragment() -> None:
    chunks = chunk_text("One sentence. trailing words", "doc")

    assert chunks[0].content == "One sentence. trailing words"


def test_chunk_text_tracks_line_numbers() -> None:
    options = ChunkingOptions(max_chunk_size=15, min_chunk_size=5, overlap=0)

    chunks = chunk_text("First line.\nSecond line.\nThird line.", "doc", options)

    assert [(c.start_line, c.end_line) for c in chunks] == [(1, 1), (2, 2), (3, 3)]


def test_chunk_text_empty_content() -> None:
    assert chunk_text("", "doc") == []
    assert chunk_text("  \n ", "doc") == []


def test_chunk_for_type_dispatches_on_structure() -> None:
    content = "# Title\nBody text that follows the title."

    markdown = chunk_for_type(SourceType.MARKDOWN, content, "doc")
    text = chunk_for_type(SourceType.TEXT, content, "doc")

    assert markdown[0].heading_path == ("Title",)
    assert text[0].heading_path == ()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_chunk_size": 0},
        {"max_chunk_size": -5, "min_chunk_size": -10},
        {"max_chunk_size": 100, "min_chunk_size": 100},
        {"max_chunk_size": 100, "min_chunk_size": 200},
        {"overlap": -1},
    ],
)
def test_chunking_options_reject_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        ChunkingOptions(**kwargs)
