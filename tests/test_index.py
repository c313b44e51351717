from collections.abc import Callable

import pytest

from supportkb.core.models.document import Source
from supportkb.core.services.index_service import IndexService, build_index
from supportkb.core.text.term_cache import TermCache
from supportkb.core.text.tokenizer import extract_terms


def test_build_index_collects_chunks_in_source_order(make_source: Callable[..., Source]) -> None:
    first = make_source("s1", ["Reset your password from the login page", "Password rules"])
    second = make_source("s2", ["Billing runs monthly"])

    index = build_index("t1", "p1", [first, second])

    assert index.tenant_id == "t1"
    assert index.project_id == "p1"
    assert [c.id for c in index.chunks] == ["s1_chunk_0", "s1_chunk_1", "s2_chunk_0"]
    assert list(index.sources) == ["s1", "s2"]
    assert index.chunk_count == 3
    assert index.postings("password") == frozenset({0, 1})
    assert index.postings("billing") == frozenset({2})
    assert index.postings("missing") == frozenset()


def test_build_index_postings_point_at_chunks_containing_term(
    make_source: Callable[..., Source],
) -> None:
    source = make_source(
        "s1",
        [
            "Configure single sign-on for your workspace",
            "Workspace owners manage seats and invoices",
            "Invoices are available as PDF downloads",
        ],
    )

    index = build_index("t1", "p1", [source])

    for term, positions in index.term_index.items():
        for position in positions:
            assert term in extract_terms(index.chunks[position].content)
    for position, chunk in enumerate(index.chunks):
        for term in extract_terms(chunk.content):
            assert position in index.postings(term)
    assert index.term_count == len(index.term_index)


def test_build_index_empty() -> None:
    index = build_index("t1", "p1", [])

    assert index.chunks == ()
    assert len(index.sources) == 0
    assert index.term_count == 0


def test_build_index_is_deterministic(make_source: Callable[..., Source]) -> None:
    sources = [
        make_source("s1", ["Export reports as CSV files"]),
        make_source("s2", ["Reports refresh every hour"]),
    ]

    first = build_index("t1", "p1", sources)
    second = build_index("t1", "p1", sources)

    assert first.chunks == second.chunks
    assert dict(first.term_index) == dict(second.term_index)


def test_build_index_replaces_sources_with_same_id(make_source: Callable[..., Source]) -> None:
    old = make_source("s1", ["Legacy setup instructions"])
    other = make_source("s2", ["Billing questions"])
    new = make_source("s1", ["Updated setup instructions", "Troubleshooting setup"])

    index = build_index("t1", "p1", [old, other, new])

    assert list(index.sources) == ["s1", "s2"]
    assert index.sources["s1"] is new
    assert [c.content for c in index.chunks] == [
        "Updated setup instructions",
        "Troubleshooting setup",
        "Billing questions",
    ]
    assert index.postings("legacy") == frozenset()
    assert index.postings("setup") == frozenset({0, 1})


def test_build_index_is_read_only(make_source: Callable[..., Source]) -> None:
    index = build_index("t1", "p1", [make_source("s1", ["Reset password"])])

    with pytest.raises(TypeError):
        index.term_index["reset"] = frozenset({5})  # type: ignore[index]
    with pytest.raises(TypeError):
        index.sources["s2"] = index.sources["s1"]  # type: ignore[index]
    with pytest.raises(AttributeError):
        index.postings("reset").add(3)  # type: ignore[attr-defined]


def test_build_index_uses_term_cache(make_source: Callable[..., Source]) -> None:
    cache = TermCache(capacity=10)
    source = make_source("s1", ["Reset password", "Reset password", "Change email"])

    index = build_index("t1", "p1", [source], term_cache=cache)

    assert cache.misses == 2
    assert cache.hits == 1
    assert index.postings("reset") == frozenset({0, 1})


def test_index_service_builds_for_its_tenant(make_source: Callable[..., Source]) -> None:
    service = IndexService("acme", "help", TermCache())

    index = service.build([make_source("s1", ["Reset password"])])

    assert (index.tenant_id, index.project_id) == ("acme", "help")
    assert index.chunk_count == 1
