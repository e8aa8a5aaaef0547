from __future__ import annotations

import pytest

from next_adapter.routing.pattern_builder import (
    DestinationParts,
    has_trailing_slash_token,
    rsc_suffix_alternation,
    split_destination,
    with_backreference,
    with_suffix_group,
)


@pytest.mark.parametrize(
    ("prefetch", "segments", "expected"),
    [
        (False, False, r"\.rsc"),
        (True, False, r"\.rsc|\.prefetch\.rsc"),
        (False, True, r"\.rsc|\.segments/.+\.segment\.rsc"),
        (True, True, r"\.rsc|\.prefetch\.rsc|\.segments/.+\.segment\.rsc"),
    ],
)
def test_suffix_alternation(prefetch: bool, segments: bool, expected: str) -> None:
    assert rsc_suffix_alternation(prefetch_rsc=prefetch, segment_prefetches=segments) == expected


def test_suffix_group_replaces_trailing_slash_token() -> None:
    assert with_suffix_group("^/about(?:/)?$", r"\.rsc") == r"^/about(?:/)?(?<rscsuff>\.rsc)?$"


def test_suffix_group_absorbs_leading_slash_and_only_first_token() -> None:
    src = "^/blog/(?:/)?/x(?:/)?$"
    assert with_suffix_group(src, r"\.rsc") == r"^/blog(?:/)?(?<rscsuff>\.rsc)?/x(?:/)?$"


def test_source_without_token_is_untouched() -> None:
    assert not has_trailing_slash_token("^/about$")
    assert with_suffix_group("^/about$", r"\.rsc") == "^/about$"
    assert has_trailing_slash_token("^/about(?:/)?$")


def test_backreference_goes_before_query() -> None:
    assert with_backreference("/dest") == "/dest$rscsuff"
    assert with_backreference("/dest?a=1&b=2") == "/dest$rscsuff?a=1&b=2"


@pytest.mark.parametrize(
    ("dest", "expected"),
    [
        ("/page?x=1#frag", DestinationParts(None, "/page", "x=1")),
        ("/page#frag", DestinationParts(None, "/page", None)),
        ("/page?", DestinationParts(None, "/page", None)),
        ("?x=1", DestinationParts(None, None, "x=1")),
        ("https://:sub.example.com/p?x=1", DestinationParts("https://", None, None)),
        ("http://example.com", DestinationParts("http://", None, None)),
    ],
)
def test_split_destination(dest: str, expected: DestinationParts) -> None:
    assert split_destination(dest) == expected
