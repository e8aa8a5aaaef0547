"""Rewrite-header injection for RSC and segment-prefetch request variants.

Fragment requests (``/page.rsc``, ``/page.prefetch.rsc``,
``/page.segments/<seg>.segment.rsc``) must be rewritten to the same target as
the full document request. Every eligible rewrite also records the rewritten
pathname and query in response headers so the server can recover them.
"""

from __future__ import annotations

from collections.abc import Iterable

from next_adapter.routing.pattern_builder import (
    has_trailing_slash_token,
    rsc_suffix_alternation,
    split_destination,
    with_backreference,
    with_suffix_group,
)
from next_adapter.types import PatternRule

REWRITTEN_PATH_HEADER = "x-nextjs-rewritten-path"
REWRITTEN_QUERY_HEADER = "x-nextjs-rewritten-query"


def with_rewrite_headers(
    rule: PatternRule,
    *,
    after_files: bool = False,
    prefetch_rsc: bool = False,
    segment_prefetches: bool = False,
) -> PatternRule:
    if not rule.src or not rule.dest:
        return rule

    parts = split_destination(rule.dest)
    update: dict = {}

    if after_files and has_trailing_slash_token(rule.src):
        alternation = rsc_suffix_alternation(
            prefetch_rsc=prefetch_rsc, segment_prefetches=segment_prefetches
        )
        update["src"] = with_suffix_group(rule.src, alternation)
        update["dest"] = with_backreference(rule.dest)

    if parts.protocol is None and (parts.pathname or parts.query):
        headers = dict(rule.headers or {})
        if parts.pathname:
            headers[REWRITTEN_PATH_HEADER] = parts.pathname
        if parts.query:
            headers[REWRITTEN_QUERY_HEADER] = parts.query
        update["headers"] = headers

    return rule.model_copy(update=update) if update else rule


def add_rewrite_headers(
    rules: Iterable[PatternRule],
    *,
    after_files: bool = False,
    prefetch_rsc: bool = False,
    segment_prefetches: bool = False,
) -> tuple[PatternRule, ...]:
    """Return new rules; the input rules are left untouched."""
    return tuple(
        with_rewrite_headers(
            rule,
            after_files=after_files,
            prefetch_rsc=prefetch_rsc,
            segment_prefetches=segment_prefetches,
        )
        for rule in rules
    )
