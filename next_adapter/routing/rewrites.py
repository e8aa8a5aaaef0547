"""Rewrite/redirect normalization ahead of pattern compilation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from next_adapter.routing.superstatic import PatternCompiler
from next_adapter.types import PatternRule, RedirectItem, RewriteItem, RewritesInput

# Matching aids synthesized by the framework; never forwarded as query parameters
INTERNAL_PARAMS: tuple[str, ...] = ("nextInternalLocale",)


@dataclass(frozen=True)
class NormalizedRewrites:
    before_files: tuple[PatternRule, ...]
    after_files: tuple[PatternRule, ...]
    fallback: tuple[PatternRule, ...]


@dataclass(frozen=True)
class PartitionedRedirects:
    priority: tuple[RedirectItem, ...]
    ordinary: tuple[RedirectItem, ...]


def normalize_redirect(item: RedirectItem) -> RedirectItem:
    """Canonical redirect: only the fields the pattern compiler consumes."""
    return RedirectItem(
        source=item.source,
        destination=item.destination,
        status_code=item.status_code,
        permanent=item.permanent,
        has=item.has,
        missing=item.missing,
    )


def partition_redirects(redirects: Sequence[RedirectItem]) -> PartitionedRedirects:
    """Split redirects by their ``priority`` flag, keeping input order in each part."""
    priority: list[RedirectItem] = []
    ordinary: list[RedirectItem] = []
    for item in redirects:
        (priority if item.priority else ordinary).append(normalize_redirect(item))
    return PartitionedRedirects(priority=tuple(priority), ordinary=tuple(ordinary))


def normalize_rewrite(item: RewriteItem) -> RewriteItem:
    return RewriteItem(
        source=item.source, destination=item.destination, has=item.has, missing=item.missing
    )


def _as_override(rule: PatternRule) -> PatternRule:
    # Before-files rewrites keep evaluating and supersede earlier "continue" rules
    if rule.check is None:
        return rule
    return rule.model_copy(update={"check": None, "continue_": True, "override": True})


def normalize_rewrites(rewrites: RewritesInput, compiler: PatternCompiler) -> NormalizedRewrites:
    def convert(items: Sequence[RewriteItem]) -> list[PatternRule]:
        return compiler.convert_rewrites([normalize_rewrite(i) for i in items], INTERNAL_PARAMS)

    return NormalizedRewrites(
        before_files=tuple(_as_override(rule) for rule in convert(rewrites.before_files)),
        after_files=tuple(convert(rewrites.after_files)),
        fallback=tuple(convert(rewrites.fallback)),
    )
