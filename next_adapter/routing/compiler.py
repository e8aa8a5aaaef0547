"""Route rule compiler: one ordered rule list for the edge router.

Order (user overrides beat the filesystem, the filesystem beats dynamic
routes, static-asset caching applies only after a hit):

    priority redirects, headers, redirects, before-files rewrites
    [filesystem]  base-path image rule, after-files rewrites
    [resource]    fallback rewrites, catch-all 404
    [miss] [rewrite] dynamic routes
    [hit]         static cache-control, matched-path headers
    [error]

Phase markers come only from ``_LAYOUT``, so each appears exactly once and
in this order no matter which sections are empty.
"""

from __future__ import annotations

from dataclasses import dataclass

from next_adapter.config import BuildConfig
from next_adapter.context import join_posix
from next_adapter.logging import get_logger
from next_adapter.routing.dynamic import normalize_dynamic_routes
from next_adapter.routing.rewrites import normalize_rewrites, partition_redirects
from next_adapter.routing.rsc import add_rewrite_headers
from next_adapter.routing.superstatic import PatternCompiler
from next_adapter.types import (
    PatternRule,
    Phase,
    PhaseMarker,
    RoutingInput,
    RoutingRule,
    StatusRule,
)

logger = get_logger(__name__)

MAX_AGE_ONE_YEAR = 31536000

# Hashed, framework-emitted assets only; user files may lack a content hash
STATIC_ASSET_DIRS = "(?:[^/]+/pages|pages|chunks|runtime|css|image|media)"

PHASE_ORDER: tuple[Phase, ...] = ("filesystem", "resource", "miss", "rewrite", "hit", "error")


@dataclass(frozen=True)
class RouteSections:
    """Compiled rules grouped by the slot they occupy in the final order."""

    priority_redirects: tuple[PatternRule, ...] = ()
    headers: tuple[PatternRule, ...] = ()
    redirects: tuple[PatternRule, ...] = ()
    before_files: tuple[PatternRule, ...] = ()
    after_files: tuple[PatternRule, ...] = ()
    fallback: tuple[PatternRule, ...] = ()
    dynamic_routes: tuple[PatternRule, ...] = ()


def _url(base_path: str, *parts: str) -> str:
    return "/" + join_posix(base_path, *parts)


def image_path_rules(config: BuildConfig) -> list[RoutingRule]:
    if not config.base_path:
        return []
    return [
        PatternRule(
            src=_url(config.base_path, "_next/image/?"), dest="/_next/image", check=True
        )
    ]


def not_found_rules(config: BuildConfig) -> list[RoutingRule]:
    # A directory matched without an index page must still 404
    return [StatusRule(src=_url(config.base_path, ".*"), status=404)]


def static_cache_rules(config: BuildConfig) -> list[RoutingRule]:
    return [
        PatternRule(
            src=_url(config.base_path, f"_next/static/{STATIC_ASSET_DIRS}/.+"),
            headers={"cache-control": f"public,max-age={MAX_AGE_ONE_YEAR},immutable"},
            continue_=True,
            important=True,
        )
    ]


def matched_path_rules(config: BuildConfig) -> list[RoutingRule]:
    return [
        PatternRule(
            src=_url(config.base_path, "index(?:/)?"),
            headers={"x-matched-path": "/"},
            continue_=True,
            important=True,
        ),
        PatternRule(
            src=_url(config.base_path, "((?!index$).*?)(?:/)?"),
            headers={"x-matched-path": "/$1"},
            continue_=True,
            important=True,
        ),
    ]


_LAYOUT: tuple[str, ...] = (
    "priority_redirects",
    "headers",
    "redirects",
    "before_files",
    "filesystem",
    "image_path",
    "after_files",
    "resource",
    "fallback",
    "not_found",
    "miss",
    "rewrite",
    "dynamic_routes",
    "hit",
    "static_cache",
    "matched_path",
    "error",
)

_GENERATED = {
    "image_path": image_path_rules,
    "not_found": not_found_rules,
    "static_cache": static_cache_rules,
    "matched_path": matched_path_rules,
}


def assemble_routes(sections: RouteSections, config: BuildConfig) -> list[RoutingRule]:
    routes: list[RoutingRule] = []
    for slot in _LAYOUT:
        if slot in PHASE_ORDER:
            routes.append(PhaseMarker(handle=slot))
        elif slot in _GENERATED:
            routes.extend(_GENERATED[slot](config))
        else:
            routes.extend(getattr(sections, slot))
    return routes


def build_sections(
    routing: RoutingInput, config: BuildConfig, compiler: PatternCompiler
) -> RouteSections:
    """Normalize and compile every user/framework rule into its slot."""
    rewrites = normalize_rewrites(routing.rewrites, compiler)
    before_files, after_files, fallback = (
        rewrites.before_files,
        rewrites.after_files,
        rewrites.fallback,
    )

    prefetch_rsc = config.should_handle_prefetch_rsc
    segment_prefetches = config.should_handle_segment_prefetches
    if prefetch_rsc or segment_prefetches:
        flags = {"prefetch_rsc": prefetch_rsc, "segment_prefetches": segment_prefetches}
        before_files = add_rewrite_headers(before_files, **flags)
        after_files = add_rewrite_headers(after_files, after_files=True, **flags)
        fallback = add_rewrite_headers(fallback, **flags)

    redirects = partition_redirects(routing.redirects)

    return RouteSections(
        priority_redirects=tuple(compiler.convert_redirects(redirects.priority)),
        headers=tuple(compiler.convert_headers(routing.headers)),
        redirects=tuple(compiler.convert_redirects(redirects.ordinary)),
        before_files=before_files,
        after_files=after_files,
        fallback=fallback,
        dynamic_routes=tuple(normalize_dynamic_routes(routing.dynamic_routes)),
    )


def compile_routes(
    routing: RoutingInput, config: BuildConfig, compiler: PatternCompiler
) -> list[RoutingRule]:
    routes = assemble_routes(build_sections(routing, config, compiler), config)
    logger.info("compiled routes", extra={"stage": "routes", "count": len(routes)})
    return routes
