"""Small regex-synthesis helpers for RSC request variants.

Route sources are evaluated by the edge router's JavaScript regex engine, so
named groups use the ``(?<name>...)`` form and destinations reference them as
``$name``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

RSC_SUFFIX_GROUP = "rscsuff"

RSC_SUFFIX = r"\.rsc"
PREFETCH_RSC_SUFFIX = r"\.prefetch\.rsc"
SEGMENT_RSC_SUFFIX = r"\.segments/.+\.segment\.rsc"

# Optional trailing slash emitted by the pattern compiler, with an optional leading "/"
TRAILING_SLASH_TOKEN = re.compile(r"/?\(\?:/\)\?")


def rsc_suffix_alternation(*, prefetch_rsc: bool = False, segment_prefetches: bool = False) -> str:
    parts = [RSC_SUFFIX]
    if prefetch_rsc:
        parts.append(PREFETCH_RSC_SUFFIX)
    if segment_prefetches:
        parts.append(SEGMENT_RSC_SUFFIX)
    return "|".join(parts)


def has_trailing_slash_token(src: str) -> bool:
    return TRAILING_SLASH_TOKEN.search(src) is not None


def with_suffix_group(src: str, alternation: str, group: str = RSC_SUFFIX_GROUP) -> str:
    """Replace the first trailing-slash token in *src* with an optional suffix group."""
    replacement = f"(?:/)?(?<{group}>{alternation})?"
    return TRAILING_SLASH_TOKEN.sub(lambda _: replacement, src, count=1)


def with_backreference(dest: str, group: str = RSC_SUFFIX_GROUP) -> str:
    """Insert ``$group`` after the path of *dest* and before its query string."""
    path, sep, query = dest.partition("?")
    return f"{path}${group}{sep}{query}"


@dataclass(frozen=True)
class DestinationParts:
    protocol: str | None
    pathname: str | None
    query: str | None


def split_destination(dest: str) -> DestinationParts:
    """Split a rewrite destination without URL-parsing it.

    Destinations are patterns (``https://:sub.example.com/...`` is legal), so
    only the protocol prefix, the first ``?`` and the first ``#`` are honoured.
    External destinations carry no pathname or query.
    """
    for protocol in ("http://", "https://"):
        if dest.startswith(protocol):
            return DestinationParts(protocol=protocol, pathname=None, query=None)

    pathname, sep, query = dest.partition("?")
    if sep:
        query = query.partition("#")[0]
        return DestinationParts(protocol=None, pathname=pathname or None, query=query or None)
    pathname = pathname.partition("#")[0]
    return DestinationParts(protocol=None, pathname=pathname or None, query=None)
