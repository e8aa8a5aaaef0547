"""Dynamic page routes to regex-match rules."""

from __future__ import annotations

from collections.abc import Sequence

from next_adapter.types import DynamicRouteItem, PatternRule


def dynamic_route_destination(item: DynamicRouteItem) -> str:
    """``page?originalKey=$namedKey&...``; a bare ``?`` when there are no keys."""
    query = "&".join(
        f"{original_key}=${named_key}" for named_key, original_key in item.route_keys.items()
    )
    return f"{item.page}?{query}"


def normalize_dynamic_routes(dynamic_routes: Sequence[DynamicRouteItem]) -> list[PatternRule]:
    # Input order is most-specific first and must be preserved
    return [
        PatternRule(
            src=item.named_regex or item.regex,
            dest=dynamic_route_destination(item),
            check=True,
        )
        for item in dynamic_routes
    ]
