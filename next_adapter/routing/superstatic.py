"""Default pattern compiler: framework redirect/rewrite/header descriptors to routes.

Sources use the framework's path-pattern syntax:

- ``:name`` one segment, ``:name?`` optional, ``:name*`` zero or more, ``:name+`` one or more
- ``:name(regex)`` custom segment pattern, ``(regex)`` unnamed group
- ``{...}?`` optional non-capturing group, ``\\x`` literal character

They compile to anchored ``^...$`` expressions with numbered capture groups;
``:name`` in a destination is replaced by the matching ``$n`` reference.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from next_adapter.errors import PatternError
from next_adapter.types import HeaderItem, PatternRule, RedirectItem, RewriteItem, RouteCondition

UNNAMED_SEGMENT = "__UNNAMED_SEGMENT__"

_DEFAULT_SEGMENT = "[^/#?]+?"
_NAME_CHARS = re.compile(r"[A-Za-z0-9_]")
_REGEX_SPECIALS = set(".+*?=^!:${}()[]|\\")
_DEST_PARAM = re.compile(r":([A-Za-z0-9_]+)[*+?]?")
_HAS_GROUP = re.compile(r"\(\?<([A-Za-z][A-Za-z0-9_]*)>")
_INNER_CAPTURE = re.compile(r"\((?!\?)")


class PatternCompiler(Protocol):
    """Turns normalized descriptors into routable pattern rules."""

    def convert_redirects(
        self, redirects: Sequence[RedirectItem], default_status: int = 308
    ) -> list[PatternRule]: ...

    def convert_rewrites(
        self, rewrites: Sequence[RewriteItem], internal_params: Sequence[str] = ()
    ) -> list[PatternRule]: ...

    def convert_headers(self, headers: Sequence[HeaderItem]) -> list[PatternRule]: ...


@dataclass
class CompiledSource:
    src: str
    segments: list[str]


def _escape(ch: str) -> str:
    return f"\\{ch}" if ch in _REGEX_SPECIALS else ch


class _SourceParser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.segments: list[str] = []

    def fail(self, reason: str) -> PatternError:
        return PatternError(f"Invalid source {self.source!r} at {self.pos}: {reason}")

    def peek(self) -> str | None:
        return self.source[self.pos] if self.pos < len(self.source) else None

    def parse(self, closing: str | None = None) -> str:
        parts: list[str] = []
        while (ch := self.peek()) is not None:
            if ch == closing:
                self.pos += 1
                return "".join(parts)
            if ch == "\\":
                if self.pos + 1 >= len(self.source):
                    raise self.fail("dangling escape")
                parts.append(_escape(self.source[self.pos + 1]))
                self.pos += 2
            elif ch == "{":
                self.pos += 1
                inner = self.parse("}")
                parts.append(f"(?:{inner})" + self.modifier())
            elif ch == ":":
                self.pos += 1
                name = self.name()
                pattern = self.group() if self.peek() == "(" else _DEFAULT_SEGMENT
                self.add_key(parts, name, pattern)
            elif ch == "(":
                self.add_key(parts, UNNAMED_SEGMENT, self.group())
            elif ch in "}":
                raise self.fail("unbalanced '}'")
            else:
                parts.append(_escape(ch))
                self.pos += 1
        if closing is not None:
            raise self.fail(f"missing {closing!r}")
        return "".join(parts)

    def name(self) -> str:
        start = self.pos
        while (ch := self.peek()) is not None and _NAME_CHARS.match(ch):
            self.pos += 1
        if start == self.pos:
            raise self.fail("missing parameter name")
        return self.source[start : self.pos]

    def group(self) -> str:
        # Consumes a balanced "(...)" and returns its body
        depth = 0
        start = self.pos + 1
        while (ch := self.peek()) is not None:
            if ch == "\\":
                self.pos += 2
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    body = self.source[start : self.pos]
                    self.pos += 1
                    if not body:
                        raise self.fail("empty group")
                    if _INNER_CAPTURE.search(body.replace("\\(", "")):
                        raise self.fail("capturing groups are not allowed in a pattern")
                    return body
            self.pos += 1
        raise self.fail("unbalanced '('")

    def modifier(self) -> str:
        ch = self.peek()
        if ch in ("?", "*", "+"):
            self.pos += 1
            return ch
        return ""

    def add_key(self, parts: list[str], name: str, pattern: str) -> None:
        self.segments.append(name)
        prefix = parts.pop() if parts and parts[-1] == "/" else ""
        mod = self.modifier()
        if mod in ("*", "+"):
            repeated = f"(?:{prefix}((?:{pattern})(?:{prefix}(?:{pattern}))*))"
            parts.append(repeated + ("?" if mod == "*" else ""))
        elif mod == "?":
            parts.append(f"(?:{prefix}({pattern}))?")
        else:
            parts.append(f"{prefix}({pattern})")


def source_to_regex(source: str) -> CompiledSource:
    parser = _SourceParser(source)
    body = parser.parse()
    return CompiledSource(src=f"^{body}$", segments=parser.segments)


def has_segments(conditions: Sequence[RouteCondition] | None) -> list[str]:
    """Names that ``has`` conditions make available to a destination."""
    names: list[str] = []
    for item in conditions or []:
        if item.value is None:
            if item.type != "host" and item.key:
                names.append(re.sub(r"[^A-Za-z0-9_]", "", item.key))
        else:
            names.extend(_HAS_GROUP.findall(item.value))
    return names


def _conditions(items: Sequence[RouteCondition] | None) -> list[dict] | None:
    if items is None:
        return None
    return [item.model_dump(exclude_none=True) for item in items]


def replace_segments(
    segments: Sequence[str],
    conditions: Sequence[RouteCondition] | None,
    destination: str,
    *,
    is_redirect: bool,
    internal_params: Sequence[str] = (),
) -> str:
    indexes: dict[str, str] = {}
    for index, name in enumerate(segments):
        if name != UNNAMED_SEGMENT:
            indexes[name] = f"${index + 1}"
    for name in has_segments(conditions):
        indexes[name] = f"${name}"

    used: set[str] = set()

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in indexes:
            return match.group(0)
        used.add(name)
        return indexes[name]

    base, sep_hash, fragment = destination.partition("#")
    pathname, sep_query, query = base.partition("?")
    pathname = _DEST_PARAM.sub(substitute, pathname)
    query = _DEST_PARAM.sub(substitute, query)
    fragment = _DEST_PARAM.sub(substitute, fragment)

    if not is_redirect:
        # Params the destination does not reference are forwarded as query
        present = {pair.partition("=")[0] for pair in query.split("&") if pair}
        extra = [
            f"{name}={value}"
            for name, value in indexes.items()
            if name not in used and name not in present and name not in internal_params
        ]
        query = "&".join(part for part in (query, *extra) if part)
        sep_query = "?" if query else ""

    return f"{pathname}{sep_query}{query}{sep_hash}{fragment}"


class SuperstaticCompiler:
    """Stand-alone implementation of the pattern-compiler contract."""

    def convert_redirects(
        self, redirects: Sequence[RedirectItem], default_status: int = 308
    ) -> list[PatternRule]:
        routes: list[PatternRule] = []
        for item in redirects:
            compiled = source_to_regex(item.source)
            location = replace_segments(
                compiled.segments, item.has, item.destination, is_redirect=True
            )
            if item.status_code:
                status = item.status_code
            elif item.permanent is False:
                status = 307
            else:
                status = default_status
            routes.append(
                PatternRule(
                    src=compiled.src,
                    headers={"Location": location},
                    status=status,
                    has=_conditions(item.has),
                    missing=_conditions(item.missing),
                )
            )
        return routes

    def convert_rewrites(
        self, rewrites: Sequence[RewriteItem], internal_params: Sequence[str] = ()
    ) -> list[PatternRule]:
        routes: list[PatternRule] = []
        for item in rewrites:
            compiled = source_to_regex(item.source)
            dest = replace_segments(
                compiled.segments,
                item.has,
                item.destination,
                is_redirect=False,
                internal_params=internal_params,
            )
            routes.append(
                PatternRule(
                    src=compiled.src,
                    dest=dest,
                    check=True,
                    has=_conditions(item.has),
                    missing=_conditions(item.missing),
                )
            )
        return routes

    def convert_headers(self, headers: Sequence[HeaderItem]) -> list[PatternRule]:
        routes: list[PatternRule] = []
        for item in headers:
            compiled = source_to_regex(item.source)
            values = {
                h.key: replace_segments(compiled.segments, item.has, h.value, is_redirect=True)
                for h in item.headers
            }
            routes.append(
                PatternRule(
                    src=compiled.src,
                    headers=values,
                    continue_=True,
                    has=_conditions(item.has),
                    missing=_conditions(item.missing),
                )
            )
        return routes
