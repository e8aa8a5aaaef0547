"""Node runtime resolution for server-process functions.

Heuristics:
- Read ``engines.node`` from the project's package.json
- ``>=N`` / ``^N`` / ``N.x`` ranges pick the newest supported major that satisfies them
- No package.json, no engines entry, or no satisfiable major: the default runtime
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Protocol

from next_adapter.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_MAJORS = (24, 22, 20)
DEFAULT_MAJOR = 22

_MAJOR = re.compile(r"(>=|>|<=|<|\^|~|=)?\s*v?(\d+)(?:\.[\dxX*]+)*")


class NodeVersionResolver(Protocol):
    def resolve(self, project_dir: Path) -> str: ...


def runtime_identity(major: int) -> str:
    return f"nodejs{major}.x"


def _read_package_json(root: Path) -> dict | None:
    pj = root / "package.json"
    if not pj.exists():
        return None
    try:
        return json.loads(pj.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("unreadable package.json, using default node runtime")
        return None


def _satisfies(major: int, op: str, bound: int) -> bool:
    if op in ("", "=", "^", "~"):
        return major == bound
    if op == ">=":
        return major >= bound
    if op == ">":
        return major > bound
    if op == "<=":
        return major <= bound
    return major < bound


def select_major(engines_range: str) -> int | None:
    """Newest supported major matching any ``||`` alternative of *engines_range*."""
    for major in SUPPORTED_MAJORS:
        for alternative in engines_range.split("||"):
            constraints = _MAJOR.findall(alternative)
            if constraints and all(_satisfies(major, op, int(n)) for op, n in constraints):
                return major
    return None


class PackageJsonNodeVersion:
    def resolve(self, project_dir: Path) -> str:
        pkg = _read_package_json(project_dir) or {}
        engines_range = (pkg.get("engines") or {}).get("node")
        if not engines_range:
            return runtime_identity(DEFAULT_MAJOR)
        major = select_major(str(engines_range))
        if major is None:
            logger.warning(
                f"engines.node {engines_range!r} matches no supported runtime, "
                f"using nodejs{DEFAULT_MAJOR}.x"
            )
            return runtime_identity(DEFAULT_MAJOR)
        return runtime_identity(major)
