"""Edge-function source generation.

The default generator inlines the compiled JavaScript chunks of an edge
output into one module; the chunks register themselves in ``_ENTRIES``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Protocol

from next_adapter.runtime.launcher import load_template

_JS_SUFFIXES = (".js", ".mjs", ".cjs")


@dataclass(frozen=True)
class EdgeFunctionParams:
    name: str
    staticRoutes: list[dict] = field(default_factory=list)
    dynamicRoutes: list[dict] = field(default_factory=list)
    nextConfig: dict | None = None


class EdgeSourceGenerator(Protocol):
    def generate(
        self, file_paths: Sequence[str], params: EdgeFunctionParams, project_dir: Path
    ) -> str: ...


class ConcatEdgeSource:
    def generate(
        self, file_paths: Sequence[str], params: EdgeFunctionParams, project_dir: Path
    ) -> str:
        chunks: list[str] = []
        for rel_path in file_paths:
            if not rel_path.endswith(_JS_SUFFIXES):
                continue
            text = (project_dir / rel_path).read_text(encoding="utf-8")
            chunks.append(f"// {rel_path}\n;{text}\n")
        return (
            load_template("edge-entry.js")
            .replace("__NAME__", params.name)
            .replace("__PARAMS__", json.dumps(asdict(params)))
            .replace("__SOURCES__", "\n".join(chunks))
        )
