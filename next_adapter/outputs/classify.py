"""Partition function outputs by execution target."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import TypeAdapter

from next_adapter.errors import ClassificationError
from next_adapter.types import (
    EdgeFunctionOutput,
    FunctionOutput,
    Output,
    RouteType,
    ServerFunctionOutput,
)

SERVER_RUNTIME = "nodejs"
EDGE_RUNTIME = "edge"

_KIND_BY_RUNTIME = {SERVER_RUNTIME: "server_function", EDGE_RUNTIME: "edge_function"}
_PAGE_TYPES: frozenset[RouteType] = frozenset({"PAGES", "APP_PAGE"})

_OUTPUT = TypeAdapter(Output)


@dataclass
class ClassifiedOutputs:
    server: list[ServerFunctionOutput] = field(default_factory=list)
    edge: list[EdgeFunctionOutput] = field(default_factory=list)


def tag_output(output: FunctionOutput) -> Output:
    """Turn a declared function output into its ``Output`` variant.

    Raises ClassificationError for any ``runtime`` tag other than nodejs/edge.
    """
    kind = _KIND_BY_RUNTIME.get(output.runtime)
    if kind is None:
        raise ClassificationError(
            f"Unknown runtime {output.runtime!r} for output {output.id} ({output.pathname})"
        )
    return _OUTPUT.validate_python({**output.model_dump(), "kind": kind})


def classify_outputs(outputs: Iterable[FunctionOutput]) -> ClassifiedOutputs:
    """Split *outputs* into server-process and edge-isolate functions."""
    result = ClassifiedOutputs()
    for output in outputs:
        tagged = tag_output(output)
        if isinstance(tagged, ServerFunctionOutput):
            result.server.append(tagged)
        elif isinstance(tagged, EdgeFunctionOutput):
            result.edge.append(tagged)
    return result


def operation_type(output: FunctionOutput) -> str:
    """``PAGE`` for page routes, ``API`` for route handlers and API routes."""
    return "PAGE" if output.type in _PAGE_TYPES else "API"
