from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from next_adapter.errors import ClassificationError
from next_adapter.outputs.classify import classify_outputs, operation_type, tag_output
from next_adapter.types import (
    EdgeFunctionOutput,
    FunctionOutput,
    Output,
    PrerenderOutput,
    StaticFileOutput,
)


def _output(id: str, runtime: str, type: str = "PAGES") -> FunctionOutput:
    return FunctionOutput(
        id=id, pathname=f"/{id}", file_path=f"/tmp/{id}.js", type=type, runtime=runtime
    )


def test_partition_by_runtime_tag() -> None:
    result = classify_outputs(
        [_output("a", "nodejs"), _output("b", "edge"), _output("c", "nodejs")]
    )
    assert [o.id for o in result.server] == ["a", "c"]
    assert [o.id for o in result.edge] == ["b"]
    assert all(o.kind == "server_function" for o in result.server)
    assert result.edge[0].kind == "edge_function"


def test_unknown_runtime_aborts() -> None:
    with pytest.raises(ClassificationError, match="python"):
        classify_outputs([_output("a", "nodejs"), _output("bad", "python")])


def test_empty_input() -> None:
    result = classify_outputs([])
    assert result.server == [] and result.edge == []


@pytest.mark.parametrize(
    ("route_type", "expected"),
    [("PAGES", "PAGE"), ("APP_PAGE", "PAGE"), ("APP_ROUTE", "API"), ("PAGES_API", "API")],
)
def test_operation_type_follows_route_type(route_type: str, expected: str) -> None:
    assert operation_type(_output("x", "nodejs", route_type)) == expected


@pytest.mark.parametrize(
    ("payload", "model"),
    [
        ({"kind": "static_file", "id": "s", "pathname": "/s", "filePath": "/tmp/s"}, StaticFileOutput),
        (
            {"kind": "edge_function", "id": "e", "pathname": "/e", "filePath": "/tmp/e.js",
             "type": "APP_ROUTE", "runtime": "edge"},
            EdgeFunctionOutput,
        ),
        (
            {"kind": "prerender", "id": "p", "pathname": "/p", "parentOutputId": "x", "groupId": 1},
            PrerenderOutput,
        ),
    ],
)
def test_output_union_dispatches_on_kind(payload: dict, model: type) -> None:
    assert isinstance(TypeAdapter(Output).validate_python(payload), model)


def test_tag_output_yields_union_variant() -> None:
    tagged = tag_output(_output("a", "edge", "APP_ROUTE"))
    assert isinstance(tagged, EdgeFunctionOutput)
    assert tagged.file_path == "/tmp/a.js"

    reparsed = TypeAdapter(Output).validate_python(tagged.model_dump(by_alias=True))
    assert reparsed == tagged

    with pytest.raises(ClassificationError, match="deno"):
        tag_output(_output("a", "deno"))


def test_prerender_ignores_unused_file_path_key() -> None:
    parsed = PrerenderOutput.model_validate(
        {"id": "p", "pathname": "/p", "parentOutputId": "x", "groupId": 1, "filePath": "/tmp/p"}
    )
    assert "file_path" not in PrerenderOutput.model_fields
    assert not hasattr(parsed, "file_path")
