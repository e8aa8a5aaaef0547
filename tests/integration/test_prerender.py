from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from next_adapter.config import BuildConfig
from next_adapter.errors import InvariantError
from next_adapter.outputs.prerender import resolve_prerender_outputs
from next_adapter.types import (
    PprChain,
    PrerenderConfig,
    PrerenderFallback,
    PrerenderOutput,
    ServerFunctionOutput,
)

RUNTIME = "nodejs22.x"


def _read_json(p: Path) -> dict:
    return json.loads(p.read_text(encoding="utf-8"))


def _parent(build_dirs, id: str = "page-blog", pathname: str = "/blog/[slug]") -> ServerFunctionOutput:
    return ServerFunctionOutput(
        id=id,
        pathname=pathname,
        file_path=str(build_dirs.dist_dir / "server" / "pages" / f"{id}.js"),
        type="PAGES",
        runtime="nodejs",
    )


@pytest.mark.asyncio
async def test_prerender_clones_parent_and_links_fallback(build_dirs, make_context, write_file):
    html = write_file(build_dirs.dist_dir / "server" / "pages" / "blog" / "hello.html", "<html>hi</html>")
    blog, about = _parent(build_dirs), _parent(build_dirs, "page-about", "/about")
    prerender = PrerenderOutput(
        id="pr-hello",
        pathname="/blog/hello",
        parent_output_id="page-blog",
        group_id=1,
        fallback=PrerenderFallback(file_path=str(html)),
        config=PrerenderConfig(allow_query=["ref"], bypass_token="secret"),
    )

    standalone = await resolve_prerender_outputs([blog, about], [prerender], make_context(), RUNTIME)

    assert [o.id for o in standalone] == ["page-about"]
    functions = build_dirs.output_dir / "functions"
    assert (functions / "blog" / "hello.func" / ".vc-config.json").exists()
    assert not (functions / "blog" / "[slug].func").exists()

    config = _read_json(functions / "blog" / "hello.prerender-config.json")
    assert config == {
        "group": 1,
        "expiration": 1,
        "sourcePath": "/blog/[slug]",
        "passQuery": True,
        "allowQuery": ["ref"],
        "bypassToken": "secret",
        "initialHeaders": {},
        "fallback": "hello.prerender-fallback.html",
    }
    fallback = functions / "blog" / "hello.prerender-fallback.html"
    assert os.stat(fallback).st_ino == os.stat(html).st_ino


@pytest.mark.asyncio
async def test_postponed_state_is_prepended(build_dirs, make_context, write_file):
    html = write_file(build_dirs.dist_dir / "server" / "app" / "shell.html", "<p>x</p>")
    prerender = PrerenderOutput(
        id="pr-shell",
        pathname="/shell",
        parent_output_id="page-blog",
        group_id="g1",
        fallback=PrerenderFallback(
            file_path=str(html),
            postponed_state="STATE",
            initial_revalidate=60,
            initial_expiration=300,
            initial_status=200,
            initial_headers={"x-a": "1"},
        ),
    )

    await resolve_prerender_outputs([_parent(build_dirs)], [prerender], make_context(), RUNTIME)

    functions = build_dirs.output_dir / "functions"
    fallback = functions / "shell.prerender-fallback.html"
    assert fallback.read_text(encoding="utf-8") == "STATE<p>x</p>"
    assert os.stat(html).st_nlink == 1

    config = _read_json(functions / "shell.prerender-config.json")
    assert config["expiration"] == 60
    assert isinstance(config["expiration"], int)
    assert config["staleExpiration"] == 300
    assert config["initialStatus"] == 200
    assert config["group"] == "g1"
    assert config["initialHeaders"] == {
        "x-a": "1",
        "content-type": (
            'application/x-nextjs-pre-render; state-length=5; origin="text/html; charset=utf-8"'
        ),
    }


@pytest.mark.asyncio
async def test_postponed_state_length_counts_bytes(build_dirs, make_context, write_file):
    html = write_file(build_dirs.dist_dir / "server" / "app" / "cafe.html", "<p/>")
    prerender = PrerenderOutput(
        id="pr-cafe",
        pathname="/cafe",
        parent_output_id="page-blog",
        group_id=2,
        fallback=PrerenderFallback(file_path=str(html), postponed_state="é"),
    )

    await resolve_prerender_outputs([_parent(build_dirs)], [prerender], make_context(), RUNTIME)

    config = _read_json(build_dirs.output_dir / "functions" / "cafe.prerender-config.json")
    assert "state-length=2;" in config["initialHeaders"]["content-type"]


@pytest.mark.asyncio
async def test_ppr_chain_output_path_includes_base_path(build_dirs, make_context):
    prerender = PrerenderOutput(
        id="pr-hello",
        pathname="/blog/hello",
        parent_output_id="page-blog",
        group_id=1,
        fallback=PrerenderFallback(initial_revalidate=False),
        ppr_chain=PprChain(headers={"next-resume": "1"}),
    )

    await resolve_prerender_outputs(
        [_parent(build_dirs)], [prerender], make_context(BuildConfig(base_path="/docs")), RUNTIME
    )

    functions = build_dirs.output_dir / "functions" / "docs"
    config = _read_json(functions / "blog" / "hello.prerender-config.json")
    assert config["chain"] == {"headers": {"next-resume": "1"}, "outputPath": "/docs/blog/[slug]"}
    assert config["expiration"] is False
    assert "fallback" not in config
    assert (functions / "blog" / "hello.func" / ".vc-config.json").exists()


@pytest.mark.asyncio
async def test_missing_parent_is_an_invariant_violation(build_dirs, make_context):
    prerender = PrerenderOutput(
        id="pr-x", pathname="/x", parent_output_id="missing-parent", group_id=1
    )
    with pytest.raises(
        InvariantError, match="failed to find parent node output missing-parent for prerender output /x"
    ):
        await resolve_prerender_outputs([_parent(build_dirs)], [prerender], make_context(), RUNTIME)


@pytest.mark.asyncio
async def test_no_prerenders_keeps_every_server_output(build_dirs, make_context):
    parents = [_parent(build_dirs), _parent(build_dirs, "page-about", "/about")]
    assert await resolve_prerender_outputs(parents, [], make_context(), RUNTIME) == parents
