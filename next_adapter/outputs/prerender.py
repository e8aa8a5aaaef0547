"""Pre-render resolution: per-path function clones plus ISR descriptors.

Every pre-rendered pathname gets its own copy of the parent function bundle
so it can be configured independently. Parents consumed this way are not
emitted again as standalone functions.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from next_adapter.context import BuildContext, join_posix, relative_posix
from next_adapter.errors import InvariantError, PackagingError
from next_adapter.gate import gather_bounded
from next_adapter.logging import get_logger
from next_adapter.outputs.functions import package_server_function
from next_adapter.types import PrerenderOutput, ServerFunctionOutput
from next_adapter.validator import validate_prerender_config, write_json

logger = get_logger(__name__)

# Recompute in the background on every request when no window is declared
DEFAULT_REVALIDATE = 1

POSTPONED_CONTENT_TYPE = (
    'application/x-nextjs-pre-render; state-length={length}; origin="text/html; charset=utf-8"'
)


def prerender_config_path(ctx: BuildContext, output: PrerenderOutput) -> Path:
    return ctx.functions_dir / f"{output.pathname.lstrip('/')}.prerender-config.json"


def prerender_fallback_path(ctx: BuildContext, output: PrerenderOutput) -> Path | None:
    fallback = output.fallback
    if fallback is None or not fallback.file_path:
        return None
    ext = Path(fallback.file_path).suffix
    return ctx.functions_dir / f"{output.pathname.lstrip('/')}.prerender-fallback{ext}"


def revalidate_window(output: PrerenderOutput) -> int | bool:
    fallback = output.fallback
    if fallback is None or fallback.initial_revalidate is None:
        return DEFAULT_REVALIDATE
    return fallback.initial_revalidate


def prerender_config(
    output: PrerenderOutput,
    parent: ServerFunctionOutput,
    ctx: BuildContext,
    initial_headers: dict[str, str],
    fallback_path: Path | None,
    config_path: Path,
) -> dict[str, Any]:
    fallback = output.fallback
    config: dict[str, Any] = {
        "group": output.group_id,
        "expiration": revalidate_window(output),
    }
    if fallback is not None and fallback.initial_expiration is not None:
        config["staleExpiration"] = fallback.initial_expiration
    config["sourcePath"] = parent.pathname
    # Route matches travel in the query instead of a legacy header
    config["passQuery"] = True
    if output.config.allow_query is not None:
        config["allowQuery"] = output.config.allow_query
    if output.config.allow_header is not None:
        config["allowHeader"] = output.config.allow_header
    if output.config.bypass_token is not None:
        config["bypassToken"] = output.config.bypass_token
    if output.config.bypass_for is not None:
        config["experimentalBypassFor"] = [
            item.model_dump(exclude_none=True) for item in output.config.bypass_for
        ]
    config["initialHeaders"] = initial_headers
    if fallback is not None and fallback.initial_status is not None:
        config["initialStatus"] = fallback.initial_status
    if fallback_path is not None:
        config["fallback"] = relative_posix(fallback_path, config_path.parent)
    if output.ppr_chain is not None:
        config["chain"] = {
            **output.ppr_chain.model_dump(by_alias=True),
            "outputPath": "/" + join_posix(ctx.config.base_path, parent.pathname),
        }
    return config


def _write_prerender(
    output: PrerenderOutput, parent: ServerFunctionOutput, ctx: BuildContext
) -> None:
    config_path = prerender_config_path(ctx, output)
    fallback_path = prerender_fallback_path(ctx, output)
    fallback = output.fallback
    initial_headers = dict(fallback.initial_headers or {}) if fallback else {}

    config_path.parent.mkdir(parents=True, exist_ok=True)

    postponed = fallback is not None and fallback.postponed_state
    if postponed and fallback_path is not None:
        state = fallback.postponed_state
        html = Path(fallback.file_path).read_text(encoding="utf-8")
        fallback_path.write_text(f"{state}{html}", encoding="utf-8")
        initial_headers["content-type"] = POSTPONED_CONTENT_TYPE.format(
            length=len(state.encode("utf-8"))
        )

    config = prerender_config(output, parent, ctx, initial_headers, fallback_path, config_path)
    validate_prerender_config(config)
    write_json(config_path, config)

    if fallback_path is not None and not postponed:
        # Hard link, not copy: fallbacks can be large and are never modified
        os.link(fallback.file_path, fallback_path)


async def resolve_prerender(
    output: PrerenderOutput,
    parents: dict[str, ServerFunctionOutput],
    ctx: BuildContext,
    runtime: str,
) -> None:
    parent = parents.get(output.parent_output_id)
    if parent is None:
        raise InvariantError(
            f"Invariant: failed to find parent node output {output.parent_output_id} "
            f"for prerender output {output.pathname}"
        )

    clone = parent.model_copy(update={"pathname": output.pathname})
    await package_server_function(clone, ctx, runtime)

    try:
        await asyncio.to_thread(_write_prerender, output, parent, ctx)
    except OSError as err:
        logger.error(
            "failed to handle prerender output",
            extra={"stage": "prerender", "output_id": output.id, "path": output.pathname},
        )
        raise PackagingError(output.id, output.pathname, str(err)) from err
    logger.debug(
        "resolved prerender",
        extra={"stage": "prerender", "output_id": output.id, "path": output.pathname},
    )


async def resolve_prerender_outputs(
    server_outputs: Sequence[ServerFunctionOutput],
    prerenders: Sequence[PrerenderOutput],
    ctx: BuildContext,
    runtime: str,
) -> list[ServerFunctionOutput]:
    """Package every pre-render and return the server outputs still routable on their own."""
    parents = {output.id: output for output in server_outputs}
    consumed = {output.parent_output_id for output in prerenders}

    await gather_bounded(
        prerenders, lambda output: resolve_prerender(output, parents, ctx, runtime)
    )
    logger.info("resolved prerenders", extra={"stage": "prerender", "count": len(prerenders)})
    return [output for output in server_outputs if output.id not in consumed]
