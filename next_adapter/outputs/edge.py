"""Edge function packaging: generated entry source plus an edge descriptor."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from next_adapter.context import BuildContext, join_posix, relative_posix
from next_adapter.errors import PackagingError
from next_adapter.gate import gather_bounded
from next_adapter.logging import get_logger
from next_adapter.outputs.functions import file_path_map, function_dir
from next_adapter.runtime.edge_source import EdgeFunctionParams, EdgeSourceGenerator
from next_adapter.types import EdgeFunctionOutput
from next_adapter.validator import validate_function_config, write_json

logger = get_logger(__name__)

EDGE_ENTRYPOINT = "index.js"


def edge_function_config(output: EdgeFunctionOutput, ctx: BuildContext) -> dict[str, Any]:
    config: dict[str, Any] = {
        "runtime": "edge",
        "entrypoint": join_posix(ctx.project_rel_dir, EDGE_ENTRYPOINT),
        "files": file_path_map(output, ctx),
    }
    if output.config.env is not None:
        config["envVarsInUse"] = output.config.env
    if output.config.preferred_region is not None:
        config["regions"] = output.config.preferred_region
    return config


def _write_edge_function(
    output: EdgeFunctionOutput, ctx: BuildContext, generator: EdgeSourceGenerator
) -> None:
    target = function_dir(ctx, output.pathname)
    target.mkdir(parents=True, exist_ok=True)

    file_paths = [relative_posix(output.file_path, ctx.project_dir), *output.assets]
    params = EdgeFunctionParams(name=output.page or output.pathname)
    source = generator.generate(file_paths, params, ctx.project_dir)

    entry_path = target / ctx.project_rel_dir / EDGE_ENTRYPOINT
    entry_path.parent.mkdir(parents=True, exist_ok=True)
    entry_path.write_text(source, encoding="utf-8")

    config = edge_function_config(output, ctx)
    validate_function_config(config)
    write_json(target / ".vc-config.json", config)


async def package_edge_function(
    output: EdgeFunctionOutput, ctx: BuildContext, generator: EdgeSourceGenerator
) -> None:
    try:
        await asyncio.to_thread(_write_edge_function, output, ctx, generator)
    except OSError as err:
        logger.error(
            "failed to package edge function",
            extra={"stage": "edge", "output_id": output.id, "path": output.pathname},
        )
        raise PackagingError(output.id, output.pathname, str(err)) from err
    logger.debug(
        "packaged edge function",
        extra={"stage": "edge", "output_id": output.id, "path": output.pathname},
    )


async def package_edge_functions(
    outputs: Sequence[EdgeFunctionOutput], ctx: BuildContext, generator: EdgeSourceGenerator
) -> None:
    await gather_bounded(outputs, lambda output: package_edge_function(output, ctx, generator))
    logger.info("packaged edge functions", extra={"stage": "edge", "count": len(outputs)})
