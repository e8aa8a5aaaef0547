"""Server-process function packaging.

Each function gets ``functions/<basePath>/<pathname>.func/`` containing:
- the generated launcher under the project-relative directory
- ``.vc-config.json`` with the file map (bundle path -> repo-relative source)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from next_adapter.context import BuildContext, join_posix, relative_posix
from next_adapter.errors import PackagingError
from next_adapter.gate import gather_bounded
from next_adapter.logging import get_logger
from next_adapter.outputs.classify import operation_type
from next_adapter.runtime.launcher import LAUNCHER_FILENAME, render_launcher
from next_adapter.types import FunctionOutput, ServerFunctionOutput
from next_adapter.validator import validate_function_config, write_json

logger = get_logger(__name__)

FRAMEWORK_SLUG = "nextjs"


def function_dir(ctx: BuildContext, pathname: str) -> Path:
    return ctx.functions_dir / f"{pathname.lstrip('/')}.func"


def file_path_map(output: FunctionOutput, ctx: BuildContext) -> dict[str, str]:
    """Auxiliary assets plus the output's own artifact, relative to the repo root."""
    files = {
        rel_path: relative_posix(fs_path, ctx.repo_root)
        for rel_path, fs_path in output.assets.items()
    }
    files[relative_posix(output.file_path, ctx.project_dir)] = relative_posix(
        output.file_path, ctx.repo_root
    )
    return files


def server_function_config(
    output: FunctionOutput, ctx: BuildContext, runtime: str
) -> dict[str, Any]:
    config: dict[str, Any] = {
        "filePathMap": file_path_map(output, ctx),
        "operationType": operation_type(output),
        "framework": {"slug": FRAMEWORK_SLUG, "version": ctx.next_version},
        "handler": join_posix(ctx.project_rel_dir, LAUNCHER_FILENAME),
        "runtime": runtime,
    }
    if output.config.max_duration is not None:
        config["maxDuration"] = output.config.max_duration
    config["supportsResponseStreaming"] = True
    config["experimentalAllowBundling"] = True
    return config


def _write_server_function(output: FunctionOutput, ctx: BuildContext, runtime: str) -> None:
    target = function_dir(ctx, output.pathname)
    target.mkdir(parents=True, exist_ok=True)

    launcher_path = target / ctx.project_rel_dir / LAUNCHER_FILENAME
    launcher_path.parent.mkdir(parents=True, exist_ok=True)
    launcher_path.write_text(
        render_launcher(relative_posix(ctx.dist_dir, ctx.project_dir)), encoding="utf-8"
    )

    config = server_function_config(output, ctx, runtime)
    validate_function_config(config)
    write_json(target / ".vc-config.json", config)


async def package_server_function(
    output: ServerFunctionOutput, ctx: BuildContext, runtime: str
) -> None:
    try:
        await asyncio.to_thread(_write_server_function, output, ctx, runtime)
    except OSError as err:
        logger.error(
            "failed to package function",
            extra={"stage": "functions", "output_id": output.id, "path": output.pathname},
        )
        raise PackagingError(output.id, output.pathname, str(err)) from err
    logger.debug(
        "packaged function",
        extra={"stage": "functions", "output_id": output.id, "path": output.pathname},
    )


async def package_server_functions(
    outputs: Sequence[ServerFunctionOutput], ctx: BuildContext, runtime: str
) -> None:
    await gather_bounded(outputs, lambda output: package_server_function(output, ctx, runtime))
    logger.info("packaged server functions", extra={"stage": "functions", "count": len(outputs)})
