"""Static asset placement into the bundle's ``static/`` tree."""

from __future__ import annotations

import asyncio
import posixpath
import shutil
from collections.abc import Sequence
from pathlib import Path

from next_adapter.context import BuildContext
from next_adapter.errors import PackagingError
from next_adapter.gate import gather_bounded
from next_adapter.logging import get_logger
from next_adapter.types import OverrideEntry, StaticFileOutput

logger = get_logger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


def static_destination(ctx: BuildContext, output: StaticFileOutput) -> Path:
    return (
        ctx.output_dir
        / "static"
        / ctx.config.base_path.lstrip("/")
        / output.pathname.lstrip("/")
    )


def content_type_override(output: StaticFileOutput) -> tuple[str, OverrideEntry] | None:
    """Override for statically optimized pages: HTML source served without an extension."""
    src_ext = Path(output.file_path).suffix
    dest_ext = posixpath.splitext(output.pathname)[1]
    if src_ext == ".html" and not dest_ext:
        return f"./{output.pathname.lstrip('/')}", OverrideEntry(content_type=HTML_CONTENT_TYPE)
    return None


def _move_into_place(source: str, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(source, destination)


async def place_static_output(
    output: StaticFileOutput, ctx: BuildContext
) -> tuple[str, OverrideEntry] | None:
    destination = static_destination(ctx, output)
    try:
        await asyncio.to_thread(_move_into_place, output.file_path, destination)
    except OSError as err:
        logger.error(
            "failed to place static output",
            extra={"stage": "static", "output_id": output.id, "path": output.pathname},
        )
        raise PackagingError(output.id, output.pathname, str(err)) from err
    logger.debug(
        "placed static output",
        extra={"stage": "static", "output_id": output.id, "path": output.pathname},
    )
    return content_type_override(output)


async def place_static_outputs(
    outputs: Sequence[StaticFileOutput], ctx: BuildContext
) -> dict[str, OverrideEntry]:
    """Move every static output into place and return the content-type overrides."""
    results = await gather_bounded(outputs, lambda output: place_static_output(output, ctx))
    logger.info("placed static outputs", extra={"stage": "static", "count": len(outputs)})
    return dict(item for item in results if item is not None)
