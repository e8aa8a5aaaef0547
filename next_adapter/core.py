"""Build orchestration: classify -> static -> edge -> prerender -> functions -> routes.

Each stage finishes completely before the next starts, and ``config.json``
is written once, last, only after every other stage succeeded.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from next_adapter.config import images_config, wildcard_config
from next_adapter.context import BuildContext
from next_adapter.descriptor import BuildInput
from next_adapter.logging import get_logger
from next_adapter.outputs.classify import classify_outputs
from next_adapter.outputs.edge import package_edge_functions
from next_adapter.outputs.functions import package_server_functions
from next_adapter.outputs.prerender import resolve_prerender_outputs
from next_adapter.outputs.static import place_static_outputs
from next_adapter.routing.compiler import compile_routes
from next_adapter.routing.superstatic import PatternCompiler, SuperstaticCompiler
from next_adapter.runtime.edge_source import ConcatEdgeSource, EdgeSourceGenerator
from next_adapter.runtime.node_version import NodeVersionResolver, PackageJsonNodeVersion
from next_adapter.settings import AdapterSettings
from next_adapter.types import Manifest
from next_adapter.validator import validate_manifest, write_json

logger = get_logger(__name__)


@dataclass
class Collaborators:
    patterns: PatternCompiler = field(default_factory=SuperstaticCompiler)
    node_versions: NodeVersionResolver = field(default_factory=PackageJsonNodeVersion)
    edge_source: EdgeSourceGenerator = field(default_factory=ConcatEdgeSource)


@dataclass
class BuildReport:
    output_dir: Path
    config_path: Path
    manifest: Manifest
    static_files: int = 0
    server_functions: list[str] = field(default_factory=list)
    edge_functions: list[str] = field(default_factory=list)
    prerenders: int = 0


def write_manifest(manifest: Manifest, output_dir: Path) -> Path:
    data = manifest.to_json_dict()
    validate_manifest(data)
    config_path = output_dir / "config.json"
    write_json(config_path, data)
    return config_path


async def build_bundle(
    build: BuildInput,
    settings: AdapterSettings | None = None,
    collaborators: Collaborators | None = None,
) -> BuildReport:
    settings = settings or AdapterSettings()
    collaborators = collaborators or Collaborators()

    output_dir = build.dist_dir / settings.output_dir_name
    output_dir.mkdir(parents=True, exist_ok=True)
    ctx = BuildContext(
        config=build.config,
        dist_dir=build.dist_dir,
        repo_root=build.repo_root,
        project_dir=build.project_dir,
        next_version=build.next_version,
        output_dir=output_dir,
    )

    classified = classify_outputs(build.outputs.function_outputs())
    overrides = await place_static_outputs(build.outputs.static_files, ctx)

    await package_edge_functions(classified.edge, ctx, collaborators.edge_source)

    runtime = collaborators.node_versions.resolve(build.project_dir)
    standalone = await resolve_prerender_outputs(
        classified.server, build.outputs.prerenders, ctx, runtime
    )
    await package_server_functions(standalone, ctx, runtime)

    manifest = Manifest(
        routes=compile_routes(build.routes, build.config, collaborators.patterns),
        images=images_config(build.config),
        wildcard=wildcard_config(build.config),
        overrides=overrides,
    )
    config_path = write_manifest(manifest, output_dir)
    logger.info(f"bundle written to {output_dir}", extra={"stage": "manifest"})

    return BuildReport(
        output_dir=output_dir,
        config_path=config_path,
        manifest=manifest,
        static_files=len(build.outputs.static_files),
        server_functions=[o.pathname for o in standalone],
        edge_functions=[o.pathname for o in classified.edge],
        prerenders=len(build.outputs.prerenders),
    )


def build_pipeline(
    build: BuildInput,
    settings: AdapterSettings | None = None,
    collaborators: Collaborators | None = None,
) -> BuildReport:
    return asyncio.run(build_bundle(build, settings, collaborators))
