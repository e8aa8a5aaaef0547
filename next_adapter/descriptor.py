"""Build input descriptor: everything the framework hands over after its build."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from next_adapter.config import BuildConfig
from next_adapter.types import BuildOutputs, RoutingInput


class BuildInput(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    routes: RoutingInput = Field(default_factory=RoutingInput)
    outputs: BuildOutputs = Field(default_factory=BuildOutputs)
    config: BuildConfig = Field(default_factory=BuildConfig)
    dist_dir: Path
    repo_root: Path
    project_dir: Path
    next_version: str


def load_build_input(path: Path) -> BuildInput:
    """Parse a JSON descriptor; relative directories resolve against its location."""
    build = BuildInput.model_validate_json(path.read_text(encoding="utf-8"))
    base = path.resolve().parent
    return build.model_copy(
        update={
            "dist_dir": base / build.dist_dir,
            "repo_root": base / build.repo_root,
            "project_dir": base / build.project_dir,
        }
    )
