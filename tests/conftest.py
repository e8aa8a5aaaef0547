"""Shared fixtures: a throwaway repo/project/dist layout and build contexts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest

from next_adapter.config import BuildConfig
from next_adapter.context import BuildContext

NEXT_VERSION = "15.5.0"


@dataclass
class BuildDirs:
    repo_root: Path
    project_dir: Path
    dist_dir: Path

    @property
    def output_dir(self) -> Path:
        return self.dist_dir / "output"


@pytest.fixture
def build_dirs(tmp_path: Path) -> BuildDirs:
    """Monorepo layout: <tmp>/repo/apps/web/.next"""
    repo_root = tmp_path / "repo"
    project_dir = repo_root / "apps" / "web"
    dist_dir = project_dir / ".next"
    dist_dir.mkdir(parents=True)
    return BuildDirs(repo_root=repo_root, project_dir=project_dir, dist_dir=dist_dir)


@pytest.fixture
def make_context(build_dirs: BuildDirs) -> Callable[..., BuildContext]:
    def _make(config: BuildConfig | None = None) -> BuildContext:
        return BuildContext(
            config=config or BuildConfig(),
            dist_dir=build_dirs.dist_dir,
            repo_root=build_dirs.repo_root,
            project_dir=build_dirs.project_dir,
            next_version=NEXT_VERSION,
            output_dir=build_dirs.output_dir,
        )

    return _make


@pytest.fixture
def write_file() -> Callable[[Path, str], Path]:
    def _write(path: Path, text: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
