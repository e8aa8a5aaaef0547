"""Per-build context shared by every packaging stage."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from next_adapter.config import BuildConfig


@dataclass(frozen=True)
class BuildContext:
    config: BuildConfig
    dist_dir: Path
    repo_root: Path
    project_dir: Path
    next_version: str
    output_dir: Path

    @property
    def functions_dir(self) -> Path:
        """``functions/`` joined with the base path; every function bundle lives below it."""
        return self.output_dir / "functions" / self.config.base_path.lstrip("/")

    @property
    def project_rel_dir(self) -> str:
        """Project directory relative to the repository root, in posix form."""
        return relative_posix(self.project_dir, self.repo_root)


def relative_posix(path: str | Path, start: str | Path) -> str:
    return Path(os.path.relpath(path, start)).as_posix()


def join_posix(*parts: str) -> str:
    """Join path fragments with ``/`` and drop ``.`` fragments (``path.posix.join`` style)."""
    kept = [p.strip("/") for p in parts if p not in ("", ".")]
    return "/".join(p for p in kept if p)
