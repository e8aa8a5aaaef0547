"""Launcher source for server-process functions."""

from __future__ import annotations

import json
from importlib import resources

LAUNCHER_FILENAME = "___next_launcher.cjs"
_PLACEHOLDER = "__RELATIVE_DIST_DIR__"


def load_template(resource_name: str) -> str:
    return resources.files("next_adapter.templates").joinpath(resource_name).read_text(
        encoding="utf-8"
    )


def render_launcher(project_relative_dist_dir: str) -> str:
    """Return the launcher with the dist dir (relative to the project) baked in.

    The same source is emitted for every function so identical bundles can be
    de-duplicated by the host.
    """
    return load_template("launcher.cjs").replace(
        _PLACEHOLDER, json.dumps(project_relative_dist_dir)
    )
