"""Schema validation for every descriptor written into the bundle."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from jsonschema import Draft202012Validator

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _config_schema() -> dict:
    return _load_schema("next_adapter.schema", "config.schema.json")


def _vc_config_schema() -> dict:
    return _load_schema("next_adapter.schema", "vc-config.schema.json")


def _prerender_config_schema() -> dict:
    return _load_schema("next_adapter.schema", "prerender-config.schema.json")


# --- Public validators ------------------------------------------------------


def validate_manifest(data: dict) -> None:
    Draft202012Validator(_config_schema()).validate(data)


def validate_function_config(data: dict) -> None:
    Draft202012Validator(_vc_config_schema()).validate(data)


def validate_prerender_config(data: dict) -> None:
    Draft202012Validator(_prerender_config_schema()).validate(data)


# --- Writers ----------------------------------------------------------------


def write_json(path: Path, data: dict) -> None:
    """Write *data* with 2-space indentation, keeping insertion order."""
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def validate_bundle(output_dir: Path) -> list[Path]:
    """Validate ``config.json`` and every function/pre-render descriptor under *output_dir*.

    Returns the validated files; raises ``jsonschema.ValidationError`` on the first failure.
    """
    checked: list[Path] = []
    config_path = output_dir / "config.json"
    validate_manifest(json.loads(config_path.read_text(encoding="utf-8")))
    checked.append(config_path)

    functions_dir = output_dir / "functions"
    for path in sorted(functions_dir.rglob(".vc-config.json")):
        validate_function_config(json.loads(path.read_text(encoding="utf-8")))
        checked.append(path)
    for path in sorted(functions_dir.rglob("*.prerender-config.json")):
        validate_prerender_config(json.loads(path.read_text(encoding="utf-8")))
        checked.append(path)
    return checked
