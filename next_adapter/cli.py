"""next-adapter CLI: compile a framework build into a deployable bundle.

Commands:
- build DESCRIPTOR      run the full pipeline and write the bundle
- routes CONFIG_JSON    print the ordered route table of a written manifest
- validate BUNDLE_DIR   check every descriptor in a bundle against its schema
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from next_adapter.core import build_pipeline
from next_adapter.descriptor import load_build_input
from next_adapter.errors import AdapterError
from next_adapter.logging import configure_logging
from next_adapter.settings import AdapterSettings
from next_adapter.types import Manifest, PatternRule, PhaseMarker
from next_adapter.validator import validate_bundle

app = typer.Typer(add_completion=False, help="Compile framework build outputs into a bundle")
console = Console()


def _fail(message: str) -> NoReturn:
    rprint(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


@app.command()
def build(
    descriptor: str = typer.Argument(..., help="Path to the build descriptor JSON"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override NEXT_ADAPTER_LOG_LEVEL"),
) -> None:
    settings = AdapterSettings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)

    try:
        build_input = load_build_input(Path(descriptor))
        report = build_pipeline(build_input, settings)
    except (AdapterError, ValidationError) as err:
        _fail(f"Build failed: {err}")

    table = Table(title="Bundle Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("static files", str(report.static_files))
    table.add_row("server functions", str(len(report.server_functions)))
    table.add_row("edge functions", str(len(report.edge_functions)))
    table.add_row("prerenders", str(report.prerenders))
    table.add_row("routes", str(len(report.manifest.routes)))
    console.print(table)
    rprint(f"[green]Manifest written:[/green] {report.config_path}")


@app.command()
def routes(config: str = typer.Argument(..., help="Path to a bundle's config.json")) -> None:
    try:
        manifest = Manifest.model_validate_json(Path(config).read_text(encoding="utf-8"))
    except ValidationError as err:
        _fail(f"Invalid manifest: {err}")

    table = Table(title=f"Routes ({len(manifest.routes)})")
    table.add_column("#", justify="right")
    table.add_column("Match", style="cyan")
    table.add_column("Target")
    table.add_column("Flags", style="magenta")
    for index, rule in enumerate(manifest.routes):
        if isinstance(rule, PhaseMarker):
            table.add_row(str(index), f"[bold]handle: {rule.handle}[/bold]", "", "")
            continue
        target = str(rule.status or "")
        flags: list[str] = []
        if isinstance(rule, PatternRule):
            target = rule.dest or ", ".join(f"{k}: {v}" for k, v in (rule.headers or {}).items())
            if rule.status:
                target = f"{rule.status} {target}".strip()
            flags = [
                name
                for name, value in (
                    ("continue", rule.continue_),
                    ("important", rule.important),
                    ("check", rule.check),
                    ("override", rule.override),
                )
                if value
            ]
        table.add_row(str(index), escape(rule.src), escape(target), " ".join(flags))
    console.print(table)


@app.command()
def validate(bundle: str = typer.Argument(..., help="Bundle output directory")) -> None:
    try:
        checked = validate_bundle(Path(bundle))
    except (SchemaValidationError, OSError, ValueError) as err:
        _fail(f"Invalid bundle: {err}")
    rprint(f"[green]{len(checked)} descriptors valid.[/green]")


if __name__ == "__main__":
    app()
