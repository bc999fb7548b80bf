from __future__ import annotations

"""everywhere Command Line Interface."""

import json
from pathlib import Path
from typing import Optional

import anyio
import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from everywhere.core.analysis import analyse_graph
from everywhere.core.cache import ResolutionController
from everywhere.core.errors import CycleDetected
from everywhere.core.render import link_source
from everywhere.host import StaticHost
from everywhere.io.workflow import Workflow, load_prompt, load_workflow
from everywhere.settings import Settings, load_settings
from everywhere.utils.constants import STYLE, SYMBOLS
from everywhere.utils.logging import get, set_details, show_link_tree

app = typer.Typer(
    name="everywhere",
    help="Resolve implicit broadcast links in node-graph workflows.",
    add_completion=False,
)

console = Console()


def _settings(path: Optional[Path], details: bool, no_loop_check: bool = False) -> Settings:
    settings = Settings()
    if path is not None:
        try:
            settings = load_settings(path)
        except Exception as e:  # noqa: BLE001
            console.print(f"[bold red]Error: invalid settings file {path}: {e}[/]")
            raise typer.Exit(code=1)
    if details:
        settings.show_details = True
    if no_loop_check:
        settings.check_loops = False
    get(settings.log_level)
    set_details(settings.show_details)
    return settings


def _load(file_path: Path) -> Workflow:
    """Load and validate a saved workflow file."""
    try:
        return load_workflow(file_path)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[bold red]Error: could not read workflow {file_path}: {e}[/]")
        raise typer.Exit(code=1)


def _settings_opt():
    return typer.Option(None, "--settings", "-s", help="YAML settings file.", exists=True, dir_okay=False)


def _details_opt():
    return typer.Option(False, "--details", help="Show link details and match conflicts.")


@app.command()
def resolve(
    workflow_file: Path = typer.Argument(..., help="Saved workflow JSON.", exists=True, dir_okay=False, readable=True),
    settings_file: Optional[Path] = _settings_opt(),
    details: bool = _details_opt(),
    as_json: bool = typer.Option(False, "--json", help="Print the resolution as JSON."),
):
    """List the virtual link every unconnected input would receive."""
    settings = _settings(settings_file, details)
    wf = _load(workflow_file)
    result = analyse_graph(wf, settings=settings, purpose="render")

    if as_json:
        print(json.dumps(result.as_dict(), indent=2))
    else:
        titles = {str(n.id): n.display_title for n in wf.nodes}
        table = Table(title="Virtual Links", box=box.ROUNDED)
        table.add_column("Node", style=STYLE["node"], no_wrap=True)
        table.add_column("Input", style=STYLE["input"])
        table.add_column("Type", style="green")
        table.add_column("Source", style=STYLE["broadcaster"])
        for vl in result.assignments.values():
            table.add_row(
                f"{vl.downstream_node_id} {titles.get(vl.downstream_node_id, '')}",
                vl.downstream_input_name,
                vl.type,
                link_source(vl.upstream_node_id, vl.upstream_output_name),
            )
        console.print(table)

        if settings.show_details:
            for c in result.conflicts:
                sources = ", ".join(link_source(n, o) for n, o in c.candidates)
                console.print(f"{SYMBOLS['warning']}{c.node_id}.{c.input_name}: tie between {sources}")
            for msg in result.diagnostics:
                console.print(f"{SYMBOLS['info']}[dim]{escape(str(msg))}[/]")

    if result.loop_error is not None:
        console.print(f"{SYMBOLS['error']}[bold red]{result.loop_error.describe()}[/]")
        raise typer.Exit(code=1)


@app.command()
def links(
    workflow_file: Path = typer.Argument(..., help="Saved workflow JSON.", exists=True, dir_okay=False, readable=True),
    settings_file: Optional[Path] = _settings_opt(),
    details: bool = _details_opt(),
):
    """Print the incoming virtual links of every node as a tree."""
    settings = _settings(settings_file, details)
    wf = _load(workflow_file)
    controller = ResolutionController(StaticHost(wf), settings)
    projection = controller.query_for_render()
    titles = {str(n.id): n.display_title for n in wf.nodes}
    show_link_tree(projection, titles=titles)


@app.command()
def check(
    workflow_file: Path = typer.Argument(..., help="Saved workflow JSON.", exists=True, dir_okay=False, readable=True),
    settings_file: Optional[Path] = _settings_opt(),
):
    """Check that broadcasting does not create a loop."""
    settings = _settings(settings_file, False)
    settings.check_loops = True
    result = analyse_graph(_load(workflow_file), settings=settings, purpose="submission")
    if result.loop_error is None:
        console.print(f"{SYMBOLS['success']}No loops ({len(result.assignments)} virtual link(s)).")
        return
    loop = result.loop_error
    console.print(f"{SYMBOLS['loop']}[bold red]{loop.describe()}[/]")
    if not loop.caused_by_broadcast:
        console.print("[yellow]The loop is made of real links only.[/]")
    raise typer.Exit(code=1)


@app.command()
def submit(
    prompt_file: Path = typer.Argument(..., help="Saved payload JSON with 'workflow' and 'output'.", exists=True, dir_okay=False, readable=True),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the augmented payload.", dir_okay=False, writable=True),
    settings_file: Optional[Path] = _settings_opt(),
    no_loop_check: bool = typer.Option(False, "--no-loop-check", help="Apply links even if they create a loop."),
):
    """Apply virtual links to an execution payload and write it out."""
    settings = _settings(settings_file, False, no_loop_check)
    try:
        payload = load_prompt(prompt_file)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[bold red]Error: could not read payload {prompt_file}: {e}[/]")
        raise typer.Exit(code=1)

    controller = ResolutionController(
        StaticHost(payload.get("workflow") or {}, payload.get("output") or {}), settings
    )
    try:
        augmented = anyio.run(controller.build_execution_payload)
    except CycleDetected as e:
        console.print(f"{SYMBOLS['loop']}[bold red]{e}[/]")
        raise typer.Exit(code=1)

    output.write_text(json.dumps(augmented, indent=2))
    console.print(f"{SYMBOLS['success']}Payload written to {output}")


if __name__ == "__main__":
    app()
