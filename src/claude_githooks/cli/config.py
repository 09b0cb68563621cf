"""
Hook configuration commands.

Reads and edits per-hook options in ``.claude/hooks.json``. Values are
validated against the hook's schema before they are written.
"""

import json
from typing import Any

import typer
from rich.console import Console

from claude_githooks.cli.errors import ExitCode, print_invalid_config_error
from claude_githooks.cli.hooks import resolve_project
from claude_githooks.core.hooks.config import (
    load_hook_config,
    read_config_document,
    save_hook_config,
    stored_hook_options,
)
from claude_githooks.core.hooks.schema import apply_defaults, get_schema, validate_config

app = typer.Typer(
    name="config",
    help="Show and edit hook options",
    no_args_is_help=True,
)

console = Console()


def parse_value(raw: str) -> Any:
    """JSON value if ``raw`` parses as one, else the raw string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command(name="show")
def show(
    hook_id: str | None = typer.Argument(None, help="Hook id (default: whole file)"),
    project_dir: str = typer.Option(".", "--project", "-p", help="Project directory"),
) -> None:
    """
    Show stored hook configuration.

    With a hook id, shows that hook's effective options including schema
    defaults.

    Examples:
        claude-githooks config show
        claude-githooks config show commit-msg
    """
    project_root = resolve_project(project_dir)

    if hook_id is None:
        console.print_json(json.dumps(read_config_document(project_root)))
    else:
        console.print_json(json.dumps(load_hook_config(project_root, hook_id)))


@app.command(name="set")
def set_option(
    hook_id: str = typer.Argument(..., help="Hook id"),
    key: str = typer.Argument(..., help="Option name, e.g. blockingMode"),
    value: str = typer.Argument(..., help="Value; parsed as JSON when possible"),
    project_dir: str = typer.Option(".", "--project", "-p", help="Project directory"),
) -> None:
    """
    Set one option for a hook.

    Examples:
        claude-githooks config set pre-push blockingMode block
        claude-githooks config set commit-msg maxLength '{"subject": 50}'
        claude-githooks config set commit-msg conventionalCommits false
    """
    project_root = resolve_project(project_dir)

    parsed = parse_value(value)

    # Validate the whole entry as it will be read back, defaults included.
    schema = get_schema(hook_id)
    candidate = apply_defaults({**stored_hook_options(project_root, hook_id), key: parsed}, schema)
    result = validate_config(candidate, schema)
    if not result.is_valid:
        print_invalid_config_error(hook_id, result.errors)
        raise typer.Exit(ExitCode.USER_ERROR)
    for error in result.errors:
        console.print(f"[yellow]⚠[/yellow] {error}")

    path = save_hook_config(project_root, hook_id, {key: parsed})
    console.print(f"[green]✓[/green] {hook_id}.{key} = {json.dumps(parsed)}")
    console.print(f"[dim]Saved to {path}[/dim]")
