"""
claude-githooks CLI - main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from claude_githooks import __version__
from claude_githooks.cli import config, hooks
from claude_githooks.core.config.env import load_layered_env

PANEL_HOOKS = "Manage Hooks"
PANEL_CONFIG = "Configure Hooks"

app = typer.Typer(
    name="claude-githooks",
    help="AI-assisted git hooks",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    claude-githooks - AI-assisted git hooks.

    Installs git hooks that review staged changes, validate commit
    messages, audit pushes and summarize merges, with local checks when
    the analysis service is unavailable.

    Quick Start:
        1. claude-githooks list                 # See available hooks
        2. claude-githooks setup commit-msg     # Enable and install one
        3. git commit                           # The hook runs automatically

    Configuration:
        claude-githooks config show commit-msg
        claude-githooks config set pre-push blockingMode block
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    ctx.obj = {"debug": debug}


app.command(name="list", rich_help_panel=PANEL_HOOKS)(hooks.list_hooks)
app.command(name="setup", rich_help_panel=PANEL_HOOKS)(hooks.setup)
app.command(name="remove", rich_help_panel=PANEL_HOOKS)(hooks.remove)
app.command(name="enable", rich_help_panel=PANEL_HOOKS)(hooks.enable)
app.command(name="disable", rich_help_panel=PANEL_HOOKS)(hooks.disable)
app.command(name="discover", rich_help_panel=PANEL_HOOKS)(hooks.discover)
app.command(
    name="run",
    rich_help_panel=PANEL_HOOKS,
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(hooks.run)

app.command(name="validate", rich_help_panel=PANEL_CONFIG)(hooks.validate)
app.add_typer(config.app, name="config", rich_help_panel=PANEL_CONFIG)


@app.command()
def version() -> None:
    """Show claude-githooks version and exit."""
    console.print(f"claude-githooks version {__version__}")
    raise typer.Exit(0)


__all__ = ["app"]
