"""
Hook management commands.

Lists, installs and removes the git hooks managed by claude-githooks,
toggles individual hooks in ``.claude/hooks.json``, and provides the
``run`` entry point that installed hook scripts exec into.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from claude_githooks.cli.errors import (
    ExitCode,
    print_hook_not_found_error,
    print_incompatible_flags_error,
    print_not_git_repo_error,
)
from claude_githooks.core.hooks.config import hook_options, read_config_document
from claude_githooks.core.hooks.discovery import discover_all_hooks
from claude_githooks.core.hooks.logger import default_logger
from claude_githooks.core.hooks.models import BulkOperationResult, HookModuleDescriptor
from claude_githooks.core.hooks.registry import HookRegistry
from claude_githooks.core.hooks.runner import run_git_hook_from_cli
from claude_githooks.core.hooks.schema import apply_defaults, get_schema, validate_config
from claude_githooks.utils.git import find_git_root

console = Console()

PROJECT_OPTION_HELP = "Project directory (default: current directory)"


def _is_debug(ctx: typer.Context) -> bool:
    root = ctx.find_root()
    return bool(root.obj and root.obj.get("debug"))


def resolve_project(project_dir: str) -> Path:
    """Repository root containing ``project_dir``; exits when there is none."""
    project_path = Path(project_dir).resolve()
    if not project_path.is_dir():
        console.print(f"[red]Error: Not a directory: {project_path}[/red]")
        raise typer.Exit(ExitCode.USER_ERROR)

    root = find_git_root(project_path)
    if root is None:
        print_not_git_repo_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return root


def load_registry(
    ctx: typer.Context, project_root: Path, *, dry_run: bool = False
) -> tuple[HookRegistry, list[HookModuleDescriptor]]:
    """Registry with all discovered hooks and stored config, plus the descriptors."""
    registry = HookRegistry(
        project_root, logger=default_logger(verbose=_is_debug(ctx)), dry_run=dry_run
    )
    descriptors = discover_all_hooks(project_root)
    registry.register_discovered_hooks(descriptors)
    registry.load_config()
    return registry, descriptors


def _print_bulk_result(action: str, result: BulkOperationResult) -> None:
    if result.success:
        console.print(f"[green]✓[/green] {action}: {', '.join(result.success)}")
    if result.failed:
        console.print(f"[red]✗[/red] Failed: {', '.join(result.failed)}")


def list_hooks(
    ctx: typer.Context,
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """
    List available hooks and their status.

    Examples:
        claude-githooks list
        claude-githooks list -p ../other
    """
    project_root = resolve_project(project_dir)
    registry, descriptors = load_registry(ctx, project_root)
    sources = {descriptor.id: descriptor.source.value for descriptor in descriptors}

    hooks = registry.get_all_hooks()
    if not hooks:
        console.print("[yellow]No hooks found[/yellow]")
        return

    table = Table(title="Git Hooks", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Git Hook")
    table.add_column("Source", style="dim")
    table.add_column("Enabled")
    table.add_column("Strictness")

    for hook_id, hook in hooks.items():
        table.add_row(
            hook_id,
            hook.name,
            hook.git_hook_name,
            sources.get(hook_id, ""),
            "[green]yes[/green]" if hook.is_enabled() else "[dim]no[/dim]",
            str(getattr(hook.strictness, "value", hook.strictness)),
        )

    console.print(table)


def setup(
    ctx: typer.Context,
    hook_ids: list[str] | None = typer.Argument(None, help="Hook ids to enable before setup"),
    all_hooks: bool = typer.Option(False, "--all", "-a", help="Enable and set up every hook"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be installed"),
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """
    Install git hook scripts for enabled hooks.

    Hook ids given on the command line are enabled first. Existing hook
    scripts not created by claude-githooks are backed up.

    Examples:
        claude-githooks setup                    # Install enabled hooks
        claude-githooks setup commit-msg         # Enable and install one hook
        claude-githooks setup --all --dry-run    # Preview installing everything
    """
    if all_hooks and hook_ids:
        print_incompatible_flags_error("--all", "hook ids")
        raise typer.Exit(ExitCode.USER_ERROR)

    project_root = resolve_project(project_dir)
    registry, _ = load_registry(ctx, project_root, dry_run=dry_run)

    if all_hooks:
        registry.enable_hooks(list(registry.get_all_hooks()))
    elif hook_ids:
        for hook_id in hook_ids:
            if registry.get_hook(hook_id) is None:
                print_hook_not_found_error(hook_id)
                raise typer.Exit(ExitCode.USER_ERROR)
        registry.enable_hooks(hook_ids)

    result = registry.setup_hooks()
    _print_bulk_result("Set up", result)

    if not result.ok:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def remove(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed"),
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """
    Remove installed git hook scripts, restoring any backups.

    Scripts not created by claude-githooks are left untouched.

    Examples:
        claude-githooks remove
        claude-githooks remove --dry-run
    """
    project_root = resolve_project(project_dir)
    registry, _ = load_registry(ctx, project_root, dry_run=dry_run)

    result = registry.remove_hooks()
    _print_bulk_result("Removed", result)

    if not result.ok:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _toggle(ctx: typer.Context, hook_id: str, project_dir: str, enabled: bool) -> None:
    project_root = resolve_project(project_dir)
    registry, _ = load_registry(ctx, project_root)

    changed = registry.enable_hook(hook_id) if enabled else registry.disable_hook(hook_id)
    if not changed:
        print_hook_not_found_error(hook_id)
        raise typer.Exit(ExitCode.USER_ERROR)

    if not registry.save_config():
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    state = "enabled" if enabled else "disabled"
    console.print(f"[green]✓[/green] Hook {hook_id} {state}")
    console.print("[dim]Run 'claude-githooks setup' to update installed scripts[/dim]")


def enable(
    ctx: typer.Context,
    hook_id: str = typer.Argument(..., help="Hook id to enable"),
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """Enable a hook in .claude/hooks.json."""
    _toggle(ctx, hook_id, project_dir, enabled=True)


def disable(
    ctx: typer.Context,
    hook_id: str = typer.Argument(..., help="Hook id to disable"),
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """Disable a hook in .claude/hooks.json."""
    _toggle(ctx, hook_id, project_dir, enabled=False)


def validate(
    ctx: typer.Context,
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """
    Validate stored hook options against their schemas.

    Unknown options are reported as warnings; type, enum and
    missing-required errors fail validation.
    """
    project_root = resolve_project(project_dir)
    registry, _ = load_registry(ctx, project_root)
    document = read_config_document(project_root)

    if not document["hooks"]:
        console.print("[yellow]No hook configuration found[/yellow]")
        return

    invalid = 0
    for hook_id, entry in document["hooks"].items():
        if not isinstance(entry, dict):
            console.print(f"[red]✗[/red] {hook_id}: entry is not an object")
            invalid += 1
            continue

        hook = registry.get_hook(hook_id)
        schema = hook.get_config_schema() if hook is not None else get_schema(hook_id)
        result = validate_config(apply_defaults(hook_options(entry), schema), schema)

        if result.is_valid:
            console.print(f"[green]✓[/green] {hook_id}")
        else:
            console.print(f"[red]✗[/red] {hook_id}")
            invalid += 1
        for error in result.errors:
            console.print(f"    {error}")

    if invalid:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def discover(
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """Show every hook module found in core, project, plugin and user sources."""
    project_root = resolve_project(project_dir)
    descriptors = discover_all_hooks(project_root)

    if not descriptors:
        console.print("[yellow]No hook modules found[/yellow]")
        return

    table = Table(title="Discovered Hook Modules", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Source")
    table.add_column("Location", style="dim")

    for descriptor in descriptors:
        table.add_row(descriptor.id, descriptor.source.value, descriptor.path)

    console.print(table)


def run(
    ctx: typer.Context,
    git_hook_name: str = typer.Argument(..., help="Git hook being fired, e.g. commit-msg"),
    args: list[str] | None = typer.Argument(None, help="Arguments git passed to the hook"),
    project_dir: str = typer.Option(".", "--project", "-p", help=PROJECT_OPTION_HELP),
) -> None:
    """
    Run all enabled hooks for a git hook.

    Installed hook scripts call this; the exit code tells git whether to
    proceed.
    """
    project_root = find_git_root(Path(project_dir).resolve())
    exit_code = run_git_hook_from_cli(
        git_hook_name,
        list(args or []),
        project_root=project_root,
        logger=default_logger(verbose=_is_debug(ctx)),
    )
    raise typer.Exit(exit_code)
