"""
Standardized error handling and exit codes for the claude-githooks CLI.

Errors are printed as a problem line followed by optional reason and
solution lines, so every failure tells the user what to do next.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or a hook blocked the git operation."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Example:
        >>> print_error(
        ...     "Hook not found: lint",
        ...     reason="No discovered hook has this id",
        ...     solution="claude-githooks list",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_git_repo_error() -> None:
    """Print error when not in a git repository."""
    print_error(
        "Not a git repository",
        reason="Git hooks are installed into the repository's .git/hooks directory",
        solution="git init  # or cd to your project root",
    )


def print_hook_not_found_error(hook_id: str) -> None:
    """Print error when a hook id is not registered."""
    print_error(
        f"Hook not found: {hook_id}",
        reason="No core, project, plugin or user hook is registered under this id",
        solution="claude-githooks list  # to see available hooks",
    )


def print_invalid_config_error(hook_id: str, errors: list[str]) -> None:
    """Print error when a hook configuration fails schema validation."""
    print_error(
        f"Invalid configuration for hook {hook_id}",
        reason="\n".join(errors),
        solution=f"claude-githooks config show {hook_id}  # to see current options",
    )


def print_incompatible_flags_error(flag1: str, flag2: str) -> None:
    """Print error when incompatible CLI flags are used together."""
    print_error(
        f"Cannot use {flag1} with {flag2}",
        solution=f"Remove one of the flags: {flag1} or {flag2}",
    )
