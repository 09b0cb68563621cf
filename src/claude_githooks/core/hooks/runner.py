"""
Entry point for installed git hook scripts.

Every generated script execs ``python -m claude_githooks run <git-hook> "$@"``,
which lands here. The runner builds the project's registry from discovery
plus ``.claude/hooks.json``, runs every enabled hook mapped to the git hook,
and turns the results into a process exit code: non-zero aborts the git
operation.

Usage:
    from claude_githooks.core.hooks.runner import run_git_hook_from_cli

    exit_code = run_git_hook_from_cli("commit-msg", [".git/COMMIT_EDITMSG"])
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from claude_githooks.core.config.env import load_layered_env
from claude_githooks.core.hooks.discovery import DistributionLoader, discover_all_hooks
from claude_githooks.core.hooks.logger import HookLogger, default_logger
from claude_githooks.core.hooks.models import HookResult, HookResultStatus
from claude_githooks.core.hooks.registry import HookRegistry
from claude_githooks.utils.git import find_git_root

logger = logging.getLogger(__name__)


def build_registry(
    project_root: Path,
    *,
    logger: HookLogger | None = None,
    dry_run: bool = False,
    distribution_loader: DistributionLoader | None = None,
) -> HookRegistry:
    """Registry with every discovered hook registered and stored config applied."""
    registry = HookRegistry(project_root, logger=logger, dry_run=dry_run)
    registry.register_discovered_hooks(
        discover_all_hooks(project_root, distribution_loader=distribution_loader)
    )
    registry.load_config()
    return registry


def decide_exit_code(results: Mapping[str, HookResult]) -> int:
    """1 when any hook asked to block the git operation, else 0."""
    return 1 if any(result.should_block for result in results.values()) else 0


def report_results(results: Mapping[str, HookResult], hook_logger: HookLogger) -> None:
    for hook_id, result in results.items():
        message = f"{hook_id}: {result.message}" if result.message else hook_id
        if result.should_block or result.failed:
            hook_logger.error(message)
        elif result.status is HookResultStatus.WARNING:
            hook_logger.warn(message)
        elif result.status is HookResultStatus.SKIPPED:
            hook_logger.debug(message)
        else:
            hook_logger.success(message)


def run_git_hook_from_cli(
    git_hook_name: str,
    args: list[str],
    *,
    project_root: Path | None = None,
    logger: HookLogger | None = None,
    registry: HookRegistry | None = None,
) -> int:
    """
    Run all enabled hooks for ``git_hook_name`` and return the exit code.

    Returns:
        0 when the git operation may proceed (including when no hook is
        enabled), 1 when a hook blocks it or no hook is registered for
        ``git_hook_name`` at all
    """
    hook_logger = logger or default_logger()

    if registry is None:
        root = project_root or find_git_root() or Path.cwd()
        load_layered_env(project_dir=root)
        registry = build_registry(root, logger=hook_logger)

    hooks = registry.get_hooks_for_git_hook(git_hook_name)
    if not hooks:
        hook_logger.error(f"No hook registered for git hook {git_hook_name}")
        return 1

    if not any(hook.is_enabled() for _, hook in hooks):
        hook_logger.debug(f"No enabled hooks for {git_hook_name}")
        return 0

    results = registry.run_git_hook(git_hook_name, args)
    report_results(results, hook_logger)

    exit_code = decide_exit_code(results)
    if exit_code:
        hook_logger.error(f"{git_hook_name} blocked by claude-githooks")
    return exit_code
