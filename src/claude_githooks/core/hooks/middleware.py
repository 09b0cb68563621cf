"""
Middleware pipeline for hook execution.

Middleware steps are plain callables ``step(context, next)`` registered
for a lifecycle phase. Each step wraps the rest of the chain: code before
``next()`` runs on the way in, code after it runs on the way out, and a
step that never calls ``next()`` cancels everything downstream.

Running a hook:

    1. before_execution steps, then execution steps, each wrapping the rest
    2. the hook's own logic, if the chain was not cancelled
    3. error steps, if an exception escaped the chain
    4. after_execution steps, always, seeing the final result

Usage:
    from claude_githooks.core.hooks.middleware import HookLifecycle, log_execution

    hook.use(HookLifecycle.BEFORE_EXECUTION, log_execution)
    result = hook.run(["COMMIT_EDITMSG"])

Phases are an open set: any string can be used with ``use()``; the
framework itself runs the names defined on ``HookLifecycle``.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from claude_githooks.core.hooks.config import stored_hook_options
from claude_githooks.core.hooks.logger import HookLogger, default_logger
from claude_githooks.core.hooks.models import (
    BlockingMode,
    HookResult,
    HookResultStatus,
    Severity,
)
from claude_githooks.core.services.analysis import AnalysisService, create_analysis_service
from claude_githooks.utils.git import GitInspector, SubprocessGitInspector

logger = logging.getLogger(__name__)


class HookLifecycle:
    """Names of the phases the framework runs."""

    BEFORE_EXECUTION = "before_execution"
    EXECUTION = "execution"
    AFTER_EXECUTION = "after_execution"
    ERROR = "error"
    AFTER_SETUP = "after_setup"
    BEFORE_REMOVE = "before_remove"


# Hooks that fire while a commit is being made; they get staged changes.
COMMIT_HOOKS = ("pre-commit", "prepare-commit-msg", "commit-msg")

# Hooks that abort the git operation on blocking findings.
BLOCKING_HOOKS = ("pre-commit", "pre-push", "pre-rebase")


@dataclass
class ExecutionContext:
    """State shared by the middleware and the hook during one run."""

    hook: Any
    git_hook_name: str
    args: list[str] = field(default_factory=list)
    project_root: Path = field(default_factory=Path.cwd)
    logger: HookLogger = field(default_factory=default_logger)
    environment: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    config: dict[str, Any] = field(default_factory=dict)
    repository: dict[str, Any] = field(default_factory=dict)
    service: AnalysisService | None = None
    result: HookResult | None = None
    error: Exception | None = None
    cancelled: bool = False
    extras: dict[str, Any] = field(default_factory=dict)


Next = Callable[[], None]
MiddlewareStep = Callable[[ExecutionContext, Next], None]
CoreLogic = Callable[[ExecutionContext], "HookResult | None"]


class MiddlewarePipeline:
    """Ordered middleware steps per lifecycle phase."""

    def __init__(self) -> None:
        self._steps: dict[str, list[MiddlewareStep]] = {}

    def use(self, phase: str, step: MiddlewareStep) -> None:
        """Append ``step`` to the end of ``phase``."""
        self._steps.setdefault(phase, []).append(step)

    def steps(self, phase: str) -> list[MiddlewareStep]:
        return list(self._steps.get(phase, []))

    def phases(self) -> list[str]:
        return list(self._steps)

    @staticmethod
    def _dispatch(
        steps: list[MiddlewareStep], context: ExecutionContext, core: Callable[[], None] | None
    ) -> bool:
        """Run ``steps`` as a nested chain around ``core``. Returns whether the end was reached."""
        reached = False

        def call(index: int) -> None:
            nonlocal reached
            if index >= len(steps):
                reached = True
                if core is not None:
                    core()
                return
            steps[index](context, lambda: call(index + 1))

        call(0)
        return reached

    def run_phase(
        self, phase: str, context: ExecutionContext, core: Callable[[], None] | None = None
    ) -> bool:
        """
        Run a single phase, optionally around ``core``.

        Returns:
            True if every step called ``next()``, False if one cancelled the chain
        """
        return self._dispatch(self.steps(phase), context, core)

    def run(self, context: ExecutionContext, core: CoreLogic) -> HookResult:
        """
        Run the full execution lifecycle around ``core``.

        An exception that no error-handling step absorbed is re-raised after
        the error and after_execution steps have seen it.
        """
        chain = self.steps(HookLifecycle.BEFORE_EXECUTION) + self.steps(HookLifecycle.EXECUTION)

        def invoke_core() -> None:
            outcome = core(context)
            if outcome is not None:
                context.result = outcome

        pending: Exception | None = None
        try:
            reached = self._dispatch(chain, context, invoke_core)
        except Exception as e:
            context.error = e
            pending = e
        else:
            if not reached:
                context.cancelled = True
                if context.result is None:
                    context.result = HookResult.skipped(
                        f"{context.git_hook_name} hook cancelled by middleware"
                    )

        if pending is not None:
            self.run_phase(HookLifecycle.ERROR, context)

        self.run_phase(HookLifecycle.AFTER_EXECUTION, context)

        if pending is not None:
            raise pending

        if context.result is None:
            context.result = HookResult.success(f"{context.git_hook_name} hook completed")
        return context.result


# ==============================================================================
# Standard middleware
# ==============================================================================


def log_execution(context: ExecutionContext, next: Next) -> None:
    context.logger.info(f"Executing {context.git_hook_name} hook...")
    next()


def log_execution_time(context: ExecutionContext, next: Next) -> None:
    start = time.perf_counter()
    try:
        next()
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        context.logger.debug(f"{context.git_hook_name} hook execution time: {elapsed_ms:.0f}ms")


def error_handler(context: ExecutionContext, next: Next) -> None:
    """Turn an exception from the rest of the chain into a FAILURE result."""
    try:
        next()
    except Exception as e:
        message = f"Error in {context.git_hook_name} hook: {e}"
        context.logger.error(message)
        context.error = e
        mode = BlockingMode.coerce(getattr(context.hook, "blocking_mode", None))
        context.result = HookResult.failure(message, should_block=mode is BlockingMode.BLOCK)


def create_config_middleware(
    loader: Callable[[Path, str], dict[str, Any]] = stored_hook_options,
) -> MiddlewareStep:
    """
    Apply the hook's stored ``hooks.json`` options before it runs.

    Enabled state is left to the registry; everything else stored for the
    hook overrides its in-memory options. ``context.config`` receives the
    hook's effective configuration.
    """

    def apply_config(context: ExecutionContext, next: Next) -> None:
        hook = context.hook
        hook_id = getattr(hook, "id", None) or context.git_hook_name
        stored = loader(context.project_root, hook_id)
        options = {key: value for key, value in stored.items() if key != "enabled"}
        if options and callable(getattr(hook, "configure", None)):
            hook.configure(options)
        context.config = dict(getattr(hook, "config", None) or options)
        next()

    return apply_config


def ensure_analysis_service(
    factory: Callable[[Path], AnalysisService] = create_analysis_service,
) -> MiddlewareStep:
    """Give the hook an AnalysisService if it was constructed without one."""

    def inject_service(context: ExecutionContext, next: Next) -> None:
        hook = context.hook
        if getattr(hook, "service", None) is None:
            hook.service = factory(context.project_root)
        context.service = hook.service
        next()

    return inject_service


def add_repository_info(context: ExecutionContext, next: Next) -> None:
    """Record branch and recent commits; staged changes for commit-time hooks."""
    git: GitInspector = getattr(context.hook, "git", None) or SubprocessGitInspector(
        context.project_root
    )
    context.repository = {
        "branch": git.current_branch(),
        "recent_commits": git.recent_commits(5),
    }
    if context.git_hook_name in COMMIT_HOOKS:
        context.repository["staged_files"] = git.staged_files()
        context.repository["staged_diff"] = git.staged_diff()
    next()


def create_blocking_middleware(
    blocking_mode: BlockingMode | bool | str | None = None,
    block_on_severity: str | None = None,
) -> MiddlewareStep:
    """
    Mark the result as blocking when an issue meets the severity threshold.

    Meant for the after_execution phase. When ``blocking_mode`` or
    ``block_on_severity`` is None the hook's current settings are used.
    """

    def apply_blocking(context: ExecutionContext, next: Next) -> None:
        next()

        result = context.result
        if result is None or not result.issues:
            return

        mode = BlockingMode.coerce(
            blocking_mode if blocking_mode is not None else getattr(context.hook, "blocking_mode", None)
        )
        if mode is not BlockingMode.BLOCK:
            return

        threshold = Severity.rank_of(
            block_on_severity or getattr(context.hook, "block_on_severity", None) or "high"
        )
        if any(Severity.rank_of(issue.severity) >= threshold for issue in result.issues):
            result.should_block = True
            result.status = HookResultStatus.ERROR

    return apply_blocking


def create_template_loader_middleware(template_dir: Path) -> MiddlewareStep:
    """Merge ``<template_dir>/<git hook name>.json`` into the hook's prompt templates."""

    def load_templates(context: ExecutionContext, next: Next) -> None:
        path = Path(template_dir) / f"{context.git_hook_name}.json"
        if path.exists():
            try:
                templates = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                context.logger.debug(f"Failed to load custom templates: {e}")
            else:
                if isinstance(templates, dict):
                    merged = dict(getattr(context.hook, "prompt_templates", None) or {})
                    merged.update({str(k): str(v) for k, v in templates.items()})
                    context.hook.prompt_templates = merged
        next()

    return load_templates


def register_common_middleware(hook: Any) -> None:
    """Install the standard middleware set on an enhanced hook."""
    hook.use(HookLifecycle.BEFORE_EXECUTION, log_execution)
    hook.use(HookLifecycle.BEFORE_EXECUTION, log_execution_time)
    hook.use(HookLifecycle.BEFORE_EXECUTION, error_handler)
    hook.use(HookLifecycle.BEFORE_EXECUTION, create_config_middleware())
    hook.use(HookLifecycle.BEFORE_EXECUTION, ensure_analysis_service())
    hook.use(
        HookLifecycle.BEFORE_EXECUTION,
        create_template_loader_middleware(Path(hook.project_root) / ".claude" / "templates"),
    )
    hook.use(HookLifecycle.EXECUTION, add_repository_info)

    if hook.git_hook_name in BLOCKING_HOOKS:
        hook.use(HookLifecycle.AFTER_EXECUTION, create_blocking_middleware())
