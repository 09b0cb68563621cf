"""
Hook registry.

The registry owns the configured hook instances for one project, keyed by
hook id in registration order. It instantiates hook classes, persists
their configuration to ``.claude/hooks.json``, and drives bulk setup and
removal with per-hook isolation: one hook failing never stops the others.

Usage:
    from claude_githooks.core.hooks.discovery import discover_all_hooks
    from claude_githooks.core.hooks.registry import HookRegistry

    registry = HookRegistry(project_root)
    registry.register_discovered_hooks(discover_all_hooks(project_root))
    registry.load_config()
    registry.enable_hook("commit-msg")
    result = registry.setup_hooks()
    print(result.success, result.failed)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from claude_githooks.core.hooks.compat import EnhancedHookAdapter
from claude_githooks.core.hooks.config import (
    config_file_path,
    read_config_document,
    write_config_document,
)
from claude_githooks.core.hooks.discovery import load_hook_module
from claude_githooks.core.hooks.errors import HookNotFoundError
from claude_githooks.core.hooks.interfaces import is_enhanced
from claude_githooks.core.hooks.logger import HookLogger, default_logger
from claude_githooks.core.hooks.middleware import register_common_middleware
from claude_githooks.core.hooks.models import (
    BlockingMode,
    BulkOperationResult,
    HookModuleDescriptor,
    HookResult,
    Strictness,
)
from claude_githooks.core.hooks.schema import ConfigSchema, get_schema
from claude_githooks.core.services.analysis import AnalysisService
from claude_githooks.utils.git import GitInspector

logger = logging.getLogger(__name__)


class HookRegistry:
    """
    Registry of hook instances for a project.

    Every hook stored here is enhanced (middleware-capable); legacy hook
    classes are wrapped in an EnhancedHookAdapter at registration time and
    their raw instances kept in ``legacy_hooks``.
    """

    def __init__(
        self,
        project_root: Path | str | None = None,
        *,
        logger: HookLogger | None = None,
        dry_run: bool = False,
        service: AnalysisService | None = None,
        git: GitInspector | None = None,
        common_middleware: bool = True,
    ):
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self.logger = logger or default_logger()
        self.dry_run = dry_run
        self.service = service
        self.git = git
        self.common_middleware = common_middleware
        self.hooks: dict[str, Any] = {}
        self.legacy_hooks: dict[str, Any] = {}
        self.hook_dependencies: dict[str, list[str]] = {}

    @property
    def config_file(self) -> Path:
        return config_file_path(self.project_root)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_hook(
        self, hook_id: str, hook_class: type, defaults: Mapping[str, Any] | None = None
    ) -> Any:
        """
        Instantiate ``hook_class`` and store it under ``hook_id``.

        The instance receives the schema defaults for ``hook_id`` overlaid
        with ``defaults``. A duplicate id overwrites the previous instance
        with a warning.
        """
        if hook_id in self.hooks:
            self.logger.warn(f"Hook with ID {hook_id} already registered, overwriting")

        schema = getattr(hook_class, "schema", None)
        if not isinstance(schema, ConfigSchema):
            schema = get_schema(hook_id)
        options = copy.deepcopy(schema.defaults)
        options.update(copy.deepcopy(dict(defaults or {})))

        if is_enhanced(hook_class):
            hook = hook_class(
                self.project_root,
                logger=self.logger,
                dry_run=self.dry_run,
                options=options,
                hook_id=hook_id,
                service=self.service,
                git=self.git,
            )
            self.legacy_hooks.pop(hook_id, None)
        else:
            legacy = hook_class(
                self.project_root, logger=self.logger, dry_run=self.dry_run, options=options
            )
            self.legacy_hooks[hook_id] = legacy
            hook = EnhancedHookAdapter(
                legacy,
                hook_id=hook_id,
                project_root=self.project_root,
                logger=self.logger,
                service=self.service,
                git=self.git,
            )

        if self.common_middleware:
            register_common_middleware(hook)

        self.hooks[hook_id] = hook
        logger.debug("Registered hook %s (%s)", hook_id, type(hook).__name__)
        return hook

    def register_discovered_hooks(self, descriptors: Iterable[HookModuleDescriptor]) -> list[str]:
        """
        Load and register each descriptor under its id, in order.

        Descriptors that fail to load are skipped.

        Returns:
            Ids registered, in registration order
        """
        registered = []
        for descriptor in descriptors:
            hook_class = load_hook_module(descriptor)
            if hook_class is None:
                continue
            try:
                self.register_hook(descriptor.id, hook_class)
            except Exception as e:
                self.logger.error(f"Failed to register hook {descriptor.id}: {e}")
                continue
            registered.append(descriptor.id)
        return registered

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_hook(self, hook_id: str) -> Any | None:
        return self.hooks.get(hook_id)

    def get_all_hooks(self) -> dict[str, Any]:
        return dict(self.hooks)

    def get_hooks_list(self) -> list[Any]:
        return list(self.hooks.values())

    def get_enabled_hooks(self) -> list[Any]:
        return [hook for hook in self.hooks.values() if hook.is_enabled()]

    def get_hook_by_git_hook_name(self, git_hook_name: str) -> Any | None:
        return next(
            (hook for hook in self.hooks.values() if hook.git_hook_name == git_hook_name), None
        )

    def get_hooks_for_git_hook(self, git_hook_name: str) -> list[tuple[str, Any]]:
        """All (id, hook) pairs that fire under ``git_hook_name``."""
        return [
            (hook_id, hook)
            for hook_id, hook in self.hooks.items()
            if hook.git_hook_name == git_hook_name
        ]

    # ------------------------------------------------------------------
    # Enable / disable
    # ------------------------------------------------------------------

    def enable_hook(self, hook_id: str) -> bool:
        hook = self.get_hook(hook_id)
        if hook is None:
            return False
        hook.enable()
        return True

    def disable_hook(self, hook_id: str) -> bool:
        hook = self.get_hook(hook_id)
        if hook is None:
            return False
        hook.disable()
        return True

    def enable_hooks(self, hook_ids: Iterable[str]) -> list[str]:
        return [hook_id for hook_id in hook_ids if self.enable_hook(hook_id)]

    def disable_hooks(self, hook_ids: Iterable[str]) -> list[str]:
        return [hook_id for hook_id in hook_ids if self.disable_hook(hook_id)]

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def set_hook_dependencies(self, hook_id: str, dependencies: Iterable[str]) -> None:
        self.hook_dependencies[hook_id] = list(dependencies)

    def get_hook_dependencies(self, hook_id: str) -> list[str]:
        return list(self.hook_dependencies.get(hook_id, []))

    def order_hooks_by_dependencies(self, hook_ids: list[str]) -> list[str]:
        """
        Order ids so dependencies come first.

        Dependencies outside ``hook_ids`` are ignored. A hook caught in a
        cycle is logged and placed in registration order.
        """
        wanted = set(hook_ids)
        visited: set[str] = set()
        ordered: list[str] = []

        def visit(hook_id: str, path: tuple[str, ...]) -> None:
            if hook_id in path:
                raise ValueError(f"Circular dependency detected: {' -> '.join((*path, hook_id))}")
            if hook_id in visited:
                return
            for dependency in self.get_hook_dependencies(hook_id):
                if dependency in wanted:
                    visit(dependency, (*path, hook_id))
            visited.add(hook_id)
            ordered.append(hook_id)

        for hook_id in hook_ids:
            if hook_id in visited:
                continue
            try:
                visit(hook_id, ())
            except ValueError as e:
                self.logger.warn(f"Error ordering hook {hook_id}: {e}")
                if hook_id not in visited:
                    visited.add(hook_id)
                    ordered.append(hook_id)

        return ordered

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def setup_hooks(self) -> BulkOperationResult:
        """Install every enabled hook in dependency order, then save config."""
        results = BulkOperationResult()

        enabled_ids = [hook_id for hook_id, hook in self.hooks.items() if hook.is_enabled()]
        if not enabled_ids:
            self.logger.info("No hooks enabled, skipping setup")
            return results

        self.logger.info(f"Setting up {len(enabled_ids)} enabled hooks...")

        for hook_id in self.order_hooks_by_dependencies(enabled_ids):
            hook = self.hooks[hook_id]
            try:
                self.logger.info(f"Setting up hook: {hook.name} ({hook.git_hook_name})")
                ok = hook.setup()
            except Exception as e:
                self.logger.error(f"Error setting up hook {hook.name}: {e}")
                results.failed.append(hook.name)
                continue

            if ok:
                results.success.append(hook.name)
                self.logger.success(f"Hook {hook.name} set up successfully")
            else:
                results.failed.append(hook.name)
                self.logger.error(f"Failed to set up hook {hook.name}")

        self.save_config()
        return results

    def remove_hooks(self) -> BulkOperationResult:
        """Remove every registered hook, enabled or not."""
        results = BulkOperationResult()

        hooks = self.get_hooks_list()
        if not hooks:
            self.logger.info("No hooks registered, nothing to remove")
            return results

        self.logger.info(f"Removing {len(hooks)} hooks...")

        for hook in hooks:
            try:
                self.logger.info(f"Removing hook: {hook.name} ({hook.git_hook_name})")
                ok = hook.remove()
            except Exception as e:
                self.logger.error(f"Error removing hook {hook.name}: {e}")
                results.failed.append(hook.name)
                continue

            if ok:
                results.success.append(hook.name)
                self.logger.success(f"Hook {hook.name} removed successfully")
            else:
                results.failed.append(hook.name)
                self.logger.error(f"Failed to remove hook {hook.name}")

        return results

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_config(self) -> bool:
        """
        Write registry state into ``hooks.json``.

        Each registered hook's entry gets ``name``, ``gitHookName``,
        ``enabled`` and ``strictness``; other stored options and entries
        for unregistered ids are preserved.
        """
        if self.dry_run:
            self.logger.info("Dry run, skipping config save")
            return True

        document = read_config_document(self.project_root)
        for hook_id, hook in self.hooks.items():
            existing = document["hooks"].get(hook_id)
            entry = dict(existing) if isinstance(existing, dict) else {}
            entry.update(
                {
                    "name": hook.name,
                    "gitHookName": hook.git_hook_name,
                    "enabled": hook.is_enabled(),
                    "strictness": Strictness(hook.strictness).value,
                }
            )
            document["hooks"][hook_id] = entry

        try:
            path = write_config_document(self.project_root, document)
        except OSError as e:
            self.logger.error(f"Failed to save hook configuration: {e}")
            return False

        self.logger.debug(f"Hook configuration saved to {path}")
        return True

    def load_config(self) -> dict[str, Any]:
        """
        Re-apply stored ``enabled`` and ``strictness`` onto registered hooks.

        Entries for ids that are not registered are ignored; no hooks are
        created from file content.
        """
        document = read_config_document(self.project_root)

        for hook_id, entry in document["hooks"].items():
            hook = self.get_hook(hook_id)
            if hook is None or not isinstance(entry, dict):
                continue

            if isinstance(entry.get("enabled"), bool):
                if entry["enabled"]:
                    hook.enable()
                else:
                    hook.disable()

            if "strictness" in entry:
                try:
                    hook.set_strictness(entry["strictness"])
                except ValueError:
                    self.logger.warn(
                        f"Ignoring invalid strictness {entry['strictness']!r} for hook {hook_id}"
                    )

        return document

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run_hook(self, hook_id: str, args: list[str] | None = None) -> HookResult:
        """
        Run one hook through its pipeline.

        A disabled hook yields SKIPPED. An exception escaping the hook
        becomes a FAILURE that blocks only when the hook's blocking mode
        is ``block``.

        Raises:
            HookNotFoundError: If no hook is registered under ``hook_id``
        """
        hook = self.get_hook(hook_id)
        if hook is None:
            raise HookNotFoundError(f"Hook with ID {hook_id} not found")

        if not hook.is_enabled():
            self.logger.info(f"Hook {hook.name} is disabled, skipping execution")
            return HookResult.skipped(f"Hook {hook.name} is disabled")

        try:
            return hook.run(list(args or []))
        except Exception as e:
            self.logger.error(f"Error executing hook {hook.name}: {e}")
            mode = BlockingMode.coerce(getattr(hook, "blocking_mode", None))
            return HookResult.failure(
                f"Error executing hook {hook.name}: {e}",
                should_block=mode is BlockingMode.BLOCK,
            )

    def run_git_hook(self, git_hook_name: str, args: list[str] | None = None) -> dict[str, HookResult]:
        """Run every enabled hook mapped to ``git_hook_name``, in registration order."""
        results: dict[str, HookResult] = {}
        for hook_id, hook in self.get_hooks_for_git_hook(git_hook_name):
            if hook.is_enabled():
                results[hook_id] = self.run_hook(hook_id, args)
        return results
