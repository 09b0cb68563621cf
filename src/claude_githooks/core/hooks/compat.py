"""
Compatibility between legacy and enhanced hooks.

Legacy hooks predate the middleware pipeline: their ``execute(args)`` does
all the work directly, and their ``blocking_mode`` may still be a boolean
(True meant block, False meant warn). Enhanced hooks run through a
``MiddlewarePipeline`` and use the tri-state BlockingMode.

- EnhancedHookAdapter lets a legacy hook be registered and run through a
  pipeline like any enhanced hook.
- LegacyHookAdapter exposes an enhanced hook through the legacy
  direct-call interface.

Neither adapter changes enable/disable, setup or remove behavior; they only
change how ``execute`` is reached.

A legacy hook class is constructed as
``cls(project_root, logger=..., dry_run=..., options=...)`` and provides
``name``, ``description``, ``git_hook_name``, ``is_enabled()``,
``enable()``, ``disable()``, ``setup()``, ``remove()``,
``generate_hook_script()`` and ``execute(args)``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from claude_githooks.core.hooks.interfaces import is_enhanced
from claude_githooks.core.hooks.logger import HookLogger, default_logger
from claude_githooks.core.hooks.middleware import (
    ExecutionContext,
    MiddlewarePipeline,
    MiddlewareStep,
)
from claude_githooks.core.hooks.models import BlockingMode, HookResult, Strictness
from claude_githooks.core.hooks.schema import ConfigSchema, get_schema
from claude_githooks.core.services.analysis import AnalysisService
from claude_githooks.utils.git import GitInspector


@runtime_checkable
class LegacyHook(Protocol):
    name: str
    description: str
    git_hook_name: str

    def is_enabled(self) -> bool: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...

    def setup(self) -> bool: ...

    def remove(self) -> bool: ...

    def generate_hook_script(self) -> str: ...

    def execute(self, args: list[str]) -> Any: ...


def legacy_blocking_mode(hook: Any) -> BlockingMode:
    """Read a hook's blocking mode, translating the legacy boolean form."""
    try:
        return BlockingMode.coerce(getattr(hook, "blocking_mode", None))
    except ValueError:
        return BlockingMode.WARN


class EnhancedHookAdapter:
    """Run a legacy hook through a middleware pipeline."""

    def __init__(
        self,
        legacy: LegacyHook,
        *,
        hook_id: str | None = None,
        project_root: Path | str | None = None,
        logger: HookLogger | None = None,
        service: AnalysisService | None = None,
        git: GitInspector | None = None,
    ):
        self.legacy = legacy
        self.id = hook_id or legacy.git_hook_name
        self.project_root = Path(
            project_root if project_root is not None else getattr(legacy, "project_root", Path.cwd())
        )
        self.logger = logger or getattr(legacy, "logger", None) or default_logger()
        self.service = service
        self.git = git
        self.pipeline = MiddlewarePipeline()
        self.prompt_templates: dict[str, str] = {}
        self.config: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<EnhancedHookAdapter {self.legacy!r}>"

    # Identity comes from the wrapped hook
    @property
    def name(self) -> str:
        return self.legacy.name

    @property
    def description(self) -> str:
        return self.legacy.description

    @property
    def git_hook_name(self) -> str:
        return self.legacy.git_hook_name

    @property
    def blocking_mode(self) -> BlockingMode:
        return legacy_blocking_mode(self.legacy)

    @property
    def block_on_severity(self) -> str:
        return str(getattr(self.legacy, "block_on_severity", "high"))

    @property
    def strictness(self) -> Strictness:
        return Strictness(getattr(self.legacy, "strictness", Strictness.MEDIUM))

    def is_enabled(self) -> bool:
        return self.legacy.is_enabled()

    def enable(self) -> None:
        self.legacy.enable()

    def disable(self) -> None:
        self.legacy.disable()

    def set_strictness(self, level: Strictness | str) -> None:
        level = Strictness(level)
        setter = getattr(self.legacy, "set_strictness", None)
        if callable(setter):
            setter(level.value)
        else:
            self.legacy.strictness = level.value

    def setup(self) -> bool:
        return self.legacy.setup()

    def remove(self) -> bool:
        return self.legacy.remove()

    def generate_hook_script(self) -> str:
        return self.legacy.generate_hook_script()

    def get_config_schema(self) -> ConfigSchema:
        return get_schema(self.id)

    def initialize(self, config: Mapping[str, Any]) -> None:
        if "enabled" in config:
            if config["enabled"]:
                self.enable()
            else:
                self.disable()
        self.configure({key: value for key, value in config.items() if key != "enabled"})

    def configure(self, options: Mapping[str, Any]) -> None:
        """Copy options onto the legacy hook's matching attributes."""
        if "strictness" in options:
            try:
                self.set_strictness(options["strictness"])
            except ValueError:
                self.logger.warn(f"{self.name}: ignoring invalid strictness {options['strictness']!r}")
        if "blockingMode" in options and hasattr(self.legacy, "blocking_mode"):
            self.legacy.blocking_mode = options["blockingMode"]
        self.config.update(options)

    def use(self, phase: str, step: MiddlewareStep) -> None:
        self.pipeline.use(phase, step)

    def execute(self, args: list[str]) -> Any:
        return self.legacy.execute(args)

    def run(self, args: list[str]) -> HookResult:
        context = ExecutionContext(
            hook=self,
            git_hook_name=self.git_hook_name,
            args=list(args),
            project_root=self.project_root,
            logger=self.logger,
            config=dict(self.config),
            service=self.service,
        )
        context.extras["legacy_hook"] = self.legacy

        def core(ctx: ExecutionContext) -> HookResult:
            outcome = self.legacy.execute(ctx.args)
            if isinstance(outcome, HookResult):
                return outcome
            return HookResult.success(f"Hook {self.name} executed successfully")

        try:
            return self.pipeline.run(context, core)
        except Exception as e:
            return HookResult.failure(
                f"Error executing hook {self.name}: {e}",
                should_block=self.blocking_mode is BlockingMode.BLOCK,
            )


class LegacyHookAdapter:
    """
    Present an enhanced hook through the legacy direct-call interface.

    ``execute(args)`` runs the full pipeline and returns its HookResult;
    ``blocking_mode`` is reported as the legacy boolean.
    """

    def __init__(self, hook: Any):
        self.hook = hook

    def __getattr__(self, item: str) -> Any:
        if item == "hook":
            raise AttributeError(item)
        return getattr(self.hook, item)

    @property
    def name(self) -> str:
        return self.hook.name

    @property
    def description(self) -> str:
        return self.hook.description

    @property
    def git_hook_name(self) -> str:
        return self.hook.git_hook_name

    @property
    def blocking_mode(self) -> bool:
        return BlockingMode.coerce(self.hook.blocking_mode) is BlockingMode.BLOCK

    def is_enabled(self) -> bool:
        return self.hook.is_enabled()

    def enable(self) -> None:
        self.hook.enable()

    def disable(self) -> None:
        self.hook.disable()

    def setup(self) -> bool:
        return self.hook.setup()

    def remove(self) -> bool:
        return self.hook.remove()

    def generate_hook_script(self) -> str:
        return self.hook.generate_hook_script()

    def execute(self, args: list[str]) -> HookResult:
        return self.hook.run(args)


def ensure_enhanced(hook: Any, hook_id: str | None = None) -> Any:
    """Return ``hook`` unchanged if it is enhanced, else wrap it."""
    if is_enhanced(hook):
        return hook
    return EnhancedHookAdapter(hook, hook_id=hook_id)


def ensure_legacy(hook: Any) -> Any:
    """Return a direct-call view of ``hook``."""
    if isinstance(hook, EnhancedHookAdapter):
        return hook.legacy
    if is_enhanced(hook):
        return LegacyHookAdapter(hook)
    return hook
