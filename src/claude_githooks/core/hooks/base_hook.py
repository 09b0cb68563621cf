"""
Shared behavior for hook implementations.

``BaseHook`` implements the hook contract by composing injected parts:

- a ``HookLogger`` for all output (console sink by default)
- a ``ScriptInstaller`` that writes, backs up and restores the git hook file
- a ``MiddlewarePipeline`` that wraps every execution
- optional ``AnalysisService`` and ``GitInspector`` collaborators

A concrete hook declares its identity as class attributes and overrides
``execute()``:

    class CommitMsgHook(BaseHook):
        name = "Commit Message Validator"
        description = "Validates commit messages"
        git_hook_name = "commit-msg"

        def execute(self, args):
            ...
            return HookResult.success("Message looks good")

    HOOK_CLASS = CommitMsgHook

Options come from the hook's ConfigSchema (camelCase keys as stored in
``.claude/hooks.json``) and are applied with ``initialize()``.
"""

from __future__ import annotations

import json
import shlex
import subprocess
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, ClassVar

from claude_githooks.core.config.env import read_env_file
from claude_githooks.core.config.loader import load_settings
from claude_githooks.core.config.models import FrameworkSettings
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.installer import OWNERSHIP_MARKER, ScriptInstaller
from claude_githooks.core.hooks.logger import HookLogger, default_logger
from claude_githooks.core.hooks.middleware import (
    ExecutionContext,
    HookLifecycle,
    MiddlewarePipeline,
    MiddlewareStep,
)
from claude_githooks.core.hooks.models import (
    SEVERITY_RANK,
    BlockingMode,
    HookDefinition,
    HookResult,
    HookSource,
    Severity,
    Strictness,
)
from claude_githooks.core.hooks.schema import (
    ConfigSchema,
    ValidationResult,
    apply_defaults,
    get_schema,
    validate_config,
)
from claude_githooks.core.services.analysis import AnalysisService
from claude_githooks.utils.git import GitInspector, SubprocessGitInspector


class BaseHook:
    """
    Base implementation of an enhanced (middleware-capable) hook.

    Subclasses set ``name``, ``description`` and ``git_hook_name``, and may
    set ``schema`` when their options differ from the schema registered for
    their id.
    """

    name: ClassVar[str] = "Base Hook"
    description: ClassVar[str] = ""
    git_hook_name: ClassVar[str] = ""
    schema: ClassVar[ConfigSchema | None] = None

    def __init__(
        self,
        project_root: Path | str | None = None,
        *,
        logger: HookLogger | None = None,
        dry_run: bool = False,
        options: Mapping[str, Any] | None = None,
        hook_id: str | None = None,
        service: AnalysisService | None = None,
        git: GitInspector | None = None,
        installer: ScriptInstaller | None = None,
        settings: FrameworkSettings | None = None,
    ):
        self.id = hook_id or self.git_hook_name
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self.logger = logger or default_logger()
        self.dry_run = dry_run
        self.service = service
        self.git = git or SubprocessGitInspector(self.project_root)
        self.installer = installer or ScriptInstaller(
            self.project_root, self.git_hook_name, self.logger, dry_run
        )
        self.settings = settings
        self.pipeline = MiddlewarePipeline()
        self.prompt_templates: dict[str, str] = {}
        self.context: ExecutionContext | None = None

        self.enabled = False
        self.strictness = Strictness.MEDIUM
        self.blocking_mode = BlockingMode.WARN
        self.block_on_severity = Severity.HIGH.value
        self.prefer_cli = True
        self.config: dict[str, Any] = {}

        self.initialize(options or {})

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} enabled={self.enabled}>"

    # ------------------------------------------------------------------
    # Configurable
    # ------------------------------------------------------------------

    def is_enabled(self) -> bool:
        return self.enabled

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def set_strictness(self, level: Strictness | str) -> None:
        """
        Raises:
            ValueError: If ``level`` is not low, medium or high
        """
        self.strictness = Strictness(level)
        self.config["strictness"] = self.strictness.value

    def get_config_schema(self) -> ConfigSchema:
        return self.schema or get_schema(self.id)

    def validate_config(self, config: Mapping[str, Any]) -> ValidationResult:
        return validate_config(config, self.get_config_schema())

    def definition(self, source: HookSource = HookSource.CORE) -> HookDefinition:
        return HookDefinition(
            id=self.id,
            name=self.name,
            description=self.description,
            git_hook_name=self.git_hook_name,
            source=source,
        )

    def initialize(self, config: Mapping[str, Any]) -> None:
        """
        Apply a full configuration, including ``enabled``.

        Validation problems are reported through the logger; invalid values
        for the common options are ignored and the current value is kept.
        """
        result = self.validate_config(config)
        for error in result.errors:
            self.logger.warn(f"{self.name}: {error}")

        effective = apply_defaults(config, self.get_config_schema())
        if isinstance(effective.get("enabled"), bool):
            self.enabled = effective["enabled"]
        self.configure({key: value for key, value in effective.items() if key != "enabled"})
        self.config["enabled"] = self.enabled

    def configure(self, options: Mapping[str, Any]) -> None:
        """Apply options without touching the enabled state."""
        if "strictness" in options:
            try:
                self.strictness = Strictness(options["strictness"])
            except ValueError:
                self.logger.warn(f"{self.name}: ignoring invalid strictness {options['strictness']!r}")

        if "blockingMode" in options:
            try:
                self.blocking_mode = BlockingMode.coerce(options["blockingMode"])
            except ValueError:
                self.logger.warn(
                    f"{self.name}: ignoring invalid blockingMode {options['blockingMode']!r}"
                )

        severity = options.get("blockOnSeverity")
        if severity is not None:
            if str(severity) in SEVERITY_RANK:
                self.block_on_severity = str(severity)
            else:
                self.logger.warn(f"{self.name}: ignoring invalid blockOnSeverity {severity!r}")

        if isinstance(options.get("preferCli"), bool):
            self.prefer_cli = options["preferCli"]

        self.config.update(options)
        self.config["strictness"] = self.strictness.value
        self.config["blockingMode"] = self.blocking_mode.value

    # ------------------------------------------------------------------
    # Installable
    # ------------------------------------------------------------------

    @property
    def hook_path(self) -> Path:
        return self.installer.hook_path

    def generate_hook_script(self) -> str:
        """POSIX shell script that dispatches back into the framework runner."""
        generated = datetime.now(timezone.utc).isoformat()
        return (
            "#!/bin/sh\n"
            f"# {OWNERSHIP_MARKER}: {self.name}\n"
            f"# Description: {self.description}\n"
            f"# Generated: {generated}\n"
            "#\n"
            "# Remove with: claude-githooks remove\n"
            "\n"
            f'exec "{sys.executable}" -m claude_githooks run {self.git_hook_name} "$@"\n'
        )

    def setup(self) -> bool:
        """Install the git hook script. Disabled hooks are not installed."""
        if not self.enabled:
            self.logger.debug(f"Hook {self.name} is disabled, skipping setup")
            return False

        if self.dry_run:
            self.logger.info(f"Would set up hook {self.name} ({self.git_hook_name})")
            return True

        try:
            self.installer.install(self.generate_hook_script())
        except OSError as e:
            self.logger.error(f"Failed to set up hook {self.name}: {e}")
            self._run_lifecycle(HookLifecycle.ERROR, error=e)
            return False

        self.logger.success(f"Hook {self.name} ({self.git_hook_name}) installed at {self.hook_path}")
        self._run_lifecycle(HookLifecycle.AFTER_SETUP, hook_path=self.hook_path)
        return True

    def remove(self) -> bool:
        """Remove the git hook script if it is ours, restoring any backup."""
        self._run_lifecycle(HookLifecycle.BEFORE_REMOVE)
        owned = self.installer.is_owned()
        try:
            removed = self.installer.uninstall()
        except OSError as e:
            self.logger.error(f"Failed to remove hook {self.name}: {e}")
            self._run_lifecycle(HookLifecycle.ERROR, error=e)
            return False

        if removed and owned and not self.dry_run:
            self.logger.success(f"Hook {self.name} ({self.git_hook_name}) removed")
        return removed

    # ------------------------------------------------------------------
    # Executable
    # ------------------------------------------------------------------

    def execute(self, args: list[str]) -> HookResult | None:
        """Domain logic of the hook. Must be overridden."""
        raise NotImplementedError(f"{type(self).__name__} must implement execute()")

    def use(self, phase: str, step: MiddlewareStep) -> None:
        self.pipeline.use(phase, step)

    def create_context(self, args: list[str]) -> ExecutionContext:
        return ExecutionContext(
            hook=self,
            git_hook_name=self.git_hook_name,
            args=list(args),
            project_root=self.project_root,
            logger=self.logger,
            config=dict(self.config),
            service=self.service,
        )

    def should_execute(self, context: ExecutionContext) -> bool:
        return self.enabled

    def run(self, args: list[str]) -> HookResult:
        """
        Execute the hook through its middleware pipeline.

        Exceptions not absorbed by an error-handling middleware propagate.
        """
        context = self.create_context(args)

        def core(ctx: ExecutionContext) -> HookResult:
            if not self.should_execute(ctx):
                self.logger.info(f"Hook {self.name} skipped execution")
                return HookResult.skipped(f"Hook {self.name} skipped execution")
            outcome = self.execute(ctx.args)
            if outcome is None:
                return HookResult.success(f"Hook {self.name} completed")
            return outcome

        self.context = context
        try:
            return self.pipeline.run(context, core)
        finally:
            self.context = None

    def _run_lifecycle(self, phase: str, **extras: Any) -> None:
        context = self.create_context([])
        context.extras.update(extras)
        if "error" in extras:
            context.error = extras["error"]
        self.pipeline.run_phase(phase, context)

    # ------------------------------------------------------------------
    # Helpers for hook implementations
    # ------------------------------------------------------------------

    def execute_command(self, command: str | list[str]) -> str:
        """Run a command in the project root; failures log and return ''."""
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        try:
            result = subprocess.run(
                argv,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f'Failed to execute command "{" ".join(argv)}": {e}')
            return ""
        return result.stdout

    def load_env(self) -> dict[str, str]:
        """Values from the project's ``.env`` file."""
        try:
            return read_env_file(self.project_root / ".env")
        except OSError as e:
            self.logger.warn(f"Failed to load .env file: {e}")
            return {}

    def get_settings(self) -> FrameworkSettings:
        if self.settings is None:
            self.settings = load_settings(self.project_root)
        return self.settings

    def analyze(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        cache_response: bool = False,
    ) -> str:
        """
        Send a prompt to the analysis service with the framework settings.

        Raises:
            ServiceError: If no service is available or the call fails
        """
        if self.service is None:
            raise ServiceError("No analysis service configured")
        settings = self.get_settings()
        return self.service.analyze(
            prompt,
            model=settings.model,
            max_tokens=max_tokens or settings.max_tokens,
            temperature=settings.temperature if temperature is None else temperature,
            cache_response=cache_response and settings.cache_enabled,
        )

    def load_prompt_templates(self) -> None:
        path = self.project_root / ".claude" / "templates" / f"{self.git_hook_name}.json"
        if not path.exists():
            self.logger.debug(f"No prompt templates found at {path}, using defaults")
            return
        try:
            templates = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            self.logger.debug(f"Failed to load prompt templates: {e}")
            return
        if isinstance(templates, dict):
            self.prompt_templates.update({str(k): str(v) for k, v in templates.items()})
            self.logger.debug(f"Loaded prompt templates from {path}")

    def get_prompt_template(self, template_name: str) -> str | None:
        return self.prompt_templates.get(template_name)

    def format_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        """Fill ``{{var}}`` placeholders, or build the fallback prompt."""
        template = self.get_prompt_template(template_name)
        if template is None:
            self.logger.debug(f"Prompt template '{template_name}' not found, using fallback")
            return self.get_fallback_prompt(template_name, variables)

        for key, value in variables.items():
            template = template.replace("{{" + key + "}}", str(value))
        return template

    def get_fallback_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        context = json.dumps(dict(variables), indent=2, default=str)
        return (
            f"You are a Git expert. Please provide advice about {template_name}.\n\n"
            f"Context:\n{context}"
        )

    def handle_blocking(self, severity: str, message: str) -> bool:
        """
        Report a finding and decide whether it blocks the git operation.

        Returns:
            True when blocking mode is ``block`` and ``severity`` reaches
            ``block_on_severity``
        """
        rank = Severity.rank_of(severity)
        if rank >= Severity.HIGH.rank:
            self.logger.error(message)
        elif rank >= Severity.MEDIUM.rank:
            self.logger.warn(message)
        else:
            self.logger.info(message)

        return self.blocking_mode is BlockingMode.BLOCK and rank >= Severity.rank_of(
            self.block_on_severity
        )
