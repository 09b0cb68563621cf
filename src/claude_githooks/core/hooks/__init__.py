"""
Git hook framework: contracts, configuration, discovery and execution.

Hooks are Python classes that fire under a git hook name (``commit-msg``,
``pre-push``, ...). A project keeps their options in ``.claude/hooks.json``;
the registry instantiates them, installs thin shell scripts into
``.git/hooks`` and, when git invokes one of those scripts, runs every
enabled hook for that git hook through its middleware pipeline.

Key Modules:
    schema: ConfigSchema, validation and defaults
    base_hook: BaseHook, the shared hook implementation
    middleware: MiddlewarePipeline and the standard middleware
    discovery: core, project, plugin and user hook sources
    registry: HookRegistry, bulk setup/removal and persistence
    compat: adapters between legacy and middleware-capable hooks
    runner: entry point used by the installed git hook scripts

Only the dependency-free modules are re-exported here; import the others
from their own modules.

Usage:
    from claude_githooks.core.hooks.registry import HookRegistry
    from claude_githooks.core.hooks.discovery import discover_all_hooks

    registry = HookRegistry(project_root)
    registry.register_discovered_hooks(discover_all_hooks(project_root))
    registry.load_config()
"""

from claude_githooks.core.hooks.errors import (
    ConfigurationError,
    DiscoveryError,
    HookError,
    HookNotFoundError,
    ServiceError,
)
from claude_githooks.core.hooks.models import (
    BlockingMode,
    BulkOperationResult,
    HookDefinition,
    HookIssue,
    HookModuleDescriptor,
    HookResult,
    HookResultStatus,
    HookSource,
    Severity,
    Strictness,
)

__all__ = [
    "BlockingMode",
    "BulkOperationResult",
    "ConfigurationError",
    "DiscoveryError",
    "HookDefinition",
    "HookError",
    "HookIssue",
    "HookModuleDescriptor",
    "HookNotFoundError",
    "HookResult",
    "HookResultStatus",
    "HookSource",
    "ServiceError",
    "Severity",
    "Strictness",
]
