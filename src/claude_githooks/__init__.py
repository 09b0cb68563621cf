"""
claude-githooks - AI-assisted git lifecycle hooks

Installs git hooks that delegate commit-message validation, code review,
security audits and merge summaries to an external AI service, with local
heuristics when that service is unavailable.
"""

__version__ = "0.4.0"

from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.models import BlockingMode, HookResult, HookSource, Strictness
from claude_githooks.core.hooks.registry import HookRegistry

__all__ = [
    "BaseHook",
    "BlockingMode",
    "HookRegistry",
    "HookResult",
    "HookSource",
    "Strictness",
    "__version__",
]
