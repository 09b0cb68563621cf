"""
Capability protocols every hook implementation satisfies.

A hook is described by three capabilities rather than one superclass:

- Configurable: enable/disable state, strictness, schema-driven options
- Installable: writing and removing the physical git hook script
- Executable: the hook's domain logic

``HookContract`` combines them with the identity attributes. ``BaseHook``
implements it by composition (an injected installer and logger), and
legacy hooks satisfy it through the compatibility adapters.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from claude_githooks.core.hooks.models import HookResult
from claude_githooks.core.hooks.schema import ConfigSchema

if TYPE_CHECKING:
    from claude_githooks.core.hooks.middleware import MiddlewareStep


@runtime_checkable
class Configurable(Protocol):
    def is_enabled(self) -> bool: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...

    def set_strictness(self, level: str) -> None: ...


@runtime_checkable
class Installable(Protocol):
    def setup(self) -> bool: ...

    def remove(self) -> bool: ...

    def generate_hook_script(self) -> str: ...


@runtime_checkable
class Executable(Protocol):
    def execute(self, args: list[str]) -> HookResult | None: ...


@runtime_checkable
class HookContract(Configurable, Installable, Executable, Protocol):
    """Everything the registry needs from a hook."""

    name: str
    description: str
    git_hook_name: str


@runtime_checkable
class EnhancedHook(HookContract, Protocol):
    """A hook whose execution runs through a middleware pipeline."""

    def use(self, phase: str, step: MiddlewareStep) -> None: ...

    def run(self, args: list[str]) -> HookResult: ...

    def get_config_schema(self) -> ConfigSchema: ...

    def initialize(self, config: Mapping[str, Any]) -> None: ...


ENHANCED_METHODS = ("use", "run", "get_config_schema")


def is_enhanced(hook: Any) -> bool:
    """Whether a hook class or instance supports the middleware pipeline."""
    return all(callable(getattr(hook, attr, None)) for attr in ENHANCED_METHODS)
