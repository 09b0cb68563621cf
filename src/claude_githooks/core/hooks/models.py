"""
Hook data models for claude-githooks.

Defines the enumerations shared across the framework (hook sources,
strictness, blocking mode, severities), the static identity of a hook,
the descriptors produced by discovery, and the result records returned
by hook execution and bulk registry operations.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HookSource(str, Enum):
    """Where a hook implementation was discovered."""

    CORE = "core"
    PROJECT = "project"
    PLUGIN = "plugin"
    USER = "user"


class Strictness(str, Enum):
    """Sensitivity dial passed through to analysis; opaque to the framework."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BlockingMode(str, Enum):
    """
    Policy for negative findings.

    block stops the git operation, warn reports and proceeds,
    none stays silent.
    """

    BLOCK = "block"
    WARN = "warn"
    NONE = "none"

    @classmethod
    def coerce(cls, value: BlockingMode | bool | str | None) -> BlockingMode:
        """
        Translate any accepted representation into a BlockingMode.

        Legacy hooks used a boolean: True meant block, False meant warn.

        Raises:
            ValueError: If a string is not a known mode
        """
        if isinstance(value, BlockingMode):
            return value
        if value is None:
            return cls.WARN
        if isinstance(value, bool):
            return cls.BLOCK if value else cls.WARN
        return cls(str(value))


class Severity(str, Enum):
    """Issue severity, ordered by rank."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.value]

    @classmethod
    def rank_of(cls, value: str | None) -> int:
        """Rank for a raw severity string; unknown values rank as none."""
        if value is None:
            return 0
        return SEVERITY_RANK.get(str(value).lower(), 0)


SEVERITY_RANK = {"none": 0, "low": 1, "medium": 2, "high": 3, "critical": 4}


class HookResultStatus(str, Enum):
    """Outcome of a single hook execution."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"
    FAILURE = "failure"


class HookDefinition(BaseModel):
    """
    Identity and static metadata of a hook.

    ``id`` is the registry key and normally the git hook filename;
    ``git_hook_name`` differs when several logical hooks share one git hook.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique hook identifier")
    name: str = Field(description="Display name")
    description: str = Field(default="", description="What the hook does")
    git_hook_name: str = Field(description="Physical git hook this fires under")
    source: HookSource = Field(default=HookSource.CORE, description="Discovery source")


class HookModuleDescriptor(BaseModel):
    """
    A discoverable hook implementation, before it is loaded.

    The resolver turns the descriptor into a hook class. File sources
    import the module at ``path``; plugin sources load an entry point.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(description="Hook identifier (inferred from filename or declared)")
    name: str = Field(description="Filename or declared display name")
    path: str = Field(description="Filesystem path or module:attr target")
    source: HookSource = Field(description="Which discovery source produced this")
    git_hook_name: str | None = Field(default=None, description="Declared git hook name")
    description: str | None = Field(default=None, description="Declared description")
    version: str | None = Field(default=None, description="Plugin package version")
    last_modified: datetime | None = Field(default=None, description="File mtime")
    size: int | None = Field(default=None, description="File size in bytes")
    resolver: Callable[[], Any] | None = Field(
        default=None, exclude=True, repr=False, description="Produces the hook class"
    )


class HookIssue(BaseModel):
    """A single finding reported by a hook."""

    severity: str = Field(default="medium", description="critical, high, medium, low")
    description: str = Field(description="Human-readable finding")
    file: str = Field(default="", description="Related file, if any")
    line: str = Field(default="", description="Related line, if any")


class HookResult(BaseModel):
    """Result of running a hook through its pipeline."""

    status: HookResultStatus = Field(description="Outcome status")
    message: str = Field(default="", description="Human-readable summary")
    data: dict[str, Any] = Field(default_factory=dict, description="Hook-specific output")
    should_block: bool = Field(default=False, description="Whether to abort the git operation")
    issues: list[HookIssue] = Field(default_factory=list, description="Findings")

    @classmethod
    def success(cls, message: str = "", data: dict[str, Any] | None = None) -> HookResult:
        return cls(status=HookResultStatus.SUCCESS, message=message, data=data or {})

    @classmethod
    def skipped(cls, message: str) -> HookResult:
        return cls(status=HookResultStatus.SKIPPED, message=message)

    @classmethod
    def failure(cls, message: str, *, should_block: bool = False) -> HookResult:
        return cls(
            status=HookResultStatus.FAILURE,
            message=message,
            should_block=should_block,
            issues=[HookIssue(severity="high", description=message)],
        )

    @property
    def failed(self) -> bool:
        return self.status in (HookResultStatus.FAILURE, HookResultStatus.ERROR)


class BulkOperationResult(BaseModel):
    """Per-hook outcome of a registry-wide setup or removal."""

    success: list[str] = Field(default_factory=list, description="Hook names that succeeded")
    failed: list[str] = Field(default_factory=list, description="Hook names that failed")

    @property
    def ok(self) -> bool:
        return not self.failed
