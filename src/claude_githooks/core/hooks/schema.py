"""
Declarative configuration schemas for hooks.

A schema lists the options a hook kind accepts (``properties``), which of
them must be present (``required``) and the values used when they are not
(``defaults``). Schemas are immutable values; specialised schemas are built
from a base with ``extend_schema`` rather than by mutating shared dicts.

Validation and defaulting are separate passes so that what the user set
explicitly can still be told apart from what the schema filled in:

    result = validate_config(config, COMMIT_MSG_SCHEMA)
    if not result.is_valid:
        for error in result.errors:
            print(error)
    effective = apply_defaults(config, COMMIT_MSG_SCHEMA)

Unknown properties are reported but do not make a config invalid, so newer
config files still load on older installs.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from claude_githooks.core.hooks.errors import ConfigurationError

PropertyType = Literal["boolean", "string", "number", "array", "object"]


class PropertySpec(BaseModel):
    """Type information for a single configuration property."""

    model_config = ConfigDict(frozen=True)

    type: PropertyType = Field(description="Primitive kind of the value")
    enum: tuple[Any, ...] | None = Field(default=None, description="Allowed values")
    items: PropertySpec | None = Field(default=None, description="Element spec for arrays")
    properties: dict[str, PropertySpec] | None = Field(
        default=None, description="Nested property specs for objects"
    )
    defaults: dict[str, Any] | None = Field(
        default=None, description="Defaults for nested object properties"
    )
    description: str = Field(default="", description="Human-readable description")


class ConfigSchema(BaseModel):
    """
    Schema for one hook kind.

    Every required key must have a default, so applying defaults to an
    empty config always yields a valid one.
    """

    model_config = ConfigDict(frozen=True)

    properties: dict[str, PropertySpec] = Field(default_factory=dict)
    required: tuple[str, ...] = Field(default=())
    defaults: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _required_keys_have_defaults(self) -> ConfigSchema:
        missing = [key for key in self.required if key not in self.defaults]
        if missing:
            raise ValueError(f"Required properties without defaults: {', '.join(missing)}")
        return self


class ValidationResult(BaseModel):
    """Outcome of validating a config against a schema."""

    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)

    def raise_for_errors(self) -> None:
        """Raise ConfigurationError if the config was invalid."""
        if not self.is_valid:
            raise ConfigurationError(
                "Invalid hook configuration: " + "; ".join(self.errors), self.errors
            )


def prop(
    type: PropertyType,
    description: str = "",
    *,
    enum: Iterable[Any] | None = None,
    items: PropertySpec | None = None,
    properties: Mapping[str, PropertySpec] | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> PropertySpec:
    """Shorthand for building a PropertySpec."""
    return PropertySpec(
        type=type,
        description=description,
        enum=tuple(enum) if enum is not None else None,
        items=items,
        properties=dict(properties) if properties is not None else None,
        defaults=dict(defaults) if defaults is not None else None,
    )


def build_schema(
    properties: Mapping[str, PropertySpec],
    required: Iterable[str] = (),
    defaults: Mapping[str, Any] | None = None,
) -> ConfigSchema:
    """Build a schema value, copying every container passed in."""
    return ConfigSchema(
        properties=dict(properties),
        required=tuple(required),
        defaults=copy.deepcopy(dict(defaults or {})),
    )


def extend_schema(
    base: ConfigSchema,
    *,
    properties: Mapping[str, PropertySpec] | None = None,
    required: Iterable[str] = (),
    defaults: Mapping[str, Any] | None = None,
) -> ConfigSchema:
    """
    Derive a specialised schema from ``base``.

    A property redeclared in ``properties`` replaces the base PropertySpec
    entirely; there is no field-level merge. Defaults override per key and
    required keys are appended after the base's.

    Raises:
        ValueError: If a required key ends up without a default
    """
    merged_required = list(base.required)
    for key in required:
        if key not in merged_required:
            merged_required.append(key)

    merged_defaults = copy.deepcopy(base.defaults)
    merged_defaults.update(copy.deepcopy(dict(defaults or {})))

    return ConfigSchema(
        properties={**base.properties, **dict(properties or {})},
        required=tuple(merged_required),
        defaults=merged_defaults,
    )


def _type_matches(value: Any, expected: PropertyType) -> bool:
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "array":
        return isinstance(value, (list, tuple))
    return isinstance(value, dict)


_TYPE_ARTICLE = {
    "boolean": "a boolean",
    "string": "a string",
    "number": "a number",
    "array": "an array",
    "object": "an object",
}


def _check_value(label: str, value: Any, spec: PropertySpec, errors: list[str]) -> bool:
    """Check one value against its PropertySpec, appending errors. Returns validity."""
    if not _type_matches(value, spec.type):
        errors.append(f"{label} should be {_TYPE_ARTICLE[spec.type]}")
        return False

    valid = True

    if spec.enum is not None and value not in spec.enum:
        errors.append(f"{label} should be one of: {', '.join(str(v) for v in spec.enum)}")
        valid = False

    if spec.type == "array" and spec.items is not None:
        name = label.removeprefix("Property ")
        for index, item in enumerate(value):
            if not _check_value(f"Array item {name}[{index}]", item, spec.items, errors):
                valid = False

    if spec.type == "object" and spec.properties is not None:
        nested = validate_config(value, ConfigSchema(properties=spec.properties))
        key = label.removeprefix("Property ")
        errors.extend(f"In property {key}: {error}" for error in nested.errors)
        if not nested.is_valid:
            valid = False

    return valid


def validate_config(config: Mapping[str, Any], schema: ConfigSchema) -> ValidationResult:
    """
    Validate ``config`` against ``schema``.

    Missing required keys, type mismatches and enum violations make the
    result invalid. Unknown keys are reported as errors without flipping
    ``is_valid``. Arrays are checked element-wise against ``items`` and
    nested objects recursively, with errors prefixed by the property path.
    """
    result = ValidationResult()

    for key in schema.required:
        if key not in config:
            result.is_valid = False
            result.errors.append(f"Missing required property: {key}")

    for key, value in config.items():
        spec = schema.properties.get(key)
        if spec is None:
            result.errors.append(f"Unknown property: {key}")
            continue
        if not _check_value(f"Property {key}", value, spec, result.errors):
            result.is_valid = False

    return result


def apply_defaults(config: Mapping[str, Any], schema: ConfigSchema) -> dict[str, Any]:
    """
    Return a copy of ``config`` with schema defaults filled in.

    Only absent keys are defaulted; explicit values, including False, 0 and
    empty strings, are never overwritten. Object-typed properties whose
    current value is a dict are defaulted recursively; scalar and array
    leaves are not.
    """
    result = dict(config)

    for key, value in schema.defaults.items():
        if key not in result:
            result[key] = copy.deepcopy(value)

    for key, spec in schema.properties.items():
        if spec.type == "object" and spec.properties and isinstance(result.get(key), dict):
            nested = ConfigSchema(properties=spec.properties, defaults=spec.defaults or {})
            result[key] = apply_defaults(result[key], nested)

    return result


# ==============================================================================
# Built-in schemas
# ==============================================================================

SEVERITY_LEVELS = ("critical", "high", "medium", "low", "none")

BASE_HOOK_SCHEMA = build_schema(
    properties={
        "enabled": prop("boolean", "Whether the hook is enabled"),
        "strictness": prop(
            "string", "Level of strictness for hook validation", enum=("low", "medium", "high")
        ),
        "blockingMode": prop(
            "string", "How to respond to issues detected by the hook", enum=("block", "warn", "none")
        ),
        "preferCli": prop("boolean", "Whether to prefer the Claude CLI over the API"),
    },
    required=["enabled"],
    defaults={
        "enabled": False,
        "strictness": "medium",
        "blockingMode": "warn",
        "preferCli": True,
    },
)

PREPARE_COMMIT_MSG_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "mode": prop("string", "Suggest or insert generated messages", enum=("suggest", "insert")),
        "conventionalCommits": prop("boolean", "Use conventional commits format"),
        "includeScope": prop("boolean", "Include scope in conventional commits"),
        "includeBreaking": prop("boolean", "Check for breaking changes"),
        "messageStyle": prop("string", "Style of generated messages", enum=("concise", "detailed")),
    },
    required=["mode"],
    defaults={
        "mode": "suggest",
        "conventionalCommits": True,
        "includeScope": True,
        "includeBreaking": True,
        "messageStyle": "detailed",
    },
)

COMMIT_MSG_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "conventionalCommits": prop("boolean", "Enforce conventional commits format"),
        "checkSpelling": prop("boolean", "Check for spelling errors"),
        "checkGrammar": prop("boolean", "Check for grammar errors"),
        "maxLength": prop(
            "object",
            "Maximum length for subject/body",
            properties={"subject": prop("number"), "body": prop("number")},
            defaults={"subject": 72, "body": 100},
        ),
        "suggestImprovements": prop("boolean", "Suggest improvements"),
    },
    defaults={
        "conventionalCommits": True,
        "checkSpelling": True,
        "checkGrammar": True,
        "maxLength": {"subject": 72, "body": 100},
        "suggestImprovements": True,
    },
)

PRE_PUSH_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "auditTypes": prop(
            "array",
            "Types of audits to perform",
            items=prop(
                "string", enum=("security", "credentials", "sensitive-data", "dependencies")
            ),
        ),
        "excludePatterns": prop(
            "array", "File patterns to exclude from audits", items=prop("string")
        ),
        "maxCommits": prop("number", "Maximum number of commits to audit"),
        "maxDiffSize": prop("number", "Maximum diff size to analyze"),
        "blockOnSeverity": prop("string", "Minimum severity to block push", enum=SEVERITY_LEVELS),
    },
    defaults={
        "auditTypes": ["security", "credentials", "sensitive-data", "dependencies"],
        "excludePatterns": ["**/node_modules/**", "**/dist/**", "**/build/**", "**/*.lock"],
        "maxCommits": 10,
        "maxDiffSize": 100000,
        "blockOnSeverity": "high",
    },
)

POST_HOOK_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "summaryFormat": prop("string", "How detailed summaries should be", enum=("concise", "detailed")),
        "includeStats": prop("boolean", "Include statistics in summaries"),
        "includeDependencies": prop("boolean", "Highlight dependency changes"),
        "includeBreakingChanges": prop("boolean", "Highlight potential breaking changes"),
        "notifyMethod": prop(
            "string", "How to deliver summaries", enum=("terminal", "file", "notification")
        ),
        "outputFile": prop("string", "File to write summaries to if notifyMethod is file"),
        "maxDiffSize": prop("number", "Maximum diff size to analyze"),
    },
    defaults={
        "summaryFormat": "detailed",
        "includeStats": True,
        "includeDependencies": True,
        "includeBreakingChanges": True,
        "notifyMethod": "terminal",
        "maxDiffSize": 100000,
    },
)

PRE_REBASE_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "checkConflicts": prop("boolean", "Check for potential merge conflicts"),
        "checkTestImpact": prop("boolean", "Check for impact on tests"),
        "checkDependencies": prop("boolean", "Check for dependency changes"),
        "blockOnSeverity": prop("string", "Minimum severity to block rebase", enum=SEVERITY_LEVELS),
        "maxDiffSize": prop("number", "Maximum diff size to analyze"),
    },
    defaults={
        "checkConflicts": True,
        "checkTestImpact": False,
        "checkDependencies": True,
        "blockOnSeverity": "high",
        "maxDiffSize": 100000,
    },
)

BRANCH_STRATEGY_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "strategyType": prop(
            "string",
            "Branching strategy to enforce",
            enum=("gitflow", "trunk", "github-flow", "custom"),
        ),
        "branchPrefixes": prop(
            "object",
            "Prefixes for different types of branches",
            properties={
                name: prop("string") for name in ("feature", "bugfix", "hotfix", "release", "support")
            },
        ),
        "mainBranches": prop("array", "List of main branches", items=prop("string")),
        "protectedBranches": prop("array", "List of protected branches", items=prop("string")),
        "releasePattern": prop("string", "Regex pattern for release branches"),
        "validateWithClaude": prop("boolean", "Use the analysis service to validate branch purposes"),
        "jiraIntegration": prop("boolean", "Enforce JIRA ticket IDs in branch names"),
        "jiraPattern": prop("string", "Regex pattern for JIRA ticket IDs"),
    },
    required=["strategyType"],
    defaults={
        "strategyType": "gitflow",
        "branchPrefixes": {
            "feature": "feature/",
            "bugfix": "bugfix/",
            "hotfix": "hotfix/",
            "release": "release/",
            "support": "support/",
        },
        "mainBranches": ["main", "master", "dev", "staging"],
        "protectedBranches": ["main", "master", "staging", "dev", "release/*"],
        "releasePattern": r"^release\/v?(\d+\.\d+\.\d+)$",
        "validateWithClaude": True,
        "jiraIntegration": False,
        "jiraPattern": r"[A-Z]+-\d+",
    },
)

DIFF_EXPLAIN_SCHEMA = extend_schema(
    BASE_HOOK_SCHEMA,
    properties={
        "verbosity": prop("string", "How detailed explanations should be", enum=("detailed", "brief")),
        "focusAreas": prop(
            "array",
            "Areas to focus on in explanations",
            items=prop(
                "string", enum=("functionality", "security", "performance", "readability")
            ),
        ),
        "outputFormat": prop(
            "string", "How to display explanations", enum=("inline", "summary-only", "side-by-side")
        ),
        "maxTokens": prop("number", "Maximum tokens for the analysis response"),
        "maxDiffSize": prop("number", "Maximum diff size to analyze"),
        "highlightIssues": prop("boolean", "Highlight potential issues"),
        "includeSuggestions": prop("boolean", "Include suggestions for improvements"),
        "includeSummary": prop("boolean", "Include summary of overall changes"),
    },
    defaults={
        "verbosity": "detailed",
        "focusAreas": ["functionality", "security", "performance", "readability"],
        "outputFormat": "inline",
        "maxTokens": 4000,
        "maxDiffSize": 100000,
        "highlightIssues": True,
        "includeSuggestions": True,
        "includeSummary": True,
    },
)

HOOK_SCHEMAS: dict[str, ConfigSchema] = {
    "pre-commit": BASE_HOOK_SCHEMA,
    "prepare-commit-msg": PREPARE_COMMIT_MSG_SCHEMA,
    "commit-msg": COMMIT_MSG_SCHEMA,
    "pre-push": PRE_PUSH_SCHEMA,
    "post-merge": POST_HOOK_SCHEMA,
    "pre-rebase": PRE_REBASE_SCHEMA,
    "branch-strategy": BRANCH_STRATEGY_SCHEMA,
    "diff-explain": DIFF_EXPLAIN_SCHEMA,
}


def get_schema(hook_id: str) -> ConfigSchema:
    """Schema registered for ``hook_id``, or the base schema."""
    return HOOK_SCHEMAS.get(hook_id, BASE_HOOK_SCHEMA)
