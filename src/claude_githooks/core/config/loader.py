"""
Settings loading with multi-layer merging.

Implements the precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import FrameworkSettings

logger = logging.getLogger(__name__)

# Global cache to avoid reloading settings multiple times per process
_settings_cache: dict[Path, FrameworkSettings] = {}


def get_xdg_config_home() -> Path:
    """$XDG_CONFIG_HOME, or ~/.config when unset."""
    configured = os.environ.get("XDG_CONFIG_HOME")
    return Path(configured) if configured else Path.home() / ".config"


def get_user_settings_path() -> Path:
    """Path to ~/.config/claude-githooks/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "claude-githooks" / "config.json"


def get_project_settings_path(project_dir: Path | None = None) -> Path:
    """Path to .claude/githooks.json in the project root."""
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / ".claude" / "githooks.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively overlay ``override`` onto a copy of ``base``.

    Example:
        >>> deep_merge({"model": "a", "cache": {"ttl": 1}}, {"cache": {"on": True}})
        {'model': 'a', 'cache': {'ttl': 1, 'on': True}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """JSON object stored at ``path``; None when missing, unreadable or not an object."""
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, OSError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return None

    return data if isinstance(data, dict) else None


def apply_env_overrides(settings: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides.

    Supported env vars:
        CLAUDE_GITHOOKS_MODEL - overrides model
        CLAUDE_GITHOOKS_MAX_TOKENS - overrides max_tokens
        CLAUDE_GITHOOKS_TIMEOUT - overrides timeout_seconds
    """
    result = settings.copy()

    if model := os.environ.get("CLAUDE_GITHOOKS_MODEL"):
        result["model"] = model

    if max_tokens_str := os.environ.get("CLAUDE_GITHOOKS_MAX_TOKENS"):
        try:
            result["max_tokens"] = int(max_tokens_str)
        except ValueError:
            logger.warning("Invalid CLAUDE_GITHOOKS_MAX_TOKENS value '%s', ignoring", max_tokens_str)

    if timeout_str := os.environ.get("CLAUDE_GITHOOKS_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                logger.warning("CLAUDE_GITHOOKS_TIMEOUT must be > 0, got %s, ignoring", timeout)
            else:
                result["timeout_seconds"] = timeout
        except ValueError:
            logger.warning("Invalid CLAUDE_GITHOOKS_TIMEOUT value '%s', ignoring", timeout_str)

    return result


def load_settings(project_dir: Path | None = None, use_cache: bool = True) -> FrameworkSettings:
    """
    Load framework settings with multi-layer merging.

    Raises:
        ValidationError: If the merged settings fail Pydantic validation
    """
    key = (project_dir or Path.cwd()).resolve()
    if use_cache and key in _settings_cache:
        return _settings_cache[key]

    merged: dict[str, Any] = FrameworkSettings().model_dump()

    if user_settings := load_json_file(get_user_settings_path()):
        merged = deep_merge(merged, user_settings)

    if project_settings := load_json_file(get_project_settings_path(project_dir)):
        merged = deep_merge(merged, project_settings)

    merged = apply_env_overrides(merged)

    settings = FrameworkSettings(**merged)
    _settings_cache[key] = settings
    return settings


def clear_cache() -> None:
    """Clear cached settings; useful in tests."""
    _settings_cache.clear()
