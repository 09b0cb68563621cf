"""
Persistence of per-hook configuration in ``.claude/hooks.json``.

The document is read and written as a whole:

    {
      "version": "1.0.0",
      "timestamp": "2026-01-28T12:00:00+00:00",
      "hooks": {
        "commit-msg": {"name": "...", "gitHookName": "commit-msg", "enabled": true, ...}
      }
    }

Each entry under ``hooks`` holds the hook's options in the camelCase keys
of its schema, plus the registry's ``name``/``gitHookName`` metadata.
There is no cross-process locking; concurrent writers can lose updates.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from claude_githooks.core.hooks.schema import apply_defaults, get_schema

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".claude"
CONFIG_FILE_NAME = "hooks.json"
CONFIG_VERSION = "1.0.0"

# Keys the registry stores alongside options; not part of any schema.
METADATA_KEYS = ("name", "gitHookName")


def config_file_path(project_root: Path) -> Path:
    """Path to ``<project>/.claude/hooks.json``."""
    return Path(project_root) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def empty_document() -> dict[str, Any]:
    return {"version": CONFIG_VERSION, "timestamp": None, "hooks": {}}


def read_config_document(project_root: Path) -> dict[str, Any]:
    """
    Read the whole configuration document.

    A missing file means "no configuration yet". An unreadable or malformed
    file is logged and treated the same way.
    """
    path = config_file_path(project_root)
    if not path.exists():
        return empty_document()

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read hook configuration at %s: %s", path, e)
        return empty_document()

    if not isinstance(data, dict):
        logger.warning("Hook configuration at %s is not a JSON object, ignoring", path)
        return empty_document()

    hooks = data.get("hooks")
    if not isinstance(hooks, dict):
        data["hooks"] = {}
    return data


def write_config_document(project_root: Path, document: dict[str, Any]) -> Path:
    """Write the document with a fresh timestamp, 2-space indent and trailing newline."""
    path = config_file_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)

    document = dict(document)
    document["version"] = document.get("version") or CONFIG_VERSION
    document["timestamp"] = datetime.now(timezone.utc).isoformat()

    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    logger.debug("Hook configuration written to %s", path)
    return path


def hook_options(entry: dict[str, Any]) -> dict[str, Any]:
    """Strip registry metadata from a stored entry, leaving schema options."""
    return {key: value for key, value in entry.items() if key not in METADATA_KEYS}


def stored_hook_options(project_root: Path, hook_id: str) -> dict[str, Any]:
    """Options explicitly stored for ``hook_id``, without defaults."""
    entry = read_config_document(project_root)["hooks"].get(hook_id)
    return hook_options(entry) if isinstance(entry, dict) else {}


def load_hook_config(project_root: Path, hook_id: str) -> dict[str, Any]:
    """
    Stored options for ``hook_id`` with schema defaults applied.

    Falls back to the schema defaults alone when the file or the entry is
    absent or unreadable.
    """
    return apply_defaults(stored_hook_options(project_root, hook_id), get_schema(hook_id))


def save_hook_config(project_root: Path, hook_id: str, options: dict[str, Any]) -> Path:
    """Read-modify-write the entry for a single hook, keeping its metadata."""
    document = read_config_document(project_root)
    existing = document["hooks"].get(hook_id)
    entry = dict(existing) if isinstance(existing, dict) else {}
    entry.update(options)
    document["hooks"][hook_id] = entry
    return write_config_document(project_root, document)
