"""
.env loading for hook processes.

Git runs hook scripts with whatever environment the user's shell had, so
secrets such as ANTHROPIC_API_KEY may instead live in .env files. Files are
applied lowest priority first:

    ~/.config/claude-githooks/.env  <  <project>/.env, <project>/.env.local

A variable exported before the process started always wins.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

PROJECT_ENV_FILES = (".env", ".env.local")


def user_env_file() -> Path:
    return get_xdg_config_home() / "claude-githooks" / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Key/value pairs from one .env file; bare keys without a value are dropped."""
    if not path.exists():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """
    Populate ``os.environ`` from the user and project .env files.

    Project files may replace values that came from the user file, never
    values that were already set when this function was called.
    """
    base = project_dir or Path.cwd()
    user_files = [user_env_file()] if user_env_paths is None else list(user_env_paths)
    project_files = (
        [base / name for name in PROJECT_ENV_FILES]
        if project_env_paths is None
        else list(project_env_paths)
    )

    preexisting = set(os.environ)

    for path in user_files:
        for key, value in read_env_file(Path(path)).items():
            os.environ.setdefault(key, value)

    for path in project_files:
        for key, value in read_env_file(Path(path)).items():
            if key not in preexisting:
                os.environ[key] = value
