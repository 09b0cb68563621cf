"""
Framework settings and environment loading.

Settings are merged in layers: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_settings_path,
    get_user_settings_path,
    get_xdg_config_home,
    load_settings,
)
from .models import FrameworkSettings

__all__ = [
    "FrameworkSettings",
    "clear_cache",
    "get_project_settings_path",
    "get_user_settings_path",
    "get_xdg_config_home",
    "load_layered_env",
    "load_settings",
]
