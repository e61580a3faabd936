"""Platform-aware configuration and data path resolution.

- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/ (system), $XDG_CONFIG_HOME, ~/.config/deskpilot or ~/.deskpilot (user)
- Project: <root>/.deskpilot/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "deskpilot"
SHORT_NAME = ".deskpilot"


def get_system_config_path() -> Path | None:
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        if program_data:
            return Path(program_data) / APP_NAME / CONFIG_FILENAME
        return None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_dir() -> Path:
    """Per-user directory holding config, memory and history."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME
    return home / SHORT_NAME


def get_user_config_path() -> Path:
    return get_user_dir() / CONFIG_FILENAME


def get_project_config_path(project_root: str) -> Path:
    return Path(project_root) / SHORT_NAME / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Get all config paths in priority order (lowest to highest)."""
    paths: list[Path] = []

    system_path = get_system_config_path()
    if system_path:
        paths.append(system_path)

    paths.append(get_user_config_path())

    if project_root:
        paths.append(get_project_config_path(project_root))

    return paths


def resolve_data_dir(configured: str | None, default_name: str) -> Path:
    """Expand a configured directory, or fall back to <user dir>/<default_name>."""
    if configured:
        return Path(os.path.expanduser(configured))
    return get_user_dir() / default_name
