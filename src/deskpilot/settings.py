"""Key-value settings read once at the start of every run.

Keys used by the agent:

    selected_model: "claude-sonnet-4-20250514"
    tool_settings: {run_shell: disabled, web_search: auto, ...}
    action_categories: {clicking: true, scrolling: true, typing: true,
                        screenshot: true, insert_image: false}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from deskpilot.logging import get_logger

log = get_logger("settings")


class ToolMode(Enum):
    """Per-tool user preference."""

    ENABLED = "enabled"  # Offered to the model, approval policy applies
    DISABLED = "disabled"  # Not offered to the model
    AUTO = "auto"  # Offered and auto-approved


@runtime_checkable
class SettingsStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


@dataclass(frozen=True)
class RunSettings:
    """Settings snapshot taken when a run starts."""

    model: str | None = None
    tool_modes: Mapping[str, ToolMode] = field(default_factory=dict)
    disabled_categories: frozenset[str] = frozenset()

    def mode_for(self, tool_name: str) -> ToolMode:
        return self.tool_modes.get(tool_name, ToolMode.ENABLED)

    def is_enabled(self, tool_name: str) -> bool:
        return self.mode_for(tool_name) is not ToolMode.DISABLED


def read_run_settings(store: SettingsStore | None) -> RunSettings:
    """Snapshot the settings a run needs; malformed entries are skipped."""
    if store is None:
        return RunSettings()

    modes: dict[str, ToolMode] = {}
    raw_modes = store.get("tool_settings") or {}
    if isinstance(raw_modes, Mapping):
        for name, value in raw_modes.items():
            if isinstance(value, bool):
                modes[str(name)] = ToolMode.ENABLED if value else ToolMode.DISABLED
                continue
            try:
                modes[str(name)] = ToolMode(str(value).lower())
            except ValueError:
                log.warning("Ignoring invalid mode for tool %s: %r", name, value)

    disabled: set[str] = set()
    raw_categories = store.get("action_categories") or {}
    if isinstance(raw_categories, Mapping):
        disabled = {str(name) for name, enabled in raw_categories.items() if enabled is False}

    model = store.get("selected_model")
    return RunSettings(
        model=model if isinstance(model, str) and model else None,
        tool_modes=modes,
        disabled_categories=frozenset(disabled),
    )


class DictSettingsStore:
    """In-memory store."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class YamlSettingsStore:
    """Settings persisted in a single YAML file, written atomically."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._values: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._values is None:
            self._values = {}
            if self.path.exists():
                try:
                    with open(self.path, encoding="utf-8") as f:
                        data = yaml.safe_load(f)
                    if isinstance(data, dict):
                        self._values = data
                except (OSError, yaml.YAMLError) as e:
                    log.warning("Failed to read settings from %s: %s", self.path, e)
        return self._values

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        values = self._load()
        values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(values, f, default_flow_style=False, sort_keys=True)
        temp_path.replace(self.path)

    def reload(self) -> None:
        self._values = None
