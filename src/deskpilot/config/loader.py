"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from deskpilot.config.merge import merge_configs
from deskpilot.config.paths import get_config_paths
from deskpilot.config.schema import (
    ActionConfig,
    AgentConfig,
    ApprovalConfig,
    Config,
    HistoryConfig,
    IntegrationConnectMode,
    IntegrationsConfig,
    IntegrationServerConfig,
    LLMConfig,
    LoggingConfig,
    MemoryConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("deskpilot.config")

_cached_config: Config | None = None

_KNOWN_SECTIONS = {
    "llm",
    "agent",
    "actions",
    "memory",
    "history",
    "approval",
    "integrations",
    "logging",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    API keys are NOT loaded here - use fetch_secret() for secrets.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("DESKPILOT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    model = os.environ.get("DESKPILOT_MODEL")
    if model:
        overrides.setdefault("llm", {})["model"] = model

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _build_dataclass(cls: type, values: dict[str, Any]) -> Any:
    """Instantiate a flat config dataclass, ignoring unknown keys."""
    known = cls.__dataclass_fields__.keys()
    unknown = set(values) - set(known)
    if unknown:
        _log.debug("Ignoring unknown %s keys: %s", cls.__name__, sorted(unknown))
    return cls(**{k: v for k, v in values.items() if k in known})


def _build_servers(data: dict[str, Any]) -> list[IntegrationServerConfig]:
    servers = []
    for s in data.get("servers", []) or []:
        if not isinstance(s, dict) or not s.get("name"):
            continue
        try:
            connect = IntegrationConnectMode(s.get("connect", "auto"))
        except ValueError:
            _log.warning("Invalid connect mode for server '%s': %s", s["name"], s.get("connect"))
            connect = IntegrationConnectMode.MANUAL
        servers.append(
            IntegrationServerConfig(
                name=s["name"],
                command=s.get("command"),
                args=s.get("args", []),
                env=s.get("env", {}),
                url=s.get("url"),
                headers=s.get("headers", {}),
                transport=s.get("transport", "stdio"),
                connect=connect,
                timeout=s.get("timeout", 30.0),
            )
        )
    return servers


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    return Config(
        llm=_build_dataclass(LLMConfig, _section(data, "llm")),
        agent=_build_dataclass(AgentConfig, _section(data, "agent")),
        actions=_build_dataclass(ActionConfig, _section(data, "actions")),
        memory=_build_dataclass(MemoryConfig, _section(data, "memory")),
        history=_build_dataclass(HistoryConfig, _section(data, "history")),
        approval=_build_dataclass(ApprovalConfig, _section(data, "approval")),
        integrations=IntegrationsConfig(servers=_build_servers(_section(data, "integrations"))),
        logging=_build_dataclass(LoggingConfig, _section(data, "logging")),
        extra={k: v for k, v in data.items() if k not in _KNOWN_SECTIONS},
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config (<project_root>/.deskpilot/config.yaml)
    3. User config
    4. System config

    Only the global config (no project_root) is cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []
    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config (tests, forced reload)."""
    global _cached_config
    _cached_config = None
