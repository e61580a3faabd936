"""Configuration management for deskpilot.

Hierarchical YAML configuration:
- System-level config (/etc/deskpilot/ or %PROGRAMDATA%)
- User-level config (~/.config/deskpilot/, ~/.deskpilot/ or %APPDATA%)
- Project-level config (<project_root>/.deskpilot/)
- Environment variable overrides (highest priority)

Example usage:
    from deskpilot.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.llm.model)
"""

from deskpilot.config.loader import (
    dict_to_config,
    get_config,
    load_config,
    load_yaml_file,
    reset_config,
)
from deskpilot.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
    get_user_dir,
    resolve_data_dir,
)
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
from deskpilot.config.secrets import clear_secret_cache, fetch_secret

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "dict_to_config",
    "load_yaml_file",
    # Schema types
    "ActionConfig",
    "AgentConfig",
    "ApprovalConfig",
    "HistoryConfig",
    "IntegrationConnectMode",
    "IntegrationServerConfig",
    "IntegrationsConfig",
    "LLMConfig",
    "LoggingConfig",
    "MemoryConfig",
    # Secrets
    "fetch_secret",
    "clear_secret_cache",
    # Paths
    "get_config_paths",
    "get_project_config_path",
    "get_user_config_path",
    "get_user_dir",
    "resolve_data_dir",
]
