"""Configuration schema dataclasses for deskpilot.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class LLMConfig:
    """LLM provider configuration."""

    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    api_base: str | None = None  # Custom endpoint
    temperature: float | None = None


@dataclass
class AgentConfig:
    """Agent loop behaviour."""

    max_iterations: int = 10
    recent_runs_in_prompt: int = 3  # Past runs summarized into the prompt
    memory_results_in_prompt: int = 3


@dataclass
class ActionConfig:
    """Action sequencer timing and thresholds (milliseconds unless noted)."""

    paste_threshold: int = 100  # Characters above which text is pasted
    poll_interval_ms: int = 50
    app_activate_timeout_ms: int = 3000
    ui_settle_timeout_ms: int = 1500
    stable_polls: int = 3
    max_wait_seconds: float = 10.0
    backend_timeout: float = 10.0  # Seconds per automation call
    script_timeout: float = 30.0  # Seconds per host script / shell command


@dataclass
class MemoryConfig:
    """Long-term memory configuration.

    Example config.yaml:
        memory:
          root: ~/.deskpilot/memory
          flush_threshold: 0.6
          flush_hysteresis: 1.3
    """

    root: str | None = None  # Default: <user data dir>/memory
    enabled: bool = True
    flush_threshold: float = 0.6  # Fraction of the context budget
    flush_hysteresis: float = 1.3  # Growth since last flush required to re-trigger


@dataclass
class HistoryConfig:
    """Run history persistence."""

    root: str | None = None  # Default: <user data dir>/history
    enabled: bool = True


@dataclass
class ApprovalConfig:
    """Which tools bypass the approval gate."""

    auto_approve: list[str] = field(
        default_factory=lambda: [
            "get_state",
            "take_screenshot",
            "web_search",
            "search_tools",
            "memory_search",
            "memory_write",
            "final_answer",
        ]
    )
    always_ask: list[str] = field(default_factory=lambda: ["replace_selected_text"])
    safe_integration_patterns: list[str] = field(
        default_factory=lambda: [
            "*SEARCH_TOOLS",
            "*MANAGE_CONNECTIONS",
            "*LIST_TOOLKITS",
        ]
    )


class IntegrationConnectMode(Enum):
    """Connection mode for integration servers.

    - AUTO: Connect when the agent starts, warn and continue on failure
    - MANUAL: Only connect when requested explicitly
    - NEVER: Disabled
    """

    AUTO = "auto"
    MANUAL = "manual"
    NEVER = "never"


@dataclass
class IntegrationServerConfig:
    """Configuration for a single MCP integration server.

    Supports three transport types:
        - stdio: Spawns a subprocess (requires command)
        - streamable-http: Connects to HTTP endpoint (requires url)
        - sse: Connects to SSE endpoint (requires url)
    """

    name: str
    command: list[str] | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)  # Supports ${VAR}
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    transport: str = "stdio"
    connect: IntegrationConnectMode = IntegrationConnectMode.AUTO
    timeout: float = 30.0


@dataclass
class IntegrationsConfig:
    """External integration servers."""

    servers: list[IntegrationServerConfig] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None


@dataclass
class Config:
    """Root configuration object."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    actions: ActionConfig = field(default_factory=ActionConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    approval: ApprovalConfig = field(default_factory=ApprovalConfig)
    integrations: IntegrationsConfig = field(default_factory=IntegrationsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept here
    extra: dict[str, Any] = field(default_factory=dict)
