"""Deskpilot: agent orchestration engine for a desktop copilot."""

__version__ = "0.1.0"

# Public API
from deskpilot.actions import ActionSequencer, ActionSpec
from deskpilot.agent import AgentLoop, EventSink, LoopState, RecordingEventSink, RunHistoryStore
from deskpilot.approval import ApprovalGate, ApprovalPolicy, ApprovalRequest, AuthGate
from deskpilot.automation import HostAutomationBackend, ScriptRunner, TimedBackend
from deskpilot.config import Config, get_config, load_config
from deskpilot.context import ContextManager
from deskpilot.core import LiteLLMProvider, LLMProvider, Message, Role
from deskpilot.errors import (
    AgentBusyError,
    ApprovalBusyError,
    AutomationError,
    ConfigurationError,
    DeskpilotError,
)
from deskpilot.extraction import AppState, StateExtractor
from deskpilot.geometry import CoordinateConvention, ScreenGeometry, resolve_drag, resolve_point
from deskpilot.memory import MemoryStore
from deskpilot.tools import ToolExecutor, ToolRegistry, ToolResult

__all__ = [
    # Agent
    "AgentLoop",
    "EventSink",
    "LoopState",
    "RecordingEventSink",
    "RunHistoryStore",
    # Actions
    "ActionSequencer",
    "ActionSpec",
    # Approval
    "ApprovalGate",
    "ApprovalPolicy",
    "ApprovalRequest",
    "AuthGate",
    # Automation
    "HostAutomationBackend",
    "ScriptRunner",
    "TimedBackend",
    # Config
    "Config",
    "get_config",
    "load_config",
    # Context
    "ContextManager",
    # LLM
    "LLMProvider",
    "LiteLLMProvider",
    "Message",
    "Role",
    # Errors
    "AgentBusyError",
    "ApprovalBusyError",
    "AutomationError",
    "ConfigurationError",
    "DeskpilotError",
    # Extraction
    "AppState",
    "StateExtractor",
    # Geometry
    "CoordinateConvention",
    "ScreenGeometry",
    "resolve_drag",
    "resolve_point",
    # Memory
    "MemoryStore",
    # Tools
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
]
