"""Host automation: backend protocol, timeouts, script execution."""

from deskpilot.automation.backend import HostAutomationBackend, TimedBackend
from deskpilot.automation.script_runner import ScriptResult, ScriptRunner

__all__ = [
    "HostAutomationBackend",
    "TimedBackend",
    "ScriptResult",
    "ScriptRunner",
]
