"""Agent loop, run state, events and run history."""

from deskpilot.agent.events import (
    EventSink,
    NullEventSink,
    RecordedEvent,
    RecordingEventSink,
    approval_payload,
    auth_payload,
)
from deskpilot.agent.history import RunHistoryStore, RunRecord, record_from_run
from deskpilot.agent.loop import MAX_ITERATIONS_MESSAGE, AgentLoop
from deskpilot.agent.run import ActionLogEntry, CancellationToken, LoopState, Run, SessionCounter

__all__ = [
    "MAX_ITERATIONS_MESSAGE",
    "ActionLogEntry",
    "AgentLoop",
    "CancellationToken",
    "EventSink",
    "LoopState",
    "NullEventSink",
    "RecordedEvent",
    "RecordingEventSink",
    "Run",
    "RunHistoryStore",
    "RunRecord",
    "SessionCounter",
    "approval_payload",
    "auth_payload",
    "record_from_run",
]
