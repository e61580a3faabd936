"""Action parsing, wait policy and sequencing."""

from deskpilot.actions.sequencer import (
    PASTE_THRESHOLD,
    ActionSequencer,
    ImageSearch,
    SequenceSummary,
)
from deskpilot.actions.spec import (
    ACTION_CATEGORIES,
    ActionKind,
    ActionParseError,
    ActionSpec,
    parse_action,
    parse_actions,
)
from deskpilot.actions.waits import (
    Clock,
    SystemClock,
    WaitKind,
    WaitPlan,
    WaitTiming,
    plan_wait,
)

__all__ = [
    "ActionSequencer",
    "ImageSearch",
    "SequenceSummary",
    "PASTE_THRESHOLD",
    "ACTION_CATEGORIES",
    "ActionKind",
    "ActionParseError",
    "ActionSpec",
    "parse_action",
    "parse_actions",
    "Clock",
    "SystemClock",
    "WaitKind",
    "WaitPlan",
    "WaitTiming",
    "plan_wait",
]
