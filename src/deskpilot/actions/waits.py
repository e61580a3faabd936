"""Inter-action wait policy.

The wait after action i depends on the pair (action i, action i+1). A click
followed by typing waits for the UI to settle since the click usually
focuses an input; a scroll only gets a fixed minimum delay because nothing
observable signals its completion.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from deskpilot.actions.spec import ActionKind, ActionSpec


class WaitKind(Enum):
    NONE = "none"
    FIXED = "fixed"
    POLL_FRONTMOST = "poll_frontmost"
    POLL_UI_SETTLE = "poll_ui_settle"


@dataclass(frozen=True, slots=True)
class WaitPlan:
    kind: WaitKind
    delay_ms: int = 0  # FIXED
    timeout_ms: int = 0  # POLL_*


NO_WAIT = WaitPlan(WaitKind.NONE)


@dataclass(frozen=True, slots=True)
class WaitTiming:
    """Timing constants in milliseconds."""

    poll_interval_ms: int = 50
    app_activate_timeout_ms: int = 3000
    ui_settle_timeout_ms: int = 1500
    submit_settle_timeout_ms: int = 2000  # return/enter followed by typing
    stable_polls: int = 3
    min_delay_ms: int = 100
    type_min_ms: int = 50
    type_per_char_ms: int = 5
    type_max_ms: int = 1000


_SETTLE_AFTER = frozenset({ActionKind.RIGHT_CLICK, ActionKind.DOUBLE_CLICK, ActionKind.INSERT_IMAGE})
_FIXED_AFTER = frozenset(
    {ActionKind.SCROLL, ActionKind.MOUSE_MOVE, ActionKind.DRAG, ActionKind.RUN_SCRIPT}
)
_KEYBOARD = frozenset({ActionKind.TYPE, ActionKind.KEY, ActionKind.HOTKEY})


def plan_wait(
    current: ActionSpec,
    following: ActionSpec | None,
    timing: WaitTiming | None = None,
) -> WaitPlan:
    """Decide how to wait between current and the action that follows it."""
    timing = timing or WaitTiming()
    if following is None:
        return NO_WAIT

    kind = current.kind
    settle = WaitPlan(WaitKind.POLL_UI_SETTLE, timeout_ms=timing.ui_settle_timeout_ms)
    fixed = WaitPlan(WaitKind.FIXED, delay_ms=timing.min_delay_ms)

    if kind is ActionKind.ACTIVATE:
        return WaitPlan(WaitKind.POLL_FRONTMOST, timeout_ms=timing.app_activate_timeout_ms)

    if kind is ActionKind.TYPE:
        if following.is_return_key:
            return settle
        length = len(current.text or "")
        delay = max(timing.type_min_ms, min(length * timing.type_per_char_ms, timing.type_max_ms))
        return WaitPlan(WaitKind.FIXED, delay_ms=delay)

    if kind in (ActionKind.KEY, ActionKind.HOTKEY):
        if current.is_return_key and following.kind is ActionKind.TYPE:
            return WaitPlan(WaitKind.POLL_UI_SETTLE, timeout_ms=timing.submit_settle_timeout_ms)
        return fixed

    if kind is ActionKind.CLICK:
        return settle if following.kind in _KEYBOARD else fixed

    if kind in _SETTLE_AFTER:
        return settle

    if kind in _FIXED_AFTER:
        return fixed

    return NO_WAIT


class Clock(Protocol):
    """Time source for waits, replaceable in tests."""

    def monotonic(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
