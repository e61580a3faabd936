"""Executes ordered primitive actions with adaptive waits between them."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from deskpilot.actions.spec import ACTION_CATEGORIES, ActionKind, ActionSpec
from deskpilot.actions.waits import Clock, SystemClock, WaitKind, WaitPlan, WaitTiming, plan_wait
from deskpilot.errors import ActionSequenceError, AutomationError
from deskpilot.geometry import CoordinateConvention, ScreenGeometry, resolve_drag, resolve_point
from deskpilot.logging import VERBOSE, get_logger

if TYPE_CHECKING:
    from deskpilot.automation.backend import HostAutomationBackend

log = get_logger("actions")

# Text longer than this is pasted instead of typed
PASTE_THRESHOLD = 100

MAX_WAIT_SECONDS = 10.0


class ImageSearch(Protocol):
    """Finds an image for a text query and returns its bytes."""

    async def find(self, query: str) -> bytes: ...


@dataclass
class SequenceSummary:
    """Outcome of a successful run."""

    completed: list[str] = field(default_factory=list)
    waits: list[WaitPlan] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)  # Script output
    screenshots: list[str] = field(default_factory=list)  # base64 PNG

    @property
    def text(self) -> str:
        count = len(self.completed)
        noun = "action" if count == 1 else "actions"
        message = f"Completed {count} {noun}: {' → '.join(self.completed)}"
        if self.outputs:
            message += "\n\nScript output:\n" + "\n".join(self.outputs)
        return message


class _StepFailed(Exception):
    pass


class ActionSequencer:
    """Runs a list of ActionSpecs in order.

    Stops at the first failure and raises ActionSequenceError carrying the
    descriptions of the actions that completed. Nothing is rolled back.
    """

    def __init__(
        self,
        backend: HostAutomationBackend,
        *,
        convention: CoordinateConvention = CoordinateConvention.PIXEL,
        geometry: ScreenGeometry | None = None,
        clock: Clock | None = None,
        timing: WaitTiming | None = None,
        paste_threshold: int = PASTE_THRESHOLD,
        max_wait_seconds: float = MAX_WAIT_SECONDS,
        image_search: ImageSearch | None = None,
        disabled_categories: Iterable[str] = (),
    ) -> None:
        self._backend = backend
        self._convention = convention
        self._geometry = geometry
        self._clock = clock or SystemClock()
        self._timing = timing or WaitTiming()
        self._paste_threshold = paste_threshold
        self._max_wait_seconds = max_wait_seconds
        self._image_search = image_search
        self._disabled = frozenset(disabled_categories)
        self._activated_app: str | None = None
        self._handlers: dict[ActionKind, Callable[[ActionSpec, SequenceSummary], Awaitable[None]]] = {
            ActionKind.ACTIVATE: self._activate,
            ActionKind.RUN_SCRIPT: self._run_script,
            ActionKind.HOTKEY: self._press_key,
            ActionKind.KEY: self._press_key,
            ActionKind.TYPE: self._type,
            ActionKind.CLICK: self._pointer,
            ActionKind.RIGHT_CLICK: self._pointer,
            ActionKind.DOUBLE_CLICK: self._pointer,
            ActionKind.MOUSE_MOVE: self._pointer,
            ActionKind.SCROLL: self._scroll,
            ActionKind.DRAG: self._drag,
            ActionKind.WAIT: self._wait,
            ActionKind.INSERT_IMAGE: self._insert_image,
            ActionKind.SCREENSHOT: self._screenshot,
        }

    async def run(self, actions: list[ActionSpec]) -> SequenceSummary:
        """Execute actions in order.

        Raises:
            ActionSequenceError: On the first failing action.
        """
        summary = SequenceSummary()
        for index, action in enumerate(actions):
            log.log(VERBOSE, "Action %d/%d: %s", index + 1, len(actions), action.describe())
            try:
                await self._execute(action, summary)
            except (AutomationError, _StepFailed) as e:
                log.warning("Action %d (%s) failed: %s", index + 1, action.kind.value, e)
                raise ActionSequenceError(index + 1, str(e), list(summary.completed)) from e
            summary.completed.append(action.describe())

            following = actions[index + 1] if index + 1 < len(actions) else None
            plan = plan_wait(action, following, self._timing)
            summary.waits.append(plan)
            await self._wait_for(plan)

        log.debug("Sequence finished: %d actions", len(summary.completed))
        return summary

    async def _execute(self, action: ActionSpec, summary: SequenceSummary) -> None:
        category = ACTION_CATEGORIES.get(action.kind)
        if category in self._disabled:
            raise _StepFailed(f"{action.kind.value} is disabled in settings ({category})")
        await self._handlers[action.kind](action, summary)

    async def _geometry_for_mapping(self) -> ScreenGeometry:
        if self._geometry is None:
            self._geometry = await self._backend.screen_geometry()
        return self._geometry

    async def _resolve(self, point: tuple[float, float]) -> tuple[int, int]:
        geometry = await self._geometry_for_mapping()
        return resolve_point(point[0], point[1], self._convention, geometry)

    # -- handlers ------------------------------------------------------------

    async def _activate(self, action: ActionSpec, summary: SequenceSummary) -> None:
        assert action.app is not None
        await self._backend.focus_application(action.app)
        self._activated_app = action.app

    async def _run_script(self, action: ActionSpec, summary: SequenceSummary) -> None:
        assert action.script is not None
        output = await self._backend.run_host_script(action.script)
        if output and output.strip().lower().startswith("error:"):
            raise _StepFailed(output.strip())
        if output:
            summary.outputs.append(output.strip())

    async def _press_key(self, action: ActionSpec, summary: SequenceSummary) -> None:
        assert action.combo is not None
        await self._backend.press_key(action.combo)

    async def _type(self, action: ActionSpec, summary: SequenceSummary) -> None:
        text = action.text or ""
        if len(text) > self._paste_threshold:
            await self._backend.paste_text(text)
        else:
            await self._backend.type_text(text)

    async def _pointer(self, action: ActionSpec, summary: SequenceSummary) -> None:
        assert action.point is not None
        x, y = await self._resolve(action.point)
        if action.kind is ActionKind.CLICK:
            await self._backend.click(x, y)
        elif action.kind is ActionKind.RIGHT_CLICK:
            await self._backend.right_click(x, y)
        elif action.kind is ActionKind.DOUBLE_CLICK:
            await self._backend.double_click(x, y)
        else:
            await self._backend.move_mouse(x, y)

    async def _scroll(self, action: ActionSpec, summary: SequenceSummary) -> None:
        if action.point is not None:
            x, y = await self._resolve(action.point)
            await self._backend.move_mouse(x, y)
        await self._backend.scroll(action.direction or "down", action.amount)

    async def _drag(self, action: ActionSpec, summary: SequenceSummary) -> None:
        assert action.point is not None and action.end is not None
        geometry = await self._geometry_for_mapping()
        (x1, y1), (x2, y2) = resolve_drag(action.point, action.end, self._convention, geometry)
        await self._backend.drag(x1, y1, x2, y2)

    async def _wait(self, action: ActionSpec, summary: SequenceSummary) -> None:
        await self._clock.sleep(min(action.duration, self._max_wait_seconds))

    async def _insert_image(self, action: ActionSpec, summary: SequenceSummary) -> None:
        if self._image_search is None:
            raise _StepFailed("Image search is not configured")
        assert action.query is not None
        try:
            data = await self._image_search.find(action.query)
        except Exception as e:
            raise _StepFailed(f"Image search failed: {e}") from e
        await self._backend.paste_image(data)

    async def _screenshot(self, action: ActionSpec, summary: SequenceSummary) -> None:
        geometry = await self._geometry_for_mapping()
        image = await self._backend.capture_screenshot(geometry.screenshot_size[0])
        summary.screenshots.append(image)

    # -- waiting -------------------------------------------------------------

    async def _wait_for(self, plan: WaitPlan) -> None:
        if plan.kind is WaitKind.FIXED:
            await self._clock.sleep(plan.delay_ms / 1000)
        elif plan.kind is WaitKind.POLL_FRONTMOST:
            target = (self._activated_app or "").lower()
            satisfied = await self._poll(lambda: self._is_frontmost(target), plan.timeout_ms)
            if not satisfied:
                log.warning("%s did not become frontmost within %dms", self._activated_app, plan.timeout_ms)
        elif plan.kind is WaitKind.POLL_UI_SETTLE:
            settled = await self._wait_ui_settle(plan.timeout_ms)
            if not settled:
                log.debug("UI did not settle within %dms, continuing", plan.timeout_ms)

    async def _poll(self, predicate: Callable[[], Awaitable[bool]], timeout_ms: int) -> bool:
        """Poll predicate every interval until it holds or timeout passes."""
        deadline = self._clock.monotonic() + timeout_ms / 1000
        interval = self._timing.poll_interval_ms / 1000
        while True:
            if await predicate():
                return True
            if self._clock.monotonic() >= deadline:
                return False
            await self._clock.sleep(interval)

    async def _is_frontmost(self, target: str) -> bool:
        try:
            frontmost = await self._backend.frontmost_application()
        except AutomationError:
            return False
        return bool(frontmost) and frontmost.lower() == target

    async def _window_count(self) -> int:
        try:
            app = await self._backend.frontmost_application()
            return await self._backend.window_count(app) if app else 0
        except AutomationError:
            return 0

    async def _wait_ui_settle(self, timeout_ms: int) -> bool:
        """Window count of the frontmost app unchanged for N consecutive polls."""
        deadline = self._clock.monotonic() + timeout_ms / 1000
        interval = self._timing.poll_interval_ms / 1000
        last_count = await self._window_count()
        stable = 0
        while self._clock.monotonic() < deadline:
            await self._clock.sleep(interval)
            count = await self._window_count()
            if count == last_count:
                stable += 1
                if stable >= self._timing.stable_polls:
                    return True
            else:
                stable = 0
                last_count = count
        return False
