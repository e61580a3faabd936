"""Tiered acquisition of the focused application's state.

Tiers are tried in fixed order and each failure falls through to the next:

1. script injection (browsers only, needs >= 1 interactive element)
2. scripting dictionary (registered apps only, no error marker)
3. accessibility tree (must pass has_useful_content)
4. screenshot (always; a capture failure is fatal)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deskpilot.errors import AutomationError, ScreenshotCaptureError
from deskpilot.extraction.formatting import (
    format_accessibility,
    format_browser,
    format_screenshot_only,
    has_useful_content,
    with_selection,
)
from deskpilot.extraction.sources import (
    SCRIPT_ERROR_MARKER,
    AccessibilityReader,
    BrowserProbe,
    ScriptingDictionary,
    is_browser,
)
from deskpilot.extraction.state import AccessibilitySnapshot, AppState, Tier
from deskpilot.logging import get_logger

if TYPE_CHECKING:
    from deskpilot.automation.backend import HostAutomationBackend

log = get_logger("extraction")


class StateExtractor:
    """Builds an AppState for the frontmost (or given) application."""

    def __init__(
        self,
        backend: HostAutomationBackend,
        *,
        browser_probe: BrowserProbe | None = None,
        scripting: ScriptingDictionary | None = None,
        accessibility: AccessibilityReader | None = None,
    ) -> None:
        self._backend = backend
        self._browser_probe = browser_probe
        self._scripting = scripting
        self._accessibility = accessibility

    async def extract(
        self,
        selection_hint: str | None = None,
        *,
        app_name: str | None = None,
    ) -> AppState:
        """Extract the current state.

        Args:
            selection_hint: Text the user had selected when invoking the agent.
                When absent the backend is asked for the current selection.
            app_name: Application to describe. Defaults to the frontmost one.

        Raises:
            ScreenshotCaptureError: Only when the tier 4 capture fails.
        """
        app = app_name or await self._frontmost()
        selected = selection_hint or await self._selection(app)

        state = await self._try_script_injection(app)
        if state is None:
            state = await self._try_scripting_dictionary(app)

        window_title = ""
        if state is None:
            state, window_title = await self._try_accessibility(app)
        if state is None:
            state = await self._capture_screenshot(app, window_title)

        log.debug("Extracted %s via tier %d (%s)", app or "<unknown>", state.tier, state.method)

        if not selected:
            return state
        return AppState(
            tier=state.tier,
            method=state.method,
            formatted=with_selection(state.formatted, selected),
            app_name=state.app_name,
            window_title=state.window_title,
            raw=state.raw,
            screenshot=state.screenshot,
            selected_text=selected,
        )

    async def _frontmost(self) -> str:
        try:
            return await self._backend.frontmost_application() or ""
        except Exception as e:
            log.debug("Could not determine frontmost app: %s", e)
            return ""

    async def _selection(self, app: str) -> str | None:
        try:
            return await self._backend.read_current_selection(app or None)
        except Exception as e:
            log.debug("Could not read selection: %s", e)
            return None

    async def _try_script_injection(self, app: str) -> AppState | None:
        if self._browser_probe is None or not is_browser(app):
            return None
        try:
            snapshot = await self._browser_probe.probe(app)
        except Exception as e:
            log.debug("Tier 1 failed for %s: %s", app, e)
            return None
        if not snapshot.elements:
            log.debug("Tier 1 returned no interactive elements for %s", app)
            return None
        return AppState(
            tier=Tier.SCRIPT_INJECTION,
            method="script_injection",
            formatted=format_browser(app, snapshot),
            app_name=app,
            window_title=snapshot.title,
            raw=snapshot,
        )

    async def _try_scripting_dictionary(self, app: str) -> AppState | None:
        if self._scripting is None or not app or not self._scripting.supports(app):
            return None
        try:
            text = await self._scripting.extract(app)
        except Exception as e:
            log.debug("Tier 2 failed for %s: %s", app, e)
            return None
        if not text or text.strip().lower().startswith(SCRIPT_ERROR_MARKER):
            log.debug("Tier 2 reported an error for %s: %.200s", app, text)
            return None
        return AppState(
            tier=Tier.SCRIPTING_DICTIONARY,
            method="scripting_dictionary",
            formatted=f"App: {app}\n\n{text}",
            app_name=app,
            raw=text,
        )

    async def _try_accessibility(self, app: str) -> tuple[AppState | None, str]:
        if self._accessibility is None:
            return None, ""
        try:
            snapshot: AccessibilitySnapshot = await self._accessibility.read(app)
        except Exception as e:
            log.debug("Tier 3 failed for %s: %s", app, e)
            return None, ""
        if not has_useful_content(snapshot):
            log.debug(
                "Tier 3 not useful for %s (%d elements, error=%s)",
                app,
                len(snapshot.elements),
                snapshot.error,
            )
            return None, snapshot.window_title
        state = AppState(
            tier=Tier.ACCESSIBILITY,
            method="accessibility",
            formatted=format_accessibility(app, snapshot),
            app_name=app,
            window_title=snapshot.window_title,
            raw=snapshot,
        )
        return state, snapshot.window_title

    async def _capture_screenshot(self, app: str, window_title: str) -> AppState:
        try:
            geometry = await self._backend.screen_geometry()
            image = await self._backend.capture_screenshot(geometry.screenshot_size[0])
        except AutomationError as e:
            raise ScreenshotCaptureError("capture_screenshot", e.reason) from e
        except Exception as e:
            raise ScreenshotCaptureError("capture_screenshot", str(e) or type(e).__name__) from e
        if not image:
            raise ScreenshotCaptureError("capture_screenshot", "backend returned no image")
        return AppState(
            tier=Tier.SCREENSHOT,
            method="screenshot",
            formatted=format_screenshot_only(app or "Unknown", window_title or "Unknown"),
            app_name=app,
            window_title=window_title,
            screenshot=image,
        )
