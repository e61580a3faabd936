"""Tests for tiered state extraction."""

from __future__ import annotations

import pytest

from deskpilot.errors import ScreenshotCaptureError
from deskpilot.extraction import (
    AccessibilitySnapshot,
    BrowserSnapshot,
    StateExtractor,
    Tier,
    UIElement,
    format_for_agent,
    has_useful_content,
)
from deskpilot.extraction.formatting import SCREENSHOT_ONLY_NOTE
from tests.utils import (
    SCREENSHOT,
    FakeAccessibility,
    FakeBackend,
    FakeBrowserProbe,
    FakeScripting,
    elements,
)

USEFUL_TREE = AccessibilitySnapshot(success=True, elements=elements("Button", "TextField"), window_title="Inbox")


class PermissionlessBackend(FakeBackend):
    """Raises plain exceptions, as a backend without a TimedBackend wrapper would."""

    capture_error: Exception | None = None

    async def frontmost_application(self) -> str | None:
        raise RuntimeError("accessibility permission revoked")

    async def read_current_selection(self, app: str | None = None) -> str | None:
        raise RuntimeError("accessibility permission revoked")

    async def capture_screenshot(self, width: int | None = None) -> str:
        if self.capture_error is not None:
            raise self.capture_error
        return await super().capture_screenshot(width)


# =============================================================================
# Tier fallthrough
# =============================================================================


class TestTierOrder:
    @pytest.mark.asyncio
    async def test_browser_with_elements_uses_tier_1(self) -> None:
        backend = FakeBackend(frontmost="Safari")
        probe = FakeBrowserProbe(
            BrowserSnapshot(url="https://example.com", title="Example",
                            elements=(UIElement("link", "More info", position=(10, 20)),))
        )
        accessibility = FakeAccessibility(USEFUL_TREE)
        extractor = StateExtractor(backend, browser_probe=probe, accessibility=accessibility)

        state = await extractor.extract()

        assert state.tier is Tier.SCRIPT_INJECTION
        assert "URL: https://example.com" in state.formatted
        assert '[1] link "More info" at (10, 20)' in state.formatted
        assert accessibility.calls == []

    @pytest.mark.asyncio
    async def test_browser_without_elements_falls_through_every_tier(self) -> None:
        """Zero interactive elements from tier 1 means tiers 2, 3 and 4 are tried in order."""
        backend = FakeBackend(frontmost="Safari")
        probe = FakeBrowserProbe(BrowserSnapshot(url="about:blank"))
        scripting = FakeScripting("error: no document")
        accessibility = FakeAccessibility(AccessibilitySnapshot(success=True, elements=elements("Group")))
        extractor = StateExtractor(
            backend, browser_probe=probe, scripting=scripting, accessibility=accessibility
        )

        state = await extractor.extract()

        assert probe.calls == ["Safari"]
        assert scripting.calls == ["Safari"]
        assert accessibility.calls == ["Safari"]
        assert state.tier is Tier.SCREENSHOT
        assert state.screenshot == SCREENSHOT
        assert SCREENSHOT_ONLY_NOTE in state.formatted

    @pytest.mark.asyncio
    async def test_probe_exception_falls_through(self) -> None:
        backend = FakeBackend(frontmost="Google Chrome")
        probe = FakeBrowserProbe(error=RuntimeError("no JS permission"))
        extractor = StateExtractor(backend, browser_probe=probe, accessibility=FakeAccessibility(USEFUL_TREE))
        state = await extractor.extract()
        assert state.tier is Tier.ACCESSIBILITY

    @pytest.mark.asyncio
    async def test_non_browser_skips_tier_1(self) -> None:
        backend = FakeBackend(frontmost="Notes")
        probe = FakeBrowserProbe(BrowserSnapshot(elements=elements("link")))
        extractor = StateExtractor(backend, browser_probe=probe, scripting=FakeScripting("Note: groceries"))
        state = await extractor.extract()
        assert probe.calls == []
        assert state.tier is Tier.SCRIPTING_DICTIONARY
        assert state.formatted == "App: Notes\n\nNote: groceries"

    @pytest.mark.asyncio
    async def test_unsupported_app_skips_tier_2(self) -> None:
        scripting = FakeScripting("text", apps={"Mail"})
        extractor = StateExtractor(FakeBackend(frontmost="Notes"), scripting=scripting)
        state = await extractor.extract()
        assert scripting.calls == []
        assert state.tier is Tier.SCREENSHOT

    @pytest.mark.asyncio
    async def test_accessibility_tier(self) -> None:
        extractor = StateExtractor(FakeBackend(frontmost="Mail"), accessibility=FakeAccessibility(USEFUL_TREE))
        state = await extractor.extract()
        assert state.tier is Tier.ACCESSIBILITY
        assert state.window_title == "Inbox"
        assert state.screenshot is None

    @pytest.mark.asyncio
    async def test_window_title_carried_into_screenshot_tier(self) -> None:
        useless = AccessibilitySnapshot(success=True, elements=elements("Group"), window_title="Draft")
        extractor = StateExtractor(FakeBackend(frontmost="Mail"), accessibility=FakeAccessibility(useless))
        state = await extractor.extract()
        assert state.tier is Tier.SCREENSHOT
        assert state.window_title == "Draft"
        assert "Window: Draft" in state.formatted

    @pytest.mark.asyncio
    async def test_explicit_app_name(self) -> None:
        accessibility = FakeAccessibility(USEFUL_TREE)
        extractor = StateExtractor(FakeBackend(frontmost="Finder"), accessibility=accessibility)
        await extractor.extract(app_name="Mail")
        assert accessibility.calls == ["Mail"]


class TestScreenshotTier:
    @pytest.mark.asyncio
    async def test_capture_uses_resized_width(self) -> None:
        backend = FakeBackend()
        await StateExtractor(backend).extract()
        assert backend.called("capture_screenshot") == [(1448,)]

    @pytest.mark.asyncio
    async def test_capture_failure_is_fatal(self) -> None:
        backend = FakeBackend()
        backend.fail_on = {"capture_screenshot"}
        with pytest.raises(ScreenshotCaptureError):
            await StateExtractor(backend).extract()

    @pytest.mark.asyncio
    async def test_empty_capture_is_fatal(self) -> None:
        backend = FakeBackend()
        backend.screenshot = ""
        with pytest.raises(ScreenshotCaptureError, match="no image"):
            await StateExtractor(backend).extract()

    @pytest.mark.asyncio
    async def test_unwrapped_capture_error_is_fatal(self) -> None:
        backend = PermissionlessBackend()
        backend.capture_error = OSError("display asleep")
        with pytest.raises(ScreenshotCaptureError, match="display asleep"):
            await StateExtractor(backend).extract()


# =============================================================================
# Selection handling
# =============================================================================


class TestSelection:
    @pytest.mark.asyncio
    async def test_selection_hint_is_prefixed(self) -> None:
        backend = FakeBackend(selection="ignored")
        state = await StateExtractor(backend).extract("Dear team")
        assert state.selected_text == "Dear team"
        assert state.formatted.startswith("=== USER SELECTED TEXT ===\nDear team\n")
        assert backend.called("read_current_selection") == []

    @pytest.mark.asyncio
    async def test_selection_read_from_backend(self) -> None:
        backend = FakeBackend(selection="hello")
        state = await StateExtractor(backend).extract()
        assert state.selected_text == "hello"

    @pytest.mark.asyncio
    async def test_selection_failure_is_ignored(self) -> None:
        backend = FakeBackend()
        backend.fail_on = {"read_current_selection"}
        state = await StateExtractor(backend).extract()
        assert state.selected_text is None

    @pytest.mark.asyncio
    async def test_unwrapped_backend_errors_are_ignored(self) -> None:
        state = await StateExtractor(PermissionlessBackend()).extract()
        assert state.tier is Tier.SCREENSHOT
        assert state.app_name == ""
        assert state.selected_text is None


# =============================================================================
# Formatting
# =============================================================================


class TestUsefulContent:
    def test_failed_read(self) -> None:
        assert not has_useful_content(AccessibilitySnapshot(success=False, elements=elements("Link")))

    def test_informative_role(self) -> None:
        assert has_useful_content(AccessibilitySnapshot(success=True, elements=elements("Heading")))

    def test_static_text_threshold(self) -> None:
        assert not has_useful_content(AccessibilitySnapshot(success=True, elements=elements(*["StaticText"] * 4)))
        assert has_useful_content(AccessibilitySnapshot(success=True, elements=elements(*["StaticText"] * 5)))

    def test_element_count_threshold(self) -> None:
        assert not has_useful_content(AccessibilitySnapshot(success=True, elements=elements(*["Group"] * 14)))
        assert has_useful_content(AccessibilitySnapshot(success=True, elements=elements(*["Group"] * 15)))

    @pytest.mark.asyncio
    async def test_format_for_agent_header(self) -> None:
        state = await StateExtractor(FakeBackend()).extract()
        text = format_for_agent(state)
        assert text.startswith("=== Current Application State ===\nExtraction: tier 4 (screenshot)\n")
