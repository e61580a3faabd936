"""Application state extraction."""

from deskpilot.extraction.extractor import StateExtractor
from deskpilot.extraction.formatting import format_for_agent, has_useful_content
from deskpilot.extraction.sources import (
    BROWSER_APPS,
    AccessibilityReader,
    BrowserProbe,
    ScriptingDictionary,
    is_browser,
)
from deskpilot.extraction.state import (
    AccessibilitySnapshot,
    AppState,
    BrowserSnapshot,
    Tier,
    UIElement,
)

__all__ = [
    "StateExtractor",
    "AppState",
    "Tier",
    "UIElement",
    "BrowserSnapshot",
    "AccessibilitySnapshot",
    "BrowserProbe",
    "ScriptingDictionary",
    "AccessibilityReader",
    "BROWSER_APPS",
    "is_browser",
    "format_for_agent",
    "has_useful_content",
]
