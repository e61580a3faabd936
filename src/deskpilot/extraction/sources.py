"""Extraction sources for tiers 1-3.

Each source is injected into the StateExtractor. Implementations are
platform glue (JS injection into a browser tab, an application's scripting
dictionary, the OS accessibility API) and live outside this package.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from deskpilot.extraction.state import AccessibilitySnapshot, BrowserSnapshot

BROWSER_APPS = frozenset(
    {
        "Safari",
        "Google Chrome",
        "Arc",
        "Chromium",
        "Brave Browser",
        "Microsoft Edge",
    }
)

# Prefix that scripting-dictionary extractors use to report internal failure
SCRIPT_ERROR_MARKER = "error:"


def is_browser(app_name: str | None) -> bool:
    return bool(app_name) and app_name in BROWSER_APPS


@runtime_checkable
class BrowserProbe(Protocol):
    """Tier 1: inject a state-probing script into the active browser tab."""

    async def probe(self, app_name: str) -> BrowserSnapshot: ...


@runtime_checkable
class ScriptingDictionary(Protocol):
    """Tier 2: applications exposing a structured automation dictionary."""

    def supports(self, app_name: str) -> bool: ...

    async def extract(self, app_name: str) -> str: ...


@runtime_checkable
class AccessibilityReader(Protocol):
    """Tier 3: read the focused window's accessibility tree."""

    async def read(self, app_name: str) -> AccessibilitySnapshot: ...
