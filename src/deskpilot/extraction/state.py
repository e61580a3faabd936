"""Application state snapshots produced by the StateExtractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class Tier(IntEnum):
    """Extraction strategies, richest first."""

    SCRIPT_INJECTION = 1
    SCRIPTING_DICTIONARY = 2
    ACCESSIBILITY = 3
    SCREENSHOT = 4


@dataclass(frozen=True, slots=True)
class UIElement:
    """An element reported by a browser probe or the accessibility tree."""

    role: str
    label: str = ""
    value: str | None = None
    position: tuple[int, int] | None = None  # Logical pixels, element center


@dataclass(frozen=True, slots=True)
class BrowserSnapshot:
    """Result of injecting the state probe into a browser tab."""

    url: str = ""
    title: str = ""
    elements: tuple[UIElement, ...] = ()
    text: str = ""


@dataclass(frozen=True, slots=True)
class AccessibilitySnapshot:
    """Result of walking an application's accessibility tree."""

    success: bool
    elements: tuple[UIElement, ...] = ()
    window_title: str = ""
    error: str | None = None

    def role_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for element in self.elements:
            counts[element.role] = counts.get(element.role, 0) + 1
        return counts


@dataclass(frozen=True, slots=True)
class AppState:
    """What the agent knows about the focused application.

    Immutable; the agent loop replaces it after every tool round.
    """

    tier: Tier
    method: str
    formatted: str
    app_name: str = ""
    window_title: str = ""
    raw: Any = None
    screenshot: str | None = None  # base64 PNG
    selected_text: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)
