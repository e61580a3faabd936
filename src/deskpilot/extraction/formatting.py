"""Text renderings of extracted state for the model prompt."""

from __future__ import annotations

from collections.abc import Iterable

from deskpilot.extraction.state import (
    AccessibilitySnapshot,
    AppState,
    BrowserSnapshot,
    UIElement,
)

SCREENSHOT_ONLY_NOTE = "[No structured UI data available - screenshot provided for visual context]"

# Roles that make an accessibility tree worth sending on their own
INFORMATIVE_ROLES = frozenset({"Link", "Heading", "ComboBox", "TextField", "TextArea", "List"})
MIN_STATIC_TEXT = 5
MIN_ELEMENTS = 15

MAX_ELEMENTS_LISTED = 150


def has_useful_content(snapshot: AccessibilitySnapshot) -> bool:
    """Whether an accessibility read is informative enough to skip the screenshot."""
    if not snapshot.success:
        return False
    counts = snapshot.role_counts()
    if any(role in INFORMATIVE_ROLES for role in counts):
        return True
    if counts.get("StaticText", 0) >= MIN_STATIC_TEXT:
        return True
    return len(snapshot.elements) >= MIN_ELEMENTS


def format_element(index: int, element: UIElement) -> str:
    line = f"[{index}] {element.role}"
    if element.label:
        line += f' "{element.label}"'
    if element.value:
        line += f" = {element.value!r}"
    if element.position:
        line += f" at ({element.position[0]}, {element.position[1]})"
    return line


def format_elements(elements: Iterable[UIElement]) -> str:
    lines = []
    for index, element in enumerate(elements, start=1):
        if index > MAX_ELEMENTS_LISTED:
            lines.append("... (more elements omitted)")
            break
        lines.append(format_element(index, element))
    return "\n".join(lines)


def format_browser(app_name: str, snapshot: BrowserSnapshot) -> str:
    parts = [f"App: {app_name}", f"Page: {snapshot.title}", f"URL: {snapshot.url}", ""]
    parts.append("Interactive elements:")
    parts.append(format_elements(snapshot.elements))
    if snapshot.text:
        parts.extend(["", "Page text:", snapshot.text])
    return "\n".join(parts)


def format_accessibility(app_name: str, snapshot: AccessibilitySnapshot) -> str:
    parts = [f"App: {app_name}", f"Window: {snapshot.window_title}", "", "UI elements:"]
    parts.append(format_elements(snapshot.elements))
    return "\n".join(parts)


def format_screenshot_only(app_name: str, window_title: str) -> str:
    return f"App: {app_name}\nWindow: {window_title}\n\n{SCREENSHOT_ONLY_NOTE}"


def with_selection(formatted: str, selected_text: str | None) -> str:
    """Prefix the user's selected text, if any."""
    if not selected_text:
        return formatted
    return (
        "=== USER SELECTED TEXT ===\n"
        f"{selected_text}\n"
        "=== END SELECTED TEXT ===\n\n"
        f"{formatted}"
    )


def format_for_agent(state: AppState) -> str:
    """Render a state for inclusion in a prompt."""
    header = (
        "=== Current Application State ===\n"
        f"Extraction: tier {int(state.tier)} ({state.method})\n"
    )
    return f"{header}\n{state.formatted}"
