"""Primitive UI actions as issued by the model.

Models are loose with argument names, so parsing accepts the common
aliases: "coordinate": [x, y] or "x"/"y", "scroll_direction" for
"direction", "applescript" for "run_script", and so on.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ActionKind(Enum):
    ACTIVATE = "activate"
    RUN_SCRIPT = "run_script"
    HOTKEY = "hotkey"
    TYPE = "type"
    KEY = "key"
    CLICK = "click"
    RIGHT_CLICK = "right_click"
    DOUBLE_CLICK = "double_click"
    MOUSE_MOVE = "mouse_move"
    SCROLL = "scroll"
    DRAG = "drag"
    WAIT = "wait"
    INSERT_IMAGE = "insert_image"
    SCREENSHOT = "screenshot"


_KIND_ALIASES = {
    "applescript": ActionKind.RUN_SCRIPT,
    "script": ActionKind.RUN_SCRIPT,
    "left_click": ActionKind.CLICK,
    "move": ActionKind.MOUSE_MOVE,
    "focus": ActionKind.ACTIVATE,
    "focus_app": ActionKind.ACTIVATE,
    "key_combo": ActionKind.HOTKEY,
    "left_click_drag": ActionKind.DRAG,
    "image": ActionKind.INSERT_IMAGE,
}

# Setting categories that can switch groups of actions off
ACTION_CATEGORIES: dict[ActionKind, str] = {
    ActionKind.CLICK: "clicking",
    ActionKind.RIGHT_CLICK: "clicking",
    ActionKind.DOUBLE_CLICK: "clicking",
    ActionKind.MOUSE_MOVE: "clicking",
    ActionKind.DRAG: "clicking",
    ActionKind.SCROLL: "scrolling",
    ActionKind.TYPE: "typing",
    ActionKind.KEY: "typing",
    ActionKind.HOTKEY: "typing",
    ActionKind.SCREENSHOT: "screenshot",
    ActionKind.INSERT_IMAGE: "insert_image",
}

POINTER_KINDS = frozenset(
    {ActionKind.CLICK, ActionKind.RIGHT_CLICK, ActionKind.DOUBLE_CLICK, ActionKind.MOUSE_MOVE}
)

SCROLL_DIRECTIONS = frozenset({"up", "down", "left", "right"})
DEFAULT_SCROLL_AMOUNT = 3


class ActionParseError(ValueError):
    """Raised when model-supplied action arguments are unusable."""


@dataclass(frozen=True, slots=True)
class ActionSpec:
    """One primitive action. Only the fields relevant to kind are set."""

    kind: ActionKind
    point: tuple[float, float] | None = None
    end: tuple[float, float] | None = None
    text: str | None = None
    combo: str | None = None
    direction: str | None = None
    amount: int = DEFAULT_SCROLL_AMOUNT
    duration: float = 0.0  # Seconds
    query: str | None = None
    app: str | None = None
    script: str | None = None

    @property
    def is_return_key(self) -> bool:
        if self.kind not in (ActionKind.KEY, ActionKind.HOTKEY) or not self.combo:
            return False
        return self.combo.lower() in ("return", "enter")

    def describe(self) -> str:
        """Short human-readable description used in summaries."""
        kind = self.kind
        if kind is ActionKind.ACTIVATE:
            return f"activate {self.app}"
        if kind is ActionKind.RUN_SCRIPT:
            return "run script"
        if kind in (ActionKind.KEY, ActionKind.HOTKEY):
            return f"{kind.value} {self.combo}"
        if kind is ActionKind.TYPE:
            text = self.text or ""
            preview = text if len(text) <= 30 else text[:27] + "..."
            return f'type "{preview}"'
        if kind in POINTER_KINDS and self.point:
            return f"{kind.value} ({_fmt(self.point[0])}, {_fmt(self.point[1])})"
        if kind is ActionKind.SCROLL:
            return f"scroll {self.direction} {self.amount}"
        if kind is ActionKind.DRAG and self.point and self.end:
            return (
                f"drag ({_fmt(self.point[0])}, {_fmt(self.point[1])}) → "
                f"({_fmt(self.end[0])}, {_fmt(self.end[1])})"
            )
        if kind is ActionKind.WAIT:
            return f"wait {self.duration:g}s"
        if kind is ActionKind.INSERT_IMAGE:
            return f'insert image "{self.query}"'
        return kind.value


def _fmt(value: float) -> str:
    return f"{value:g}"


def parse_kind(value: Any) -> ActionKind:
    if not isinstance(value, str) or not value.strip():
        raise ActionParseError("Action is missing 'action' type")
    name = value.strip().lower().replace("-", "_").replace(" ", "_")
    if name in _KIND_ALIASES:
        return _KIND_ALIASES[name]
    try:
        return ActionKind(name)
    except ValueError:
        raise ActionParseError(f"Unknown action type: {value}") from None


def _number(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ActionParseError(f"Invalid {field_name}: {value!r}") from None


def _point(raw: dict[str, Any], key: str, x_key: str, y_key: str) -> tuple[float, float] | None:
    value = raw.get(key)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return _number(value[0], key), _number(value[1], key)
    if value is not None:
        raise ActionParseError(f"Invalid {key}: {value!r}")
    if raw.get(x_key) is not None and raw.get(y_key) is not None:
        return _number(raw[x_key], x_key), _number(raw[y_key], y_key)
    return None


def _combo(raw: dict[str, Any]) -> str | None:
    keys = raw.get("keys")
    if isinstance(keys, (list, tuple)) and keys:
        return "+".join(str(k).strip().lower() for k in keys)
    combo = raw.get("combo") or raw.get("key") or raw.get("text") or keys
    if not combo or not isinstance(combo, str):
        return None
    modifiers = raw.get("modifiers") or []
    if isinstance(modifiers, str):
        modifiers = [modifiers]
    parts = [str(m).strip().lower() for m in modifiers] + [combo.strip().lower()]
    return "+".join(parts)


def parse_action(raw: dict[str, Any]) -> ActionSpec:
    """Build an ActionSpec from a model-supplied dict.

    Raises:
        ActionParseError: Unknown kind or missing/invalid required fields.
    """
    if not isinstance(raw, dict):
        raise ActionParseError(f"Action must be an object, got {type(raw).__name__}")

    kind = parse_kind(raw.get("action") or raw.get("type") or raw.get("kind"))

    if kind is ActionKind.ACTIVATE:
        app = raw.get("app") or raw.get("name") or raw.get("target")
        if not app:
            raise ActionParseError("activate requires 'app'")
        return ActionSpec(kind, app=str(app))

    if kind is ActionKind.RUN_SCRIPT:
        script = raw.get("script") or raw.get("code")
        if not script:
            raise ActionParseError("run_script requires 'script'")
        return ActionSpec(kind, script=str(script))

    if kind in (ActionKind.KEY, ActionKind.HOTKEY):
        combo = _combo(raw)
        if not combo:
            raise ActionParseError(f"{kind.value} requires 'key'")
        return ActionSpec(kind, combo=combo)

    if kind is ActionKind.TYPE:
        text = raw.get("text")
        if text is None:
            raise ActionParseError("type requires 'text'")
        return ActionSpec(kind, text=str(text))

    if kind in POINTER_KINDS:
        point = _point(raw, "coordinate", "x", "y")
        if point is None:
            raise ActionParseError(f"{kind.value} requires 'coordinate'")
        return ActionSpec(kind, point=point)

    if kind is ActionKind.SCROLL:
        direction = str(raw.get("direction") or raw.get("scroll_direction") or "down").lower()
        if direction not in SCROLL_DIRECTIONS:
            raise ActionParseError(f"Invalid scroll direction: {direction}")
        amount = raw.get("amount", raw.get("scroll_amount", DEFAULT_SCROLL_AMOUNT))
        return ActionSpec(
            kind,
            point=_point(raw, "coordinate", "x", "y"),
            direction=direction,
            amount=max(1, int(_number(amount, "amount"))),
        )

    if kind is ActionKind.DRAG:
        start = _point(raw, "start_coordinate", "start_x", "start_y")
        end = _point(raw, "end_coordinate", "end_x", "end_y")
        if start is None:
            start = _point(raw, "coordinate", "x", "y")
        if start is None or end is None:
            raise ActionParseError("drag requires 'start_coordinate' and 'end_coordinate'")
        return ActionSpec(kind, point=start, end=end)

    if kind is ActionKind.WAIT:
        duration = raw.get("duration", raw.get("seconds", 1))
        return ActionSpec(kind, duration=max(0.0, _number(duration, "duration")))

    if kind is ActionKind.INSERT_IMAGE:
        query = raw.get("query") or raw.get("text")
        if not query:
            raise ActionParseError("insert_image requires 'query'")
        return ActionSpec(kind, query=str(query))

    return ActionSpec(kind)


def parse_actions(raw_actions: Iterable[Any]) -> list[ActionSpec]:
    """Parse a list of actions; the error names the 1-based failing position."""
    actions = []
    for index, raw in enumerate(raw_actions, start=1):
        try:
            actions.append(parse_action(raw))
        except ActionParseError as e:
            raise ActionParseError(f"Action {index}: {e}") from None
    return actions
