"""Tests for action parsing and the inter-action wait policy."""

from __future__ import annotations

import pytest

from deskpilot.actions import (
    ActionKind,
    ActionParseError,
    ActionSpec,
    WaitKind,
    WaitTiming,
    parse_action,
    parse_actions,
    plan_wait,
)


def spec(kind: ActionKind, **kwargs) -> ActionSpec:
    return ActionSpec(kind, **kwargs)


ACTIVATE = spec(ActionKind.ACTIVATE, app="Safari")
CLICK = spec(ActionKind.CLICK, point=(10, 20))
TYPE = spec(ActionKind.TYPE, text="hello")
RETURN = spec(ActionKind.KEY, combo="return")
SCROLL = spec(ActionKind.SCROLL, direction="down", amount=3)


# =============================================================================
# Parsing
# =============================================================================


class TestParseAction:
    def test_click_with_coordinate(self) -> None:
        action = parse_action({"action": "left_click", "coordinate": [10, 20]})
        assert action.kind is ActionKind.CLICK
        assert action.point == (10.0, 20.0)

    def test_click_with_x_y(self) -> None:
        action = parse_action({"action": "double_click", "x": "5", "y": 6})
        assert action.kind is ActionKind.DOUBLE_CLICK
        assert action.point == (5.0, 6.0)

    def test_pointer_without_point_fails(self) -> None:
        with pytest.raises(ActionParseError, match="requires 'coordinate'"):
            parse_action({"action": "click"})

    def test_hotkey_with_modifiers(self) -> None:
        action = parse_action({"action": "hotkey", "key": "K", "modifiers": ["cmd", "shift"]})
        assert action.combo == "cmd+shift+k"

    def test_key_list(self) -> None:
        action = parse_action({"action": "key", "keys": ["cmd", "a"]})
        assert action.kind is ActionKind.KEY
        assert action.combo == "cmd+a"

    def test_aliases(self) -> None:
        assert parse_action({"action": "applescript", "script": "beep"}).kind is ActionKind.RUN_SCRIPT
        assert parse_action({"type": "focus", "app": "Mail"}).kind is ActionKind.ACTIVATE
        assert parse_action({"action": "left_click_drag", "start_coordinate": [0, 0],
                             "end_coordinate": [1, 1]}).kind is ActionKind.DRAG

    def test_scroll_defaults(self) -> None:
        action = parse_action({"action": "scroll"})
        assert action.direction == "down"
        assert action.amount == 3
        assert action.point is None

    def test_scroll_aliases(self) -> None:
        action = parse_action({"action": "scroll", "scroll_direction": "UP", "scroll_amount": 5,
                               "coordinate": [100, 100]})
        assert action.direction == "up"
        assert action.amount == 5
        assert action.point == (100.0, 100.0)

    def test_invalid_scroll_direction(self) -> None:
        with pytest.raises(ActionParseError, match="Invalid scroll direction"):
            parse_action({"action": "scroll", "direction": "sideways"})

    def test_drag_needs_both_ends(self) -> None:
        with pytest.raises(ActionParseError, match="drag requires"):
            parse_action({"action": "drag", "start_coordinate": [0, 0]})

    def test_wait_default_duration(self) -> None:
        assert parse_action({"action": "wait"}).duration == 1.0

    def test_type_requires_text(self) -> None:
        with pytest.raises(ActionParseError):
            parse_action({"action": "type"})

    def test_unknown_kind(self) -> None:
        with pytest.raises(ActionParseError, match="Unknown action type: teleport"):
            parse_action({"action": "teleport"})

    def test_missing_kind(self) -> None:
        with pytest.raises(ActionParseError, match="missing 'action'"):
            parse_action({"text": "hi"})

    def test_not_a_dict(self) -> None:
        with pytest.raises(ActionParseError, match="must be an object"):
            parse_action(["click"])  # type: ignore[arg-type]


class TestParseActions:
    def test_error_names_position(self) -> None:
        with pytest.raises(ActionParseError, match=r"^Action 2: "):
            parse_actions([{"action": "activate", "app": "Notes"}, {"action": "bogus"}])

    def test_preserves_order(self) -> None:
        actions = parse_actions(
            [
                {"action": "activate", "app": "Notes"},
                {"action": "type", "text": "hi"},
                {"action": "key", "key": "return"},
            ]
        )
        assert [a.kind for a in actions] == [ActionKind.ACTIVATE, ActionKind.TYPE, ActionKind.KEY]


class TestDescribe:
    def test_type_preview_truncated(self) -> None:
        action = spec(ActionKind.TYPE, text="x" * 50)
        assert action.describe() == 'type "' + "x" * 27 + '..."'

    def test_pointer(self) -> None:
        assert CLICK.describe() == "click (10, 20)"

    def test_drag(self) -> None:
        action = spec(ActionKind.DRAG, point=(1, 2), end=(3.5, 4))
        assert action.describe() == "drag (1, 2) → (3.5, 4)"

    def test_is_return_key(self) -> None:
        assert RETURN.is_return_key
        assert spec(ActionKind.HOTKEY, combo="Enter").is_return_key
        assert not spec(ActionKind.KEY, combo="tab").is_return_key


# =============================================================================
# Wait policy
# =============================================================================


class TestPlanWait:
    """The wait after action i is chosen from (action i, action i+1)."""

    def test_last_action_has_no_wait(self) -> None:
        assert plan_wait(CLICK, None).kind is WaitKind.NONE

    def test_activate_polls_frontmost(self) -> None:
        plan = plan_wait(ACTIVATE, TYPE)
        assert plan.kind is WaitKind.POLL_FRONTMOST
        assert plan.timeout_ms == 3000

    def test_click_then_type_waits_for_settle(self) -> None:
        plan = plan_wait(CLICK, TYPE)
        assert plan.kind is WaitKind.POLL_UI_SETTLE
        assert plan.timeout_ms == 1500

    def test_click_then_click_is_fixed(self) -> None:
        plan = plan_wait(CLICK, CLICK)
        assert plan.kind is WaitKind.FIXED
        assert plan.delay_ms == 100

    def test_type_then_return_waits_for_settle(self) -> None:
        assert plan_wait(TYPE, RETURN).kind is WaitKind.POLL_UI_SETTLE

    def test_type_delay_scales_with_length(self) -> None:
        short = plan_wait(TYPE, CLICK)
        long = plan_wait(spec(ActionKind.TYPE, text="x" * 100), CLICK)
        huge = plan_wait(spec(ActionKind.TYPE, text="x" * 5000), CLICK)
        assert (short.kind, short.delay_ms) == (WaitKind.FIXED, 50)
        assert long.delay_ms == 500
        assert huge.delay_ms == 1000

    def test_return_then_type_waits_longer(self) -> None:
        plan = plan_wait(RETURN, TYPE)
        assert plan.kind is WaitKind.POLL_UI_SETTLE
        assert plan.timeout_ms == 2000

    def test_scroll_gets_minimum_delay(self) -> None:
        plan = plan_wait(SCROLL, CLICK)
        assert (plan.kind, plan.delay_ms) == (WaitKind.FIXED, 100)

    @pytest.mark.parametrize("kind", [ActionKind.RIGHT_CLICK, ActionKind.DOUBLE_CLICK])
    def test_menus_and_dialogs_settle(self, kind: ActionKind) -> None:
        assert plan_wait(spec(kind, point=(1, 1)), CLICK).kind is WaitKind.POLL_UI_SETTLE

    def test_wait_action_adds_nothing(self) -> None:
        assert plan_wait(spec(ActionKind.WAIT, duration=1), CLICK).kind is WaitKind.NONE

    def test_custom_timing(self) -> None:
        timing = WaitTiming(min_delay_ms=250, app_activate_timeout_ms=500)
        assert plan_wait(SCROLL, CLICK, timing).delay_ms == 250
        assert plan_wait(ACTIVATE, CLICK, timing).timeout_ms == 500
