"""Coordinate normalization for model-issued pointer actions.

Models report points in different conventions:

- NORMALIZED_GRID: a 0..1 or 0..999 grid laid over the logical screen.
- SCREENSHOT_RELATIVE: pixels of the resized screenshot the model was shown.
  The screenshot was produced from the native (HiDPI) capture and then
  downscaled, so mapping back goes resized -> logical.
- PIXEL: already logical screen pixels.

This module is the only place that branches on the convention. All
functions are pure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from deskpilot.geometry.resize import calculate_resize_dimensions

GRID_MAX = 999


class CoordinateConvention(Enum):
    """How a provider encodes points."""

    NORMALIZED_GRID = "normalized_grid"
    SCREENSHOT_RELATIVE = "screenshot_relative"
    PIXEL = "pixel"

    @classmethod
    def parse(cls, value: str | None) -> CoordinateConvention:
        """Parse a catalogue value; unknown values fall back to PIXEL."""
        try:
            return cls(value)
        except ValueError:
            return cls.PIXEL

    @classmethod
    def for_provider(cls, provider: str) -> CoordinateConvention:
        """Convention declared by a provider in the model catalogue."""
        from deskpilot.core.llm.providers import get_provider_configs

        config = get_provider_configs().get(provider)
        return cls.parse(config.coordinates if config else None)

    @classmethod
    def for_model(cls, model_id: str) -> CoordinateConvention:
        from deskpilot.core.llm.providers import find_provider

        config = find_provider(model_id)
        return cls.parse(config.coordinates if config else None)


@dataclass(frozen=True, slots=True)
class ScreenGeometry:
    """Logical screen size and the display's pixel scale factor."""

    width: int
    height: int
    scale_factor: float = 1.0

    @property
    def native_size(self) -> tuple[int, int]:
        return round(self.width * self.scale_factor), round(self.height * self.scale_factor)

    @property
    def screenshot_size(self) -> tuple[int, int]:
        """Size of the screenshot sent to the model."""
        return calculate_resize_dimensions(*self.native_size)


Point = tuple[int, int]


def _round(value: float) -> int:
    """Round half up (round() would send 540.5 to 540)."""
    return math.floor(value + 0.5)


def _grid_denominator(x: float, y: float) -> float | None:
    """1 for a unit grid, 999 for a 0..999 grid, None for raw pixels."""
    magnitude = max(abs(x), abs(y))
    if magnitude <= 1:
        return 1.0
    if magnitude <= GRID_MAX:
        return float(GRID_MAX)
    return None


def resolve_point(
    x: float,
    y: float,
    convention: CoordinateConvention,
    geometry: ScreenGeometry,
) -> Point:
    """Convert a model-reported point to logical screen pixels.

    Examples:
        >>> screen = ScreenGeometry(1920, 1080)
        >>> resolve_point(500, 500, CoordinateConvention.NORMALIZED_GRID, screen)
        (961, 541)
        >>> resolve_point(0.5, 0.5, CoordinateConvention.NORMALIZED_GRID, screen)
        (960, 540)
    """
    if convention is CoordinateConvention.NORMALIZED_GRID:
        denominator = _grid_denominator(x, y)
        if denominator is None:
            return _round(x), _round(y)
        return (
            _round(x / denominator * geometry.width),
            _round(y / denominator * geometry.height),
        )

    if convention is CoordinateConvention.SCREENSHOT_RELATIVE:
        shot_width, shot_height = geometry.screenshot_size
        if shot_width <= 0 or shot_height <= 0:
            return _round(x), _round(y)
        return (
            _round(x / shot_width * geometry.width),
            _round(y / shot_height * geometry.height),
        )

    return _round(x), _round(y)


def resolve_drag(
    start: tuple[float, float],
    end: tuple[float, float],
    convention: CoordinateConvention,
    geometry: ScreenGeometry,
) -> tuple[Point, Point]:
    """Convert both endpoints of a drag; each endpoint is resolved independently."""
    return (
        resolve_point(start[0], start[1], convention, geometry),
        resolve_point(end[0], end[1], convention, geometry),
    )

