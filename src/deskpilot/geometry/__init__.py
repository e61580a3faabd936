"""Screen geometry and coordinate normalization."""

from deskpilot.geometry.coordinates import (
    CoordinateConvention,
    Point,
    ScreenGeometry,
    resolve_drag,
    resolve_point,
)
from deskpilot.geometry.resize import (
    MAX_LONG_EDGE,
    MAX_TOTAL_PIXELS,
    calculate_resize_dimensions,
    calculate_resize_width,
)

__all__ = [
    "CoordinateConvention",
    "Point",
    "ScreenGeometry",
    "resolve_point",
    "resolve_drag",
    "MAX_LONG_EDGE",
    "MAX_TOTAL_PIXELS",
    "calculate_resize_width",
    "calculate_resize_dimensions",
]
