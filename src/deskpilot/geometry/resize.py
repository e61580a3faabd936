"""Screenshot resize limits for vision models.

Screenshots are downscaled before being sent to the model. The same function
is used by the capture path and by the coordinate mapper, which needs the
resized dimensions to map screenshot-relative points back to the screen.
"""

from __future__ import annotations

import math

MAX_LONG_EDGE = 1568
MAX_TOTAL_PIXELS = 1_180_000


def calculate_resize_width(width: int, height: int) -> int:
    """Width of a width x height image after fitting it to the vision limits.

    The image is never upscaled.
    """
    if width <= 0 or height <= 0:
        return max(width, 0)
    scale = min(
        1.0,
        MAX_LONG_EDGE / max(width, height),
        math.sqrt(MAX_TOTAL_PIXELS / (width * height)),
    )
    return round(width * scale)


def calculate_resize_dimensions(width: int, height: int) -> tuple[int, int]:
    """(width, height) after resizing, preserving aspect ratio."""
    resized_width = calculate_resize_width(width, height)
    if width <= 0:
        return resized_width, height
    return resized_width, round(height * resized_width / width)
