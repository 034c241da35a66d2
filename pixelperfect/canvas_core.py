"""
Canvas Sizer - Functional Core

Pure functions that derive the virtual canvas from a window resolution and
a scale factor. No side effects, no GPU operations - only calculations.

The caller owns the off-screen render surface; this module only reports the
size it must have and whether it has to be reallocated.
"""

import math
from typing import Optional, Tuple

from .canvas_types import CanvasGeometry, SizingMode, Vec2
from .errors import InvalidScale


# 680 pixels is the width of a typical website content area; 380 gives ~16:9
IDEAL_CAPTURE_SIZE: Vec2 = (680.0, 380.0)


# ============================================================================
# Validation
# ============================================================================

def validate_scale(scale_factor: float) -> float:
    """Return scale_factor as float, or raise InvalidScale

    Raises:
        InvalidScale: scale_factor is <= 0, NaN or infinite
    """
    try:
        scale = float(scale_factor)
    except (TypeError, ValueError) as e:
        raise InvalidScale(scale_factor) from e
    if not math.isfinite(scale) or scale <= 0.0:
        raise InvalidScale(scale_factor)
    return scale


def clean_resolution(window_resolution: Vec2) -> Vec2:
    """Window resolution as floats with negative axes clamped to 0

    Negative sizes come from minimised windows on some platforms.

    Raises:
        ValueError: A component is NaN or infinite
    """
    width, height = (float(v) for v in window_resolution)
    if not (math.isfinite(width) and math.isfinite(height)):
        raise ValueError(f"Window resolution must be finite, got {window_resolution!r}")
    return (max(width, 0.0), max(height, 0.0))


# ============================================================================
# Per-axis calculations
# ============================================================================

def leftover_pixels(length: float, scale_factor: float) -> float:
    """Device pixels that don't fit a whole virtual pixel (fmod)

    Returns:
        Value in [0, scale_factor)
    """
    return math.fmod(length, scale_factor)


def fitting_pixel_count(length: float, scale_factor: float) -> int:
    """Number of whole virtual pixels that fit in `length` device pixels

    (length - leftover) / scale is a whole number in exact arithmetic, so it
    is rounded rather than floored, then corrected so the result never
    overflows `length` and never wastes a whole virtual pixel.
    """
    if length <= 0.0:
        return 0
    count = int(round((length - leftover_pixels(length, scale_factor)) / scale_factor))
    while count > 0 and count * scale_factor > length:
        count -= 1
    while (count + 1) * scale_factor <= length:
        count += 1
    return count


def letterbox_offset_axis(length: float, canvas_length: float, scale_factor: float) -> float:
    """Device pixel offset that centres the scaled canvas, floored

    Flooring keeps the canvas on a whole device pixel.
    """
    return float(math.floor((length - canvas_length * scale_factor) / 2.0))


# ============================================================================
# Geometry
# ============================================================================

def compute_geometry(
    window_resolution: Vec2,
    scale_factor: float,
    mode: SizingMode = SizingMode.TRIM,
) -> CanvasGeometry:
    """Derive canvas size, leftover and letterbox offset

    TRIM: canvas_size = floor((window - leftover) / scale), centred with a
    letterbox border made of the leftover pixels.

    OVERSCAN: one extra virtual pixel per axis. The scaled canvas covers the
    whole window (clipped on the right/bottom edge), so the letterbox offset
    is pinned to the top-left corner (0, 0).

    A zero-sized window axis yields a zero canvas on that axis in both
    modes; check `geometry.is_empty` and skip rendering.

    Args:
        window_resolution: Output surface size in device pixels
        scale_factor: Device pixels per virtual pixel
        mode: SizingMode.TRIM or SizingMode.OVERSCAN

    Returns:
        CanvasGeometry

    Raises:
        InvalidScale: scale_factor <= 0 or not finite
        ValueError: window_resolution is not finite

    Examples:
        >>> g = compute_geometry((1000, 700), 3)
        >>> g.canvas_size, g.leftover, g.letterbox_offset
        ((333.0, 233.0), (1.0, 1.0), (0.0, 0.0))
    """
    scale = validate_scale(scale_factor)
    width, height = clean_resolution(window_resolution)

    leftover = (leftover_pixels(width, scale), leftover_pixels(height, scale))
    canvas_w = fitting_pixel_count(width, scale)
    canvas_h = fitting_pixel_count(height, scale)

    if mode is SizingMode.OVERSCAN:
        if width > 0.0:
            canvas_w += 1
        if height > 0.0:
            canvas_h += 1
        offset = (0.0, 0.0)
    else:
        offset = (
            letterbox_offset_axis(width, canvas_w, scale),
            letterbox_offset_axis(height, canvas_h, scale),
        )

    return CanvasGeometry(
        window_resolution=(width, height),
        scale_factor=scale,
        mode=mode,
        canvas_size=(float(canvas_w), float(canvas_h)),
        leftover=leftover,
        letterbox_offset=offset,
    )


def geometry_key(
    window_resolution: Vec2, scale_factor: float, mode: SizingMode
) -> Tuple[Vec2, float, SizingMode]:
    """Cheap equality key for deciding whether to recompute

    Built from the clamped resolution, so it matches the key of a geometry
    whose window_resolution was already cleaned.
    """
    return (clean_resolution(window_resolution), float(scale_factor), mode)


class CanvasSizer:
    """Caches the last geometry and recomputes only when its inputs change

    The `changed` flag returned by update() tells the caller to reallocate
    the off-screen surface to `geometry.pixel_size`.
    """

    def __init__(self, mode: SizingMode = SizingMode.TRIM):
        self.mode = mode
        self._key: Optional[Tuple[Vec2, float, SizingMode]] = None
        self._geometry: Optional[CanvasGeometry] = None

    @property
    def geometry(self) -> Optional[CanvasGeometry]:
        return self._geometry

    def update(self, window_resolution: Vec2, scale_factor: float) -> Tuple[CanvasGeometry, bool]:
        """Return (geometry, changed) for the current window and scale"""
        key = geometry_key(window_resolution, validate_scale(scale_factor), self.mode)
        if self._geometry is not None and key == self._key:
            return self._geometry, False

        geometry = compute_geometry(window_resolution, scale_factor, self.mode)
        self._key = key
        self._geometry = geometry
        return geometry, True

    def invalidate(self) -> None:
        """Force the next update() to recompute"""
        self._key = None
        self._geometry = None
