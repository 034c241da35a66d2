"""
Canvas Data Types - Shared Contract

Defines the data contract between the sizing, camera, mapping and capture
parts of the virtual-resolution pipeline. All values are immutable; each
frame produces new instances instead of mutating old ones.

Units:
    virtual pixel: one pixel of the art's native (unscaled) resolution
    device pixel:  one pixel of the output surface (window / framebuffer)
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple


Vec2 = Tuple[float, float]

ORIGIN: Vec2 = (0.0, 0.0)


class SizingMode(Enum):
    """How the canvas absorbs a window size that doesn't divide by the scale

    TRIM: canvas never exceeds the window, the leftover becomes a letterbox
    OVERSCAN: one extra virtual pixel is rendered and partially clipped
    """
    TRIM = "trim"
    OVERSCAN = "overscan"


class AlignmentPolicy(Enum):
    """How the ideal camera position is snapped for rendering

    WORLD_PIXEL: round to whole virtual pixels (jerky at large scale)
    SCREEN_PIXEL: round to whole device pixels (smooth, still snapped)
    OFF: no snapping, aligned offset equals the ideal offset
    """
    OFF = "off"
    WORLD_PIXEL = "world"
    SCREEN_PIXEL = "screen"


class PointerOffsetSource(Enum):
    """Which camera offset the pointer mapping is panned by"""
    ALIGNED = "aligned"
    IDEAL = "ideal"


class CaptureState(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


@dataclass(frozen=True)
class CanvasGeometry:
    """Virtual canvas size and placement for one window resolution and scale

    Recomputed only when window resolution, scale factor or sizing mode
    change (see canvas_core.CanvasSizer).

    Attributes:
        window_resolution: Output surface size in device pixels
        scale_factor: Device pixels per virtual pixel (>0, may be fractional)
        mode: Sizing mode that produced this geometry
        canvas_size: Canvas dimensions in virtual pixels (whole numbers)
        leftover: window_resolution mod scale_factor, in [0, scale_factor)
        letterbox_offset: Device pixel position of the canvas top-left corner
    """
    window_resolution: Vec2
    scale_factor: float
    mode: SizingMode
    canvas_size: Vec2
    leftover: Vec2
    letterbox_offset: Vec2

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to render this frame"""
        return self.canvas_size[0] <= 0 or self.canvas_size[1] <= 0

    @property
    def scaled_size(self) -> Vec2:
        """Canvas size in device pixels"""
        return (
            self.canvas_size[0] * self.scale_factor,
            self.canvas_size[1] * self.scale_factor,
        )

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Integer canvas size, as needed to allocate a render surface"""
        return (int(self.canvas_size[0]), int(self.canvas_size[1]))


@dataclass(frozen=True)
class CameraState:
    """Camera position for one frame

    Attributes:
        ideal_offset: Continuous camera position in virtual pixels
        aligned_offset: ideal_offset snapped by the active alignment policy
        angle: Orbit angle in radians (scripted mode)
        freelook: True = driven by input, False = scripted orbit
    """
    ideal_offset: Vec2 = ORIGIN
    aligned_offset: Vec2 = ORIGIN
    angle: float = 0.0
    freelook: bool = True


@dataclass(frozen=True)
class CaptureSummary:
    """Result of a finished capture session"""
    directory: Path
    frame_count: int
