"""
Runtime configuration for the virtual-resolution pipeline.

RenderConfig is the single struct of runtime toggles, read once per frame.
The host maps its key presses onto the helpers below; this package never
polls input devices itself. Nothing here is persisted.
"""

import math
from dataclasses import dataclass, fields, replace
from typing import Tuple

from .canvas_core import validate_scale
from .canvas_types import AlignmentPolicy, PointerOffsetSource, SizingMode, Vec2


# Order used by cycle_alignment()
ALIGNMENT_CYCLE: Tuple[AlignmentPolicy, ...] = (
    AlignmentPolicy.OFF,
    AlignmentPolicy.WORLD_PIXEL,
    AlignmentPolicy.SCREEN_PIXEL,
)


@dataclass(frozen=True)
class RenderConfig:
    """Per-frame toggles and tunables

    Attributes:
        scale_factor: Device pixels per virtual pixel
        sizing_mode: How leftover window pixels are handled
        alignment: Camera alignment policy
        pointer_offset_source: Camera offset used when mapping the pointer
        snap_pointer: Floor the mapped pointer to a whole virtual pixel
        sampling_enabled: Forward the sub-pixel bias to the sampling stage
        centered_camera: Camera offset is the canvas centre, not its corner
        camera_speed: Virtual pixels moved per unit of input per frame
        angular_speed: Orbit speed in radians per second
        orbit_displacement: Orbit radius vector in device pixels
    """
    scale_factor: float = 4.0
    sizing_mode: SizingMode = SizingMode.TRIM
    alignment: AlignmentPolicy = AlignmentPolicy.SCREEN_PIXEL
    pointer_offset_source: PointerOffsetSource = PointerOffsetSource.ALIGNED
    snap_pointer: bool = True
    sampling_enabled: bool = True
    centered_camera: bool = False
    camera_speed: float = 0.3
    angular_speed: float = math.pi * 0.25
    orbit_displacement: Vec2 = (50.0, 50.0)

    def validate(self) -> "RenderConfig":
        """Raise InvalidScale if scale_factor is unusable, else return self"""
        validate_scale(self.scale_factor)
        return self


def toggle(config: RenderConfig, field_name: str) -> RenderConfig:
    """Flip a boolean field

    Raises:
        KeyError: field_name is not a boolean field of RenderConfig
    """
    bool_fields = {f.name for f in fields(RenderConfig) if f.type is bool}
    if field_name not in bool_fields:
        raise KeyError(f"Not a boolean RenderConfig field: {field_name}")
    return replace(config, **{field_name: not getattr(config, field_name)})


def with_alignment(config: RenderConfig, policy: AlignmentPolicy) -> RenderConfig:
    return replace(config, alignment=policy)


def cycle_alignment(config: RenderConfig) -> RenderConfig:
    """Advance OFF -> WORLD_PIXEL -> SCREEN_PIXEL -> OFF"""
    index = ALIGNMENT_CYCLE.index(config.alignment)
    return with_alignment(config, ALIGNMENT_CYCLE[(index + 1) % len(ALIGNMENT_CYCLE)])


def with_sizing_mode(config: RenderConfig, mode: SizingMode) -> RenderConfig:
    return replace(config, sizing_mode=mode)


def with_scale(config: RenderConfig, scale_factor: float) -> RenderConfig:
    """Return a config with a new scale factor (validated)"""
    return replace(config, scale_factor=validate_scale(scale_factor))


# ============================================================================
# Scale stepping
# ============================================================================

def scale_up(scale_factor: float) -> float:
    """Next larger scale: +1 below 4x, doubling from 4x upwards

    Examples:
        >>> scale_up(2.0), scale_up(4.0), scale_up(8.0)
        (3.0, 8.0, 16.0)
    """
    if scale_factor >= 4.0:
        return scale_factor * 2.0
    return scale_factor + 1.0


def scale_down(scale_factor: float) -> float:
    """Next smaller scale, mirroring scale_up; never goes below 1x

    Examples:
        >>> scale_down(8.0), scale_down(4.0), scale_down(1.0)
        (4.0, 2.0, 1.0)
    """
    if scale_factor <= 1.0:
        return scale_factor
    if scale_factor >= 4.0:
        return scale_factor / 2.0
    return max(scale_factor - 1.0, 1.0)
