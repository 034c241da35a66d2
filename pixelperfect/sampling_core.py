"""
Sub-pixel Sampling Compensator - Functional Core

Aligned camera offsets throw away a fraction of a pixel of motion. With
linear filtering at a non-integer scale that shows up as seams where two
texels get sampled twice. This module computes the fractional offset to
hand to the texture-sampling stage as a per-draw bias; it performs no
sampling itself.

Convention: the off-screen canvas is stored bottom-up (OpenGL texture
origin at bottom-left) while camera offsets grow downwards, so the y
component is flipped: bias_y = (1 - frac_y) mod 1.
"""

import math

from .canvas_types import CameraState, Vec2


ZERO_BIAS: Vec2 = (0.0, 0.0)


def unit_fraction(value: float) -> float:
    """Fractional part in [0, 1), also for negative values

    value - floor(value) can round up to exactly 1.0 for tiny negative
    inputs; that case wraps to 0.0.
    """
    fraction = value - math.floor(value)
    if fraction >= 1.0:
        return 0.0
    return fraction


def sampling_bias(
    ideal_offset: Vec2,
    aligned_offset: Vec2,
    scale_factor: float,
    flip_y: bool = True,
) -> Vec2:
    """Sub-pixel sampling bias for the current camera

    residual = (ideal - aligned) * scale, in device pixels. Its whole part
    is already expressed by the aligned offset; only the fractional part
    is forwarded.

    Args:
        ideal_offset: Continuous camera position (virtual pixels)
        aligned_offset: Snapped camera position (virtual pixels)
        scale_factor: Device pixels per virtual pixel
        flip_y: Surface is stored bottom-up (default True)

    Returns:
        (bias_x, bias_y), each in [0, 1)

    Examples:
        >>> sampling_bias((0.25, 0.0), (0.0, 0.0), 2.0)
        (0.5, 0.0)
    """
    residual_x = (ideal_offset[0] - aligned_offset[0]) * scale_factor
    residual_y = (ideal_offset[1] - aligned_offset[1]) * scale_factor

    bias_x = unit_fraction(residual_x)
    bias_y = unit_fraction(residual_y)
    if flip_y:
        bias_y = unit_fraction(1.0 - bias_y)
    return (bias_x, bias_y)


def camera_sampling_bias(camera: CameraState, scale_factor: float, enabled: bool = True) -> Vec2:
    """sampling_bias() for a CameraState, or zero when the stage is disabled"""
    if not enabled:
        return ZERO_BIAS
    return sampling_bias(camera.ideal_offset, camera.aligned_offset, scale_factor)


def signed_shift(bias: float) -> float:
    """Undo the [0, 1) wrap of a bias component for a consumer that adds it

    A bias above one half stands for a small negative shift: 0.8 is -0.2
    device pixels, not +0.8. Returns a value in (-0.5, 0.5].
    """
    if bias > 0.5:
        return bias - 1.0
    return bias
