"""
Camera Aligner - Functional Core

Keeps a continuous ("ideal") camera position and derives the pixel-aligned
position used for rendering. Motion stays smooth internally while the
rendered image only ever moves by whole pixels.

Inputs must be finite. Hosts pass raw input through sanitize_vector() at
the boundary; the functions below do no validation of their own.
"""

import math
from dataclasses import replace
from typing import Optional

from .canvas_types import ORIGIN, AlignmentPolicy, CameraState, Vec2
from .config import RenderConfig


# ============================================================================
# Boundary helpers
# ============================================================================

def sanitize_vector(vector: Vec2) -> Vec2:
    """Replace NaN / infinite components with 0.0"""
    return tuple(float(v) if math.isfinite(v) else 0.0 for v in vector)


def sanitize_scalar(value: float, default: float = 0.0) -> float:
    return float(value) if math.isfinite(value) else default


# ============================================================================
# Alignment
# ============================================================================

def round_half_away(value: float) -> float:
    """Round to nearest whole number, ties away from zero

    Python's round() uses banker's rounding, which would make symmetric
    camera motion snap asymmetrically.
    """
    magnitude = abs(value)
    whole = math.floor(magnitude)
    # floor(magnitude + 0.5) would round 0.49999999999999994 up
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value)


def align_offset(ideal_offset: Vec2, scale_factor: float, policy: AlignmentPolicy) -> Vec2:
    """Snap a camera offset according to the alignment policy

    WORLD_PIXEL rounds in virtual pixel units. SCREEN_PIXEL multiplies by
    scale first, rounds, then divides again, so the result lands on the
    nearest DEVICE pixel: `scale` times finer, smoother at large scale.

    Args:
        ideal_offset: Continuous camera position in virtual pixels
        scale_factor: Device pixels per virtual pixel
        policy: AlignmentPolicy

    Returns:
        Aligned offset in virtual pixels
    """
    if policy is AlignmentPolicy.WORLD_PIXEL:
        return (round_half_away(ideal_offset[0]), round_half_away(ideal_offset[1]))
    if policy is AlignmentPolicy.SCREEN_PIXEL:
        return (
            round_half_away(ideal_offset[0] * scale_factor) / scale_factor,
            round_half_away(ideal_offset[1] * scale_factor) / scale_factor,
        )
    return (float(ideal_offset[0]), float(ideal_offset[1]))


def rotate(vector: Vec2, angle: float) -> Vec2:
    """Rotate a 2D vector counter-clockwise by angle radians"""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return (
        vector[0] * cos_a - vector[1] * sin_a,
        vector[0] * sin_a + vector[1] * cos_a,
    )


def orbit_offset(displacement: Vec2, angle: float) -> Vec2:
    """Scripted orbit: -displacement + rotate(displacement, angle)

    Passes through the origin at angle 0 and traces a circle of radius
    |displacement| around -displacement.
    """
    rotated = rotate(displacement, angle)
    return (rotated[0] - displacement[0], rotated[1] - displacement[1])


def orbit_displacement_for_scale(displacement_device_px: Vec2, scale_factor: float) -> Vec2:
    """Convert an orbit radius from device pixels to virtual pixels"""
    return (displacement_device_px[0] / scale_factor, displacement_device_px[1] / scale_factor)


# ============================================================================
# Per-frame update
# ============================================================================

def update_camera(
    state: CameraState,
    input_delta: Vec2,
    dt: float,
    scale_factor: float,
    config: RenderConfig,
) -> CameraState:
    """Advance the camera by one frame

    Freelook: ideal_offset += input_delta * camera_speed. camera_speed does
    not depend on the scale, so movement feels the same at every scale.

    Scripted orbit (freelook=False): ideal_offset is taken from the orbit at
    the current angle, then angle advances by angular_speed * dt. Manual
    input is ignored.

    Returns:
        New CameraState with aligned_offset re-derived
    """
    angle = state.angle
    if state.freelook:
        ideal = (
            state.ideal_offset[0] + input_delta[0] * config.camera_speed,
            state.ideal_offset[1] + input_delta[1] * config.camera_speed,
        )
    else:
        displacement = orbit_displacement_for_scale(config.orbit_displacement, scale_factor)
        ideal = orbit_offset(displacement, angle)
        angle = angle + config.angular_speed * dt

    return replace(
        state,
        ideal_offset=ideal,
        aligned_offset=align_offset(ideal, scale_factor, config.alignment),
        angle=angle,
    )


def realign_camera(state: CameraState, scale_factor: float, policy: AlignmentPolicy) -> CameraState:
    """Re-derive aligned_offset, e.g. after the policy or scale changed"""
    return replace(state, aligned_offset=align_offset(state.ideal_offset, scale_factor, policy))


def reset_camera(state: CameraState) -> CameraState:
    """Move the camera back to the origin; angle and freelook are kept"""
    return replace(state, ideal_offset=ORIGIN, aligned_offset=ORIGIN)


def toggle_freelook(state: CameraState) -> CameraState:
    return replace(state, freelook=not state.freelook)


class CameraAligner:
    """Owns a CameraState and advances it once per frame

    Thin stateful wrapper over the pure functions above, for hosts that
    prefer an object to threading state through step_frame().
    """

    def __init__(self, config: Optional[RenderConfig] = None, state: Optional[CameraState] = None):
        self.config = config if config is not None else RenderConfig()
        self.state = state if state is not None else CameraState()

    def update(self, input_delta: Vec2, dt: float) -> CameraState:
        self.state = update_camera(
            self.state, input_delta, dt, self.config.scale_factor, self.config
        )
        return self.state

    def reset(self) -> CameraState:
        self.state = reset_camera(self.state)
        return self.state

    def set_config(self, config: RenderConfig) -> CameraState:
        """Swap configuration and re-snap the current position"""
        self.config = config
        self.state = realign_camera(self.state, config.scale_factor, config.alignment)
        return self.state

    def toggle_freelook(self) -> CameraState:
        self.state = toggle_freelook(self.state)
        return self.state
