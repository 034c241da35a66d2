"""
Frame Pipeline - Functional Core

One pure step per rendered frame. The host owns a FrameState, feeds it the
frame's inputs and the current RenderConfig, and gets back the next state
plus a FramePlan describing everything needed to draw the frame.

    state, plan = step_frame(state, inputs, config)
    if plan.geometry_changed: reallocate canvas surface to plan.geometry
    if not plan.skip_render: render with plan.view_matrix / plan.sampling_bias
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .camera_core import realign_camera, sanitize_scalar, sanitize_vector, update_camera
from .canvas_core import compute_geometry, geometry_key, validate_scale
from .canvas_types import ORIGIN, CameraState, CanvasGeometry, Vec2
from .config import RenderConfig
from .coords_core import (
    crosshair_anchor,
    ortho_view_matrix,
    screen_to_canvas,
    select_camera_offset,
    view_origin,
)
from .sampling_core import camera_sampling_bias


@dataclass(frozen=True)
class FrameInputs:
    """Everything the host samples from its environment for one frame

    Attributes:
        window_resolution: Current output surface size in device pixels
        pointer_position: Pointer position in device pixels
        input_delta: Camera movement direction (e.g. WASD as -1/0/+1)
        dt: Frame time step in seconds
    """
    window_resolution: Vec2
    pointer_position: Vec2 = ORIGIN
    input_delta: Vec2 = ORIGIN
    dt: float = 1.0 / 60.0


@dataclass(frozen=True)
class FrameState:
    """State carried from one frame to the next"""
    camera: CameraState = field(default_factory=CameraState)
    geometry: Optional[CanvasGeometry] = None
    frame_number: int = 0


@dataclass(frozen=True, eq=False)
class FramePlan:
    """Derived values for drawing one frame

    Attributes:
        geometry: Canvas geometry for this frame
        geometry_changed: Canvas surface must be (re)allocated
        camera: Camera state after this frame's update
        camera_offset: Aligned offset the scene is rendered with
        pointer_canvas: Pointer in canvas/world space
        crosshair: Pixel-centre anchor for drawing the pointer crosshair
        sampling_bias: Sub-pixel bias for the sampling stage, [0, 1)
        view_matrix: (4, 4) float32 ortho projection of the visible world
        skip_render: Canvas is empty, nothing to draw
    """
    geometry: CanvasGeometry
    geometry_changed: bool
    camera: CameraState
    camera_offset: Vec2
    pointer_canvas: Vec2
    crosshair: Vec2
    sampling_bias: Vec2
    view_matrix: np.ndarray
    skip_render: bool


def initial_frame_state(config: Optional[RenderConfig] = None, freelook: bool = True) -> FrameState:
    config = (config if config is not None else RenderConfig()).validate()
    camera = realign_camera(CameraState(freelook=freelook), config.scale_factor, config.alignment)
    return FrameState(camera=camera)


def _geometry_for(
    previous: Optional[CanvasGeometry], window_resolution: Vec2, config: RenderConfig
) -> Tuple[CanvasGeometry, bool]:
    if previous is not None:
        before = geometry_key(previous.window_resolution, previous.scale_factor, previous.mode)
        now = geometry_key(window_resolution, validate_scale(config.scale_factor), config.sizing_mode)
        if before == now:
            return previous, False
    return compute_geometry(window_resolution, config.scale_factor, config.sizing_mode), True


def step_frame(
    state: FrameState,
    inputs: FrameInputs,
    config: RenderConfig,
) -> Tuple[FrameState, FramePlan]:
    """Advance one frame

    Order: sanitize inputs, update camera, (re)compute geometry when the
    window, scale or sizing mode changed, map the pointer, compute the
    sampling bias and view matrix.

    Raises:
        InvalidScale: config.scale_factor is not positive
    """
    geometry, changed = _geometry_for(
        state.geometry, sanitize_vector(inputs.window_resolution), config
    )
    scale = geometry.scale_factor

    camera = update_camera(
        state.camera,
        sanitize_vector(inputs.input_delta),
        sanitize_scalar(inputs.dt),
        scale,
        config,
    )

    pan = view_origin(
        geometry.canvas_size,
        select_camera_offset(camera, config.pointer_offset_source),
        config.centered_camera,
    )
    pointer = screen_to_canvas(
        sanitize_vector(inputs.pointer_position), geometry, pan, snap=config.snap_pointer
    )

    plan = FramePlan(
        geometry=geometry,
        geometry_changed=changed,
        camera=camera,
        camera_offset=camera.aligned_offset,
        pointer_canvas=pointer,
        crosshair=crosshair_anchor(pointer),
        sampling_bias=camera_sampling_bias(camera, scale, config.sampling_enabled),
        view_matrix=ortho_view_matrix(
            geometry.canvas_size, camera.aligned_offset, config.centered_camera
        ),
        skip_render=geometry.is_empty,
    )
    next_state = FrameState(camera=camera, geometry=geometry, frame_number=state.frame_number + 1)
    return next_state, plan
