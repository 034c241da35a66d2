"""
Coordinate Mapper - Functional Core

Converts between device (screen) pixels and virtual canvas pixels using a
CanvasGeometry, and builds the axis-aligned orthographic view used to
render the canvas. Pure arithmetic, no error conditions.

Screen space: origin at window top-left, y down, device pixels.
Canvas space: origin at canvas top-left, y down, virtual pixels. When a
camera offset is given, canvas positions are world positions panned by it.
"""

import math

import numpy as np

from .canvas_types import ORIGIN, CameraState, CanvasGeometry, PointerOffsetSource, Vec2


def screen_to_canvas(
    pointer_device_pos: Vec2,
    geometry: CanvasGeometry,
    camera_offset: Vec2 = ORIGIN,
    snap: bool = False,
) -> Vec2:
    """Map a device pixel position onto the canvas

    canvas = (pointer - letterbox_offset) / scale + camera_offset

    Args:
        pointer_device_pos: Pointer position in device pixels
        geometry: Current canvas geometry
        camera_offset: Aligned or ideal camera offset (see select_camera_offset)
        snap: Floor to the containing virtual pixel

    Returns:
        Position in virtual pixels
    """
    scale = geometry.scale_factor
    x = (pointer_device_pos[0] - geometry.letterbox_offset[0]) / scale + camera_offset[0]
    y = (pointer_device_pos[1] - geometry.letterbox_offset[1]) / scale + camera_offset[1]
    if snap:
        return (float(math.floor(x)), float(math.floor(y)))
    return (x, y)


def canvas_to_screen(
    canvas_pos: Vec2,
    geometry: CanvasGeometry,
    camera_offset: Vec2 = ORIGIN,
) -> Vec2:
    """Inverse of screen_to_canvas (without snapping)

    screen = (canvas - camera_offset) * scale + letterbox_offset
    """
    scale = geometry.scale_factor
    return (
        (canvas_pos[0] - camera_offset[0]) * scale + geometry.letterbox_offset[0],
        (canvas_pos[1] - camera_offset[1]) * scale + geometry.letterbox_offset[1],
    )


def select_camera_offset(camera: CameraState, source: PointerOffsetSource) -> Vec2:
    """Pick which camera offset the pointer mapping is panned by

    ALIGNED makes the pointer land where world content is actually drawn;
    IDEAL tracks the continuous camera and drifts by up to one pixel.
    """
    if source is PointerOffsetSource.IDEAL:
        return camera.ideal_offset
    return camera.aligned_offset


def crosshair_anchor(canvas_pos: Vec2) -> Vec2:
    """Centre of the virtual pixel, where 1-pixel-wide lines must be drawn"""
    return (canvas_pos[0] + 0.5, canvas_pos[1] + 0.5)


def device_length_to_canvas(length_device_px: float, scale_factor: float) -> float:
    """Length in virtual pixels of something that is fixed in device pixels"""
    return length_device_px / scale_factor


# ============================================================================
# View projection
# ============================================================================

def view_origin(canvas_size: Vec2, camera_offset: Vec2 = ORIGIN, centered: bool = False) -> Vec2:
    """World position of the canvas top-left corner

    The camera offset is the top-left corner, or the centre when `centered`.
    Pass the result as `camera_offset` to screen_to_canvas/canvas_to_screen.
    """
    if centered:
        return (camera_offset[0] - canvas_size[0] / 2.0, camera_offset[1] - canvas_size[1] / 2.0)
    return (float(camera_offset[0]), float(camera_offset[1]))


def ortho_view_matrix(
    canvas_size: Vec2,
    camera_offset: Vec2 = ORIGIN,
    centered: bool = False,
) -> np.ndarray:
    """Orthographic projection of the visible world rectangle to clip space

    The visible rectangle is canvas_size virtual pixels wide and tall, with
    its top-left at camera_offset (or centred on it when `centered`). Y is
    flipped so that world y grows downwards on screen.

    Returns:
        (4, 4) float32 matrix, column-major ready (transpose of row-major),
        suitable for writing straight into a GLSL mat4 uniform
    """
    width, height = float(canvas_size[0]), float(canvas_size[1])
    if width <= 0.0 or height <= 0.0:
        return np.identity(4, dtype='f4')

    left, top = view_origin(canvas_size, camera_offset, centered)
    right = left + width
    bottom = top + height

    # Row-major: clip = M @ [x, y, 0, 1]
    matrix = np.array([
        [2.0 / (right - left), 0.0, 0.0, -(right + left) / (right - left)],
        [0.0, 2.0 / (top - bottom), 0.0, -(top + bottom) / (top - bottom)],
        [0.0, 0.0, -1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ], dtype='f4')
    return np.ascontiguousarray(matrix.T)


def world_to_clip(matrix: np.ndarray, point: Vec2) -> Vec2:
    """Apply a matrix from ortho_view_matrix to a world point"""
    clip = matrix.T @ np.array([point[0], point[1], 0.0, 1.0], dtype='f4')
    return (float(clip[0]), float(clip[1]))
