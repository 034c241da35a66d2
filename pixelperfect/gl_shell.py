"""
Headless GL Host - Imperative Shell

Handles all GPU operations and side effects for drawing through a virtual
canvas. Uses the pure modules for every calculation.

Two-pass pipeline per frame:
1. Scene pass: rectangles in world units -> canvas texture (canvas_size,
   NEAREST filter) through the ortho view matrix
2. Present pass: canvas texture -> window framebuffer, scaled by
   scale_factor at letterbox_offset, texture coordinates shifted by the
   sub-pixel sampling bias; everything else is the letterbox colour

The window framebuffer can be read back with read_framebuffer() and handed
to a FrameCaptureSession.
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Dict, List, Optional, Tuple

import moderngl
import numpy as np

from .canvas_types import CanvasGeometry, Vec2
from .frame_core import FramePlan
from .sampling_core import signed_shift
from .scene_core import Rect, batch_rect_data

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

DEFAULT_CLEAR_COLOR: Color = (1.0, 1.0, 1.0)
DEFAULT_LETTERBOX_COLOR: Color = (0.5, 0.0, 0.5)


# ============================================================================
# Per-stage frame timing
# ============================================================================

class FrameStage(Enum):
    """GPU work done for one FramePlan, in execution order"""
    SCENE = "scene"
    PRESENT = "present"
    READBACK = "readback"


class StageTimings:
    """Durations of each frame stage, one sample per rendered frame

    Frames whose plan skips the scene pass simply have no SCENE sample.
    """

    def __init__(self):
        self.samples: Dict[FrameStage, List[float]] = {stage: [] for stage in FrameStage}

    def record(self, stage: FrameStage, seconds: float) -> None:
        self.samples[stage].append(seconds)

    def summary(self) -> Dict[str, Dict[str, float]]:
        """count, mean_ms and max_ms for every stage that ran at least once"""
        result = {}
        for stage in FrameStage:
            durations = np.asarray(self.samples[stage], dtype='f8') * 1000.0
            if durations.size == 0:
                continue
            result[stage.value] = {
                'count': int(durations.size),
                'mean_ms': float(durations.mean()),
                'max_ms': float(durations.max()),
            }
        return result

    def clear(self) -> None:
        for durations in self.samples.values():
            durations.clear()


@contextmanager
def measure_stage(timings: Optional[StageTimings], stage: FrameStage):
    """Record the wall time of the enclosed block (no-op when timings is None)"""
    if timings is None:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        timings.record(stage, time.perf_counter() - start)


# ============================================================================
# Shader Source Code
# ============================================================================

# Scene pass: instanced axis-aligned rectangles in world units
SCENE_VERTEX_SHADER = """
#version 330

in vec2 in_position;   // Unit quad (0-1)
in vec4 in_rect;       // Per-instance: x, y, width, height (world pixels)
in vec4 in_color;      // Per-instance: RGBA

uniform mat4 u_view;   // World -> clip (ortho)

out vec4 v_color;

void main() {
    vec2 pos = in_rect.xy + in_position * in_rect.zw;
    gl_Position = u_view * vec4(pos, 0.0, 1.0);
    v_color = in_color;
}
"""

SCENE_FRAGMENT_SHADER = """
#version 330

in vec4 v_color;
out vec4 f_color;

void main() {
    f_color = v_color;
}
"""

# Present pass: scaled canvas quad placed in device pixels
PRESENT_VERTEX_SHADER = """
#version 330

in vec2 in_position;      // Unit quad (0-1), y down

uniform vec4 u_dest;      // x, y, width, height in device pixels (top-left origin)
uniform vec2 u_window;    // Window size in device pixels

out vec2 v_uv;

void main() {
    vec2 device = u_dest.xy + in_position * u_dest.zw;
    vec2 ndc = vec2(device.x / u_window.x * 2.0 - 1.0,
                    1.0 - device.y / u_window.y * 2.0);
    gl_Position = vec4(ndc, 0.0, 1.0);
    // Canvas texture is stored bottom-up
    v_uv = vec2(in_position.x, 1.0 - in_position.y);
}
"""

PRESENT_FRAGMENT_SHADER = """
#version 330

in vec2 v_uv;
out vec4 f_color;

uniform sampler2D u_canvas;
uniform vec2 u_bias_uv;   // Sub-pixel sampling bias converted to uv units

void main() {
    f_color = texture(u_canvas, v_uv + u_bias_uv);
}
"""


def bias_to_uv(sampling_bias: Vec2, geometry: CanvasGeometry) -> Vec2:
    """Convert a device-pixel sampling bias into a canvas texture uv shift

    The present shader adds the shift to uv, so each wrapped component is
    turned back into a signed one first. The y component already carries
    the bottom-up flip: a camera residual r gives a v shift of -r.
    """
    if geometry.is_empty:
        return (0.0, 0.0)
    scaled_w, scaled_h = geometry.scaled_size
    return (signed_shift(sampling_bias[0]) / scaled_w, signed_shift(sampling_bias[1]) / scaled_h)


# ============================================================================
# GPU Context and Resource Management
# ============================================================================

class PixelCanvasContext:
    """Standalone GL context with a window framebuffer and a canvas surface

    The canvas texture is reallocated only when ensure_canvas() sees a new
    canvas size; the window framebuffer only on resize_window().

    Side effects:
    - Creates an OpenGL context (no window required)
    - Allocates GPU memory for framebuffers and textures
    - Compiles 2 shader programs
    """

    def __init__(self, window_size: Tuple[int, int], enable_timing: bool = False):
        self.timings = StageTimings() if enable_timing else None

        self.ctx = moderngl.create_standalone_context()
        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA

        self.scene_prog = self.ctx.program(
            vertex_shader=SCENE_VERTEX_SHADER,
            fragment_shader=SCENE_FRAGMENT_SHADER
        )
        self.present_prog = self.ctx.program(
            vertex_shader=PRESENT_VERTEX_SHADER,
            fragment_shader=PRESENT_FRAGMENT_SHADER
        )

        quad_vertices = np.array([
            [0, 0],  # Top-left
            [1, 0],  # Top-right
            [0, 1],  # Bottom-left
            [1, 1],  # Bottom-right
        ], dtype='f4')
        self.quad_vbo = self.ctx.buffer(quad_vertices.tobytes())
        self.present_vao = self.ctx.vertex_array(
            self.present_prog,
            [(self.quad_vbo, '2f', 'in_position')]
        )

        self.window_size = (0, 0)
        self.fbo: Optional[moderngl.Framebuffer] = None
        self.resize_window(window_size)

        self.canvas_size = (0, 0)
        self.canvas_texture: Optional[moderngl.Texture] = None
        self.canvas_fbo: Optional[moderngl.Framebuffer] = None

    @property
    def width(self) -> int:
        return self.window_size[0]

    @property
    def height(self) -> int:
        return self.window_size[1]

    def resize_window(self, window_size: Tuple[int, int]) -> None:
        """Reallocate the window framebuffer if its size changed"""
        window_size = (int(window_size[0]), int(window_size[1]))
        if window_size == self.window_size and self.fbo is not None:
            return
        if window_size[0] <= 0 or window_size[1] <= 0:
            raise ValueError(f"Window size must be positive, got {window_size}")
        if self.fbo is not None:
            self.fbo.release()
        self.fbo = self.ctx.simple_framebuffer(window_size)
        self.window_size = window_size
        logger.debug("Window framebuffer allocated: %dx%d", *window_size)

    def ensure_canvas(self, geometry: CanvasGeometry) -> bool:
        """Make the canvas surface match geometry.pixel_size

        Returns:
            True if the surface was (re)allocated
        """
        size = geometry.pixel_size
        if size == self.canvas_size and (self.canvas_texture is not None or geometry.is_empty):
            return False

        self._release_canvas()
        self.canvas_size = size
        if geometry.is_empty:
            return True

        self.canvas_texture = self.ctx.texture(size, 4)
        self.canvas_texture.filter = (moderngl.NEAREST, moderngl.NEAREST)
        self.canvas_texture.repeat_x = False
        self.canvas_texture.repeat_y = False
        self.canvas_fbo = self.ctx.framebuffer(color_attachments=[self.canvas_texture])
        logger.debug("Canvas surface allocated: %dx%d", *size)
        return True

    def _release_canvas(self) -> None:
        if self.canvas_fbo is not None:
            self.canvas_fbo.release()
            self.canvas_fbo = None
        if self.canvas_texture is not None:
            self.canvas_texture.release()
            self.canvas_texture = None

    def timing_summary(self) -> Dict[str, Dict[str, float]]:
        if self.timings is None:
            return {}
        return self.timings.summary()

    def cleanup(self):
        """Release GPU resources

        Side effects:
        - Frees GPU memory for all framebuffers and textures
        - Destroys OpenGL context
        """
        self._release_canvas()
        self.present_vao.release()
        self.quad_vbo.release()
        if self.fbo is not None:
            self.fbo.release()
            self.fbo = None
        self.ctx.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()


# ============================================================================
# GPU Rendering Operations
# ============================================================================

def render_scene(
    ctx: PixelCanvasContext,
    rectangles: List[Rect],
    view_matrix: np.ndarray,
    clear_color: Color = DEFAULT_CLEAR_COLOR,
) -> None:
    """Scene pass: draw rectangles into the canvas surface

    Side effects:
    - Renders to the canvas framebuffer
    """
    if ctx.canvas_fbo is None:
        return

    with measure_stage(ctx.timings, FrameStage.SCENE):
        ctx.canvas_fbo.use()
        ctx.canvas_fbo.clear(*clear_color, 1.0)
        if not rectangles:
            return

        instance_data = batch_rect_data(rectangles)
        ctx.scene_prog['u_view'].write(np.ascontiguousarray(view_matrix, dtype='f4').tobytes())

        instance_vbo = ctx.ctx.buffer(instance_data.tobytes())
        vao = ctx.ctx.vertex_array(
            ctx.scene_prog,
            [
                (ctx.quad_vbo, '2f', 'in_position'),
                (instance_vbo, '4f 4f/i', 'in_rect', 'in_color'),
            ]
        )
        try:
            vao.render(moderngl.TRIANGLE_STRIP, vertices=4, instances=len(instance_data))
        finally:
            vao.release()
            instance_vbo.release()


def present(
    ctx: PixelCanvasContext,
    geometry: CanvasGeometry,
    sampling_bias: Vec2 = (0.0, 0.0),
    letterbox_color: Color = DEFAULT_LETTERBOX_COLOR,
) -> None:
    """Present pass: scale the canvas into the window framebuffer

    Side effects:
    - Renders to the window framebuffer
    """
    with measure_stage(ctx.timings, FrameStage.PRESENT):
        ctx.fbo.use()
        ctx.fbo.clear(*letterbox_color, 1.0)
        if ctx.canvas_texture is None or geometry.is_empty:
            return

        scaled_w, scaled_h = geometry.scaled_size
        ctx.present_prog['u_dest'].value = (
            geometry.letterbox_offset[0], geometry.letterbox_offset[1], scaled_w, scaled_h
        )
        ctx.present_prog['u_window'].value = (float(ctx.width), float(ctx.height))
        ctx.present_prog['u_bias_uv'].value = bias_to_uv(sampling_bias, geometry)
        ctx.present_prog['u_canvas'].value = 0
        ctx.canvas_texture.use(location=0)
        ctx.present_vao.render(moderngl.TRIANGLE_STRIP, vertices=4)


def render_plan(
    ctx: PixelCanvasContext,
    plan: FramePlan,
    rectangles: List[Rect],
    clear_color: Color = DEFAULT_CLEAR_COLOR,
    letterbox_color: Color = DEFAULT_LETTERBOX_COLOR,
) -> None:
    """Draw one frame described by a FramePlan

    The window framebuffer follows plan.geometry.window_resolution; the
    canvas surface is reallocated when the plan says the geometry changed.
    An empty canvas renders letterbox only.
    """
    width, height = plan.geometry.window_resolution
    if width >= 1 and height >= 1:
        ctx.resize_window((int(width), int(height)))
    if plan.geometry_changed or ctx.canvas_size != plan.geometry.pixel_size:
        ctx.ensure_canvas(plan.geometry)
    if not plan.skip_render:
        render_scene(ctx, rectangles, plan.view_matrix, clear_color)
    present(ctx, plan.geometry, plan.sampling_bias, letterbox_color)


def read_framebuffer(ctx: PixelCanvasContext) -> np.ndarray:
    """Read the window framebuffer (synchronous)

    Side effects:
    - Reads from GPU memory

    Returns:
        RGB uint8 array (height, width, 3), top row first
    """
    with measure_stage(ctx.timings, FrameStage.READBACK):
        raw = ctx.fbo.read(components=3)
        img = np.frombuffer(raw, dtype='u1').reshape((ctx.height, ctx.width, 3))
        # OpenGL origin is bottom-left, images are top-left
        return np.flip(img, axis=0).copy()
