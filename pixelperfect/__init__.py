"""
pixelperfect

Virtual-resolution rendering and capture pipeline for pixel art at
arbitrary (including fractional) scale factors, using the functional core,
imperative shell pattern.

Modules:
- canvas_core: Canvas size, leftover and letterbox from window + scale
- camera_core: Continuous camera with pixel-aligned render offset
- coords_core: Screen <-> canvas mapping and ortho view matrix
- sampling_core: Sub-pixel sampling bias for the texture-sampling stage
- frame_core: Pure per-frame pipeline step
- capture_shell: Numbered PNG frame capture sessions
- video_shell: ffmpeg assembly of captured frames
- gl_shell: Headless moderngl host (canvas surface, present, readback)
"""

from .canvas_types import (
    AlignmentPolicy,
    CameraState,
    CanvasGeometry,
    CaptureState,
    CaptureSummary,
    PointerOffsetSource,
    SizingMode,
)

from .errors import (
    CaptureError,
    CaptureInitError,
    CaptureWriteError,
    InvalidScale,
    InvalidTransition,
    PixelPerfectError,
    VideoAssemblyError,
)

from .config import (
    RenderConfig,
    toggle,
    cycle_alignment,
    with_alignment,
    with_scale,
    with_sizing_mode,
    scale_up,
    scale_down,
)

from .canvas_core import (
    IDEAL_CAPTURE_SIZE,
    CanvasSizer,
    compute_geometry,
)

from .camera_core import (
    CameraAligner,
    align_offset,
    orbit_offset,
    reset_camera,
    sanitize_vector,
    update_camera,
)

from .coords_core import (
    canvas_to_screen,
    crosshair_anchor,
    ortho_view_matrix,
    screen_to_canvas,
    select_camera_offset,
)

from .sampling_core import (
    camera_sampling_bias,
    sampling_bias,
)

from .frame_core import (
    FrameInputs,
    FramePlan,
    FrameState,
    initial_frame_state,
    step_frame,
)

from .capture_shell import (
    FrameCaptureSession,
    try_save_frame,
)

from .video_shell import (
    assemble_video,
    build_ffmpeg_command,
)

__all__ = [
    # Types
    'AlignmentPolicy',
    'CameraState',
    'CanvasGeometry',
    'CaptureState',
    'CaptureSummary',
    'PointerOffsetSource',
    'SizingMode',

    # Errors
    'CaptureError',
    'CaptureInitError',
    'CaptureWriteError',
    'InvalidScale',
    'InvalidTransition',
    'PixelPerfectError',
    'VideoAssemblyError',

    # Config
    'RenderConfig',
    'toggle',
    'cycle_alignment',
    'with_alignment',
    'with_scale',
    'with_sizing_mode',
    'scale_up',
    'scale_down',

    # Core
    'IDEAL_CAPTURE_SIZE',
    'CanvasSizer',
    'compute_geometry',
    'CameraAligner',
    'align_offset',
    'orbit_offset',
    'reset_camera',
    'sanitize_vector',
    'update_camera',
    'canvas_to_screen',
    'crosshair_anchor',
    'ortho_view_matrix',
    'screen_to_canvas',
    'select_camera_offset',
    'camera_sampling_bias',
    'sampling_bias',
    'FrameInputs',
    'FramePlan',
    'FrameState',
    'initial_frame_state',
    'step_frame',

    # Shell
    'FrameCaptureSession',
    'try_save_frame',
    'assemble_video',
    'build_ffmpeg_command',
]
