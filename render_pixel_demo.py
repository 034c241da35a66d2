#!/usr/bin/env python3
"""
Pixel Canvas Capture Demo

Renders the pixel-art test scene headlessly through the virtual canvas
pipeline and captures every frame to capture/<epoch_ms>/frames/N.png.
The camera orbits (scripted mode) so alignment artifacts are visible when
flipping through frames or the assembled video.

Usage:
    python render_pixel_demo.py                          # 680x380, scale 4, 120 frames
    python render_pixel_demo.py --scale 2.5 --mode overscan
    python render_pixel_demo.py --alignment world --video demo.mp4
"""

import argparse
import logging
import sys

from pixelperfect.canvas_core import IDEAL_CAPTURE_SIZE
from pixelperfect.canvas_types import AlignmentPolicy, SizingMode
from pixelperfect.capture_shell import FrameCaptureSession, try_save_frame
from pixelperfect.config import RenderConfig
from pixelperfect.coords_core import device_length_to_canvas, screen_to_canvas, view_origin
from pixelperfect.errors import CaptureInitError, InvalidScale, VideoAssemblyError
from pixelperfect.frame_core import FrameInputs, initial_frame_state, step_frame
from pixelperfect.gl_shell import PixelCanvasContext, read_framebuffer, render_plan
from pixelperfect.scene_core import crosshair_rects, moving_blocks, pixel_grid, pointer_marker
from pixelperfect.video_shell import assemble_video

logger = logging.getLogger("render_pixel_demo")

# Raw pointer marker size, fixed on screen
POINTER_MARKER_DEVICE_PX = 4.0


def build_scene(plan, time: float, scale_factor: float, pointer_raw):
    rects = pixel_grid() + moving_blocks(time)
    rects += crosshair_rects(plan.crosshair)
    rects.append(pointer_marker(
        pointer_raw, device_length_to_canvas(POINTER_MARKER_DEVICE_PX, scale_factor)
    ))
    return rects


def run_demo(args) -> int:
    config = RenderConfig(
        scale_factor=args.scale,
        sizing_mode=SizingMode(args.mode),
        alignment=AlignmentPolicy(args.alignment),
        sampling_enabled=not args.no_bias,
    ).validate()

    window = (args.width, args.height)
    dt = 1.0 / args.fps
    pointer = (args.width / 2.0, args.height / 2.0)
    state = initial_frame_state(config, freelook=False)

    session = FrameCaptureSession(args.output_root)
    try:
        session.begin_capture()
    except CaptureInitError as e:
        logger.error("Capture disabled: %s", e)
        session = None

    summary = None
    try:
        with PixelCanvasContext(window, enable_timing=args.timing) as ctx:
            for frame in range(args.frames):
                inputs = FrameInputs(window_resolution=window, pointer_position=pointer, dt=dt)
                state, plan = step_frame(state, inputs, config)

                pan = view_origin(plan.geometry.canvas_size, plan.camera_offset, config.centered_camera)
                pointer_raw = screen_to_canvas(pointer, plan.geometry, pan)

                rects = build_scene(plan, frame * dt, config.scale_factor, pointer_raw)
                render_plan(ctx, plan, rects)
                try_save_frame(session, read_framebuffer(ctx))

            for stage, stats in ctx.timing_summary().items():
                logger.info("%-10s mean=%.4fms max=%.4fms frames=%d",
                            stage, stats['mean_ms'], stats['max_ms'], stats['count'])
    finally:
        # Close the session even when the GL context or a frame fails
        if session is not None:
            summary = session.end_capture()

    if summary is None:
        return 1

    if args.video:
        try:
            assemble_video(summary.directory, args.video, fps=args.fps)
        except (VideoAssemblyError, FileNotFoundError) as e:
            logger.error("Video assembly failed: %s", e)
            return 1
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Render the pixel canvas demo scene headlessly and capture frames'
    )
    parser.add_argument('--width', type=int, default=int(IDEAL_CAPTURE_SIZE[0]),
                        help='Window width in device pixels (default: 680)')
    parser.add_argument('--height', type=int, default=int(IDEAL_CAPTURE_SIZE[1]),
                        help='Window height in device pixels (default: 380)')
    parser.add_argument('--scale', type=float, default=4.0,
                        help='Device pixels per virtual pixel, may be fractional (default: 4)')
    parser.add_argument('--mode', choices=[m.value for m in SizingMode], default='trim',
                        help='Canvas sizing mode (default: trim)')
    parser.add_argument('--alignment', choices=[p.value for p in AlignmentPolicy],
                        default='screen', help='Camera alignment policy (default: screen)')
    parser.add_argument('--no-bias', action='store_true',
                        help='Disable the sub-pixel sampling bias')
    parser.add_argument('--frames', type=int, default=120,
                        help='Number of frames to render (default: 120)')
    parser.add_argument('--fps', type=int, default=60,
                        help='Frame rate for the orbit and the video (default: 60)')
    parser.add_argument('--output-root', default='capture',
                        help='Capture root directory (default: capture)')
    parser.add_argument('--video', default=None,
                        help='Also assemble the frames into this video file (needs ffmpeg)')
    parser.add_argument('--timing', action='store_true',
                        help='Log mean and max time of each frame stage')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        return run_demo(args)
    except InvalidScale as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
