"""
Video Assembly - Imperative Shell

Turns a captured frames directory (0.png, 1.png, ...) into an MP4 using an
external ffmpeg executable. Command construction is a pure function; only
assemble_video() spawns a process.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Union

from .capture_shell import frame_filename
from .errors import VideoAssemblyError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def count_frames(frames_dir: PathLike) -> int:
    """Length of the contiguous 0.png, 1.png, ... run in frames_dir"""
    frames_dir = Path(frames_dir)
    count = 0
    while (frames_dir / frame_filename(count)).is_file():
        count += 1
    return count


def build_ffmpeg_command(
    frames_dir: PathLike,
    output_path: PathLike,
    fps: int = 60,
    crf: int = 18,
    preset: str = "medium",
    ffmpeg_bin: str = "ffmpeg",
) -> List[str]:
    """Build ffmpeg arguments for encoding a numbered PNG sequence

    Pure function. Frames are scaled to even dimensions (required by
    yuv420p) with nearest-neighbour so pixel edges stay hard.

    Returns:
        List of command arguments
    """
    return [
        ffmpeg_bin,
        '-y',  # Overwrite output
        '-framerate', str(fps),
        '-start_number', '0',
        '-i', str(Path(frames_dir) / '%d.png'),
        '-vf', 'scale=trunc(iw/2)*2:trunc(ih/2)*2:flags=neighbor',
        '-vcodec', 'libx264',
        '-preset', preset,
        '-crf', str(crf),
        '-pix_fmt', 'yuv420p',
        '-movflags', '+faststart',
        '-an',
        str(output_path),
    ]


def assemble_video(
    frames_dir: PathLike,
    output_path: PathLike,
    fps: int = 60,
    crf: int = 18,
    ffmpeg_bin: str = "ffmpeg",
) -> Path:
    """Encode a captured session's frames to a video file

    Side effects:
    - Spawns ffmpeg
    - Writes output_path

    Raises:
        FileNotFoundError: frames_dir missing or has no 0.png
        VideoAssemblyError: ffmpeg missing or exited with an error
    """
    frames_dir = Path(frames_dir)
    output_path = Path(output_path)
    if not frames_dir.is_dir():
        raise FileNotFoundError(f"Frames directory not found: {frames_dir}")
    frame_count = count_frames(frames_dir)
    if frame_count == 0:
        raise FileNotFoundError(f"No frames (0.png, 1.png, ...) in {frames_dir}")

    if shutil.which(ffmpeg_bin) is None:
        raise VideoAssemblyError(f"ffmpeg executable not found: {ffmpeg_bin}")

    cmd = build_ffmpeg_command(frames_dir, output_path, fps=fps, crf=crf, ffmpeg_bin=ffmpeg_bin)
    logger.info("Assembling %d frames from %s into %s", frame_count, frames_dir, output_path)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise VideoAssemblyError(f"Failed to start ffmpeg: {e}") from e

    if result.returncode != 0:
        tail = result.stderr.strip().splitlines()[-5:]
        raise VideoAssemblyError(
            f"ffmpeg exited with code {result.returncode}: " + " | ".join(tail)
        )

    logger.info("Video saved: %s", output_path)
    return output_path
