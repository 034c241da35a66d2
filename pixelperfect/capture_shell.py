"""
Frame Capture - Imperative Shell

Writes rendered frames to numbered PNG files for offline assembly:

    capture/<epoch_ms>/frames/0.png, 1.png, 2.png, ...

State machine:
    INACTIVE --begin_capture--> ACTIVE --save_frame--> ACTIVE
    ACTIVE --end_capture--> INACTIVE

end_capture() on an inactive session is a no-op rather than an error, so a
single key can toggle capture without the host tracking state itself.

Writes are synchronous on the calling thread. Capture is a debug/demo
feature; the stall is accepted and there is never a queue to drain.
"""

import contextlib
import io
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from PIL import Image

from .canvas_types import CaptureState, CaptureSummary
from .errors import CaptureInitError, CaptureWriteError, InvalidTransition

logger = logging.getLogger(__name__)

DEFAULT_CAPTURE_ROOT = "capture"
FRAMES_DIRNAME = "frames"

# Attempts at finding a free millisecond directory before giving up
_MAX_DIRECTORY_ATTEMPTS = 1000

PixelBuffer = Union[np.ndarray, Image.Image]


# ============================================================================
# Encoding
# ============================================================================

def frame_filename(frame_index: int) -> str:
    return f"{frame_index}.png"


def pixels_to_image(pixels: PixelBuffer) -> Image.Image:
    """Wrap a pixel buffer as a PIL image without changing any values

    Accepts uint8 arrays shaped (H, W), (H, W, 3) or (H, W, 4), or a PIL
    image (passed through). Channel order is kept as given.

    Raises:
        ValueError: Unsupported dtype or shape
        TypeError: Not an array or image
    """
    if isinstance(pixels, Image.Image):
        return pixels
    if not isinstance(pixels, np.ndarray):
        raise TypeError(f"Expected numpy array or PIL image, got {type(pixels).__name__}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Pixel buffer must be uint8, got {pixels.dtype}")
    if not (pixels.ndim == 2 or (pixels.ndim == 3 and pixels.shape[2] in (3, 4))):
        raise ValueError(f"Unsupported pixel buffer shape {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ValueError(f"Empty pixel buffer {pixels.shape}")
    return Image.fromarray(np.ascontiguousarray(pixels))


def encode_png(pixels: PixelBuffer) -> bytes:
    """Losslessly encode a pixel buffer to PNG bytes"""
    buffer = io.BytesIO()
    pixels_to_image(pixels).save(buffer, format='PNG')
    return buffer.getvalue()


# ============================================================================
# Capture Session
# ============================================================================

class FrameCaptureSession:
    """Sequential per-frame PNG capture

    Independent sessions are safe to run side by side; each one gets its
    own timestamp directory. The surrounding application normally runs at
    most one.

    Args:
        root: Directory under which <epoch_ms>/frames/ is created
        clock: Returns wall-clock seconds (injectable for tests)
    """

    def __init__(
        self,
        root: Union[str, Path] = DEFAULT_CAPTURE_ROOT,
        clock: Callable[[], float] = time.time,
    ):
        self.root = Path(root)
        self._clock = clock
        self._state = CaptureState.INACTIVE
        self._directory: Optional[Path] = None
        self._frame_index = 0

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is CaptureState.ACTIVE

    @property
    def frame_index(self) -> int:
        """Index the next saved frame will get (= frames saved so far)"""
        return self._frame_index

    @property
    def session_directory(self) -> Optional[Path]:
        """Frames directory of the current or most recent session"""
        return self._directory

    def _create_directory(self) -> Path:
        stamp = int(self._clock() * 1000)
        for attempt in range(_MAX_DIRECTORY_ATTEMPTS):
            session_root = self.root / str(stamp + attempt)
            try:
                session_root.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                continue
            frames_dir = session_root / FRAMES_DIRNAME
            frames_dir.mkdir()
            return frames_dir
        raise FileExistsError(f"No free capture directory under {self.root} near {stamp}")

    def begin_capture(self) -> Path:
        """Create a fresh session directory and start capturing

        Returns:
            Path of the frames directory

        Raises:
            InvalidTransition: Session is already active
            CaptureInitError: Directory could not be created
        """
        if self.is_active:
            raise InvalidTransition(f"Capture already active in {self._directory}")

        try:
            directory = self._create_directory()
        except OSError as e:
            logger.error("Failed to create capture directory under %s: %s", self.root, e)
            raise CaptureInitError(f"Failed to create capture directory under {self.root}: {e}") from e

        self._directory = directory
        self._frame_index = 0
        self._state = CaptureState.ACTIVE
        logger.info("Screen capturing to %s", directory)
        return directory

    def save_frame(self, pixels: PixelBuffer) -> Path:
        """Encode and write one frame as {frame_index}.png

        The frame index only advances after a successful write, so a
        retry after CaptureWriteError reuses the same file name.

        Args:
            pixels: Frame already read back by the caller, top row first

        Returns:
            Path of the written file

        Raises:
            InvalidTransition: No active session (nothing is written)
            CaptureWriteError: Encoding or writing failed
        """
        if not self.is_active:
            raise InvalidTransition("save_frame called without an active capture session")

        path = self._directory / frame_filename(self._frame_index)
        try:
            data = encode_png(pixels)
        except (ValueError, TypeError, OSError) as e:
            raise CaptureWriteError(f"Failed to encode frame {self._frame_index}: {e}") from e

        try:
            path.write_bytes(data)
        except OSError as e:
            with contextlib.suppress(OSError):
                path.unlink(missing_ok=True)
            raise CaptureWriteError(f"Failed to write frame {self._frame_index} to {path}: {e}") from e

        logger.debug("Captured frame %d to %s", self._frame_index, path)
        self._frame_index += 1
        return path

    def end_capture(self) -> Optional[CaptureSummary]:
        """Stop capturing and report what was written

        Returns:
            CaptureSummary, or None if no session was active
        """
        if not self.is_active:
            return None

        summary = CaptureSummary(directory=self._directory, frame_count=self._frame_index)
        self._state = CaptureState.INACTIVE
        logger.info("Captured %d frames to %s", summary.frame_count, summary.directory)
        return summary

    def toggle(self) -> Optional[CaptureSummary]:
        """Begin when inactive, end when active (one-key capture toggle)

        Returns:
            CaptureSummary when a session was ended, else None

        Raises:
            CaptureInitError: Starting the session failed
        """
        if self.is_active:
            return self.end_capture()
        self.begin_capture()
        return None

    def __enter__(self):
        self.begin_capture()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_capture()


def try_save_frame(session: Optional[FrameCaptureSession], pixels: PixelBuffer) -> bool:
    """Save a frame if capturing, without ever interrupting the render loop

    Returns:
        True if a frame was written
    """
    if session is None or not session.is_active:
        return False
    try:
        session.save_frame(pixels)
    except CaptureWriteError as e:
        logger.warning("Skipping frame %d: %s", session.frame_index, e)
        return False
    return True
