"""
Error taxonomy for the virtual-resolution pipeline.

Numeric core functions only raise for invalid configuration (InvalidScale).
Capture errors are raised by the imperative shell and are recoverable:
the caller logs them and keeps rendering.
"""


class PixelPerfectError(Exception):
    """Base class for all pipeline errors"""


class InvalidScale(PixelPerfectError, ValueError):
    """Scale factor is not a positive finite number"""

    def __init__(self, scale_factor):
        self.scale_factor = scale_factor
        super().__init__(f"Scale factor must be positive and finite, got {scale_factor!r}")


class InvalidTransition(PixelPerfectError, RuntimeError):
    """Capture session method called in the wrong state"""


class CaptureError(PixelPerfectError):
    """Base class for capture I/O failures"""


class CaptureInitError(CaptureError, OSError):
    """Capture directory could not be created; session stays inactive"""


class CaptureWriteError(CaptureError, OSError):
    """Frame could not be encoded or written; frame index not advanced"""


class VideoAssemblyError(PixelPerfectError, RuntimeError):
    """ffmpeg could not assemble captured frames into a video"""
