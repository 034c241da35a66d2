#!/usr/bin/env python3
"""
Tests for frame capture sessions

Uses tmp_path for real file I/O and a fixed clock so directory names are
predictable.
"""

import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pixelperfect.canvas_types import CaptureState
from pixelperfect.capture_shell import (
    FrameCaptureSession,
    encode_png,
    frame_filename,
    pixels_to_image,
    try_save_frame,
)
from pixelperfect.errors import CaptureInitError, CaptureWriteError, InvalidTransition


FIXED_CLOCK = 1700000000.5


@pytest.fixture
def session(tmp_path):
    return FrameCaptureSession(tmp_path / "capture", clock=lambda: FIXED_CLOCK)


def make_frame(width=8, height=5, channels=3, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)


class TestSessionLifecycle:
    """INACTIVE -> ACTIVE -> INACTIVE"""

    def test_begin_creates_timestamp_directory(self, session, tmp_path):
        directory = session.begin_capture()

        assert directory == tmp_path / "capture" / "1700000000500" / "frames"
        assert directory.is_dir()
        assert session.state is CaptureState.ACTIVE
        assert session.frame_index == 0

    def test_frames_numbered_from_zero(self, session):
        directory = session.begin_capture()
        for seed in range(3):
            session.save_frame(make_frame(seed=seed))
        summary = session.end_capture()

        assert sorted(p.name for p in directory.iterdir()) == ['0.png', '1.png', '2.png']
        assert summary.frame_count == 3
        assert summary.directory == directory
        assert session.state is CaptureState.INACTIVE

    def test_save_before_begin_rejected(self, session, tmp_path):
        with pytest.raises(InvalidTransition):
            session.save_frame(make_frame())
        assert not (tmp_path / "capture").exists()

    def test_save_after_end_rejected(self, session):
        session.begin_capture()
        session.end_capture()
        with pytest.raises(InvalidTransition):
            session.save_frame(make_frame())

    def test_end_is_idempotent(self, session):
        assert session.end_capture() is None
        session.begin_capture()
        assert session.end_capture() is not None
        assert session.end_capture() is None

    def test_double_begin_rejected(self, session):
        session.begin_capture()
        with pytest.raises(InvalidTransition):
            session.begin_capture()

    def test_new_session_restarts_numbering(self, session):
        first = session.begin_capture()
        session.save_frame(make_frame())
        session.end_capture()

        second = session.begin_capture()
        path = session.save_frame(make_frame())

        assert second != first
        assert path == second / "0.png"

    def test_same_millisecond_gets_distinct_directories(self, tmp_path):
        a = FrameCaptureSession(tmp_path, clock=lambda: FIXED_CLOCK)
        b = FrameCaptureSession(tmp_path, clock=lambda: FIXED_CLOCK)

        dir_a = a.begin_capture()
        dir_b = b.begin_capture()

        assert dir_a != dir_b
        assert dir_b.parent.name == "1700000000501"

    def test_init_failure(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("occupied")
        session = FrameCaptureSession(blocker)

        with pytest.raises(CaptureInitError):
            session.begin_capture()
        assert session.state is CaptureState.INACTIVE

    def test_toggle(self, session):
        assert session.toggle() is None
        assert session.is_active
        summary = session.toggle()
        assert summary.frame_count == 0
        assert not session.is_active

    def test_context_manager(self, session):
        with session as active:
            active.save_frame(make_frame())
            assert active.is_active
        assert not session.is_active
        assert (session.session_directory / "0.png").is_file()


class TestWriteFailures:
    """A failed frame leaves no file and does not advance the index"""

    def test_write_failure_keeps_index(self, session, monkeypatch):
        directory = session.begin_capture()
        session.save_frame(make_frame(seed=0))
        original_bytes = (directory / "0.png").read_bytes()

        original_write = Path.write_bytes

        def failing_write(self, data):
            if self.name == "1.png":
                raise OSError(28, "No space left on device")
            return original_write(self, data)

        monkeypatch.setattr(Path, "write_bytes", failing_write)
        with pytest.raises(CaptureWriteError):
            session.save_frame(make_frame(seed=1))

        assert session.frame_index == 1
        assert not (directory / "1.png").exists()
        assert (directory / "0.png").read_bytes() == original_bytes

        monkeypatch.undo()
        path = session.save_frame(make_frame(seed=1))
        assert path.name == "1.png"
        assert session.frame_index == 2

    def test_unencodable_buffer(self, session):
        directory = session.begin_capture()
        with pytest.raises(CaptureWriteError):
            session.save_frame(np.zeros((4, 4, 3), dtype=np.float32))

        assert session.frame_index == 0
        assert list(directory.iterdir()) == []

    def test_try_save_frame_logs_and_continues(self, session, caplog):
        session.begin_capture()
        with caplog.at_level(logging.WARNING, logger="pixelperfect.capture_shell"):
            assert try_save_frame(session, np.zeros((0, 4, 3), dtype=np.uint8)) is False
        assert "Skipping frame 0" in caplog.text

        assert try_save_frame(session, make_frame()) is True
        assert session.frame_index == 1

    def test_try_save_frame_without_session(self):
        assert try_save_frame(None, make_frame()) is False


class TestEncoding:
    """PNG output is lossless and bit-exact"""

    @pytest.mark.parametrize("channels", [3, 4])
    def test_round_trip_bit_exact(self, session, channels):
        session.begin_capture()
        frame = make_frame(width=17, height=11, channels=channels, seed=42)
        path = session.save_frame(frame)

        with Image.open(path) as img:
            np.testing.assert_array_equal(np.asarray(img), frame)

    def test_grayscale_accepted(self):
        img = pixels_to_image(np.full((3, 4), 7, dtype=np.uint8))
        assert img.size == (4, 3)

    def test_pil_image_passthrough(self):
        img = Image.new('RGB', (2, 2))
        assert pixels_to_image(img) is img

    def test_rejects_bad_shapes(self):
        with pytest.raises(ValueError):
            pixels_to_image(np.zeros((2, 2, 2), dtype=np.uint8))
        with pytest.raises(TypeError):
            pixels_to_image([[0, 0], [0, 0]])

    def test_encode_png_signature(self):
        assert encode_png(make_frame()).startswith(b'\x89PNG\r\n\x1a\n')

    def test_frame_filename(self):
        assert frame_filename(0) == "0.png"
        assert frame_filename(1234) == "1234.png"
