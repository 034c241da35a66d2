#!/usr/bin/env python3
"""
Tests for the Coordinate Mapper functional core

Screen <-> canvas mapping with letterbox and camera pan, plus the ortho
view matrix used by the scene pass.
"""

import numpy as np
import pytest

from pixelperfect.canvas_core import compute_geometry
from pixelperfect.canvas_types import CameraState, PointerOffsetSource, SizingMode
from pixelperfect.coords_core import (
    canvas_to_screen,
    crosshair_anchor,
    device_length_to_canvas,
    ortho_view_matrix,
    screen_to_canvas,
    select_camera_offset,
    view_origin,
    world_to_clip,
)


@pytest.fixture
def letterboxed():
    """1003x70 at 4x: canvas 250x17 drawn at device (1, 1)"""
    return compute_geometry((1003, 70), 4)


class TestScreenToCanvas:
    """Pointer mapping into the virtual canvas"""

    def test_letterbox_corner_maps_to_origin(self, letterboxed):
        assert screen_to_canvas((1, 1), letterboxed) == (0.0, 0.0)

    def test_divides_by_scale(self, letterboxed):
        assert screen_to_canvas((5.5, 9), letterboxed) == (1.125, 2.0)

    def test_snap_floors_to_virtual_pixel(self, letterboxed):
        assert screen_to_canvas((5.5, 9), letterboxed, snap=True) == (1.0, 2.0)

    def test_snap_floors_negative_positions(self, letterboxed):
        """Pointer inside the letterbox maps left of the canvas"""
        assert screen_to_canvas((0, 0), letterboxed, snap=True) == (-1.0, -1.0)

    def test_camera_offset_pans(self, letterboxed):
        assert screen_to_canvas((1, 1), letterboxed, (10.0, -3.0)) == (10.0, -3.0)
        assert screen_to_canvas((9, 1), letterboxed, (10.0, -3.0)) == (12.0, -3.0)

    def test_overscan_has_no_letterbox_shift(self):
        g = compute_geometry((1003, 70), 4, SizingMode.OVERSCAN)
        assert screen_to_canvas((8, 8), g) == (2.0, 2.0)


class TestCanvasToScreen:
    """Inverse mapping for screen-space overlays"""

    def test_canvas_origin_is_letterbox_offset(self, letterboxed):
        assert canvas_to_screen((0, 0), letterboxed) == letterboxed.letterbox_offset

    def test_scales_and_offsets(self, letterboxed):
        assert canvas_to_screen((2.0, 3.0), letterboxed) == (9.0, 13.0)

    @pytest.mark.parametrize("scale", [1.0, 1.5, 2.5, 3.0, 4.0, 7.3])
    @pytest.mark.parametrize("offset", [(0.0, 0.0), (10.25, -3.5), (-0.3, 0.7)])
    def test_round_trip(self, scale, offset):
        """screen_to_canvas(canvas_to_screen(p)) == p without snapping"""
        g = compute_geometry((1001, 677), scale)
        for p in [(0.0, 0.0), (1.5, 2.25), (-4.0, 17.125), (123.456, 78.9)]:
            back = screen_to_canvas(canvas_to_screen(p, g, offset), g, offset)
            assert back == pytest.approx(p)


class TestOffsetSelection:
    """Pointer follows either the aligned or the ideal camera"""

    def test_select_camera_offset(self):
        camera = CameraState(ideal_offset=(0.3, 0.3), aligned_offset=(0.0, 0.0))

        assert select_camera_offset(camera, PointerOffsetSource.ALIGNED) == (0.0, 0.0)
        assert select_camera_offset(camera, PointerOffsetSource.IDEAL) == (0.3, 0.3)

    def test_view_origin(self):
        assert view_origin((100, 50), (10.0, 5.0)) == (10.0, 5.0)
        assert view_origin((100, 50), (10.0, 5.0), centered=True) == (-40.0, -20.0)


class TestPointerHelpers:

    def test_crosshair_anchor_is_pixel_centre(self):
        assert crosshair_anchor((3.0, 4.0)) == (3.5, 4.5)

    def test_device_length_to_canvas(self):
        assert device_length_to_canvas(4.0, 4.0) == 1.0
        assert device_length_to_canvas(4.0, 2.5) == 1.6


class TestOrthoViewMatrix:
    """Axis-aligned world -> clip projection, y down"""

    def test_corners_map_to_clip_corners(self):
        m = ortho_view_matrix((250, 17))

        assert world_to_clip(m, (0, 0)) == pytest.approx((-1.0, 1.0), abs=1e-6)
        assert world_to_clip(m, (250, 17)) == pytest.approx((1.0, -1.0), abs=1e-6)

    def test_camera_offset_moves_visible_rect(self):
        m = ortho_view_matrix((100, 50), (10.0, 5.0))

        assert world_to_clip(m, (10.0, 5.0)) == pytest.approx((-1.0, 1.0), abs=1e-6)
        assert world_to_clip(m, (60.0, 30.0)) == pytest.approx((0.0, 0.0), abs=1e-6)

    def test_centered_camera(self):
        m = ortho_view_matrix((100, 50), (10.0, 5.0), centered=True)
        assert world_to_clip(m, (10.0, 5.0)) == pytest.approx((0.0, 0.0), abs=1e-6)

    def test_matrix_layout(self):
        m = ortho_view_matrix((100, 50))

        assert m.shape == (4, 4)
        assert m.dtype == np.float32
        assert m.flags['C_CONTIGUOUS']
        # Translation sits in the last row (column-major storage)
        assert m[3, 0] == pytest.approx(-1.0)
        assert m[3, 1] == pytest.approx(1.0)

    def test_empty_canvas_gives_identity(self):
        np.testing.assert_array_equal(ortho_view_matrix((0, 50)), np.identity(4, dtype='f4'))
