#!/usr/bin/env python3
"""
Tests for the demo scene builders
"""

import numpy as np
import pytest

from pixelperfect.scene_core import (
    batch_rect_data,
    crosshair_rects,
    moving_blocks,
    pixel_grid,
    pointer_marker,
    rect,
    rgba,
)


class TestSceneBuilders:

    def test_pixel_grid_single_pixels(self):
        rects = pixel_grid()

        assert len(rects) == 25
        assert all(r['width'] == 1.0 and r['height'] == 1.0 for r in rects)
        assert all(r['x'] == int(r['x']) and r['y'] == int(r['y']) for r in rects)

    def test_moving_blocks_first_is_fixed(self):
        at_zero = moving_blocks(0.0)
        later = moving_blocks(1.3)

        assert len(at_zero) == 4
        assert (at_zero[0]['x'], at_zero[0]['y']) == (later[0]['x'], later[0]['y'])
        assert at_zero[1]['x'] != later[1]['x']

    def test_crosshair_covers_anchor_pixel(self):
        vertical, horizontal = crosshair_rects((1.5, 2.5), length=10)

        assert (vertical['x'], vertical['width']) == (1.0, 1.0)
        assert (vertical['y'], vertical['height']) == (-7.5, 20.0)
        assert (horizontal['y'], horizontal['height']) == (2.0, 1.0)
        assert (horizontal['x'], horizontal['width']) == (-8.5, 20.0)

    def test_pointer_marker(self):
        marker = pointer_marker((1.125, 2.0), 1.0)
        assert (marker['x'], marker['y'], marker['width']) == (1.125, 2.0, 1.0)


class TestBatching:

    def test_rgba_padding(self):
        assert rgba((0.1, 0.2, 0.3)) == (0.1, 0.2, 0.3, 1.0)
        assert rgba((0.1, 0.2, 0.3, 0.5)) == (0.1, 0.2, 0.3, 0.5)

    def test_batch_layout(self):
        data = batch_rect_data([rect(1, 2, 3, 4, (1.0, 0.0, 0.0)),
                                rect(5, 6, 7, 8, (0.0, 1.0, 0.0, 0.5))])

        assert data.shape == (2, 8)
        assert data.dtype == np.float32
        np.testing.assert_allclose(data[0], [1, 2, 3, 4, 1, 0, 0, 1])
        np.testing.assert_allclose(data[1], [5, 6, 7, 8, 0, 1, 0, 0.5])

    def test_empty_batch(self):
        data = batch_rect_data([])
        assert data.shape == (0, 8)

    def test_batch_whole_scene(self):
        data = batch_rect_data(pixel_grid() + moving_blocks(0.0))
        assert data.shape == (29, 8)
        assert np.all(data[:, 7] == 1.0)
