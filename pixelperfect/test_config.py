#!/usr/bin/env python3
"""
Tests for RenderConfig and its toggle helpers
"""

import dataclasses

import pytest

from pixelperfect.canvas_types import AlignmentPolicy, SizingMode
from pixelperfect.config import (
    RenderConfig,
    cycle_alignment,
    scale_down,
    scale_up,
    toggle,
    with_alignment,
    with_scale,
    with_sizing_mode,
)
from pixelperfect.errors import InvalidScale


class TestDefaults:

    def test_default_values(self):
        config = RenderConfig()

        assert config.scale_factor == 4.0
        assert config.sizing_mode is SizingMode.TRIM
        assert config.alignment is AlignmentPolicy.SCREEN_PIXEL
        assert config.snap_pointer
        assert config.sampling_enabled
        assert not config.centered_camera

    def test_frozen(self):
        config = RenderConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.scale_factor = 2.0

    def test_validate_returns_self(self):
        config = RenderConfig(scale_factor=2.5)
        assert config.validate() is config

    def test_validate_rejects_bad_scale(self):
        with pytest.raises(InvalidScale):
            RenderConfig(scale_factor=0).validate()


class TestToggles:
    """Pure helpers the host maps key presses onto"""

    @pytest.mark.parametrize("name", ["snap_pointer", "sampling_enabled", "centered_camera"])
    def test_toggle_flips_bool(self, name):
        config = RenderConfig()
        flipped = toggle(config, name)

        assert getattr(flipped, name) is not getattr(config, name)
        assert toggle(flipped, name) == config

    @pytest.mark.parametrize("name", ["scale_factor", "alignment", "does_not_exist"])
    def test_toggle_rejects_non_bool(self, name):
        with pytest.raises(KeyError):
            toggle(RenderConfig(), name)

    def test_cycle_alignment_wraps(self):
        config = with_alignment(RenderConfig(), AlignmentPolicy.OFF)

        config = cycle_alignment(config)
        assert config.alignment is AlignmentPolicy.WORLD_PIXEL
        config = cycle_alignment(config)
        assert config.alignment is AlignmentPolicy.SCREEN_PIXEL
        config = cycle_alignment(config)
        assert config.alignment is AlignmentPolicy.OFF

    def test_with_sizing_mode(self):
        config = with_sizing_mode(RenderConfig(), SizingMode.OVERSCAN)
        assert config.sizing_mode is SizingMode.OVERSCAN

    def test_with_scale(self):
        config = with_scale(RenderConfig(), 2.5)
        assert config.scale_factor == 2.5

    def test_with_scale_validates(self):
        with pytest.raises(InvalidScale):
            with_scale(RenderConfig(), 0)


class TestScaleStepping:

    @pytest.mark.parametrize("before,after", [(1.0, 2.0), (2.0, 3.0), (3.0, 4.0),
                                              (4.0, 8.0), (8.0, 16.0), (1.5, 2.5)])
    def test_scale_up(self, before, after):
        assert scale_up(before) == after

    @pytest.mark.parametrize("before,after", [(16.0, 8.0), (8.0, 4.0), (4.0, 2.0),
                                              (3.0, 2.0), (2.0, 1.0), (1.0, 1.0),
                                              (1.5, 1.0), (0.5, 0.5)])
    def test_scale_down(self, before, after):
        assert scale_down(before) == after

    def test_scale_down_never_below_one(self):
        scale = 16.0
        for _ in range(10):
            scale = scale_down(scale)
        assert scale == 1.0
