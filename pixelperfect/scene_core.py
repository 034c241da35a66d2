"""
Demo Scene - Functional Core

Builds the axis-aligned rectangles drawn into the virtual canvas and packs
them into numpy arrays for GPU upload. Rectangles are dicts in world
(virtual pixel) units:

    {'x': 0, 'y': 0, 'width': 1, 'height': 1, 'color': (r, g, b[, a])}

Colors are 0.0-1.0 per channel; alpha defaults to 1.0.
"""

import math
from typing import Any, Dict, List, Tuple

import numpy as np

from .canvas_types import Vec2


Rect = Dict[str, Any]

CROSSHAIR_COLOR = (1.0, 0.0, 0.0, 0.5)
POINTER_MARKER_COLOR = (0.0, 0.0, 0.0, 1.0)


def rect(x: float, y: float, width: float, height: float, color: Tuple[float, ...]) -> Rect:
    return {'x': x, 'y': y, 'width': width, 'height': height, 'color': color}


def rgba(color: Tuple[float, ...]) -> Tuple[float, float, float, float]:
    """Pad an RGB color to RGBA"""
    if len(color) == 3:
        return (color[0], color[1], color[2], 1.0)
    return tuple(color[:4])


def pixel_grid(size: int = 10, step: int = 2) -> List[Rect]:
    """Checker of single virtual pixels with a colour ramp

    One-pixel features are where shimmer and seam crawling show first.
    """
    rects = []
    for x in range(0, size, step):
        for y in range(0, size, step):
            color = (x / size, y / size, (x + y) / (2.0 * size))
            rects.append(rect(float(x), float(y), 1.0, 1.0, color))
    return rects


def moving_blocks(time: float, origin: Vec2 = (20.0, 20.0), spacing: float = 34.0,
                  travel: float = 10.0, size: float = 16.0) -> List[Rect]:
    """Blocks moving with fixed / horizontal / vertical / diagonal patterns"""
    wave = math.cos(time) * travel
    offsets = [(0.0, 0.0), (wave, 0.0), (0.0, wave), (wave, wave)]
    colors = [(0.9, 0.3, 0.3), (0.3, 0.8, 0.3), (0.3, 0.4, 0.9), (0.9, 0.7, 0.2)]
    return [
        rect(origin[0] + spacing * i + dx, origin[1] + dy, size, size, colors[i])
        for i, (dx, dy) in enumerate(offsets)
    ]


def crosshair_rects(anchor: Vec2, length: float = 10.0,
                    color: Tuple[float, ...] = CROSSHAIR_COLOR) -> List[Rect]:
    """One-pixel-wide crosshair lines centred on a pixel-centre anchor

    `anchor` comes from coords_core.crosshair_anchor(); the lines cover the
    pixel column/row that contains it.
    """
    left = anchor[0] - 0.5
    top = anchor[1] - 0.5
    return [
        rect(left, anchor[1] - length, 1.0, 2.0 * length, color),
        rect(anchor[0] - length, top, 2.0 * length, 1.0, color),
    ]


def pointer_marker(position: Vec2, size: float,
                   color: Tuple[float, ...] = POINTER_MARKER_COLOR) -> Rect:
    """Marker at the exact (unsnapped) pointer position"""
    return rect(position[0], position[1], size, size, color)


def batch_rect_data(rectangles: List[Rect]) -> np.ndarray:
    """Pack rectangles into an (N, 8) float32 array: x, y, w, h, r, g, b, a

    Returns:
        Array ready for an instanced vertex buffer ('4f 4f/i')
    """
    if not rectangles:
        return np.zeros((0, 8), dtype='f4')
    return np.array([
        (r['x'], r['y'], r['width'], r['height'], *rgba(r['color']))
        for r in rectangles
    ], dtype='f4')
