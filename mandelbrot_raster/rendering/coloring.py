"""
Escape-time coloring for Mandelbrot renders.

Intensities are quantized into RGBA with a fixed three-band ramp (red,
red-green, red-green-blue). Channel arithmetic is 8-bit: every product is
masked to the low byte, so high intensities wrap around.
"""

import numpy as np
from typing import NamedTuple
import logging

logger = logging.getLogger(__name__)

BAND_ALPHA = 240
OPAQUE_ALPHA = 255

RED_BAND_END = 63
GREEN_BAND_END = 126


class ColorRGBA(NamedTuple):
    """8-bit RGBA color."""
    r: int
    g: int
    b: int
    a: int


BLACK = ColorRGBA(0, 0, 0, OPAQUE_ALPHA)


def _channel(value: int) -> int:
    return value & 0xFF


def color_of(intensity: int) -> ColorRGBA:
    """
    Map an intensity to its band color.

    0 and the band edges 63 and 126 fall through to opaque black.

    Args:
        intensity: Pixel intensity, 0-255

    Returns:
        RGBA color
    """
    p = int(intensity)
    if p != 0 and p < RED_BAND_END:
        return ColorRGBA(_channel(p * 4), 0, 0, BAND_ALPHA)
    if RED_BAND_END < p < GREEN_BAND_END:
        return ColorRGBA(_channel(p * 4), _channel((p - RED_BAND_END) * 4), 0, BAND_ALPHA)
    if p > GREEN_BAND_END:
        return ColorRGBA(_channel(p * 4), _channel(p * 4), _channel((p - GREEN_BAND_END) * 4), BAND_ALPHA)
    return BLACK


class ColoringEngine:
    """Vectorized application of the band ramp to intensity grids."""

    def colorize(self, intensities: np.ndarray) -> np.ndarray:
        """
        Color an intensity grid.

        Args:
            intensities: 2D array of intensities

        Returns:
            uint8 RGBA array of shape (height, width, 4)
        """
        p = np.asarray(intensities).astype(np.int32)
        if p.ndim != 2:
            raise ValueError(f"Expected 2D intensity array, got shape {p.shape}")

        rgba = np.zeros(p.shape + (4,), dtype=np.int32)
        rgba[..., 3] = OPAQUE_ALPHA

        red = (p != 0) & (p < RED_BAND_END)
        green = (p > RED_BAND_END) & (p < GREEN_BAND_END)
        blue = p > GREEN_BAND_END

        rgba[red, 0] = p[red] * 4
        rgba[red, 3] = BAND_ALPHA

        rgba[green, 0] = p[green] * 4
        rgba[green, 1] = (p[green] - RED_BAND_END) * 4
        rgba[green, 3] = BAND_ALPHA

        rgba[blue, 0] = p[blue] * 4
        rgba[blue, 1] = p[blue] * 4
        rgba[blue, 2] = (p[blue] - GREEN_BAND_END) * 4
        rgba[blue, 3] = BAND_ALPHA

        logger.debug(f"Colorized {p.shape[1]}x{p.shape[0]} intensity grid")
        return (rgba & 0xFF).astype(np.uint8)

    def lookup_table(self) -> np.ndarray:
        """Color of every 8-bit intensity, shape (256, 4)."""
        return self.colorize(np.arange(256).reshape(1, 256))[0]
