"""
Core mathematical functions for escape-time iteration.

This module provides the coordinate mapping between raster pixels and the
complex plane, and the fixed-precision (complex128) escape-time evaluator in
both scalar and vectorized NumPy form.
"""

import numpy as np
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

# Viewport of the complex plane mapped onto the raster
XMIN, YMIN, XMAX, YMAX = -2.0, -2.0, 2.0, 2.0

MAX_ITERATIONS = 200
ESCAPE_RADIUS = 2.0


class ComplexPlane:
    """Maps a fixed [-2, 2] x [-2, 2] viewport onto a width x height raster."""

    xmin = XMIN
    xmax = XMAX
    ymin = YMIN
    ymax = YMAX

    def __init__(self, width: int, height: int):
        """
        Initialize the raster resolution.

        Args:
            width, height: Image resolution in pixels
        """
        if isinstance(width, bool) or isinstance(height, bool):
            raise ValueError("Width and height must be integers")
        if not isinstance(width, (int, np.integer)) or not isinstance(height, (int, np.integer)):
            raise ValueError("Width and height must be integers")
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")

        self.width = int(width)
        self.height = int(height)

    def pixel_to_complex(self, px: int, py: int) -> Tuple[float, float]:
        """Convert pixel coordinates to a (real, imag) pair."""
        x = float(px) / float(self.width) * (self.xmax - self.xmin) + self.xmin
        y = float(py) / float(self.height) * (self.ymax - self.ymin) + self.ymin
        return x, y

    def complex_to_pixel(self, x: float, y: float) -> Tuple[int, int]:
        """Convert a complex-plane point back to the pixel containing it."""
        px = int((x - self.xmin) / (self.xmax - self.xmin) * self.width)
        py = int((y - self.ymin) / (self.ymax - self.ymin) * self.height)
        return px, py

    def real_axis(self) -> np.ndarray:
        """Real coordinate of every raster column."""
        px = np.arange(self.width, dtype=np.float64)
        return px / np.float64(self.width) * (self.xmax - self.xmin) + self.xmin

    def imag_axis(self) -> np.ndarray:
        """Imaginary coordinate of every raster row."""
        py = np.arange(self.height, dtype=np.float64)
        return py / np.float64(self.height) * (self.ymax - self.ymin) + self.ymin

    def __repr__(self) -> str:
        return f"ComplexPlane(width={self.width}, height={self.height})"


def escape_time(z: complex) -> int:
    """
    Escape iteration count of a single point.

    Iterates v = v*v + z from v = 0 and returns the index n of the first
    iteration with |v| > 2. Points that never escape within the iteration
    bound return 0, as do points escaping on the very first iteration.

    Args:
        z: Point of the complex plane

    Returns:
        Escape count in [0, 200)
    """
    v = 0j
    for n in range(MAX_ITERATIONS):
        v = v * v + z
        if abs(v) > ESCAPE_RADIUS:
            return n
    return 0


def escape_time_array(c: np.ndarray) -> np.ndarray:
    """
    Vectorized escape_time over an array of points.

    The orbit is kept as separate real and imaginary float64 arrays and
    each product is rounded on its own, the same sequence of operations as
    Python's complex multiply, so results are bit-identical to escape_time.
    Lanes that have escaped are frozen so diverging orbits never overflow.

    Args:
        c: Complex array of points

    Returns:
        uint8 array of escape counts with the shape of c
    """
    c = np.asarray(c, dtype=np.complex128)
    c_real = c.real.ravel()
    c_imag = c.imag.ravel()

    counts = np.zeros(c_real.shape, dtype=np.uint8)
    idx = np.arange(c_real.size)
    v_real = np.zeros(c_real.shape, dtype=np.float64)
    v_imag = np.zeros(c_real.shape, dtype=np.float64)

    for n in range(MAX_ITERATIONS):
        if idx.size == 0:
            break

        # (a+bi)*(a+bi) + c
        a, b = v_real, v_imag
        v_real = (a * a - b * b) + c_real[idx]
        v_imag = (a * b + b * a) + c_imag[idx]

        escaped = np.hypot(v_real, v_imag) > ESCAPE_RADIUS
        counts[idx[escaped]] = n

        keep = ~escaped
        idx = idx[keep]
        v_real = v_real[keep]
        v_imag = v_imag[keep]

    return counts.reshape(c.shape)
