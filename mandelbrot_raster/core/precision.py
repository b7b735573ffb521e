"""
Arbitrary precision mathematics for the escape-time evaluator.

This module provides the mpmath-based counterpart of the complex128 path:
a high-precision complex value built from two independent mpf components,
the working-precision configuration, and the escape-time loop evaluated with
a squared-magnitude test against 4.
"""

import math
import numpy as np
from typing import Optional, Union
import logging

import mpmath as mp

from .math_functions import ESCAPE_RADIUS, MAX_ITERATIONS

logger = logging.getLogger(__name__)

# Mantissa bits of an IEEE double; the floor for any working precision
DOUBLE_MANTISSA_BITS = 53


def validate_delta(delta) -> float:
    """Reject sample deltas that are not finite positive reals."""
    if isinstance(delta, bool) or not isinstance(delta, (int, float, np.integer, np.floating)):
        raise ValueError(f"sample delta must be a real number, got {delta!r}")
    if not (math.isfinite(delta) and delta > 0):
        raise ValueError(f"sample delta must be finite and positive, got {delta!r}")
    return float(delta)


def default_precision_bits(delta: float) -> int:
    """
    Working precision able to resolve the sample delta.

    Args:
        delta: Sample delta used by the supersampler

    Returns:
        Double precision plus the number of bits needed below the delta
    """
    delta = validate_delta(delta)
    return DOUBLE_MANTISSA_BITS + max(0, math.ceil(-math.log2(delta)))


class PrecisionConfig:
    """Working precision (in mantissa bits) for arbitrary precision arithmetic."""

    def __init__(self, bits: int = DOUBLE_MANTISSA_BITS):
        """
        Initialize precision configuration.

        Args:
            bits: Number of mantissa bits, at least 53
        """
        if isinstance(bits, bool) or not isinstance(bits, int):
            raise ValueError(f"Invalid precision specification: {bits!r}")
        if bits < DOUBLE_MANTISSA_BITS:
            raise ValueError(f"precision must be at least {DOUBLE_MANTISSA_BITS} bits, got {bits}")
        self.bits = bits

    @classmethod
    def for_delta(cls, delta: float, bits: Optional[int] = None) -> 'PrecisionConfig':
        """Explicit precision when given, otherwise derived from the delta."""
        if bits is None:
            bits = default_precision_bits(delta)
        return cls(bits)

    def workprec(self):
        """Context manager running mpmath arithmetic at this precision."""
        return mp.workprec(self.bits)

    def __eq__(self, other) -> bool:
        return isinstance(other, PrecisionConfig) and other.bits == self.bits

    def __repr__(self) -> str:
        return f"PrecisionConfig(bits={self.bits})"


class HighPrecisionComplex:
    """High-precision complex number implementation using mpmath."""

    __slots__ = ('real', 'imag')

    def __init__(self, real: Union[str, float, 'mp.mpf'] = 0,
                 imag: Union[str, float, 'mp.mpf'] = 0):
        """
        Initialize high-precision complex number.

        Args:
            real: Real part
            imag: Imaginary part
        """
        self.real = mp.mpf(real)
        self.imag = mp.mpf(imag)

    def __add__(self, other: 'HighPrecisionComplex') -> 'HighPrecisionComplex':
        """Add two high-precision complex numbers."""
        return HighPrecisionComplex(
            self.real + other.real,
            self.imag + other.imag
        )

    def square(self) -> 'HighPrecisionComplex':
        """Optimized squaring."""
        real = self.real * self.real - self.imag * self.imag
        imag = self.real * self.imag * 2
        return HighPrecisionComplex(real, imag)

    def abs_squared(self) -> 'mp.mpf':
        """Calculate squared absolute value for efficiency."""
        return self.real * self.real + self.imag * self.imag

    def offset(self, d_real, d_imag) -> 'HighPrecisionComplex':
        """A new point displaced by (d_real, d_imag)."""
        return HighPrecisionComplex(self.real + d_real, self.imag + d_imag)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HighPrecisionComplex):
            return NotImplemented
        return self.real == other.real and self.imag == other.imag

    def __repr__(self) -> str:
        return f"HighPrecisionComplex({self.real}, {self.imag})"


def escape_time_mp(c: HighPrecisionComplex) -> int:
    """
    Escape iteration count of a point at the current mpmath precision.

    Uses |v|^2 > 4, the square-root free form of the |v| > 2 test of the
    complex128 evaluator. Every step builds fresh values from the previous
    orbit point; nothing is reused between calls.

    Args:
        c: Point of the complex plane

    Returns:
        Escape count in [0, 200)
    """
    radius_sq = mp.mpf(ESCAPE_RADIUS) ** 2
    v = HighPrecisionComplex(0, 0)
    for n in range(MAX_ITERATIONS):
        v = v.square() + c
        if v.abs_squared() > radius_sq:
            return n
    return 0
