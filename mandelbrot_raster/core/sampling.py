"""
Diagonal supersampling backends.

A sampler turns a complex-plane pixel centre into an 8-bit intensity by
evaluating four diagonal escape counts around it, averaging them, and
repeating the averaging `zoom` times. Two interchangeable backends are
provided: complex128 (vectorized with NumPy) and mpmath arbitrary precision.
Sums and the running accumulator wrap modulo 256.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from abc import ABC, abstractmethod
import logging

import mpmath as mp

from .math_functions import escape_time, escape_time_array
from .precision import (
    DOUBLE_MANTISSA_BITS, HighPrecisionComplex, PrecisionConfig, escape_time_mp, validate_delta,
)

logger = logging.getLogger(__name__)

MIN_ZOOM = 1
MAX_ZOOM = 255

# Diagonal offset pattern, in evaluation order
DIAGONALS: Tuple[Tuple[int, int], ...] = ((1, 1), (1, -1), (-1, -1), (-1, 1))


def validate_zoom(zoom: int) -> int:
    """Reject zoom levels outside [1, 255]."""
    if isinstance(zoom, bool) or not isinstance(zoom, (int, np.integer)):
        raise ValueError(f"zoom must be an integer, got {zoom!r}")
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise ValueError(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}, got {zoom}")
    return int(zoom)


def wrap8(value: int) -> int:
    """Reduce an integer to the unsigned 8-bit range."""
    return value & 0xFF


def average_counts(counts) -> int:
    """8-bit sum of the four diagonal counts, floor-divided by 4."""
    return wrap8(sum(counts)) // 4


class Supersampler(ABC):
    """Abstract base class for supersampling backends."""

    name = "abstract"

    def __init__(self, delta: Optional[float] = None, include_center: bool = False):
        """
        Initialize sampler.

        Args:
            delta: Diagonal offset; None selects the backend default
            include_center: Seed the accumulator with the centre escape
                count when zoom == 1
        """
        if delta is None:
            delta = self.default_delta()
        self.delta = validate_delta(delta)
        self.include_center = include_center

    @abstractmethod
    def default_delta(self) -> float:
        """Delta used when none is configured."""
        pass

    @abstractmethod
    def sample(self, x: float, y: float, zoom: int) -> int:
        """
        Intensity of the pixel centred on (x, y).

        Args:
            x, y: Pixel centre in the complex plane
            zoom: Number of averaging rounds, 1-255

        Returns:
            Intensity in [0, 200)
        """
        pass

    def sample_grid(self, xs: np.ndarray, ys: np.ndarray, zoom: int) -> np.ndarray:
        """
        Intensities for every (x, y) combination of the given axes.

        Args:
            xs: Real coordinates of the columns
            ys: Imaginary coordinates of the rows
            zoom: Number of averaging rounds

        Returns:
            uint8 array of shape (len(ys), len(xs))
        """
        zoom = validate_zoom(zoom)
        grid = np.zeros((len(ys), len(xs)), dtype=np.uint8)
        for row, y in enumerate(ys):
            for col, x in enumerate(xs):
                grid[row, col] = self.sample(float(x), float(y), zoom)
        return grid

    def describe(self) -> Dict[str, object]:
        """Backend parameters, recorded in render metadata."""
        return {'backend': self.name, 'sample_delta': self.delta}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(delta={self.delta!r}, include_center={self.include_center})"


class FixedPrecisionSampler(Supersampler):
    """complex128 supersampler."""

    name = "fixed"

    def __init__(self, delta: Optional[float] = None, include_center: bool = False,
                 width: int = 1024):
        self.width = width
        super().__init__(delta, include_center)

    def default_delta(self) -> float:
        return 0.3 / float(self.width)

    def sample(self, x: float, y: float, zoom: int) -> int:
        zoom = validate_zoom(zoom)
        d = self.delta

        p = 0
        if zoom == 1 and self.include_center:
            p = escape_time(complex(x, y))

        for _ in range(zoom):
            counts = [escape_time(complex(x + sx * d, y + sy * d)) for sx, sy in DIAGONALS]
            p = wrap8(p + average_counts(counts))

        return p // zoom

    def sample_grid(self, xs: np.ndarray, ys: np.ndarray, zoom: int) -> np.ndarray:
        zoom = validate_zoom(zoom)
        d = np.float64(self.delta)
        re, im = np.meshgrid(np.asarray(xs, dtype=np.float64),
                             np.asarray(ys, dtype=np.float64))

        # uint8 array arithmetic wraps modulo 256
        p = np.zeros(re.shape, dtype=np.uint8)
        if zoom == 1 and self.include_center:
            p = escape_time_array(re + 1j * im)

        for _ in range(zoom):
            total = np.zeros(re.shape, dtype=np.uint8)
            for sx, sy in DIAGONALS:
                c = (re + sx * d) + 1j * (im + sy * d)
                total += escape_time_array(c)
            p += total // 4

        return p // np.uint8(zoom)

    def describe(self) -> Dict[str, object]:
        info = super().describe()
        info['precision_bits'] = DOUBLE_MANTISSA_BITS
        return info


class ArbitraryPrecisionSampler(Supersampler):
    """mpmath supersampler running at a configurable working precision."""

    name = "arbitrary"

    # Fixed delta of the arbitrary-precision path, one pixel of a 1024 wide raster
    DEFAULT_DELTA = 4 / 1024

    def __init__(self, delta: Optional[float] = None, include_center: bool = False,
                 precision_bits: Optional[int] = None):
        super().__init__(delta, include_center)
        self.precision = PrecisionConfig.for_delta(self.delta, precision_bits)
        logger.info(f"Arbitrary precision sampler: {self.precision.bits} bits, delta={self.delta}")

    def default_delta(self) -> float:
        return self.DEFAULT_DELTA

    def sample(self, x: float, y: float, zoom: int) -> int:
        zoom = validate_zoom(zoom)
        with self.precision.workprec():
            return self._sample(x, y, zoom)

    def sample_grid(self, xs: np.ndarray, ys: np.ndarray, zoom: int) -> np.ndarray:
        zoom = validate_zoom(zoom)
        grid = np.zeros((len(ys), len(xs)), dtype=np.uint8)
        with self.precision.workprec():
            for row, y in enumerate(ys):
                for col, x in enumerate(xs):
                    grid[row, col] = self._sample(float(x), float(y), zoom)
        return grid

    def _sample(self, x: float, y: float, zoom: int) -> int:
        center = HighPrecisionComplex(x, y)
        d = mp.mpf(self.delta)

        p = 0
        if zoom == 1 and self.include_center:
            p = escape_time_mp(center)

        for _ in range(zoom):
            counts = [escape_time_mp(center.offset(sx * d, sy * d)) for sx, sy in DIAGONALS]
            p = wrap8(p + average_counts(counts))

        return p // zoom

    def describe(self) -> Dict[str, object]:
        info = super().describe()
        info['precision_bits'] = self.precision.bits
        return info


class SamplerRegistry:
    """Registry of the available supersampling backends."""

    _samplers: Dict[str, type] = {
        'fixed': FixedPrecisionSampler,
        'arbitrary': ArbitraryPrecisionSampler,
    }

    _aliases: Dict[str, str] = {
        'complex128': 'fixed',
        'double': 'fixed',
        'bigfloat': 'arbitrary',
        'mpmath': 'arbitrary',
    }

    @classmethod
    def register(cls, name: str, sampler_class: type) -> None:
        """
        Register a new backend.

        Args:
            name: Unique identifier for the backend
            sampler_class: Class implementing Supersampler
        """
        if not issubclass(sampler_class, Supersampler):
            raise ValueError("Sampler class must inherit from Supersampler")
        cls._samplers[name.lower()] = sampler_class
        logger.info(f"Registered sampler backend: {name}")

    @classmethod
    def canonical_name(cls, name: str) -> str:
        """Resolve aliases to the registered backend name."""
        key = name.lower()
        key = cls._aliases.get(key, key)
        if key not in cls._samplers:
            available = ', '.join(cls.list_backends())
            raise ValueError(f"Unknown backend '{name}'. Available: {available}")
        return key

    @classmethod
    def get(cls, name: str) -> type:
        """Sampler class registered under name (or one of its aliases)."""
        return cls._samplers[cls.canonical_name(name)]

    @classmethod
    def list_backends(cls) -> List[str]:
        return sorted(cls._samplers)

    @classmethod
    def create(cls, name: str, config) -> Supersampler:
        """
        Create a sampler configured from a RenderConfig.

        Args:
            name: Backend name
            config: Render configuration

        Returns:
            Configured sampler instance
        """
        sampler_class = cls.get(name)
        kwargs = {
            'delta': config.sample_delta,
            'include_center': config.include_center_sample,
        }
        if issubclass(sampler_class, FixedPrecisionSampler):
            kwargs['width'] = config.width
        elif issubclass(sampler_class, ArbitraryPrecisionSampler):
            kwargs['precision_bits'] = config.precision_bits
        return sampler_class(**kwargs)
