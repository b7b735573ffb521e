"""
Main API classes for Mandelbrot rendering.

This module provides the high-level interface: an immutable render
configuration, the image assembler that drives the coordinate mapper,
the supersampling backend and the colorizer over the whole raster, and
the two render entry points writing PNG output to a sink.
"""

import numpy as np
from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict, fields
import logging
import time

from . import __version__
from .core.math_functions import ComplexPlane
from .core.sampling import SamplerRegistry, Supersampler, validate_zoom
from .core.precision import DOUBLE_MANTISSA_BITS, validate_delta
from .rendering.coloring import color_of
from .rendering.image_output import ImageExporter, RenderMetadata, Sink
from .acceleration.multiprocessing import (
    MultiprocessingAccelerator, get_optimal_process_count, render_bands_serial,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for Mandelbrot rendering."""

    # Image parameters
    width: int = 1024
    height: int = 1024

    # Sampling
    sample_delta: Optional[float] = None  # None: backend default
    precision_bits: Optional[int] = None  # None: derived from the delta
    include_center_sample: bool = False

    # Performance
    workers: Optional[int] = 1  # None: one per spare core
    band_height: int = 64

    # Output
    compress_level: int = 6
    save_metadata: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Validate configuration parameters."""
        for name in ('width', 'height', 'band_height'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive")

        if self.sample_delta is not None:
            validate_delta(self.sample_delta)

        for name, optional in (('precision_bits', True), ('workers', True), ('compress_level', False)):
            value = getattr(self, name)
            if value is None and optional:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")

        if self.precision_bits is not None and self.precision_bits < DOUBLE_MANTISSA_BITS:
            raise ValueError(f"precision_bits must be >= {DOUBLE_MANTISSA_BITS}")

        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be >= 1")

        if not 0 <= self.compress_level <= 9:
            raise ValueError("compress_level must be between 0 and 9")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create configuration from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)


class MandelbrotRenderer:
    """Image assembler for a fixed render configuration."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.plane = ComplexPlane(self.config.width, self.config.height)
        self.image_exporter = ImageExporter(self.config.compress_level)
        self._samplers: Dict[str, Supersampler] = {}

        logger.info(f"MandelbrotRenderer initialized: {self.config.width}x{self.config.height}")

    def create_sampler(self, backend: str) -> Supersampler:
        """Build the sampling backend for this configuration."""
        return SamplerRegistry.create(backend, self.config)

    def get_sampler(self, backend: str) -> Supersampler:
        """Sampler for backend, built once per renderer and reused."""
        name = SamplerRegistry.canonical_name(backend)
        if name not in self._samplers:
            self._samplers[name] = self.create_sampler(name)
        return self._samplers[name]

    def render(self, zoom: int, backend: str = 'fixed') -> np.ndarray:
        """
        Render the raster into a pixel buffer.

        Args:
            zoom: Number of averaging rounds, 1-255
            backend: Sampling backend name

        Returns:
            uint8 RGBA array of shape (height, width, 4)
        """
        pixels, _ = self._render(zoom, backend)
        return pixels

    def render_to(self, sink: Sink, zoom: int, backend: str = 'fixed') -> RenderMetadata:
        """
        Render and encode the raster as PNG.

        Args:
            sink: Output path or writable binary stream
            zoom: Number of averaging rounds, 1-255
            backend: Sampling backend name

        Returns:
            Metadata of the render

        Raises:
            EncodingError: If the image cannot be encoded or written
        """
        pixels, metadata = self._render(zoom, backend)
        self.image_exporter.encode(
            pixels, sink, metadata if self.config.save_metadata else None
        )
        return metadata

    def render_pixel(self, px: int, py: int, zoom: int, backend: str = 'fixed'):
        """Color of a single pixel, computed without touching the rest of the raster."""
        zoom = validate_zoom(zoom)
        if not (0 <= px < self.config.width and 0 <= py < self.config.height):
            raise ValueError(f"Pixel ({px}, {py}) outside {self.config.width}x{self.config.height} raster")
        sampler = self.get_sampler(backend)
        x, y = self.plane.pixel_to_complex(px, py)
        return color_of(sampler.sample(x, y, zoom))

    def _render(self, zoom: int, backend: str):
        zoom = validate_zoom(zoom)
        sampler = self.get_sampler(backend)
        width, height = self.config.width, self.config.height

        start_time = time.time()
        logger.info(f"Starting render: {width}x{height}, zoom={zoom}, backend={sampler.name}")

        workers = self.config.workers
        if workers is None:
            workers = get_optimal_process_count()

        if workers > 1:
            accelerator = MultiprocessingAccelerator(workers, self.config.band_height)
            pixels = accelerator.render_bands(sampler, width, height, zoom)
        else:
            pixels = render_bands_serial(sampler, width, height, zoom, self.config.band_height)

        total_time = time.time() - start_time
        logger.info(f"Render complete: {total_time:.2f}s")

        info = sampler.describe()
        metadata = RenderMetadata(
            backend=info['backend'],
            resolution=(width, height),
            zoom=zoom,
            sample_delta=info['sample_delta'],
            precision_bits=info['precision_bits'],
            include_center_sample=self.config.include_center_sample,
            render_time_seconds=total_time,
            workers=workers,
            software_version=__version__,
        )
        return pixels, metadata


def generate_fixed_precision(sink: Sink, zoom: int,
                             config: Optional[RenderConfig] = None) -> RenderMetadata:
    """
    Render the Mandelbrot set with complex128 arithmetic and write a PNG.

    Args:
        sink: Output path or writable binary stream
        zoom: Number of averaging rounds, 1-255
        config: Rendering configuration (uses defaults if None)

    Returns:
        Metadata of the render
    """
    return MandelbrotRenderer(config).render_to(sink, zoom, backend='fixed')


def generate_arbitrary_precision(sink: Sink, zoom: int,
                                 config: Optional[RenderConfig] = None) -> RenderMetadata:
    """
    Render the Mandelbrot set with mpmath arithmetic and write a PNG.

    Slow: every sample is iterated with arbitrary precision reals.

    Args:
        sink: Output path or writable binary stream
        zoom: Number of averaging rounds, 1-255
        config: Rendering configuration (uses defaults if None)

    Returns:
        Metadata of the render
    """
    return MandelbrotRenderer(config).render_to(sink, zoom, backend='arbitrary')
