"""
Mandelbrot set rasterization library.

This library renders the Mandelbrot set over the [-2, 2] x [-2, 2] viewport
into an RGBA raster, using either complex128 arithmetic or mpmath arbitrary
precision reals, with diagonal supersampling and a three-band color ramp.

Key Features:
- Interchangeable fixed-precision and arbitrary-precision backends
- Repeated 2x2 diagonal supersampling ("zoom" smoothing)
- Deterministic band coloring with 8-bit channel arithmetic
- PNG output with embedded render metadata
- Optional row-band multiprocessing

Example usage:
    >>> from mandelbrot_raster import RenderConfig, generate_fixed_precision
    >>> with open("mandelbrot.png", "wb") as f:
    ...     generate_fixed_precision(f, zoom=1, config=RenderConfig(width=256, height=256))
"""

__version__ = "1.0.0"
__author__ = "Mandelbrot Raster Team"

from mandelbrot_raster.core.math_functions import ComplexPlane, escape_time, escape_time_array
from mandelbrot_raster.core.precision import HighPrecisionComplex, PrecisionConfig, escape_time_mp
from mandelbrot_raster.core.sampling import (
    ArbitraryPrecisionSampler, FixedPrecisionSampler, SamplerRegistry, Supersampler,
)
from mandelbrot_raster.rendering.coloring import ColoringEngine, ColorRGBA, color_of
from mandelbrot_raster.rendering.image_output import EncodingError, ImageExporter, RenderMetadata

# Main API classes
from mandelbrot_raster.api import (
    MandelbrotRenderer, RenderConfig, generate_arbitrary_precision, generate_fixed_precision,
)

__all__ = [
    "MandelbrotRenderer",
    "RenderConfig",
    "generate_fixed_precision",
    "generate_arbitrary_precision",
    "ComplexPlane",
    "escape_time",
    "escape_time_array",
    "escape_time_mp",
    "HighPrecisionComplex",
    "PrecisionConfig",
    "Supersampler",
    "FixedPrecisionSampler",
    "ArbitraryPrecisionSampler",
    "SamplerRegistry",
    "ColoringEngine",
    "ColorRGBA",
    "color_of",
    "EncodingError",
    "ImageExporter",
    "RenderMetadata",
]
