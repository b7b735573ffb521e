"""
Multiprocessing backend for parallel Mandelbrot rendering.

This module splits the raster into horizontal bands of rows and evaluates
them with a process pool. Bands write disjoint rows of the pixel buffer, so
the only synchronization needed is the final join before assembly.
"""

import numpy as np
from typing import List, Optional
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.math_functions import ComplexPlane
from ..core.sampling import Supersampler, validate_zoom
from ..rendering.coloring import ColoringEngine

logger = logging.getLogger(__name__)


@dataclass
class BandSpec:
    """Specification for a band of rows."""
    band_id: int
    y_start: int
    y_end: int

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


@dataclass
class BandResult:
    """Colored pixels of a single band."""
    band_id: int
    y_start: int
    pixels: np.ndarray
    processing_time: float


def create_band_grid(height: int, band_height: int = 64) -> List[BandSpec]:
    """
    Split the raster rows into bands.

    Args:
        height: Total image height
        band_height: Target rows per band

    Returns:
        List of BandSpec objects covering every row exactly once
    """
    if band_height <= 0:
        raise ValueError("band_height must be positive")

    bands = []
    for band_id, y in enumerate(range(0, height, band_height)):
        bands.append(BandSpec(band_id=band_id, y_start=y, y_end=min(y + band_height, height)))

    logger.debug(f"Created {len(bands)} bands of up to {band_height} rows")
    return bands


def process_band(args) -> BandResult:
    """
    Sample and color a single band, possibly in a worker process.

    Args:
        args: Tuple of (sampler, width, height, band, zoom)

    Returns:
        BandResult for the band
    """
    sampler, width, height, band, zoom = args

    start_time = time.time()

    plane = ComplexPlane(width, height)
    xs = plane.real_axis()
    ys = plane.imag_axis()[band.y_start:band.y_end]

    intensities = sampler.sample_grid(xs, ys, zoom)
    pixels = ColoringEngine().colorize(intensities)

    return BandResult(
        band_id=band.band_id,
        y_start=band.y_start,
        pixels=pixels,
        processing_time=time.time() - start_time
    )


def assemble_bands(band_results: List[BandResult], width: int, height: int) -> np.ndarray:
    """
    Assemble band results into the full pixel buffer.

    Args:
        band_results: List of BandResult objects
        width: Total image width
        height: Total image height

    Returns:
        uint8 RGBA array of shape (height, width, 4)
    """
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for result in band_results:
        band_height = result.pixels.shape[0]
        pixels[result.y_start:result.y_start + band_height] = result.pixels
    return pixels


def render_bands_serial(sampler: Supersampler, width: int, height: int, zoom: int,
                        band_height: int = 64) -> np.ndarray:
    """Render every band in the calling process."""
    zoom = validate_zoom(zoom)
    bands = create_band_grid(height, band_height)

    results = []
    for band in bands:
        results.append(process_band((sampler, width, height, band, zoom)))
        logger.debug(f"Band {band.band_id + 1}/{len(bands)} done (rows {band.y_start}-{band.y_end})")

    return assemble_bands(results, width, height)


class MultiprocessingAccelerator:
    """Process-pool rendering of row bands."""

    def __init__(self, num_processes: Optional[int] = None, band_height: int = 64):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for CPU count)
            band_height: Rows per band
        """
        if num_processes is None:
            self.num_processes = mp.cpu_count()
        else:
            self.num_processes = max(1, num_processes)

        self.band_height = band_height
        logger.info(f"Multiprocessing accelerator: {self.num_processes} processes, {band_height}-row bands")

    def render_bands(self, sampler: Supersampler, width: int, height: int, zoom: int) -> np.ndarray:
        """
        Render the raster with bands distributed across worker processes.

        Args:
            sampler: Supersampling backend, sent to every worker
            width, height: Raster resolution
            zoom: Number of averaging rounds

        Returns:
            uint8 RGBA array of shape (height, width, 4)
        """
        zoom = validate_zoom(zoom)
        start_time = time.time()

        bands = create_band_grid(height, self.band_height)
        logger.info(f"Processing {len(bands)} bands with {self.num_processes} processes")

        results = []
        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            futures = {executor.submit(process_band, (sampler, width, height, band, zoom)): band
                       for band in bands}

            for future in as_completed(futures):
                band = futures[future]
                # A failed band propagates; the buffer is never assembled with holes
                results.append(future.result())
                logger.debug(f"Band {band.band_id} complete ({len(results)}/{len(bands)})")

        pixels = assemble_bands(results, width, height)

        total_time = time.time() - start_time
        total_processing_time = sum(r.processing_time for r in results)
        logger.info(f"Parallel rendering complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return pixels


def get_optimal_process_count() -> int:
    """Get optimal number of processes, leaving one core for the system."""
    return max(1, mp.cpu_count() - 1)
